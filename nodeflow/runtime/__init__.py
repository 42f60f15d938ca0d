"""
Runtime Module

Graph coordinator and command line entry point.
"""

from .coordinator import GraphCoordinator

__all__ = [
    "GraphCoordinator",
]

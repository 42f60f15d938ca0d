"""
API Module

HTTP surface for graph execution.
"""

from .main import RunRequest, create_app

__all__ = [
    "RunRequest",
    "create_app",
]

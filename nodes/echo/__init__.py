"""
Echo Node
"""

from .node import ECHO_INPUT, create_echo_node, echo_node

__all__ = [
    "ECHO_INPUT",
    "create_echo_node",
    "echo_node",
]

"""
Hello World Node

Minimal pure source node.
"""

from .node import GREETING, create_hello_world_node, hello_world_node

__all__ = [
    "GREETING",
    "create_hello_world_node",
    "hello_world_node",
]

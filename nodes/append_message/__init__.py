"""
Append Message Node
"""

from .node import MESSAGE_INPUT, MESSAGE_OUTPUT, AppendMessage, create_append_message_node

__all__ = [
    "MESSAGE_INPUT",
    "MESSAGE_OUTPUT",
    "AppendMessage",
    "create_append_message_node",
]

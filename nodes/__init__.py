"""
Built-in Nodes

Node implementations and their registry factories.
"""

from functools import partial
from typing import Optional

from nodeflow.adapters import IdentityProvider, RecordStore, TextProvider
from nodeflow.dag import NodeRegistry

from .append_message import create_append_message_node
from .echo import create_echo_node
from .hello_world import create_hello_world_node
from .text_completion import create_text_completion_node


def register_builtin_nodes(
    registry: NodeRegistry,
    provider: Optional[TextProvider] = None,
    store: Optional[RecordStore] = None,
    identity: Optional[IdentityProvider] = None,
) -> NodeRegistry:
    """
    Register the built-in node types.

    appendMessage is only registered when a record store is given.
    """
    registry.register("helloWorld", create_hello_world_node)
    registry.register("echo", create_echo_node)
    registry.register("textCompletion", partial(create_text_completion_node, provider=provider))
    if store is not None:
        registry.register(
            "appendMessage",
            partial(create_append_message_node, store=store, identity=identity),
        )
    return registry


__all__ = [
    "create_append_message_node",
    "create_echo_node",
    "create_hello_world_node",
    "create_text_completion_node",
    "register_builtin_nodes",
]

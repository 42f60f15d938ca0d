"""
Node Registry

Factory registry for creating nodes from NodeSpec entries.
A registry is an explicit value built by the caller; there is no global one.
"""

from dataclasses import replace
from typing import Callable, Dict
import logging

from ..errors import GraphConfigError
from .node import Node, NodeSpec

logger = logging.getLogger(__name__)

NodeFactory = Callable[[NodeSpec], Node]


class NodeRegistry:
    """
    Registry of available node types with factory functions.

    Example usage:
        registry = NodeRegistry()
        registry.register("helloWorld", create_hello_world_node)

        node = registry.create(NodeSpec(name="hello", type="helloWorld"))
    """

    def __init__(self):
        self._factories: Dict[str, NodeFactory] = {}

    def register(self, node_type: str, factory: NodeFactory) -> None:
        """
        Register a node type factory.

        Args:
            node_type: Type identifier (e.g., "helloWorld", "textCompletion")
            factory: Callable that takes a NodeSpec and returns a Node
        """
        if node_type in self._factories:
            logger.warning(f"Overwriting existing registration for node type: {node_type}")

        self._factories[node_type] = factory
        logger.debug(f"Registered node type: {node_type}")

    def create(self, spec: NodeSpec) -> Node:
        """
        Create a node from its spec.

        The factory's node is renamed to spec.name so that one type can be
        instantiated several times in a graph.

        Raises:
            GraphConfigError: If the type is unknown or the declared kind
                does not match the node the factory builds
        """
        if spec.type not in self._factories:
            available = ", ".join(sorted(self._factories))
            raise GraphConfigError(
                f"Unknown node type: {spec.type}. "
                f"Available types: {available if available else 'none'}"
            )

        node = replace(self._factories[spec.type](spec), name=spec.name, node_type=spec.type)

        if spec.kind is not None and spec.kind is not node.kind:
            raise GraphConfigError(
                f"Node '{spec.name}' declared as {spec.kind.value} but type "
                f"'{spec.type}' is {node.kind.value}"
            )

        logger.debug(f"Created node: name={spec.name}, type={spec.type}, params={spec.params}")
        return node

    def list_types(self) -> list[str]:
        return sorted(self._factories)

    def is_registered(self, node_type: str) -> bool:
        return node_type in self._factories

"""
Graph

Immutable mapping of node name -> Node plus the ordered connections between
them. A Graph may be shared by any number of concurrent runs.
"""

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union
import logging

from ..errors import GraphConfigError
from .node import Connection, Node

logger = logging.getLogger(__name__)


class Graph:
    """
    Typed directed graph of nodes.

    Construction checks that node keys match node names and that every
    connection references existing nodes. Input wiring conflicts are checked
    by validate_wiring(), which the executor calls before a run.

    Example usage:
        graph = Graph(
            nodes=[gen_node, echo_node],
            connections=[Connection("gen", "echo", "completion", "text")],
        )
        graph.upstream("echo")   # {"gen"}
    """

    def __init__(
        self,
        nodes: Union[Mapping[str, Node], Iterable[Node]],
        connections: Iterable[Connection] = (),
        name: str = "graph",
    ):
        self.name = name

        if isinstance(nodes, Mapping):
            for key, node in nodes.items():
                if key != node.name:
                    raise GraphConfigError(
                        f"Node registered as '{key}' is named '{node.name}'"
                    )
            node_map = dict(nodes)
        else:
            node_map = {}
            for node in nodes:
                if node.name in node_map:
                    raise GraphConfigError(f"Duplicate node name: '{node.name}'")
                node_map[node.name] = node

        self.nodes: Mapping[str, Node] = MappingProxyType(node_map)
        self.connections: Tuple[Connection, ...] = tuple(connections)

        self._inbound: Dict[str, List[Connection]] = {n: [] for n in node_map}
        self._outbound: Dict[str, List[Connection]] = {n: [] for n in node_map}

        for conn in self.connections:
            for endpoint in (conn.from_node, conn.to_node):
                if endpoint not in node_map:
                    raise GraphConfigError(
                        f"Connection '{conn}' references unknown node: '{endpoint}'"
                    )
            self._outbound[conn.from_node].append(conn)
            self._inbound[conn.to_node].append(conn)

        logger.debug(
            f"Graph '{name}': {len(node_map)} nodes, {len(self.connections)} connections"
        )

    def __contains__(self, name: str) -> bool:
        return name in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def inbound(self, name: str) -> Tuple[Connection, ...]:
        """Connections feeding a node"""
        return tuple(self._inbound[name])

    def outbound(self, name: str) -> Tuple[Connection, ...]:
        """Connections leaving a node"""
        return tuple(self._outbound[name])

    def upstream(self, name: str) -> Set[str]:
        """Direct dependencies of a node"""
        return {c.from_node for c in self._inbound[name]}

    def downstream(self, name: str) -> Set[str]:
        """Nodes that directly depend on a node"""
        return {c.to_node for c in self._outbound[name]}

    def descendants(self, name: str) -> Set[str]:
        """All nodes transitively reachable from a node"""
        seen: Set[str] = set()
        stack = list(self.downstream(name))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.downstream(current))
        return seen

    def sources(self) -> List[str]:
        """Nodes without incoming connections, sorted by name"""
        return sorted(n for n, conns in self._inbound.items() if not conns)

    def terminals(self) -> List[str]:
        """Nodes without outgoing connections, sorted by name"""
        return sorted(n for n, conns in self._outbound.items() if not conns)

    def validate_wiring(self) -> None:
        """
        Check that no input channel is wired more than once.

        The unnamed channel stands for the whole input, so wiring it excludes
        every other connection into the same node.

        Raises:
            GraphConfigError: On duplicate or conflicting input wiring
        """
        for name, conns in self._inbound.items():
            seen: Dict[Optional[str], Connection] = {}
            for conn in conns:
                if conn.to_input in seen:
                    raise GraphConfigError(
                        f"Input '{conn.to_input or '<whole input>'}' of node '{name}' is "
                        f"wired twice: '{seen[conn.to_input]}' and '{conn}'"
                    )
                seen[conn.to_input] = conn
            if None in seen and len(seen) > 1:
                raise GraphConfigError(
                    f"Node '{name}' has its whole input wired by '{seen[None]}' "
                    f"and named inputs wired as well"
                )

    def describe(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "nodes": [self.nodes[n].describe() for n in sorted(self.nodes)],
            "connections": [
                {
                    "from": c.from_node,
                    "from_output": c.from_output,
                    "to": c.to_node,
                    "to_input": c.to_input,
                }
                for c in self.connections
            ],
        }

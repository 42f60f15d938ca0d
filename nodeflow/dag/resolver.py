"""
Dependency Resolver

Computes a deterministic topological execution order for a Graph and
detects dependency cycles.
"""

import heapq
from typing import Dict, List, Set
import logging

from ..errors import CycleError
from .graph import Graph

logger = logging.getLogger(__name__)


class DependencyResolver:
    """
    Resolves execution order using Kahn's algorithm.

    Among nodes that are ready at the same time, the lexically smallest name
    goes first, so the same graph always yields the same order.

    Example usage:
        resolver = DependencyResolver(graph)
        order = resolver.resolve()   # ["gen", "echo"]
        resolver.stages()            # [["gen"], ["echo"]]
    """

    def __init__(self, graph: Graph):
        self.graph = graph

    def _in_degrees(self) -> Dict[str, int]:
        # parallel connections between the same pair count once
        return {name: len(self.graph.upstream(name)) for name in self.graph.nodes}

    def resolve(self) -> List[str]:
        """
        Compute the execution order.

        Returns:
            Node names, each after all of its upstream dependencies

        Raises:
            CycleError: If some nodes can never become ready
        """
        in_degree = self._in_degrees()
        ready = [name for name, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)
        order: List[str] = []

        while ready:
            name = heapq.heappop(ready)
            order.append(name)

            for dependent in self.graph.downstream(name):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if len(order) != len(self.graph.nodes):
            remaining = {name for name, degree in in_degree.items() if degree > 0}
            involved = self._cycle_members(remaining)
            logger.error(f"Graph '{self.graph.name}' contains a cycle: {sorted(involved)}")
            raise CycleError(involved)

        logger.debug(f"Resolved order for '{self.graph.name}': {order}")
        return order

    def stages(self) -> List[List[str]]:
        """
        Group the order into stages of mutually independent nodes.

        Every node of a stage depends only on nodes of earlier stages, so a
        whole stage may run concurrently.
        """
        order = self.resolve()
        depth: Dict[str, int] = {}
        for name in order:
            upstream = self.graph.upstream(name)
            depth[name] = 1 + max((depth[u] for u in upstream), default=-1)

        stages: List[List[str]] = []
        for name in order:
            while len(stages) <= depth[name]:
                stages.append([])
            stages[depth[name]].append(name)
        return [sorted(stage) for stage in stages]

    def _cycle_members(self, remaining: Set[str]) -> Set[str]:
        """
        Trim nodes that are merely downstream of a cycle.

        Nodes left over by Kahn's algorithm include dependents of a cycle;
        peeling off those without an outgoing edge back into the leftover set
        keeps only nodes on (or between) cycles.
        """
        members = set(remaining)
        changed = True
        while changed:
            changed = False
            for name in list(members):
                if not (self.graph.downstream(name) & members):
                    members.discard(name)
                    changed = True
        return members or remaining

"""
Graph Coordinator

Ties a graph document to a registry and an executor: loads the YAML
document, builds the Graph once and executes it on request.
"""

from typing import Any, Dict, Iterable, Mapping, Optional
import logging

from ..config.loader import ConfigLoader, GraphConfig
from ..dag.registry import NodeRegistry
from ..dag.resolver import DependencyResolver
from ..scheduler.executor import DAGExecutor
from ..scheduler.run import RunResult

logger = logging.getLogger(__name__)


class GraphCoordinator:
    """
    Coordinates execution of one named graph.

    The coordinator:
    1. Loads the graph document (from a ConfigLoader or a GraphConfig)
    2. Builds the Graph through the node registry
    3. Resolves the execution order up front (cycles fail here)
    4. Executes runs; the built Graph is shared by all of them

    Example usage:
        registry = register_builtin_nodes(NodeRegistry(), provider=provider)
        coordinator = GraphCoordinator.from_loader("greet", ConfigLoader(Path("graphs")), registry)
        result = await coordinator.run({"gen": {"prompt": "hi"}}, sinks=["echo"])
    """

    def __init__(
        self,
        config: GraphConfig,
        registry: NodeRegistry,
        max_concurrency: Optional[int] = None,
    ):
        self.config = config
        self.name = config.name

        logger.info(f"Building graph '{self.name}'...")
        self.graph = config.build(registry)
        self.order = DependencyResolver(self.graph).resolve()
        self.executor = DAGExecutor(self.graph, max_concurrency=max_concurrency)
        self.runs = 0
        self.failed_runs = 0

        logger.info(
            f"Coordinator initialized for '{self.name}': "
            f"{len(self.graph)} nodes, topological order: {self.order}"
        )

    @classmethod
    def from_loader(
        cls,
        name: str,
        loader: ConfigLoader,
        registry: NodeRegistry,
        max_concurrency: Optional[int] = None,
    ) -> "GraphCoordinator":
        return cls(loader.load(name), registry, max_concurrency=max_concurrency)

    async def run(
        self,
        initial_inputs: Optional[Mapping[str, Any]] = None,
        sinks: Optional[Iterable[str]] = None,
    ) -> RunResult:
        """
        Execute the graph once.

        Raises:
            GraphConfigError: If the request is invalid (unknown sinks, ...)
        """
        result = await self.executor.run(initial_inputs, sinks)
        self.runs += 1
        if not result.ok:
            self.failed_runs += 1
        return result

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get coordinator metrics.

        Returns:
            Dictionary with coordinator statistics
        """
        return {
            "graph": self.name,
            "nodes": len(self.graph),
            "connections": len(self.graph.connections),
            "topological_order": list(self.order),
            "runs": self.runs,
            "failed_runs": self.failed_runs,
        }

"""
Config Loader

Loads graph documents from YAML and converts them to executable Graphs.

A graph document records node names, types, kinds, params and connections.
Contracts and execute functions come from the node registry, so a document
round-trips the topology but never code.

Example document:
    name: greet
    nodes:
      - name: gen
        type: textCompletion
        kind: io
      - name: echo
        type: echo
        kind: pure
    connections:
      - from: gen
        from_output: completion
        to: echo
        to_input: text
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..dag.graph import Graph
from ..dag.node import Connection, NodeKind, NodeSpec
from ..dag.registry import NodeRegistry
from ..errors import GraphConfigError

logger = logging.getLogger(__name__)


class NodeConfig(BaseModel):
    """Configuration for one node"""
    name: str
    type: str
    kind: Optional[NodeKind] = None
    params: Dict[str, Any] = Field(default_factory=dict)

    def to_spec(self) -> NodeSpec:
        return NodeSpec(name=self.name, type=self.type, kind=self.kind, params=dict(self.params))


class ConnectionConfig(BaseModel):
    """Configuration for one connection"""
    model_config = ConfigDict(populate_by_name=True)

    from_node: str = Field(alias="from")
    to_node: str = Field(alias="to")
    from_output: Optional[str] = None
    to_input: Optional[str] = None

    def to_connection(self) -> Connection:
        return Connection(
            from_node=self.from_node,
            to_node=self.to_node,
            from_output=self.from_output,
            to_input=self.to_input,
        )


class GraphConfig(BaseModel):
    """Complete graph document"""
    name: str
    description: str = ""
    nodes: List[NodeConfig]
    connections: List[ConnectionConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> "GraphConfig":
        seen = set()
        for node in self.nodes:
            if node.name in seen:
                raise ValueError(f"Duplicate node name: {node.name}")
            seen.add(node.name)
        return self

    def build(self, registry: NodeRegistry) -> Graph:
        """
        Instantiate nodes through the registry and assemble the Graph.

        Raises:
            GraphConfigError: Unknown node types, kind mismatches or dangling
                connections
        """
        nodes = [registry.create(node.to_spec()) for node in self.nodes]
        graph = Graph(
            nodes=nodes,
            connections=[conn.to_connection() for conn in self.connections],
            name=self.name,
        )
        logger.info(
            f"Built graph '{self.name}': {len(nodes)} nodes, "
            f"{len(self.connections)} connections"
        )
        return graph

    @classmethod
    def from_graph(cls, graph: Graph, description: str = "") -> "GraphConfig":
        """Capture a Graph's topology (names, kinds, types, connections)"""
        return cls(
            name=graph.name,
            description=description,
            nodes=[
                NodeConfig(name=node.name, type=node.node_type or node.name, kind=node.kind)
                for node in graph.nodes.values()
            ],
            connections=[
                ConnectionConfig(
                    from_node=conn.from_node,
                    to_node=conn.to_node,
                    from_output=conn.from_output,
                    to_input=conn.to_input,
                )
                for conn in graph.connections
            ],
        )

    @classmethod
    def from_yaml(cls, text: str) -> "GraphConfig":
        """
        Parse a YAML graph document.

        Raises:
            GraphConfigError: If the document is not valid YAML or does not
                match the graph document shape
        """
        try:
            raw = yaml.safe_load(text)
            return cls.model_validate(raw)
        except (yaml.YAMLError, ValidationError) as e:
            raise GraphConfigError(f"Invalid graph document: {e}") from e

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not data.get("description"):
            data.pop("description", None)
        for node in data["nodes"]:
            if not node.get("params"):
                node.pop("params", None)
        return yaml.safe_dump(data, sort_keys=False)


class ConfigLoader:
    """
    Loads graph documents from a directory.

    Each graph lives in <graph_dir>/<name>.yaml (or .yml).

    Example usage:
        loader = ConfigLoader(Path("graphs"))
        config = loader.load("greet")
        graph = config.build(registry)
    """

    def __init__(self, graph_dir: Path):
        self.graph_dir = Path(graph_dir)
        logger.debug(f"Initialized ConfigLoader with graph_dir: {self.graph_dir}")

    def path_for(self, name: str) -> Path:
        for suffix in (".yaml", ".yml"):
            candidate = self.graph_dir / f"{name}{suffix}"
            if candidate.exists():
                return candidate
        raise GraphConfigError(
            f"No graph document named '{name}' in {self.graph_dir}"
        )

    def list_graphs(self) -> List[str]:
        if not self.graph_dir.exists():
            return []
        names = {p.stem for p in self.graph_dir.glob("*.yaml")}
        names.update(p.stem for p in self.graph_dir.glob("*.yml"))
        return sorted(names)

    def load(self, name: str) -> GraphConfig:
        """
        Load and validate one graph document.

        Raises:
            GraphConfigError: If the file is missing or invalid
        """
        path = self.path_for(name)
        config = GraphConfig.from_yaml(path.read_text())

        if config.name != name:
            logger.warning(
                f"Graph name mismatch in {path.name}: expected {name}, got {config.name}"
            )

        logger.info(
            f"Loaded {path.name}: {len(config.nodes)} nodes, "
            f"{len(config.connections)} connections"
        )
        return config

    def save(self, config: GraphConfig) -> Path:
        self.graph_dir.mkdir(parents=True, exist_ok=True)
        path = self.graph_dir / f"{config.name}.yaml"
        path.write_text(config.to_yaml())
        logger.info(f"Saved graph '{config.name}' to {path}")
        return path

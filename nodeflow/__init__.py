"""
nodeflow

Typed node-graph execution: contract-checked nodes, dependency-ordered
concurrent execution and failure isolation between branches.
"""

from .contracts import validate
from .dag import Connection, DependencyResolver, Graph, Node, NodeKind, NodeRegistry, NodeSpec, node
from .errors import (
    CycleError,
    GraphConfigError,
    NodeExecutionError,
    NodeflowError,
    ProviderError,
    SchemaError,
    Unauthorized,
)
from .scheduler import DAGExecutor, NodeStatus, RunResult, SinkResult

__all__ = [
    "validate",
    "Connection",
    "DependencyResolver",
    "Graph",
    "Node",
    "NodeKind",
    "NodeRegistry",
    "NodeSpec",
    "node",
    "CycleError",
    "GraphConfigError",
    "NodeExecutionError",
    "NodeflowError",
    "ProviderError",
    "SchemaError",
    "Unauthorized",
    "DAGExecutor",
    "NodeStatus",
    "RunResult",
    "SinkResult",
]

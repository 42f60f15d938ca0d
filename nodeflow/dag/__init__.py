"""
DAG Module

Node model, graph construction and dependency resolution.
"""

from .node import Node, NodeKind, Connection, NodeSpec, node
from .graph import Graph
from .registry import NodeRegistry, NodeFactory
from .resolver import DependencyResolver

__all__ = [
    "Node",
    "NodeKind",
    "Connection",
    "NodeSpec",
    "node",
    "Graph",
    "NodeRegistry",
    "NodeFactory",
    "DependencyResolver",
]

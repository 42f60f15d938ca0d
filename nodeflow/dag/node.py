"""
DAG Node Model

Core data structures for graph nodes and the connections between them.
Each node is a named unit of computation with an input contract, an output
contract and an execute function.
"""

from dataclasses import dataclass, field
from enum import Enum
import inspect
from typing import Any, Callable, Dict, Optional

from ..contracts import Contract, as_contract


class NodeKind(Enum):
    """Whether a node may have observable side effects"""
    PURE = "pure"  # deterministic, safe to re-execute
    IO = "io"      # may perform external effects, at most once per run


@dataclass(frozen=True)
class Node:
    """
    Executable graph node.

    execute receives a value already validated against input_schema and
    returns a value the executor validates against output_schema. It may be
    a plain function (run in a worker thread) or a coroutine function.

    Example:
        hello = Node(
            name="helloWorld",
            kind=NodeKind.PURE,
            input_schema=void(),
            output_schema=string(),
            execute=lambda _: "Hello, world!",
        )
    """
    name: str
    kind: NodeKind
    input_schema: Contract
    output_schema: Contract
    execute: Callable[[Any], Any]
    description: str = ""
    node_type: Optional[str] = None  # registry type, when built from a NodeSpec

    def __post_init__(self):
        if not self.name:
            raise ValueError("Node name must be a non-empty string")
        object.__setattr__(self, "kind", NodeKind(self.kind))
        object.__setattr__(self, "input_schema", as_contract(self.input_schema))
        object.__setattr__(self, "output_schema", as_contract(self.output_schema))

    @property
    def is_pure(self) -> bool:
        return self.kind is NodeKind.PURE

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.execute) or inspect.iscoroutinefunction(
            getattr(self.execute, "__call__", None)
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "type": self.node_type or self.name,
            "description": self.description,
            "input_schema": self.input_schema.describe(),
            "output_schema": self.output_schema.describe(),
        }


def node(name: str, kind: Any, input_schema: Any, output_schema: Any, description: str = ""):
    """
    Decorator turning an execute function into a Node.

    Example:
        @node("echo", "pure", {"text": str}, str)
        def echo(value):
            return value["text"]
    """
    def wrap(fn: Callable[[Any], Any]) -> Node:
        return Node(
            name=name,
            kind=kind,
            input_schema=input_schema,
            output_schema=output_schema,
            execute=fn,
            description=description or (inspect.getdoc(fn) or ""),
        )
    return wrap


@dataclass(frozen=True)
class Connection:
    """
    Directed edge routing one node's output into another node's input.

    A from_output of None routes the whole output; a name selects that key of
    the upstream output. A to_input of None makes the routed value the whole
    input; a name sets that key of the downstream input record.

    Examples:
        - Whole value: Connection("helloWorld", "echo")
        - Field to field: Connection("gen", "echo", "completion", "text")
    """
    from_node: str
    to_node: str
    from_output: Optional[str] = None
    to_input: Optional[str] = None

    def __str__(self) -> str:
        source = self.from_node + (f".{self.from_output}" if self.from_output else "")
        target = self.to_node + (f".{self.to_input}" if self.to_input else "")
        return f"{source} -> {target}"


@dataclass
class NodeSpec:
    """
    Declarative node entry loaded from a graph document.

    The registry turns a NodeSpec into an executable Node.

    Attributes:
        name: Unique node name within the graph (e.g., "gen")
        type: Registered node type (e.g., "textCompletion")
        kind: Declared kind; checked against the built node when set
        params: Factory parameters (e.g., {"model": "gpt-4o-mini"})
    """
    name: str
    type: str
    kind: Optional[NodeKind] = None
    params: Dict[str, Any] = field(default_factory=dict)

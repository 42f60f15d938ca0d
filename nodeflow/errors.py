"""
Errors

Error taxonomy for graph construction, validation and execution.

Structural errors (GraphConfigError, CycleError) are raised before any node
runs. Node-level errors (SchemaError at a node boundary, NodeExecutionError,
ProviderError) are captured as values in the run report.
"""

from typing import Any, Iterable, List, Optional


class NodeflowError(Exception):
    """Base class for all nodeflow errors"""

    def to_dict(self) -> dict:
        return {"type": type(self).__name__, "message": str(self)}


class SchemaError(NodeflowError):
    """
    A value does not match a contract.

    Attributes:
        field: Dotted path of the offending field ("$" for the value itself)
        expected: Description of what the contract accepts at that path
        received: Type name of the value found there, or "missing"
        node: Node whose input or output failed, when raised at a node boundary
        boundary: "input" or "output"
    """

    def __init__(self, field: str, expected: str, received: str, message: Optional[str] = None,
                 node: Optional[str] = None, boundary: Optional[str] = None):
        self.field = field
        self.expected = expected
        self.received = received
        self.node = node
        self.boundary = boundary
        super().__init__(
            message or f"Field '{field}': expected {expected}, received {received}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(field=self.field, expected=self.expected, received=self.received)
        if self.node is not None:
            data.update(node=self.node, boundary=self.boundary)
        return data


class GraphConfigError(NodeflowError):
    """The graph or execution request is structurally invalid"""


class CycleError(NodeflowError):
    """The connection set contains a dependency cycle"""

    def __init__(self, involved_nodes: Iterable[str]):
        self.involved_nodes: List[str] = sorted(involved_nodes)
        super().__init__(
            f"Dependency cycle among nodes: {', '.join(self.involved_nodes)}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["involved_nodes"] = list(self.involved_nodes)
        return data


class NodeExecutionError(NodeflowError):
    """A node failed during execution or at its input/output boundary"""

    def __init__(self, node: str, message: str, cause: Optional[BaseException] = None):
        self.node = node
        self.cause = cause
        super().__init__(f"Node '{node}' failed: {message}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["node"] = self.node
        if isinstance(self.cause, NodeflowError):
            data["cause"] = self.cause.to_dict()
        elif self.cause is not None:
            data["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        return data


class ProviderError(NodeExecutionError):
    """An external service called by an io node failed (transport, quota, ...)"""

    def __init__(self, message: str, node: str = "<provider>", status_code: Optional[int] = None,
                 cause: Optional[BaseException] = None):
        self.status_code = status_code
        self.reason = message
        super().__init__(node, message, cause)

    def for_node(self, node: str) -> "ProviderError":
        """Return a copy attributed to the node that called the provider"""
        return ProviderError(self.reason, node=node, status_code=self.status_code, cause=self.cause)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.status_code is not None:
            data["status_code"] = self.status_code
        return data


class Unauthorized(NodeflowError):
    """No authenticated user is available"""


def describe_error(error: Any) -> dict:
    """Serialize any error into a JSON-compatible descriptor"""
    if isinstance(error, NodeflowError):
        return error.to_dict()
    return {"type": type(error).__name__, "message": str(error)}


def at_boundary(error: SchemaError, node: str, boundary: str) -> SchemaError:
    """Attribute a SchemaError to a node's input or output"""
    return SchemaError(
        error.field,
        error.expected,
        error.received,
        message=f"Node '{node}' {boundary}: {error}",
        node=node,
        boundary=boundary,
    )

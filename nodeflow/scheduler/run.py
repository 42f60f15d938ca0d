"""
Run State

Per-execution state owned by the executor and the result values handed back
to the caller. A Run lives only for one execution; nothing is persisted.
"""

import json
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ..errors import NodeflowError, describe_error

SKIPPED_REASON = "SkippedDueToUpstreamFailure"


class NodeStatus(Enum):
    """Lifecycle of one node within a run"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class NodeReport:
    """
    Diagnostic status of one node.

    For a skipped node, origin names the failed upstream node and error is
    that node's error.
    """
    name: str
    status: NodeStatus = NodeStatus.PENDING
    output: Any = None
    error: Optional[NodeflowError] = None
    origin: Optional[str] = None
    duration_ms: Optional[float] = None

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {"name": self.name, "status": self.status.value}
        if self.status is NodeStatus.SUCCEEDED:
            data["output"] = self.output
        if self.error is not None:
            data["error"] = describe_error(self.error)
        if self.status is NodeStatus.SKIPPED:
            data["reason"] = SKIPPED_REASON
            data["origin"] = self.origin
        if self.duration_ms is not None:
            data["duration_ms"] = round(self.duration_ms, 3)
        return data


@dataclass
class SinkResult:
    """Output of a requested sink, or the error that prevented it"""
    name: str
    output: Any = None
    error: Optional[NodeflowError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the output or raise the terminal error"""
        if self.error is not None:
            raise self.error
        return self.output

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"error": describe_error(self.error)}
        return {"output": self.output}


@dataclass
class RunResult:
    """
    Result of one run: every requested sink plus the full node report.

    Example:
        result = await executor.run({"gen": {"prompt": "hi"}}, sinks=["echo"])
        if result.ok:
            print(result.outputs["echo"])
    """
    run_id: str
    graph: str
    order: List[str]
    sinks: Dict[str, SinkResult]
    report: Dict[str, NodeReport]
    started_at: datetime
    finished_at: datetime

    @property
    def ok(self) -> bool:
        return all(sink.ok for sink in self.sinks.values())

    @property
    def outputs(self) -> Dict[str, Any]:
        """Outputs of the sinks that succeeded"""
        return {name: sink.output for name, sink in self.sinks.items() if sink.ok}

    @property
    def errors(self) -> Dict[str, NodeflowError]:
        """Terminal errors of the sinks that did not succeed"""
        return {name: sink.error for name, sink in self.sinks.items() if not sink.ok}

    def status(self, name: str) -> NodeStatus:
        return self.report[name].status

    def to_dict(self, include_report: bool = True) -> dict:
        data = {
            "run_id": self.run_id,
            "graph": self.graph,
            "ok": self.ok,
            "order": list(self.order),
            "sinks": {name: sink.to_dict() for name, sink in self.sinks.items()},
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }
        if include_report:
            data["report"] = {name: self.report[name].to_dict() for name in self.order}
        return data

    def to_json(self, include_report: bool = True) -> str:
        return json.dumps(self.to_dict(include_report), default=str)


class Run:
    """
    Mutable state of one execution.

    Each node's entry has a single writer (the task running that node); the
    lock keeps writes consistent when nodes run on worker threads.
    """

    def __init__(self, graph: str, order: List[str]):
        self.run_id = uuid.uuid4().hex
        self.graph = graph
        self.order = list(order)
        self.outputs: Dict[str, Any] = {}
        self.errors: Dict[str, NodeflowError] = {}
        self.reports: Dict[str, NodeReport] = {name: NodeReport(name) for name in order}
        self.started_at = datetime.now(timezone.utc)
        self._invoked: Set[str] = set()
        self._lock = threading.Lock()

    def status(self, name: str) -> NodeStatus:
        return self.reports[name].status

    def mark_running(self, name: str) -> None:
        with self._lock:
            self.reports[name].status = NodeStatus.RUNNING

    def mark_invoked(self, name: str, once: bool) -> None:
        """
        Record that a node's execute function is being called.

        Raises:
            RuntimeError: If a run-once node would be invoked a second time
        """
        with self._lock:
            if once and name in self._invoked:
                raise RuntimeError(f"Node '{name}' already executed in run {self.run_id}")
            self._invoked.add(name)

    def record_success(self, name: str, output: Any, duration_ms: float) -> None:
        with self._lock:
            self.outputs[name] = output
            report = self.reports[name]
            report.status = NodeStatus.SUCCEEDED
            report.output = output
            report.duration_ms = duration_ms

    def record_failure(self, name: str, error: NodeflowError, duration_ms: Optional[float] = None) -> None:
        with self._lock:
            self.errors[name] = error
            report = self.reports[name]
            report.status = NodeStatus.FAILED
            report.error = error
            report.duration_ms = duration_ms

    def record_skip(self, name: str, origin: str) -> None:
        with self._lock:
            report = self.reports[name]
            report.status = NodeStatus.SKIPPED
            report.origin = origin
            report.error = self.errors[origin]

    def result(self, sinks: List[str]) -> RunResult:
        sink_results = {}
        for name in sinks:
            report = self.reports[name]
            if report.status is NodeStatus.SUCCEEDED:
                sink_results[name] = SinkResult(name, output=report.output)
            else:
                sink_results[name] = SinkResult(name, error=report.error)

        return RunResult(
            run_id=self.run_id,
            graph=self.graph,
            order=list(self.order),
            sinks=sink_results,
            report=dict(self.reports),
            started_at=self.started_at,
            finished_at=datetime.now(timezone.utc),
        )

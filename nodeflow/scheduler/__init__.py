"""
Scheduler Module

Dependency-ordered, concurrent graph execution.
"""

from .executor import DAGExecutor
from .run import NodeReport, NodeStatus, Run, RunResult, SinkResult, SKIPPED_REASON

__all__ = [
    "DAGExecutor",
    "NodeReport",
    "NodeStatus",
    "Run",
    "RunResult",
    "SinkResult",
    "SKIPPED_REASON",
]

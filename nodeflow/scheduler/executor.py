"""
DAG Executor

Runs a Graph in dependency order, routing validated outputs along
connections and validating every node boundary.
"""

import asyncio
import copy
import inspect
import time
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional
import logging

from ..contracts import Contract, accepts, validate
from ..contracts.types import RecordContract
from ..dag.graph import Graph
from ..dag.node import Connection, Node
from ..dag.resolver import DependencyResolver
from ..errors import (
    GraphConfigError,
    NodeExecutionError,
    NodeflowError,
    ProviderError,
    SchemaError,
    at_boundary,
)
from .run import NodeStatus, Run, RunResult

logger = logging.getLogger(__name__)

# contract types whose values can be compared across a connection
_COMPARABLE_TYPES = {"string", "number", "boolean", "void", "list", "record"}


class DAGExecutor:
    """
    Executes a graph for one execution request at a time.

    The executor:
    1. Checks the request and graph structure (no node runs if this fails)
    2. Starts every node whose dependencies have all succeeded
    3. Validates input, executes, validates output, stores the result
    4. Skips every node downstream of a failure; other branches continue
    5. Collects the requested sinks

    Independent nodes run concurrently as asyncio tasks. Synchronous execute
    functions run in worker threads so they never block other branches.

    Example usage:
        executor = DAGExecutor(graph)
        result = await executor.run({"gen": {"prompt": "hi"}}, sinks=["echo"])
        result.sinks["echo"].unwrap()
    """

    def __init__(self, graph: Graph, max_concurrency: Optional[int] = None):
        """
        Args:
            graph: Graph to execute; never modified
            max_concurrency: Limit on simultaneously executing nodes (None for no limit)
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.graph = graph
        self.resolver = DependencyResolver(graph)
        self.max_concurrency = max_concurrency

    async def run(
        self,
        initial_inputs: Optional[Mapping] = None,
        sinks: Optional[Iterable[str]] = None,
    ) -> RunResult:
        """
        Execute the graph.

        Args:
            initial_inputs: Source node name -> input value
            sinks: Node names whose outputs are wanted (default: terminal nodes)

        Returns:
            RunResult with an entry for every requested sink

        Raises:
            GraphConfigError: If the graph or request is structurally invalid
            CycleError: If the connections contain a cycle
        """
        initial_inputs = dict(initial_inputs or {})
        sink_names = self.select_sinks(sinks)
        order = self.prepare(initial_inputs, sink_names)

        run = Run(self.graph.name, order)
        logger.info(
            f"Run {run.run_id} started: graph='{self.graph.name}', "
            f"{len(order)} nodes, sinks={sink_names}"
        )

        await self._execute(run, initial_inputs)

        result = run.result(sink_names)
        failed = [n for n, r in result.report.items() if r.status is NodeStatus.FAILED]
        skipped = [n for n, r in result.report.items() if r.status is NodeStatus.SKIPPED]
        logger.info(
            f"Run {run.run_id} finished: ok={result.ok}, "
            f"failed={failed}, skipped={skipped}"
        )
        return result

    def run_sync(
        self,
        initial_inputs: Optional[Mapping] = None,
        sinks: Optional[Iterable[str]] = None,
    ) -> RunResult:
        """Blocking wrapper around run() for callers without an event loop"""
        return asyncio.run(self.run(initial_inputs, sinks))

    def select_sinks(self, sinks: Optional[Iterable[str]]) -> List[str]:
        if sinks is None:
            return self.graph.terminals()
        if isinstance(sinks, str):
            sinks = [sinks]
        return list(dict.fromkeys(sinks))

    def prepare(self, initial_inputs: Mapping, sinks: List[str]) -> List[str]:
        """
        Check everything that can be checked before a node runs.

        Returns:
            Execution order

        Raises:
            GraphConfigError: On wiring, sink, input or source problems
            CycleError: If the graph is cyclic
        """
        self.graph.validate_wiring()
        order = self.resolver.resolve()

        missing = [name for name in sinks if name not in self.graph]
        if missing:
            raise GraphConfigError(f"Unknown sink node(s): {', '.join(missing)}")

        unknown = sorted(name for name in initial_inputs if name not in self.graph)
        if unknown:
            raise GraphConfigError(f"Initial input for unknown node(s): {', '.join(unknown)}")

        for conn in self.graph.connections:
            self._check_connection(conn)

        for name in order:
            node = self.graph.nodes[name]
            inbound = self.graph.inbound(name)

            if not inbound:
                if name not in initial_inputs and not accepts(node.input_schema, None):
                    raise GraphConfigError(
                        f"Source node '{name}' has no input and its input contract "
                        f"({node.input_schema.expected()}) does not accept void"
                    )
                continue

            if name not in initial_inputs:
                continue

            base = initial_inputs[name]
            if any(conn.to_input is None for conn in inbound):
                raise GraphConfigError(
                    f"Node '{name}' receives its whole input from a connection "
                    f"and an initial input"
                )
            if not isinstance(base, Mapping):
                raise GraphConfigError(
                    f"Initial input for wired node '{name}' must be a record"
                )
            wired = sorted(conn.to_input for conn in inbound if conn.to_input in base)
            if wired:
                raise GraphConfigError(
                    f"Input(s) {', '.join(wired)} of node '{name}' are both wired "
                    f"and given as initial input"
                )

        return order

    def _check_connection(self, conn: Connection) -> None:
        source = self.graph.nodes[conn.from_node].output_schema
        target = self.graph.nodes[conn.to_node].input_schema

        if conn.from_output is not None:
            if isinstance(source, RecordContract):
                if conn.from_output not in source.fields:
                    raise GraphConfigError(
                        f"Connection '{conn}': node '{conn.from_node}' has no output "
                        f"'{conn.from_output}'"
                    )
            elif source.type_name in _COMPARABLE_TYPES:
                raise GraphConfigError(
                    f"Connection '{conn}': output of '{conn.from_node}' is "
                    f"{source.expected()}, not a record"
                )
            source = source.child(conn.from_output) or Contract()

        if conn.to_input is not None:
            if isinstance(target, RecordContract):
                if conn.to_input not in target.fields:
                    raise GraphConfigError(
                        f"Connection '{conn}': node '{conn.to_node}' has no input "
                        f"'{conn.to_input}'"
                    )
            elif target.type_name in _COMPARABLE_TYPES:
                raise GraphConfigError(
                    f"Connection '{conn}': input of '{conn.to_node}' is "
                    f"{target.expected()}, not a record"
                )
            target = target.child(conn.to_input) or Contract()

        if (
            source.type_name in _COMPARABLE_TYPES
            and target.type_name in _COMPARABLE_TYPES
            and source.type_name != target.type_name
        ):
            raise GraphConfigError(
                f"Connection '{conn}' routes {source.expected()} into {target.expected()}"
            )

    async def _execute(self, run: Run, initial_inputs: Mapping) -> None:
        position = {name: index for index, name in enumerate(run.order)}
        waiting = {name: len(self.graph.upstream(name)) for name in run.order}
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        running: Dict[asyncio.Task, str] = {}

        def launch(names: Iterable[str]) -> None:
            for name in sorted(names, key=position.__getitem__):
                task = asyncio.create_task(
                    self._run_node(run, name, initial_inputs, semaphore),
                    name=f"{run.run_id}:{name}",
                )
                running[task] = name

        launch(name for name, count in waiting.items() if count == 0)

        try:
            while running:
                done, _ = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
                ready: List[str] = []

                for task in sorted(done, key=lambda t: position[running[t]]):
                    name = running.pop(task)
                    task.result()

                    if run.status(name) is NodeStatus.SUCCEEDED:
                        for dependent in self.graph.downstream(name):
                            waiting[dependent] -= 1
                            if waiting[dependent] == 0 and run.status(dependent) is NodeStatus.PENDING:
                                ready.append(dependent)
                    else:
                        self._skip_downstream(run, name)

                launch(ready)
        finally:
            for task in running:
                task.cancel()

    def _skip_downstream(self, run: Run, origin: str) -> None:
        for name in sorted(self.graph.descendants(origin), key=run.order.index):
            if run.status(name) is NodeStatus.PENDING:
                run.record_skip(name, origin)
                logger.debug(f"Skipping node '{name}': upstream '{origin}' failed")

    async def _run_node(
        self,
        run: Run,
        name: str,
        initial_inputs: Mapping,
        semaphore: Optional[asyncio.Semaphore],
    ) -> None:
        node = self.graph.nodes[name]
        run.mark_running(name)
        started = time.perf_counter()

        try:
            try:
                value = validate(node.input_schema, self._gather_input(run, name, initial_inputs))
            except SchemaError as e:
                raise at_boundary(e, name, "input") from None

            if semaphore is not None:
                async with semaphore:
                    output = await self._invoke(run, node, value)
            else:
                output = await self._invoke(run, node, value)

            try:
                output = validate(node.output_schema, output)
            except SchemaError as e:
                raise at_boundary(e, name, "output") from None

        except NodeflowError as error:
            elapsed = (time.perf_counter() - started) * 1000
            run.record_failure(name, error, elapsed)
            logger.error(f"Node '{name}' failed: {error}")
            return
        except Exception as e:
            # routing or validation of an unusual value (e.g. not deep-copyable)
            elapsed = (time.perf_counter() - started) * 1000
            error = NodeExecutionError(name, str(e) or type(e).__name__, e)
            run.record_failure(name, error, elapsed)
            logger.error(f"Node '{name}' failed: {error}", exc_info=True)
            return

        elapsed = (time.perf_counter() - started) * 1000
        run.record_success(name, output, elapsed)
        logger.debug(f"Node '{name}' ({node.kind.value}) succeeded in {elapsed:.1f}ms")

    async def _invoke(self, run: Run, node: Node, value: Any) -> Any:
        """
        Call a node's execute function exactly once.

        Exceptions and returned error values are converted into
        NodeExecutionError (ProviderError keeps its type).
        """
        run.mark_invoked(node.name, once=not node.is_pure)
        logger.debug(f"Executing node '{node.name}' ({node.kind.value})")

        try:
            if node.is_async:
                result = await node.execute(value)
            else:
                result = await asyncio.to_thread(node.execute, value)
                if inspect.isawaitable(result):
                    result = await result
        except ProviderError as e:
            raise e.for_node(node.name) from e
        except NodeExecutionError as e:
            if e.node == node.name:
                raise
            raise NodeExecutionError(node.name, str(e), e) from e
        except Exception as e:
            logger.error(f"Node '{node.name}' raised {type(e).__name__}", exc_info=True)
            raise NodeExecutionError(node.name, str(e) or type(e).__name__, e) from e

        if isinstance(result, ProviderError):
            raise result.for_node(node.name)
        if isinstance(result, BaseException):
            raise NodeExecutionError(node.name, str(result) or type(result).__name__, result)
        return result

    def _gather_input(self, run: Run, name: str, initial_inputs: Mapping) -> Any:
        """
        Build a node's raw input.

        Sources take their initial input (None when absent). A node whose
        whole input is wired takes the routed value; otherwise routed values
        are merged by channel name over the initial input record.
        """
        inbound = self.graph.inbound(name)
        if not inbound:
            return copy.deepcopy(initial_inputs.get(name))

        if inbound[0].to_input is None:
            return self._route(run, inbound[0])

        merged = dict(copy.deepcopy(initial_inputs.get(name) or {}))
        for conn in inbound:
            merged[conn.to_input] = self._route(run, conn)
        return merged

    def _route(self, run: Run, conn: Connection) -> Any:
        output = run.outputs[conn.from_node]
        if conn.from_output is None:
            return copy.deepcopy(output)
        if not isinstance(output, Mapping) or conn.from_output not in output:
            raise NodeExecutionError(
                conn.to_node,
                f"output of '{conn.from_node}' has no channel '{conn.from_output}'",
            )
        return copy.deepcopy(output[conn.from_output])

# src/pipeworks/engine/executor.py
"""PipelineExecutor: runs one pipeline definition end to end.

A run is:
1. Create the execution record (RUNNING) before anything else
2. Load and parse the stored definition
3. Resolve the execution order (reject cycles)
4. Execute nodes strictly in order, feeding each node the outputs of its
   upstream producers, logging one DATA entry per node
5. Mark the record SUCCESS or FAILED

Failures are fail-fast: the first error stops the run, is recorded on the
execution and re-raised with its execution_id set. Nothing is retried.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import ExecutionStatus, LogLevel, TriggerKind
from pipeworks.contracts.errors import (
    ExecutionCancelledError,
    ExecutionError,
    MalformedDefinitionError,
    NodeExecutionError,
    PipelineNotFoundError,
    StoreError,
)
from pipeworks.contracts.pipeline import Connection, PipelineDefinition
from pipeworks.core.canonical import dump_payload, stable_hash
from pipeworks.core.dag import ExecutionGraph
from pipeworks.core.store._helpers import generate_id
from pipeworks.engine.clock import DEFAULT_CLOCK, Clock
from pipeworks.plugins.base import NodeOutput
from pipeworks.plugins.clients.http import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, HTTPClient

if TYPE_CHECKING:
    from pipeworks.core.store import PipelineStore
    from pipeworks.plugins.manager import NodeRegistry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of a successful run."""

    execution_id: str
    pipeline_id: str
    status: ExecutionStatus
    item_count: int
    duration_ms: int


def gather_inputs(
    node_id: str,
    connections: Iterable[Connection],
    results: dict[str, NodeOutput],
) -> list[NodeOutput]:
    """Collect a node's input sequences from the run's result table.

    One entry per connection targeting node_id whose source has produced
    output, in connection order. Connections from nodes that are absent or
    have not run contribute nothing.
    """
    inputs: list[NodeOutput] = []
    for conn in connections:
        if conn.target != node_id:
            continue
        output = results.get(conn.source)
        if output is not None:
            inputs.append(output)
    return inputs


def definition_hash(definition: PipelineDefinition) -> str:
    """Stable hash of a parsed definition, recorded on each execution.

    Raises:
        MalformedDefinitionError: If the definition holds values that cannot
            be canonicalized (NaN or Infinity in a node config)
    """
    try:
        return stable_hash(definition.model_dump(mode="json", by_alias=True, exclude_none=True))
    except (TypeError, ValueError) as e:
        raise MalformedDefinitionError(f"Pipeline definition cannot be hashed: {e}") from e


class PipelineExecutor:
    """Executes pipelines against a store and a node registry.

    The executor holds no per-run state: every run owns its result table,
    so one executor may serve concurrent runs on different threads.

    Example:
        executor = PipelineExecutor(store, registry)
        result = executor.execute(pipeline_id, TriggerKind.MANUAL)
        print(result.item_count)
    """

    def __init__(
        self,
        store: PipelineStore,
        registry: NodeRegistry,
        *,
        clock: Clock | None = None,
        http_timeout: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._store = store
        self._registry = registry
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._http_timeout = http_timeout
        self._user_agent = user_agent

    def execute(
        self,
        pipeline_id: str,
        trigger: TriggerKind = TriggerKind.MANUAL,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ExecutionResult:
        """Run a pipeline once.

        Args:
            pipeline_id: Pipeline to run
            trigger: Why the run started
            cancel_event: Set by the caller to stop the run before its next node

        Returns:
            ExecutionResult for the succeeded run

        Raises:
            ExecutionError: Any failure, with execution_id naming the
                record that was marked FAILED
        """
        execution_id = generate_id()
        trigger = TriggerKind(trigger)
        started = self._clock.monotonic()

        with structlog.contextvars.bound_contextvars(
            execution_id=execution_id,
            pipeline_id=pipeline_id,
            trigger=str(trigger),
        ):
            try:
                self._store.create_execution(execution_id, pipeline_id, trigger, self._clock.now())
            except StoreError as e:
                e.execution_id = execution_id
                logger.error("execution_not_recorded", error=str(e))
                raise

            logger.info("execution_started")
            try:
                item_count = self._run(execution_id, pipeline_id, cancel_event or threading.Event())
                duration_ms = self._elapsed_ms(started)
                self._store.update_execution_success(execution_id, self._clock.now(), duration_ms, item_count)
            except ExecutionError as e:
                e.execution_id = execution_id
                self._record_failure(execution_id, e, started)
                raise
            except Exception as e:
                wrapped = ExecutionError(f"Unexpected failure: {e}", execution_id=execution_id)
                logger.exception("execution_crashed")
                self._record_failure(execution_id, wrapped, started)
                raise wrapped from e

            logger.info("execution_succeeded", item_count=item_count, duration_ms=duration_ms)
            return ExecutionResult(
                execution_id=execution_id,
                pipeline_id=pipeline_id,
                status=ExecutionStatus.SUCCESS,
                item_count=item_count,
                duration_ms=duration_ms,
            )

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self._clock.monotonic() - started) * 1000))

    def _record_failure(self, execution_id: str, error: ExecutionError, started: float) -> None:
        duration_ms = self._elapsed_ms(started)
        logger.warning("execution_failed", error=str(error), duration_ms=duration_ms)
        try:
            self._store.update_execution_failed(execution_id, self._clock.now(), duration_ms, str(error))
        except StoreError as store_error:
            store_error.execution_id = execution_id
            logger.error("execution_failure_not_recorded", error=str(store_error))
            raise store_error from error

    def _http_client(self, definition: PipelineDefinition) -> HTTPClient:
        timeout = self._http_timeout
        if definition.settings.timeout:
            timeout = min(timeout, float(definition.settings.timeout))
        return HTTPClient(timeout=timeout, user_agent=self._user_agent)

    def _run(self, execution_id: str, pipeline_id: str, cancel_event: threading.Event) -> int:
        pipeline = self._store.get_pipeline(pipeline_id)
        if pipeline is None:
            raise PipelineNotFoundError(pipeline_id)

        definition = PipelineDefinition.from_json(pipeline.config)
        self._store.set_execution_definition_hash(execution_id, definition_hash(definition))

        graph = ExecutionGraph.from_definition(definition.nodes, definition.connections)
        order = graph.topological_order()
        instances = definition.node_by_id()
        logger.debug("execution_order_resolved", order=order)

        def on_log(node_id: str, level: LogLevel, message: str) -> None:
            self._store.append_log(execution_id, node_id, level, message, timestamp=self._clock.now())

        def on_publish(fmt: str, content_type: str, content: str) -> None:
            self._store.save_pipeline_output(pipeline_id, fmt, content_type, content, execution_id=execution_id)

        run_ctx = ExecutionContext(
            execution_id=execution_id,
            pipeline_id=pipeline_id,
            cancel_event=cancel_event,
            timeout_seconds=float(definition.settings.timeout) if definition.settings.timeout else None,
            on_log=on_log,
            on_publish=on_publish,
            http_client=self._http_client(definition),
        )

        for stale in graph.ignored_connections:
            owner = stale.target if graph.has_node(stale.target) else stale.source
            on_log(
                owner,
                LogLevel.INFO,
                f"Ignoring connection {stale.id}: {stale.source} -> {stale.target} names a missing node",
            )

        # Per-run result table, indexed by node id
        results: dict[str, NodeOutput] = {}
        for node_id in order:
            instance = instances[node_id]
            node = self._registry.get(graph.get_node_type(node_id))
            inputs = gather_inputs(node_id, definition.connections, results)

            ctx = run_ctx.for_node(node_id)
            ctx.raise_if_cancelled()
            try:
                output = node.execute(instance.config, inputs, ctx)
                items = list(output) if output is not None else []
                payload = dump_payload(items)
            except StoreError:
                raise
            except ExecutionCancelledError as e:
                on_log(node_id, LogLevel.ERROR, str(e))
                raise
            except Exception as e:
                logger.warning("node_failed", node_id=node_id, node_type=instance.type, error=str(e))
                on_log(node_id, LogLevel.ERROR, str(e))
                raise NodeExecutionError(node_id, instance.type, e) from e

            results[node_id] = items
            self._store.append_log(
                execution_id,
                node_id,
                LogLevel.DATA,
                f"{len(items)} items",
                payload,
                timestamp=self._clock.now(),
            )

        if not order:
            return 0
        return len(results[order[-1]])

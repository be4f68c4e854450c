"""Execution context passed to every node.

The context gives a node its run identity, a cancellation signal and two
callbacks into the executor: one to append log lines and one for output
nodes to publish rendered content. Nodes never touch the store directly;
the executor wires the callbacks to it.

Example:
    def execute(self, config, inputs, ctx):
        ctx.raise_if_cancelled()
        ctx.log(LogLevel.INFO, f"Fetching {url}")
        ...
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from pipeworks.contracts.enums import LogLevel
from pipeworks.contracts.errors import ExecutionCancelledError

if TYPE_CHECKING:
    from pipeworks.plugins.clients.http import HTTPClient

LogCallback = Callable[[str, LogLevel, str], None]
PublishCallback = Callable[[str, str, str], None]


def _discard_log(node_id: str, level: LogLevel, message: str) -> None:
    pass


def _discard_publish(fmt: str, content_type: str, content: str) -> None:
    pass


@dataclass(frozen=True)
class ExecutionContext:
    """Context for one node invocation within a run.

    Attributes:
        execution_id: Id of the execution record for this run.
        pipeline_id: Pipeline being executed.
        node_id: Node currently executing (set via for_node()).
        cancel_event: Set by the caller to request cancellation.
        timeout_seconds: Pipeline's declared timeout, used by nodes as an
            upper bound for blocking I/O.
        on_log: Receives (node_id, level, message).
        on_publish: Receives (format, content_type, content).
        http_client: Client for outbound HTTP, configured by the executor.
    """

    execution_id: str
    pipeline_id: str
    node_id: str = ""
    cancel_event: threading.Event = field(default_factory=threading.Event)
    timeout_seconds: float | None = None
    on_log: LogCallback = field(default=_discard_log)
    on_publish: PublishCallback = field(default=_discard_publish)
    http_client: HTTPClient | None = None

    def for_node(self, node_id: str) -> ExecutionContext:
        """Return a view of this context bound to a node."""
        return replace(self, node_id=node_id)

    def log(self, level: LogLevel | str, message: str) -> None:
        """Append a log line for the current node."""
        self.on_log(self.node_id, LogLevel(level), message)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def raise_if_cancelled(self) -> None:
        """Abort promptly if the run was cancelled.

        Raises:
            ExecutionCancelledError: If the cancel event is set.
        """
        if self.cancel_event.is_set():
            raise ExecutionCancelledError()

    def publish(self, fmt: str, content_type: str, content: str) -> None:
        """Publish rendered output (e.g. a JSON document or RSS feed)."""
        self.on_publish(fmt, content_type, content)

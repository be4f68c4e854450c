"""Exception taxonomy for pipeline execution.

Every failure the executor can report derives from ExecutionError, which
carries the id of the execution record it was recorded against. Callers
that catch an ExecutionError can always look the run up in the store.
"""

from __future__ import annotations


class PipeworksError(Exception):
    """Base class for all Pipeworks errors."""


# =============================================================================
# Execution failures
# =============================================================================


class ExecutionError(PipeworksError):
    """Base for errors that terminate an execution.

    Attributes:
        execution_id: Id of the execution record marked failed, set by the
            executor before the error reaches the caller. None when the
            error is raised outside of a run (e.g. by the graph resolver
            called directly).
    """

    def __init__(self, message: str, *, execution_id: str | None = None) -> None:
        super().__init__(message)
        self.execution_id = execution_id


class PipelineNotFoundError(ExecutionError):
    """Raised when the requested pipeline does not exist."""

    def __init__(self, pipeline_id: str) -> None:
        super().__init__(f"Pipeline not found: {pipeline_id}")
        self.pipeline_id = pipeline_id


class MalformedDefinitionError(ExecutionError):
    """Raised when a stored pipeline definition cannot be parsed."""


class CyclicGraphError(ExecutionError):
    """Raised when the node graph contains a cycle.

    Attributes:
        cycle: Node ids along one detected cycle, in edge order.
    """

    def __init__(self, cycle: list[str]) -> None:
        path = " -> ".join([*cycle, cycle[0]]) if cycle else "?"
        super().__init__(f"Pipeline contains a cycle: {path}")
        self.cycle = cycle


class UnknownNodeTypeError(ExecutionError):
    """Raised when a node type has no registered implementation."""

    def __init__(self, node_type: str) -> None:
        super().__init__(f"Unknown node type: {node_type}")
        self.node_type = node_type


class NodeExecutionError(ExecutionError):
    """Wraps an exception raised by a node's execute().

    The message names the failing node id and type so that the execution
    record alone identifies where the run stopped.
    """

    def __init__(self, node_id: str, node_type: str, cause: BaseException) -> None:
        super().__init__(f"node {node_id} ({node_type}): {cause}")
        self.node_id = node_id
        self.node_type = node_type
        self.cause = cause


class ExecutionCancelledError(ExecutionError):
    """Raised inside a node when the run's cancellation event is set."""

    def __init__(self, message: str = "Execution cancelled") -> None:
        super().__init__(message)


class StoreError(ExecutionError):
    """Raised when a write to the execution store fails."""


# =============================================================================
# Configuration errors
# =============================================================================


class NodeConfigError(PipeworksError):
    """Raised by validate_config() when a node configuration is invalid."""

    def __init__(self, node_type: str, message: str) -> None:
        super().__init__(f"Invalid configuration for {node_type}: {message}")
        self.node_type = node_type


class ScheduleExpressionError(PipeworksError):
    """Raised when a schedule expression cannot be parsed."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Invalid schedule expression {expression!r}: {reason}")
        self.expression = expression

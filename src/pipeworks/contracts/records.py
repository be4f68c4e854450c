"""Stored record contracts for the pipeline store tables.

Enum fields are strict: the repository layer converts database strings to
enums on read, and a value of the wrong type is a bug, so it raises.
"""

from dataclasses import dataclass
from datetime import datetime

from pipeworks.contracts.enums import ExecutionStatus, LogLevel, TriggerKind


def _validate_enum(value: object, enum_type: type, field_name: str) -> None:
    if value is not None and not isinstance(value, enum_type):
        raise TypeError(f"{field_name} must be {enum_type.__name__}, got {type(value).__name__}: {value!r}")


@dataclass
class Pipeline:
    """A stored pipeline definition and its metadata."""

    pipeline_id: str
    owner_id: str
    name: str
    description: str
    config: str  # Definition JSON text
    is_public: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class ExecutionRecord:
    """One run of a pipeline.

    Created RUNNING; moved exactly once to SUCCESS or FAILED.
    """

    execution_id: str
    pipeline_id: str
    status: ExecutionStatus
    trigger: TriggerKind
    started_at: datetime
    completed_at: datetime | None = None
    duration_ms: int | None = None
    items_processed: int | None = None
    error_message: str | None = None
    definition_hash: str | None = None

    def __post_init__(self) -> None:
        _validate_enum(self.status, ExecutionStatus, "status")
        _validate_enum(self.trigger, TriggerKind, "trigger")

    @property
    def is_terminal(self) -> bool:
        return self.status != ExecutionStatus.RUNNING


@dataclass
class ExecutionLogEntry:
    """Append-only log line of an execution.

    DATA entries carry the node's output as JSON text in payload.
    """

    log_id: str
    execution_id: str
    sequence: int
    node_id: str
    level: LogLevel
    message: str
    timestamp: datetime
    payload: str | None = None

    def __post_init__(self) -> None:
        _validate_enum(self.level, LogLevel, "level")


@dataclass
class ScheduledJob:
    """Recurring trigger of one pipeline (1:1 with the pipeline)."""

    job_id: str
    pipeline_id: str
    schedule: str
    next_run_at: datetime
    enabled: bool
    created_at: datetime
    updated_at: datetime
    last_run_at: datetime | None = None


@dataclass
class PipelineOutput:
    """Latest rendered output an output node published for a pipeline."""

    pipeline_id: str
    format: str
    content_type: str
    content: str
    execution_id: str | None
    updated_at: datetime

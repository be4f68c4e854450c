"""Status codes, trigger kinds and tags shared across subsystem boundaries."""

from enum import StrEnum


class ExecutionStatus(StrEnum):
    """Status of a pipeline execution.

    Stored in the database (executions.status). An execution starts
    RUNNING and moves exactly once to SUCCESS or FAILED.
    """

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class TriggerKind(StrEnum):
    """Reason an execution started.

    Stored in database (executions.trigger).

    Values:
        MANUAL: Operator-initiated run (CLI, API)
        SCHEDULED: Started by the scheduler for a due job
        AUTO: Started implicitly, e.g. to populate a published feed
    """

    MANUAL = "manual"
    SCHEDULED = "scheduled"
    AUTO = "auto"


class LogLevel(StrEnum):
    """Level of an execution log entry.

    DATA entries carry a serialized copy of a node's output.
    """

    INFO = "info"
    ERROR = "error"
    DATA = "data"


class NodeCategory(StrEnum):
    """Category of a node type (convention only, not enforced)."""

    SOURCE = "source"
    TRANSFORM = "transform"
    OUTPUT = "output"


class FieldType(StrEnum):
    """Type tag of a config field, for presenting an editing surface."""

    TEXT = "text"
    URL = "url"
    NUMBER = "number"
    SELECT = "select"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"


class SchedulerState(StrEnum):
    """Lifecycle state of the scheduler loop."""

    STOPPED = "stopped"
    RUNNING = "running"

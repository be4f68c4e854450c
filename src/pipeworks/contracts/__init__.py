"""Shared contracts for cross-boundary data types.

Enums, errors, pipeline definition models, stored records and the node
execution context live here. This package is a leaf module with no
outbound dependencies on core, plugins or engine.

Import patterns:
    from pipeworks.contracts import ExecutionStatus, PipelineDefinition
    from pipeworks.contracts.errors import NodeExecutionError
"""

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import (
    ExecutionStatus,
    FieldType,
    LogLevel,
    NodeCategory,
    SchedulerState,
    TriggerKind,
)
from pipeworks.contracts.errors import (
    CyclicGraphError,
    ExecutionCancelledError,
    ExecutionError,
    MalformedDefinitionError,
    NodeConfigError,
    NodeExecutionError,
    PipelineNotFoundError,
    PipeworksError,
    ScheduleExpressionError,
    StoreError,
    UnknownNodeTypeError,
)
from pipeworks.contracts.pipeline import (
    Connection,
    NodeInstance,
    PipelineDefinition,
    PipelineSettings,
    Position,
    RetryPolicy,
)
from pipeworks.contracts.records import (
    ExecutionLogEntry,
    ExecutionRecord,
    Pipeline,
    PipelineOutput,
    ScheduledJob,
)

__all__ = [
    "Connection",
    "CyclicGraphError",
    "ExecutionCancelledError",
    "ExecutionContext",
    "ExecutionError",
    "ExecutionLogEntry",
    "ExecutionRecord",
    "ExecutionStatus",
    "FieldType",
    "LogLevel",
    "MalformedDefinitionError",
    "NodeCategory",
    "NodeConfigError",
    "NodeExecutionError",
    "NodeInstance",
    "Pipeline",
    "PipelineDefinition",
    "PipelineNotFoundError",
    "PipelineOutput",
    "PipelineSettings",
    "PipeworksError",
    "Position",
    "RetryPolicy",
    "ScheduleExpressionError",
    "ScheduledJob",
    "SchedulerState",
    "StoreError",
    "TriggerKind",
    "UnknownNodeTypeError",
]

"""Pipeline store: persistence for definitions, executions, logs and schedules.

Uses SQLAlchemy Core over SQLite by default.
"""

from pipeworks.core.store.database import PipelineDB
from pipeworks.core.store.schema import (
    execution_logs_table,
    executions_table,
    metadata,
    pipeline_outputs_table,
    pipelines_table,
    scheduled_jobs_table,
)
from pipeworks.core.store.store import PipelineStore

__all__ = [
    "PipelineDB",
    "PipelineStore",
    "execution_logs_table",
    "executions_table",
    "metadata",
    "pipeline_outputs_table",
    "pipelines_table",
    "scheduled_jobs_table",
]

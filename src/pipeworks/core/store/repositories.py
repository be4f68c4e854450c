"""Repository layer for pipeline store models.

Handles the seam between SQLAlchemy rows (strings, naive timestamps) and
domain objects (strict enums, UTC datetimes). The store is our own data:
a row with an invalid enum value raises rather than being coerced.
"""

from typing import Any

from sqlalchemy.engine import Row as SARow

from pipeworks.contracts.enums import ExecutionStatus, LogLevel, TriggerKind
from pipeworks.contracts.records import (
    ExecutionLogEntry,
    ExecutionRecord,
    Pipeline,
    PipelineOutput,
    ScheduledJob,
)
from pipeworks.core.store._helpers import as_utc, as_utc_or_none


class PipelineRepository:
    """Repository for Pipeline records."""

    def load(self, row: SARow[Any]) -> Pipeline:
        return Pipeline(
            pipeline_id=row.pipeline_id,
            owner_id=row.owner_id,
            name=row.name,
            description=row.description,
            config=row.config,
            is_public=bool(row.is_public),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )


class ExecutionRepository:
    """Repository for ExecutionRecord records."""

    def load(self, row: SARow[Any]) -> ExecutionRecord:
        """Load ExecutionRecord from database row.

        Converts string fields to enums. Crashes on invalid data.
        """
        return ExecutionRecord(
            execution_id=row.execution_id,
            pipeline_id=row.pipeline_id,
            status=ExecutionStatus(row.status),
            trigger=TriggerKind(row.trigger),
            started_at=as_utc(row.started_at),
            completed_at=as_utc_or_none(row.completed_at),
            duration_ms=row.duration_ms,
            items_processed=row.items_processed,
            error_message=row.error_message,
            definition_hash=row.definition_hash,
        )


class ExecutionLogRepository:
    """Repository for ExecutionLogEntry records."""

    def load(self, row: SARow[Any]) -> ExecutionLogEntry:
        return ExecutionLogEntry(
            log_id=row.log_id,
            execution_id=row.execution_id,
            sequence=row.sequence,
            node_id=row.node_id,
            level=LogLevel(row.level),
            message=row.message,
            timestamp=as_utc(row.timestamp),
            payload=row.payload,
        )


class ScheduledJobRepository:
    """Repository for ScheduledJob records."""

    def load(self, row: SARow[Any]) -> ScheduledJob:
        return ScheduledJob(
            job_id=row.job_id,
            pipeline_id=row.pipeline_id,
            schedule=row.schedule,
            next_run_at=as_utc(row.next_run_at),
            last_run_at=as_utc_or_none(row.last_run_at),
            enabled=bool(row.enabled),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )


class PipelineOutputRepository:
    """Repository for PipelineOutput records."""

    def load(self, row: SARow[Any]) -> PipelineOutput:
        return PipelineOutput(
            pipeline_id=row.pipeline_id,
            format=row.format,
            content_type=row.content_type,
            content=row.content,
            execution_id=row.execution_id,
            updated_at=as_utc(row.updated_at),
        )

# src/pipeworks/core/store/_execution_recording.py
"""Execution record and log trail methods for PipelineStore."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from pipeworks.contracts.enums import ExecutionStatus, LogLevel, TriggerKind
from pipeworks.contracts.errors import StoreError
from pipeworks.contracts.records import ExecutionLogEntry, ExecutionRecord
from pipeworks.core.store._helpers import as_utc, generate_id, now
from pipeworks.core.store.schema import execution_logs_table, executions_table

if TYPE_CHECKING:
    from threading import Lock

    from pipeworks.core.store._database_ops import DatabaseOps
    from pipeworks.core.store.database import PipelineDB
    from pipeworks.core.store.repositories import ExecutionLogRepository, ExecutionRepository


class ExecutionRecordingMixin:
    """Execution lifecycle and log methods. Mixed into PipelineStore."""

    # Shared state annotations (set by PipelineStore.__init__)
    _db: PipelineDB
    _ops: DatabaseOps
    _execution_repo: ExecutionRepository
    _log_repo: ExecutionLogRepository
    _log_lock: Lock

    def create_execution(
        self,
        execution_id: str,
        pipeline_id: str,
        trigger: TriggerKind,
        started_at: datetime,
    ) -> ExecutionRecord:
        """Record the start of an execution in RUNNING state."""
        record = ExecutionRecord(
            execution_id=execution_id,
            pipeline_id=pipeline_id,
            status=ExecutionStatus.RUNNING,
            trigger=TriggerKind(trigger),
            started_at=as_utc(started_at),
        )
        self._ops.execute_insert(
            executions_table.insert().values(
                execution_id=record.execution_id,
                pipeline_id=record.pipeline_id,
                status=record.status,
                trigger=record.trigger,
                started_at=record.started_at,
            )
        )
        return record

    def set_execution_definition_hash(self, execution_id: str, definition_hash: str) -> None:
        """Attach the hash of the definition an execution is running."""
        self._ops.execute_update_one(
            executions_table.update()
            .where(executions_table.c.execution_id == execution_id)
            .values(definition_hash=definition_hash),
            what=f"Execution {execution_id}",
        )

    def _complete_execution(self, execution_id: str, **values: object) -> None:
        # Only a RUNNING record may transition; terminal records are final
        self._ops.execute_update_one(
            executions_table.update()
            .where(executions_table.c.execution_id == execution_id)
            .where(executions_table.c.status == ExecutionStatus.RUNNING)
            .values(**values),
            what=f"Running execution {execution_id}",
        )

    def update_execution_success(
        self,
        execution_id: str,
        completed_at: datetime,
        duration_ms: int,
        item_count: int,
    ) -> None:
        """Mark a running execution as succeeded.

        Raises:
            StoreError: If the execution does not exist or is already terminal
        """
        self._complete_execution(
            execution_id,
            status=ExecutionStatus.SUCCESS,
            completed_at=as_utc(completed_at),
            duration_ms=duration_ms,
            items_processed=item_count,
        )

    def update_execution_failed(
        self,
        execution_id: str,
        completed_at: datetime,
        duration_ms: int,
        error_message: str,
    ) -> None:
        """Mark a running execution as failed.

        Raises:
            StoreError: If the execution does not exist or is already terminal
        """
        self._complete_execution(
            execution_id,
            status=ExecutionStatus.FAILED,
            completed_at=as_utc(completed_at),
            duration_ms=duration_ms,
            error_message=error_message,
        )

    def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        row = self._ops.execute_fetchone(select(executions_table).where(executions_table.c.execution_id == execution_id))
        if row is None:
            return None
        return self._execution_repo.load(row)

    def list_executions(self, pipeline_id: str, *, limit: int = 20) -> list[ExecutionRecord]:
        """List a pipeline's executions, newest first."""
        query = (
            select(executions_table)
            .where(executions_table.c.pipeline_id == pipeline_id)
            .order_by(executions_table.c.started_at.desc())
            .limit(limit)
        )
        return [self._execution_repo.load(row) for row in self._ops.execute_fetchall(query)]

    def append_log(
        self,
        execution_id: str,
        node_id: str,
        level: LogLevel,
        message: str,
        payload: str | None = None,
        *,
        timestamp: datetime | None = None,
    ) -> ExecutionLogEntry:
        """Append a log entry to an execution's trail.

        Entries get a per-execution sequence number, allocated inside the
        insert transaction, which orders the trail.

        Args:
            execution_id: Owning execution
            node_id: Node the entry is about ("" for run-level entries)
            level: INFO, ERROR or DATA
            message: Human-readable message
            payload: Optional JSON text (node output for DATA entries)
            timestamp: Entry time (defaults to now)

        Raises:
            StoreError: If the execution does not exist or the write fails
        """
        entry_time = as_utc(timestamp) if timestamp is not None else now()
        log_id = generate_id()
        try:
            with self._log_lock, self._db.connection() as conn:
                current = conn.execute(
                    select(func.max(execution_logs_table.c.sequence)).where(execution_logs_table.c.execution_id == execution_id)
                ).scalar()
                sequence = (current or 0) + 1
                conn.execute(
                    execution_logs_table.insert().values(
                        log_id=log_id,
                        execution_id=execution_id,
                        sequence=sequence,
                        node_id=node_id,
                        level=LogLevel(level),
                        message=message,
                        timestamp=entry_time,
                        payload=payload,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to append log for execution {execution_id}: {e}") from e

        return ExecutionLogEntry(
            log_id=log_id,
            execution_id=execution_id,
            sequence=sequence,
            node_id=node_id,
            level=LogLevel(level),
            message=message,
            timestamp=entry_time,
            payload=payload,
        )

    def get_execution_logs(self, execution_id: str) -> list[ExecutionLogEntry]:
        """Get an execution's log trail in append order."""
        query = (
            select(execution_logs_table)
            .where(execution_logs_table.c.execution_id == execution_id)
            .order_by(execution_logs_table.c.sequence)
        )
        return [self._log_repo.load(row) for row in self._ops.execute_fetchall(query)]

# src/pipeworks/core/store/_schedule_recording.py
"""Scheduled job methods for PipelineStore."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from pipeworks.contracts.records import ScheduledJob
from pipeworks.core.store._helpers import as_utc, generate_id, now
from pipeworks.core.store.schema import scheduled_jobs_table

if TYPE_CHECKING:
    from pipeworks.core.store._database_ops import DatabaseOps
    from pipeworks.core.store.repositories import ScheduledJobRepository


class ScheduleRecordingMixin:
    """Scheduled job methods. Mixed into PipelineStore."""

    # Shared state annotations (set by PipelineStore.__init__)
    _ops: DatabaseOps
    _job_repo: ScheduledJobRepository

    def upsert_scheduled_job(
        self,
        pipeline_id: str,
        schedule: str,
        next_run_at: datetime,
        *,
        enabled: bool = True,
    ) -> ScheduledJob:
        """Create or replace the scheduled job of a pipeline.

        last_run_at is preserved when the job already exists.
        """
        timestamp = now()
        existing = self.get_scheduled_job(pipeline_id)
        if existing is None:
            job = ScheduledJob(
                job_id=generate_id(),
                pipeline_id=pipeline_id,
                schedule=schedule,
                next_run_at=as_utc(next_run_at),
                enabled=enabled,
                created_at=timestamp,
                updated_at=timestamp,
            )
            self._ops.execute_insert(
                scheduled_jobs_table.insert().values(
                    job_id=job.job_id,
                    pipeline_id=job.pipeline_id,
                    schedule=job.schedule,
                    next_run_at=job.next_run_at,
                    enabled=job.enabled,
                    created_at=job.created_at,
                    updated_at=job.updated_at,
                )
            )
            return job

        self._ops.execute_update_one(
            scheduled_jobs_table.update()
            .where(scheduled_jobs_table.c.job_id == existing.job_id)
            .values(
                schedule=schedule,
                next_run_at=as_utc(next_run_at),
                enabled=enabled,
                updated_at=timestamp,
            ),
            what=f"Scheduled job {existing.job_id}",
        )
        return ScheduledJob(
            job_id=existing.job_id,
            pipeline_id=pipeline_id,
            schedule=schedule,
            next_run_at=as_utc(next_run_at),
            enabled=enabled,
            created_at=existing.created_at,
            updated_at=timestamp,
            last_run_at=existing.last_run_at,
        )

    def get_scheduled_job(self, pipeline_id: str) -> ScheduledJob | None:
        row = self._ops.execute_fetchone(select(scheduled_jobs_table).where(scheduled_jobs_table.c.pipeline_id == pipeline_id))
        if row is None:
            return None
        return self._job_repo.load(row)

    def list_scheduled_jobs(self) -> list[ScheduledJob]:
        query = select(scheduled_jobs_table).order_by(scheduled_jobs_table.c.next_run_at)
        return [self._job_repo.load(row) for row in self._ops.execute_fetchall(query)]

    def disable_scheduled_job(self, pipeline_id: str) -> bool:
        """Disable a pipeline's job. Returns False if it has none."""
        count = self._ops.execute_update(
            scheduled_jobs_table.update()
            .where(scheduled_jobs_table.c.pipeline_id == pipeline_id)
            .values(enabled=False, updated_at=now())
        )
        return count > 0

    def get_due_jobs(self, now_ts: datetime) -> list[ScheduledJob]:
        """Enabled jobs whose next run is at or before now_ts, oldest first."""
        query = (
            select(scheduled_jobs_table)
            .where(scheduled_jobs_table.c.enabled.is_(True))
            .where(scheduled_jobs_table.c.next_run_at <= as_utc(now_ts))
            .order_by(scheduled_jobs_table.c.next_run_at)
        )
        return [self._job_repo.load(row) for row in self._ops.execute_fetchall(query)]

    def update_job_after_run(self, job_id: str, last_run: datetime, next_run: datetime) -> None:
        """Record a job run and advance its next run time.

        Raises:
            StoreError: If the job does not exist
        """
        self._ops.execute_update_one(
            scheduled_jobs_table.update()
            .where(scheduled_jobs_table.c.job_id == job_id)
            .values(
                last_run_at=as_utc(last_run),
                next_run_at=as_utc(next_run),
                updated_at=now(),
            ),
            what=f"Scheduled job {job_id}",
        )

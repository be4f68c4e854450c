# src/pipeworks/core/store/store.py
"""PipelineStore: persistence API for pipelines, executions and schedules.

The executor and scheduler only need the execution, log and job methods;
the pipeline CRUD and output methods serve the CLI and published feeds.
"""

from __future__ import annotations

from threading import Lock

from pipeworks.core.store._database_ops import DatabaseOps
from pipeworks.core.store._execution_recording import ExecutionRecordingMixin
from pipeworks.core.store._pipeline_recording import PipelineRecordingMixin
from pipeworks.core.store._schedule_recording import ScheduleRecordingMixin
from pipeworks.core.store.database import PipelineDB
from pipeworks.core.store.repositories import (
    ExecutionLogRepository,
    ExecutionRepository,
    PipelineOutputRepository,
    PipelineRepository,
    ScheduledJobRepository,
)


class PipelineStore(PipelineRecordingMixin, ExecutionRecordingMixin, ScheduleRecordingMixin):
    """High-level API over the pipeline store database.

    Every method runs in its own short transaction; no transaction spans
    a whole execution.

    Example:
        db = PipelineDB.in_memory()
        store = PipelineStore(db)

        pipeline = store.create_pipeline("news", definition)
        record = store.get_execution(execution_id)
    """

    def __init__(self, db: PipelineDB) -> None:
        self._db = db
        self._ops = DatabaseOps(db)

        # Serializes sequence allocation for log entries within this process
        self._log_lock = Lock()

        self._pipeline_repo = PipelineRepository()
        self._output_repo = PipelineOutputRepository()
        self._execution_repo = ExecutionRepository()
        self._log_repo = ExecutionLogRepository()
        self._job_repo = ScheduledJobRepository()

    @property
    def db(self) -> PipelineDB:
        return self._db

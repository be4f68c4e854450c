# src/pipeworks/engine/scheduler.py
"""Background scheduler for due pipeline jobs.

A daemon thread ticks once at start and then every poll interval. Each
tick runs every due job independently: a failing run or a failing
reschedule is logged and never blocks the other jobs of the tick.
stop() ends the tick early; jobs it did not reach, and a run it
cancelled, stay due and are picked up after the next start.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from pipeworks.contracts.enums import SchedulerState, TriggerKind
from pipeworks.contracts.errors import ExecutionCancelledError, ExecutionError, PipeworksError, ScheduleExpressionError
from pipeworks.contracts.records import ScheduledJob
from pipeworks.engine.clock import DEFAULT_CLOCK, Clock
from pipeworks.engine.schedule import compute_next_run

if TYPE_CHECKING:
    from pipeworks.core.store import PipelineStore
    from pipeworks.engine.executor import PipelineExecutor

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 60.0
DEFAULT_FALLBACK_INTERVAL_SECONDS = 3600.0


@dataclass(frozen=True, slots=True)
class JobRunOutcome:
    """What one due job did during a tick.

    Attributes:
        job_id: Scheduled job that was due
        pipeline_id: Pipeline it ran
        execution_id: Execution record of the run, None if none was created
        succeeded: Whether the run succeeded
        error: Failure message of the run, if any
        next_run_at: New due time (the unchanged one for a run cut short by
            stop()), None if rescheduling failed
    """

    job_id: str
    pipeline_id: str
    execution_id: str | None
    succeeded: bool
    error: str | None
    next_run_at: datetime | None


class Scheduler:
    """Polls the store for due jobs and executes them.

    Example:
        scheduler = Scheduler(store, executor, poll_interval=60)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        store: PipelineStore,
        executor: PipelineExecutor,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Clock | None = None,
        fallback_interval: float = DEFAULT_FALLBACK_INTERVAL_SECONDS,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self._store = store
        self._executor = executor
        self._poll_interval = poll_interval
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._fallback_interval = timedelta(seconds=fallback_interval)

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return SchedulerState.RUNNING if self._thread is not None else SchedulerState.STOPPED

    def start(self) -> None:
        """Start the polling thread. A second start() only logs a warning."""
        with self._lock:
            if self._thread is not None:
                logger.warning("scheduler_already_running")
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(target=self._loop, name="pipeworks-scheduler", daemon=True)
            self._thread.start()
        logger.info("scheduler_started", poll_interval=self._poll_interval)

    def stop(self, timeout: float | None = None) -> None:
        """Stop polling and wait for the thread to finish.

        A run in progress sees the stop as cancellation before its next
        node. stop() on a stopped scheduler only logs a warning.
        """
        with self._lock:
            thread = self._thread
            if thread is None:
                logger.warning("scheduler_not_running")
                return
            self._stop_event.set()
        thread.join(timeout)
        with self._lock:
            self._thread = None
        logger.info("scheduler_stopped")

    def _loop(self) -> None:
        stop_event = self._stop_event
        while not stop_event.is_set():
            try:
                self.tick()
            except PipeworksError as e:
                # get_due_jobs failed; retry on the next tick
                logger.error("scheduler_tick_failed", error=str(e))
            stop_event.wait(self._poll_interval)

    def tick(self) -> list[JobRunOutcome]:
        """Run every job that is due now.

        Returns one outcome per job actually attempted. Once stop() has
        been called the remaining due jobs are left untouched.

        Raises:
            StoreError: If the due jobs cannot be read
        """
        now = self._clock.now()
        jobs = self._store.get_due_jobs(now)
        if jobs:
            logger.info("scheduler_tick", due_jobs=len(jobs))

        outcomes: list[JobRunOutcome] = []
        for job in jobs:
            if self._stop_event.is_set():
                logger.info("scheduler_tick_interrupted", skipped_jobs=len(jobs) - len(outcomes))
                break
            outcomes.append(self._run_job(job, now))
        return outcomes

    def _run_job(self, job: ScheduledJob, now: datetime) -> JobRunOutcome:
        execution_id: str | None = None
        error: str | None = None
        try:
            result = self._executor.execute(job.pipeline_id, TriggerKind.SCHEDULED, cancel_event=self._stop_event)
            execution_id = result.execution_id
        except ExecutionError as e:
            if isinstance(e, ExecutionCancelledError) and self._stop_event.is_set():
                # Left due so the run happens after the next start
                logger.info("scheduled_run_cancelled", job_id=job.job_id, pipeline_id=job.pipeline_id, execution_id=e.execution_id)
                return JobRunOutcome(
                    job_id=job.job_id,
                    pipeline_id=job.pipeline_id,
                    execution_id=e.execution_id,
                    succeeded=False,
                    error=str(e),
                    next_run_at=job.next_run_at,
                )
            execution_id = e.execution_id
            error = str(e)
            logger.warning("scheduled_run_failed", job_id=job.job_id, pipeline_id=job.pipeline_id, execution_id=execution_id, error=error)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.exception("scheduled_run_crashed", job_id=job.job_id, pipeline_id=job.pipeline_id)

        next_run = self._next_run(job, now)
        next_run_at: datetime | None = next_run
        try:
            self._store.update_job_after_run(job.job_id, last_run=now, next_run=next_run)
        except PipeworksError as e:
            logger.error("job_reschedule_failed", job_id=job.job_id, error=str(e))
            next_run_at = None

        return JobRunOutcome(
            job_id=job.job_id,
            pipeline_id=job.pipeline_id,
            execution_id=execution_id,
            succeeded=error is None,
            error=error,
            next_run_at=next_run_at,
        )

    def _next_run(self, job: ScheduledJob, now: datetime) -> datetime:
        try:
            return compute_next_run(job.schedule, now)
        except ScheduleExpressionError as e:
            fallback = now + self._fallback_interval
            logger.warning("schedule_expression_invalid", job_id=job.job_id, error=str(e), next_run_at=fallback.isoformat())
            return fallback

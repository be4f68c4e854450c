"""Execution engine: runs pipelines now or on schedule."""

from pipeworks.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from pipeworks.engine.executor import ExecutionResult, PipelineExecutor
from pipeworks.engine.schedule import compute_next_run, sync_schedule
from pipeworks.engine.scheduler import JobRunOutcome, Scheduler

__all__ = [
    "DEFAULT_CLOCK",
    "Clock",
    "ExecutionResult",
    "JobRunOutcome",
    "MockClock",
    "PipelineExecutor",
    "Scheduler",
    "SystemClock",
    "compute_next_run",
    "sync_schedule",
]

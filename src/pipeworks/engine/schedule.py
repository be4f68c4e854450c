"""Schedule expressions: next-run computation and job synchronization.

A pipeline's settings.schedule is either a cron expression evaluated with
croniter (five fields, or aliases such as "@hourly" and "@daily") or
"@every <duration>" for a fixed interval, with durations written like
"30s", "15m", "1h30m".
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from croniter import croniter

from pipeworks.contracts.errors import ScheduleExpressionError
from pipeworks.contracts.records import ScheduledJob
from pipeworks.core.store._helpers import as_utc

if TYPE_CHECKING:
    from pipeworks.contracts.pipeline import PipelineDefinition
    from pipeworks.core.store import PipelineStore

EVERY_PREFIX = "@every"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|d|h|m|s)")
_UNIT_SECONDS = {"d": 86400.0, "h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "90s", "15m", "1h30m" or "1d".

    Raises:
        ValueError: If the text is not a sequence of <number><unit> parts
            or the total is not positive.
    """
    text = text.strip()
    if not text:
        raise ValueError("empty duration")
    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration {text!r}")
    if total <= 0:
        raise ValueError("duration must be positive")
    return timedelta(seconds=total)


def compute_next_run(schedule: str, now: datetime) -> datetime:
    """Return the first run time strictly after now.

    Raises:
        ScheduleExpressionError: If the expression cannot be parsed.
    """
    expression = schedule.strip()
    now = as_utc(now)

    if expression.startswith(EVERY_PREFIX):
        try:
            interval = parse_duration(expression[len(EVERY_PREFIX) :])
        except ValueError as e:
            raise ScheduleExpressionError(schedule, str(e)) from e
        return now + interval

    if not expression or not croniter.is_valid(expression):
        raise ScheduleExpressionError(schedule, "not a valid cron expression")
    try:
        next_run: datetime = croniter(expression, now).get_next(datetime)
    except (ValueError, KeyError) as e:
        raise ScheduleExpressionError(schedule, str(e)) from e
    return as_utc(next_run)


def sync_schedule(
    store: PipelineStore,
    pipeline_id: str,
    definition: PipelineDefinition,
    now: datetime,
) -> ScheduledJob | None:
    """Bring a pipeline's scheduled job in line with its settings.

    An enabled schedule upserts the job with its next run after now. A
    missing or disabled schedule disables an existing job.

    Returns:
        The upserted job, or None when scheduling is off.

    Raises:
        ScheduleExpressionError: If an enabled schedule cannot be parsed.
    """
    settings = definition.settings
    if settings.enabled and settings.schedule:
        next_run = compute_next_run(settings.schedule, now)
        return store.upsert_scheduled_job(pipeline_id, settings.schedule, next_run, enabled=True)
    store.disable_scheduled_job(pipeline_id)
    return None

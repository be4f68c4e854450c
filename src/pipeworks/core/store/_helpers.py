"""Timestamp and identifier helpers for the store mixins."""

import uuid
from datetime import UTC, datetime


def now() -> datetime:
    """Aware UTC wall-clock time for created_at / updated_at columns."""
    return datetime.now(UTC)


def generate_id() -> str:
    """Random 32-character hex identifier for new rows."""
    return uuid.uuid4().hex


def as_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime.

    Naive values are taken to be UTC already (SQLite returns stored
    timestamps without a zone).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def as_utc_or_none(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None

"""
Deterministic JSON for pipeline definition hashes.

Definitions are first reduced to plain JSON values (datetimes as UTC ISO
strings, bytes as base64 wrappers, Decimals as strings) and then
serialized with the rfc8785 package, so two definitions that differ only
in key order or whitespace hash identically.

Non-finite numbers have no canonical form and raise ValueError. Data that
is only written out, never hashed, uses dump_payload().
"""

from __future__ import annotations

import base64
import hashlib
import json
import math
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import rfc8785

# Identifies the hashing scheme; bump when _to_plain() output changes
CANONICAL_VERSION = "sha256-rfc8785-v1"


def _utc_iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat()


def _to_plain(value: Any) -> Any:
    """Recursively reduce ``value`` to types rfc8785 can encode.

    Raises:
        ValueError: On NaN or infinite floats and Decimals, at any depth.
    """
    match value:
        case dict():
            return {key: _to_plain(item) for key, item in value.items()}
        case list() | tuple():
            return [_to_plain(item) for item in value]
        case float() if not math.isfinite(value):
            raise ValueError(f"Cannot hash non-finite float {value!r}; use null for missing numbers")
        case Decimal() if not value.is_finite():
            raise ValueError(f"Cannot hash non-finite Decimal {value!r}; use null for missing numbers")
        case Decimal():
            return str(value)
        case datetime():
            return _utc_iso(value)
        case bytes():
            return {"__bytes__": base64.b64encode(value).decode("ascii")}
        case _:
            return value


def canonical_json(obj: Any) -> str:
    """Return the RFC 8785 encoding of ``obj`` as text.

    Raises:
        ValueError: If ``obj`` holds a non-finite number.
        TypeError: If ``obj`` holds something with no JSON form.
    """
    encoded: bytes = rfc8785.dumps(_to_plain(obj))
    return encoded.decode("utf-8")


def stable_hash(obj: Any, version: str = CANONICAL_VERSION) -> str:
    """SHA-256 hex digest of ``canonical_json(obj)``.

    Only ``CANONICAL_VERSION`` is understood today.
    """
    if version != CANONICAL_VERSION:
        raise ValueError(f"Unsupported canonical hash version: {version!r}")
    return hashlib.sha256(canonical_json(obj).encode("utf-8")).hexdigest()


def _payload_fallback(value: Any) -> Any:
    if isinstance(value, datetime):
        return _utc_iso(value)
    return str(value)


def dump_payload(obj: Any, *, indent: int | None = None) -> str:
    """Serialize node results for logs and published documents.

    Never rejects input: datetimes become UTC ISO strings and any other
    unknown object is rendered with ``str()``.
    """
    return json.dumps(obj, default=_payload_fallback, ensure_ascii=False, indent=indent)

"""Shared helpers for node implementations.

Node configs are free-form mappings (stored JSON, YAML imports, editor
forms), so numbers may arrive as strings and booleans as "true". The
config_* readers apply a per-field type check at the point of use and
fall back to the default when the value has the wrong shape.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable
from typing import Any


# =============================================================================
# Config readers
# =============================================================================


def config_str(config: dict[str, Any], key: str, default: str = "") -> str:
    """Read a string option; non-strings yield the default."""
    value = config.get(key)
    if isinstance(value, str):
        return value
    return default


def config_int(config: dict[str, Any], key: str, default: int) -> int:
    """Read an integer option.

    Accepts ints, floats (truncated) and numeric strings. Booleans and
    anything else yield the default.
    """
    value = config.get(key)
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return default
    return default


def config_bool(config: dict[str, Any], key: str, default: bool) -> bool:
    """Read a boolean option, accepting common string spellings."""
    value = config.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
    return default


def parse_headers(text: str) -> dict[str, str]:
    """Parse 'Name: Value' header lines. Lines without a colon are skipped."""
    headers: dict[str, str] = {}
    for line in text.splitlines():
        name, sep, value = line.strip().partition(":")
        if sep and name.strip():
            headers[name.strip()] = value.strip()
    return headers


def parse_mappings(text: str) -> dict[str, str]:
    """Parse 'new:source, other:a.b' into {new: source, other: a.b}."""
    mappings: dict[str, str] = {}
    for part in text.split(","):
        new_field, sep, source_field = part.strip().partition(":")
        if sep:
            mappings[new_field.strip()] = source_field.strip()
    return mappings


# =============================================================================
# Record access
# =============================================================================


def get_nested_value(record: Any, path: str) -> Any:
    """Follow a dot path through nested mappings.

    Returns None as soon as a step is not a mapping or the key is absent.
    """
    current = record
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def extract_path(data: Any, path: str) -> Any:
    """Like get_nested_value(), but numeric parts also index into lists."""
    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list):
            try:
                index = int(part)
            except ValueError:
                return None
            if not 0 <= index < len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def format_value(value: Any) -> str:
    """Render a record value as text for comparisons.

    None renders as "", booleans as "true"/"false" and integral floats
    without a fractional part, so JSON numbers compare as written.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_float(value: Any) -> float | None:
    """Return value as a float if it is a real number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    return None


def _compare_values(a: Any, b: Any) -> int:
    a_num, b_num = to_float(a), to_float(b)
    if a_num is not None and b_num is not None:
        return (a_num > b_num) - (a_num < b_num)
    a_str, b_str = format_value(a), format_value(b)
    return (a_str > b_str) - (a_str < b_str)


def sort_records(records: list[Any], field: str, *, descending: bool = False) -> list[Any]:
    """Return a stably sorted copy of records by a dot-path field.

    Values compare numerically when both are numbers, else as text.
    Non-mapping items compare equal to everything and keep their place
    relative to each other.
    """

    def compare(a: Any, b: Any) -> int:
        if not isinstance(a, dict) or not isinstance(b, dict):
            return 0
        result = _compare_values(get_nested_value(a, field), get_nested_value(b, field))
        return -result if descending else result

    key: Callable[[Any], Any] = functools.cmp_to_key(compare)
    return sorted(records, key=key)


def strip_html(text: str) -> str:
    """Drop everything between '<' and '>' and trim the result."""
    out: list[str] = []
    in_tag = False
    for char in text:
        if char == "<":
            in_tag = True
        elif char == ">":
            in_tag = False
        elif not in_tag:
            out.append(char)
    return "".join(out).strip()


_GROUP_REF = re.compile(r"\$(\d+)|\$\{(\w+)\}")


def translate_replacement(replacement: str) -> str:
    r"""Translate $1 / ${name} group references to Python's \g<...> syntax.

    Backslashes are escaped first so literal text survives re.sub().
    """
    escaped = replacement.replace("\\", "\\\\")
    return _GROUP_REF.sub(lambda m: f"\\g<{m.group(1) or m.group(2)}>", escaped)

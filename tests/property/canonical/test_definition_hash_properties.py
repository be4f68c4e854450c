"""Property tests for canonical hashing and payload serialization.

- stable_hash() ignores mapping key order and is repeatable.
- canonical_json() rejects NaN and Infinity anywhere in the structure.
- dump_payload() never rejects a value and round-trips plain JSON data.
"""

import json
import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

MAX_SAFE_INT = 2**53 - 1

json_primitives = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-MAX_SAFE_INT, max_value=MAX_SAFE_INT)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=40)
)

json_values = st.recursive(
    json_primitives,
    lambda children: st.lists(children, max_size=6) | st.dictionaries(st.text(max_size=12), children, max_size=6),
    max_leaves=30,
)


def _reversed_keys(value):
    if isinstance(value, dict):
        return {k: _reversed_keys(value[k]) for k in reversed(list(value))}
    if isinstance(value, list):
        return [_reversed_keys(v) for v in value]
    return value


class TestStableHash:
    @given(value=json_values)
    def test_repeatable(self, value) -> None:
        from pipeworks.core.canonical import stable_hash

        assert stable_hash(value) == stable_hash(value)

    @given(value=json_values)
    def test_key_order_does_not_matter(self, value) -> None:
        from pipeworks.core.canonical import stable_hash

        assert stable_hash(_reversed_keys(value)) == stable_hash(value)

    @given(
        path=st.lists(st.text(min_size=1, max_size=8), min_size=1, max_size=4),
        bad=st.sampled_from([math.nan, math.inf, -math.inf]),
    )
    def test_non_finite_rejected(self, path, bad) -> None:
        from pipeworks.core.canonical import canonical_json

        value = bad
        for key in reversed(path):
            value = {key: [value]}

        with pytest.raises(ValueError, match="non-finite"):
            canonical_json(value)


class TestDumpPayload:
    @given(value=json_values)
    def test_plain_json_round_trips(self, value) -> None:
        from pipeworks.core.canonical import dump_payload

        assert json.loads(dump_payload(value)) == value

    @given(items=st.lists(st.dictionaries(st.text(max_size=8), st.floats(), max_size=4), max_size=5))
    def test_never_raises_on_floats(self, items) -> None:
        from pipeworks.core.canonical import dump_payload

        assert isinstance(dump_payload(items), str)

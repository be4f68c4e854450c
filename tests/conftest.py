# tests/conftest.py
"""Shared test fixtures.

Fixtures:
- store: PipelineStore over an in-memory SQLite database
- registry: NodeRegistry with the built-in nodes plus the test nodes in
  tests.helpers.pipelines (static-source, input-recorder, failing, cancelling,
  malformed-output)
- clock: MockClock for deterministic timestamps and durations
- executor: PipelineExecutor wired to the three above

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from pipeworks.core.store import PipelineDB, PipelineStore
from pipeworks.engine.clock import MockClock
from pipeworks.engine.executor import PipelineExecutor
from pipeworks.plugins.manager import NodeRegistry
from tests.helpers.pipelines import START, HelperNodesPlugin

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Store and engine fixtures
# =============================================================================


@pytest.fixture
def store() -> Iterator[PipelineStore]:
    db = PipelineDB.in_memory()
    yield PipelineStore(db)
    db.close()


@pytest.fixture
def registry() -> NodeRegistry:
    registry = NodeRegistry()
    registry.register_builtin_nodes()
    registry.register(HelperNodesPlugin())
    return registry


@pytest.fixture
def clock() -> MockClock:
    return MockClock(start=100.0, now=START)


@pytest.fixture
def executor(store: PipelineStore, registry: NodeRegistry, clock: MockClock) -> PipelineExecutor:
    return PipelineExecutor(store, registry, clock=clock)

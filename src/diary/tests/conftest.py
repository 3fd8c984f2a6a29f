"""Shared fixtures for cycle diary tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.diary.config_loader import TrackerConfig, load_tracker_config
from src.diary.cycle_tracker import CycleTracker
from src.diary.storage import InMemoryKeyValueStore

# Fixed "today" for every tracker built by these fixtures
TEST_DATE = date(2026, 2, 23)


def days_ago(n: int) -> date:
    return TEST_DATE - timedelta(days=n)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tracker_config() -> TrackerConfig:
    """Load the real tracker config for tests."""
    return load_tracker_config()


# ---------------------------------------------------------------------------
# Store / tracker fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def make_tracker(store: InMemoryKeyValueStore, tracker_config: TrackerConfig):
    """Factory building trackers over the shared store, pinned to TEST_DATE."""

    def _make(clock_date: date = TEST_DATE) -> CycleTracker:
        return CycleTracker(store, config=tracker_config, clock=lambda: clock_date)

    return _make


@pytest.fixture
def tracker(make_tracker) -> CycleTracker:
    return make_tracker()

"""Cycle diary core.

This package stores recorded menstrual cycles and per-day annotations,
derives an average cycle length, and predicts the next period start.

Core modules:
    models        — Cycle, DayAnnotation, Symptom
    dates         — Calendar-date normalization and month-grid helpers
    storage       — KeyValueStore ABC with in-memory and JSON-file backends
    codec         — Payload (de)serialization with pydantic validation
    config_loader — Load/validate/hot-reload tracker_config.yaml
    cycle_tracker — CycleTracker, the owned diary state object
"""

from src.diary.config_loader import TrackerConfig, get_tracker_config
from src.diary.cycle_tracker import CycleTracker
from src.diary.models import Cycle, DayAnnotation, Symptom
from src.diary.storage import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

__all__ = [
    "CycleTracker",
    "Cycle",
    "DayAnnotation",
    "Symptom",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "TrackerConfig",
    "get_tracker_config",
]

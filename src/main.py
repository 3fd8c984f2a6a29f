"""Cycle diary entry point: logging setup and tracker construction.

Usage::

    from src.main import configure_logging, create_tracker

    configure_logging()
    tracker = create_tracker()
"""

from __future__ import annotations

import logging
import sys

from src.config import Settings, get_settings
from src.diary.config_loader import TrackerConfig, get_tracker_config
from src.diary.cycle_tracker import CycleTracker
from src.diary.storage import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

logger = logging.getLogger("cycle_diary")


# ---------- Logging ----------

def configure_logging(settings: Settings | None = None) -> None:
    s = settings or get_settings()
    logging.basicConfig(
        level=logging.DEBUG if s.debug else s.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ---------- Tracker factory ----------

def create_store(settings: Settings | None = None) -> KeyValueStore:
    s = settings or get_settings()
    if s.data_file is None:
        logger.info("No data file configured; diary is kept in memory")
        return InMemoryKeyValueStore()
    logger.info("Using diary data file %s", s.data_file)
    return JsonFileKeyValueStore(s.data_file)


def create_tracker(
    settings: Settings | None = None,
    config: TrackerConfig | None = None,
    store: KeyValueStore | None = None,
) -> CycleTracker:
    """Build a CycleTracker wired to the configured store.

    Seeds demo cycles into an empty diary when ``seed_demo_data`` is set.
    """
    s = settings or get_settings()
    tracker = CycleTracker(
        store if store is not None else create_store(s),
        config=config or get_tracker_config(),
    )
    if s.seed_demo_data:
        tracker.seed_if_empty()
    logger.info(
        "Starting %s v%s [%s] with %d cycle(s)",
        s.app_name,
        s.app_version,
        s.environment,
        len(tracker.cycles),
    )
    return tracker

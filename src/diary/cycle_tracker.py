"""Cycle diary state: recorded cycles, day annotations, and predictions.

``CycleTracker`` is the single owner of diary state.  Views read it through
query methods and change it through command methods; every command persists
the affected collection and then notifies subscribers.

Prediction is calendar-only: the average of the intervals between
consecutive recorded period starts, truncated and clamped to the configured
range, added to the most recent start.

Stored data is best-effort.  A missing or corrupt payload loads as empty
state and a failed write is logged; neither is raised to the caller.
"""

from __future__ import annotations

import logging
import statistics
import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date, datetime
from types import MappingProxyType
from uuid import UUID

from src.diary import codec
from src.diary.config_loader import TrackerConfig, get_tracker_config
from src.diary.dates import add_days, days_between, normalize, today
from src.diary.models import Cycle, DayAnnotation, Symptom
from src.diary.storage import KeyValueStore

logger = logging.getLogger("cycle_diary.diary.cycle_tracker")

Listener = Callable[["CycleTracker"], None]


class CycleTracker:
    """Own the cycle list and the date → annotation map.

    Usage::

        tracker = CycleTracker(InMemoryKeyValueStore())
        tracker.record_period(date(2026, 2, 1))
        tracker.toggle_symptom(Symptom.cramps, date(2026, 2, 1))
        print(tracker.predicted_next_period_start())
        print(tracker.days_until_next_period())
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: TrackerConfig | None = None,
        clock: Callable[[], date] = today,
    ) -> None:
        self._store = store
        self._config = config or get_tracker_config()
        self._clock = clock
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

        self._cycles: list[Cycle] = []
        self._annotations: dict[date, DayAnnotation] = {}
        self._default_length = self._config.cycle_length.default_days
        self.reload()

    # ------------------------------------------------------------------
    # Loading / persistence
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Re-read all state from the store, falling back to empty on bad data."""
        keys = self._config.storage
        with self._lock:
            cycles = codec.decode_cycles(self._store.get(keys.cycles_key))
            if not cycles.ok:
                logger.warning("Discarding stored cycles: %s", cycles.error)
            annotations = codec.decode_annotations(self._store.get(keys.annotations_key))
            if not annotations.ok:
                logger.warning("Discarding stored annotations: %s", annotations.error)
            default = codec.decode_default_length(self._store.get(keys.default_length_key))
            if not default.ok:
                logger.warning("Ignoring stored default cycle length: %s", default.error)

            self._cycles = cycles.value
            self._annotations = annotations.value
            self._default_length = (
                default.value
                if default.value is not None
                else self._config.cycle_length.default_days
            )
        logger.debug(
            "Loaded %d cycle(s) and %d annotation(s)",
            len(self._cycles),
            len(self._annotations),
        )

    def _write(self, key: str, payload: bytes) -> None:
        try:
            self._store.set(key, payload)
        except OSError:
            logger.exception("Failed to persist key %r; keeping in-memory state", key)

    def _save_cycles(self) -> None:
        self._write(self._config.storage.cycles_key, codec.encode_cycles(self._cycles))

    def _save_annotations(self) -> None:
        self._write(
            self._config.storage.annotations_key,
            codec.encode_annotations(self._annotations),
        )

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` to be called after every change.

        Returns:
            A callable that removes the listener.  Calling it twice is harmless.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(self)
            except Exception:
                logger.exception("Change listener %r raised", listener)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def cycles(self) -> tuple[Cycle, ...]:
        """Recorded cycles, most recently recorded first."""
        with self._lock:
            return tuple(self._cycles)

    @property
    def annotations(self) -> Mapping[date, DayAnnotation]:
        with self._lock:
            return MappingProxyType(dict(self._annotations))

    @property
    def default_average_cycle_length_days(self) -> int:
        with self._lock:
            return self._default_length

    def annotation(self, day: date | datetime) -> DayAnnotation | None:
        key = normalize(day)
        with self._lock:
            return self._annotations.get(key)

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    @property
    def average_cycle_length_days(self) -> int:
        """Truncated mean interval between consecutive period starts.

        Non-positive intervals (duplicate or out-of-order starts) are ignored.
        With fewer than two cycles, or no positive interval, the user's
        default is returned.  The result is clamped to the configured range.
        """
        with self._lock:
            starts = sorted(c.start_date for c in self._cycles)
            default = self._default_length
        if len(starts) < 2:
            return default

        intervals = [
            (later - earlier).days
            for earlier, later in zip(starts, starts[1:])
            if (later - earlier).days > 0
        ]
        avg = int(statistics.mean(intervals)) if intervals else default
        return self._config.cycle_length.clamp(avg)

    def predicted_next_period_start(self, as_of: date | datetime | None = None) -> date:
        """Most recent period start plus the average cycle length.

        With no cycles recorded, ``as_of`` (default today) plus the user's
        default length.
        """
        with self._lock:
            if not self._cycles:
                base = normalize(as_of) if as_of is not None else self._clock()
                return add_days(base, self._default_length)
            most_recent = max(c.start_date for c in self._cycles)
            return add_days(most_recent, self.average_cycle_length_days)

    def days_until_next_period(self, as_of: date | datetime | None = None) -> int:
        """Days from ``as_of`` (default today) to the predicted start.

        Negative once the predicted date has passed without a new period.
        """
        base = normalize(as_of) if as_of is not None else self._clock()
        return days_between(base, self.predicted_next_period_start(as_of=base))

    # ------------------------------------------------------------------
    # Cycle commands
    # ------------------------------------------------------------------

    def record_period(self, day: date | datetime | None = None) -> Cycle:
        """Start a new cycle on ``day`` (default today) and flag it as period day 1.

        Recording twice on the same day creates two cycles.
        """
        start = normalize(day) if day is not None else self._clock()
        with self._lock:
            if any(c.start_date == start for c in self._cycles):
                logger.warning("A cycle already starts on %s; recording another", start)
            cycle = Cycle(start_date=start)
            self._cycles.insert(0, cycle)
            self._set_period_day(1, start)
            self._save_cycles()
        logger.info("Recorded period starting %s (cycle %s)", start, cycle.id)
        self._notify()
        return cycle

    def set_end_date(self, cycle_id: UUID, end_date: date | datetime) -> bool:
        """Set the last bleeding day of a cycle.

        Returns:
            True if the cycle was found and updated, False for an unknown id.
        """
        end = normalize(end_date)
        with self._lock:
            index = next(
                (i for i, c in enumerate(self._cycles) if c.id == cycle_id), None
            )
            if index is None:
                logger.debug("set_end_date: no cycle with id %s", cycle_id)
                return False
            cycle = self._cycles[index]
            if end < cycle.start_date:
                logger.warning(
                    "End date %s precedes start %s for cycle %s",
                    end,
                    cycle.start_date,
                    cycle_id,
                )
            self._cycles[index] = replace(cycle, end_date=end)
            self._save_cycles()
        self._notify()
        return True

    def set_default_average_cycle_length(self, days: int) -> None:
        """Change the fallback cycle length used when history is too short.

        Raises:
            ValueError: If ``days`` is not a positive integer.
        """
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise ValueError(f"default cycle length must be a positive integer, got {days!r}")
        with self._lock:
            self._default_length = days
            self._write(
                self._config.storage.default_length_key,
                codec.encode_default_length(days),
            )
        self._notify()

    def seed_if_empty(self, as_of: date | datetime | None = None) -> bool:
        """Populate an empty diary with demo cycles at the configured offsets.

        Returns:
            True if demo cycles were added.
        """
        base = normalize(as_of) if as_of is not None else self._clock()
        with self._lock:
            if self._cycles:
                return False
            starts = [add_days(base, offset) for offset in self._config.seed.offsets_days]
            self._cycles = [Cycle(start_date=s) for s in sorted(starts, reverse=True)]
            self._save_cycles()
        logger.info("Seeded %d demo cycle(s)", len(starts))
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Day annotation commands
    # ------------------------------------------------------------------

    def set_period_day(self, index: int | None, day: date | datetime) -> None:
        """Flag ``day`` as day ``index`` of a period; None clears the flag."""
        with self._lock:
            self._set_period_day(index, normalize(day))
        self._notify()

    def toggle_symptom(self, symptom: Symptom, day: date | datetime) -> None:
        """Add ``symptom`` to ``day`` if absent, remove it if present."""
        key = normalize(day)
        with self._lock:
            current = self._annotations.get(key) or DayAnnotation()
            self._put_annotation(key, current.toggled(symptom))
        self._notify()

    def _set_period_day(self, index: int | None, key: date) -> None:
        current = self._annotations.get(key) or DayAnnotation()
        updated = DayAnnotation(period_day_index=index, symptoms=current.symptoms)
        self._put_annotation(key, updated)

    def _put_annotation(self, key: date, annotation: DayAnnotation) -> None:
        if annotation.is_empty:
            self._annotations.pop(key, None)
        else:
            self._annotations[key] = annotation
        self._save_annotations()

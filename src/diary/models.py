"""Canonical domain models for the cycle diary.

``Cycle`` and ``DayAnnotation`` are independent collections: cycles are keyed
by id, annotations by calendar date.  A period-day index on an annotation is
not a reference into any cycle and may drift from actual cycle boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from uuid import UUID, uuid4


class Symptom(str, Enum):
    cramps = "cramps"
    headache = "headache"
    mood = "mood"
    bloating = "bloating"
    acne = "acne"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Symptom.cramps: "Cramps",
    Symptom.headache: "Headache",
    Symptom.mood: "Mood",
    Symptom.bloating: "Bloating",
    Symptom.acne: "Acne",
}


@dataclass(frozen=True)
class Cycle:
    """A single recorded menstrual cycle.

    Attributes:
        start_date: First day of the period (calendar date).
        end_date:   Last day of bleeding, if the user set one.  Not validated
                    against ``start_date``.
        id:         Opaque unique identifier.
    """

    start_date: date
    end_date: date | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def length_in_days(self) -> int | None:
        """Whole days from start to end; None while the cycle is open."""
        if self.end_date is None:
            return None
        return (self.end_date - self.start_date).days


@dataclass(frozen=True)
class DayAnnotation:
    """Per-day diary entry.

    Attributes:
        period_day_index: 1-based day within a period, or None when the day
                          is not flagged as a period day.
        symptoms:         Logged symptoms, in the order they were added.  Any
                          iterable is accepted and stored as a tuple.
    """

    period_day_index: int | None = None
    symptoms: tuple[Symptom, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "symptoms", tuple(self.symptoms))

    @property
    def is_empty(self) -> bool:
        return self.period_day_index is None and not self.symptoms

    def has_symptom(self, symptom: Symptom) -> bool:
        return symptom in self.symptoms

    def toggled(self, symptom: Symptom) -> DayAnnotation:
        """Return a copy with ``symptom`` removed if present, else appended."""
        if symptom in self.symptoms:
            symptoms = tuple(s for s in self.symptoms if s != symptom)
        else:
            symptoms = (*self.symptoms, symptom)
        return DayAnnotation(period_day_index=self.period_day_index, symptoms=symptoms)

"""Serialization of diary collections to and from store payloads.

Payload layouts (JSON, UTF-8)::

    cycles:       [{"id": "<uuid>", "startDate": "2026-02-01", "endDate": "2026-02-05"}]
    annotations:  {"2026-02-01": {"periodDayIndex": 1, "symptoms": ["cramps"]}}
    setting:      b"28"

Dates are written as plain calendar dates.  Older payloads keyed by full
ISO-8601 instants (``2026-01-31T23:00:00Z``) are still accepted and mapped to
the local calendar date of that instant.

Decoders never raise on bad data.  They return a ``DecodeResult`` whose
``error`` describes what went wrong and whose ``value`` is the empty fallback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from src.diary.dates import normalize
from src.diary.models import Cycle, DayAnnotation, Symptom

logger = logging.getLogger("cycle_diary.diary.codec")

T = TypeVar("T")


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of decoding one stored payload.

    Attributes:
        value: Decoded value, or the empty fallback on failure.
        error: Human-readable failure reason; None on success.
    """

    value: T
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_calendar_date(value: Any) -> date:
    """Parse a stored date: ``YYYY-MM-DD`` or a full ISO-8601 timestamp.

    Raises:
        ValueError: If the value is not a recognisable date string.
    """
    if isinstance(value, (date, datetime)):
        return normalize(value)
    if not isinstance(value, str):
        raise ValueError(f"expected a date string, got {type(value).__name__}")
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return normalize(datetime.fromisoformat(text.replace("Z", "+00:00")))


# ---------------------------------------------------------------------------
# Payload schemas
# ---------------------------------------------------------------------------


class PayloadBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CyclePayload(PayloadBase):
    id: UUID
    start_date: date = Field(alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if value is None:
            return None
        return parse_calendar_date(value)

    @classmethod
    def from_cycle(cls, cycle: Cycle) -> CyclePayload:
        return cls(id=cycle.id, start_date=cycle.start_date, end_date=cycle.end_date)

    def to_cycle(self) -> Cycle:
        return Cycle(id=self.id, start_date=self.start_date, end_date=self.end_date)


class DayAnnotationPayload(PayloadBase):
    period_day_index: int | None = Field(default=None, alias="periodDayIndex")
    symptoms: list[Symptom] = Field(default_factory=list)

    @field_validator("symptoms")
    @classmethod
    def _dedupe(cls, value: list[Symptom]) -> list[Symptom]:
        return list(dict.fromkeys(value))

    @classmethod
    def from_annotation(cls, annotation: DayAnnotation) -> DayAnnotationPayload:
        return cls(
            period_day_index=annotation.period_day_index,
            symptoms=list(annotation.symptoms),
        )

    def to_annotation(self) -> DayAnnotation:
        return DayAnnotation(
            period_day_index=self.period_day_index, symptoms=list(self.symptoms)
        )


_CYCLES_ADAPTER = TypeAdapter(list[CyclePayload])
_ANNOTATIONS_ADAPTER = TypeAdapter(dict[str, DayAnnotationPayload])


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


def encode_cycles(cycles: list[Cycle]) -> bytes:
    payloads = [CyclePayload.from_cycle(c) for c in cycles]
    return _CYCLES_ADAPTER.dump_json(payloads, by_alias=True, exclude_none=True)


def decode_cycles(payload: bytes | None) -> DecodeResult[list[Cycle]]:
    """Decode the stored cycle list, preserving stored order."""
    if payload is None:
        return DecodeResult([])
    try:
        payloads = _CYCLES_ADAPTER.validate_json(payload)
    except ValidationError as exc:
        return DecodeResult([], error=f"invalid cycles payload: {exc.error_count()} error(s)")
    return DecodeResult([p.to_cycle() for p in payloads])


# ---------------------------------------------------------------------------
# Day annotations
# ---------------------------------------------------------------------------


def encode_annotations(annotations: dict[date, DayAnnotation]) -> bytes:
    payloads = {
        d.isoformat(): DayAnnotationPayload.from_annotation(a)
        for d, a in sorted(annotations.items())
        if not a.is_empty
    }
    return _ANNOTATIONS_ADAPTER.dump_json(payloads, by_alias=True, exclude_none=True)


def decode_annotations(payload: bytes | None) -> DecodeResult[dict[date, DayAnnotation]]:
    """Decode the stored annotation map.

    Keys that do not parse as dates are skipped.  Empty annotations are
    dropped.  When two stored instants fall on the same local date, the
    later key in sort order wins.
    """
    if payload is None:
        return DecodeResult({})
    try:
        raw = _ANNOTATIONS_ADAPTER.validate_json(payload)
    except ValidationError as exc:
        return DecodeResult(
            {}, error=f"invalid annotations payload: {exc.error_count()} error(s)"
        )

    result: dict[date, DayAnnotation] = {}
    for key in sorted(raw):
        try:
            day = parse_calendar_date(key)
        except ValueError:
            logger.warning("Skipping annotation with unparseable date key %r", key)
            continue
        annotation = raw[key].to_annotation()
        if annotation.is_empty:
            continue
        if day in result:
            logger.warning("Annotation key %r collides with an existing entry for %s", key, day)
        result[day] = annotation
    return DecodeResult(result)


# ---------------------------------------------------------------------------
# Default cycle length setting
# ---------------------------------------------------------------------------


def encode_default_length(days: int) -> bytes:
    return str(int(days)).encode("ascii")


def decode_default_length(payload: bytes | None) -> DecodeResult[int | None]:
    if payload is None:
        return DecodeResult(None)
    try:
        days = int(payload.decode("ascii").strip())
    except (UnicodeDecodeError, ValueError):
        return DecodeResult(None, error=f"invalid default length payload: {payload[:20]!r}")
    if days <= 0:
        return DecodeResult(None, error=f"default length must be positive, got {days}")
    return DecodeResult(days)

"""Tests for domain models and calendar-date helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from src.diary import dates
from src.diary.models import Cycle, DayAnnotation, Symptom


class TestSymptom:
    def test_identifiers_are_stable(self) -> None:
        assert [s.value for s in Symptom] == ["cramps", "headache", "mood", "bloating", "acne"]

    def test_display_names(self) -> None:
        assert Symptom.cramps.display_name == "Cramps"
        assert Symptom.bloating.display_name == "Bloating"
        assert all(s.display_name for s in Symptom)


class TestCycle:
    def test_open_cycle_has_no_length(self) -> None:
        assert Cycle(start_date=date(2026, 2, 1)).length_in_days is None

    def test_length_in_days(self) -> None:
        cycle = Cycle(start_date=date(2026, 2, 1), end_date=date(2026, 2, 6))
        assert cycle.length_in_days == 5

    def test_ids_are_unique(self) -> None:
        assert Cycle(start_date=date(2026, 2, 1)).id != Cycle(start_date=date(2026, 2, 1)).id


class TestDayAnnotation:
    def test_empty(self) -> None:
        assert DayAnnotation().is_empty
        assert not DayAnnotation(period_day_index=1).is_empty
        assert not DayAnnotation(symptoms=[Symptom.mood]).is_empty

    def test_toggled_returns_copy(self) -> None:
        original = DayAnnotation(2, [Symptom.mood])
        toggled = original.toggled(Symptom.acne)
        assert toggled == DayAnnotation(2, [Symptom.mood, Symptom.acne])
        assert original.symptoms == (Symptom.mood,)

    def test_toggled_removes_present(self) -> None:
        assert DayAnnotation(None, [Symptom.mood]).toggled(Symptom.mood).is_empty


class TestDates:
    def test_normalize_date_is_identity(self) -> None:
        assert dates.normalize(date(2026, 2, 1)) == date(2026, 2, 1)

    def test_normalize_naive_datetime_drops_time(self) -> None:
        assert dates.normalize(datetime(2026, 2, 1, 23, 59)) == date(2026, 2, 1)

    def test_normalize_aware_datetime_uses_local_zone(self) -> None:
        moment = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
        assert dates.normalize(moment) == moment.astimezone().date()

    def test_days_between(self) -> None:
        assert dates.days_between(date(2026, 2, 1), date(2026, 3, 1)) == 28
        assert dates.days_between(date(2026, 3, 1), date(2026, 2, 1)) == -28

    def test_days_between_ignores_time_of_day(self) -> None:
        assert dates.days_between(datetime(2026, 2, 1, 23, 0), datetime(2026, 2, 2, 1, 0)) == 1

    def test_is_same_day(self) -> None:
        assert dates.is_same_day(datetime(2026, 2, 1, 0, 1), date(2026, 2, 1))
        assert not dates.is_same_day(date(2026, 2, 1), date(2026, 2, 2))

    def test_add_days(self) -> None:
        assert dates.add_days(date(2026, 2, 20), 10) == date(2026, 3, 2)
        assert dates.add_days(datetime(2026, 2, 20, 8, 0), -20) == date(2026, 1, 31)

    def test_month_bounds(self) -> None:
        assert dates.start_of_month(date(2026, 2, 17)) == date(2026, 2, 1)
        assert dates.end_of_month(date(2026, 2, 17)) == date(2026, 2, 28)
        assert dates.end_of_month(date(2028, 2, 3)) == date(2028, 2, 29)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(date(2026, 2, 10), 28), (date(2028, 2, 10), 29), (date(2026, 12, 31), 31), (date(2026, 4, 1), 30)],
    )
    def test_days_in_month(self, value: date, expected: int) -> None:
        assert dates.days_in_month(value) == expected

    def test_first_weekday_offset_sunday_grid(self) -> None:
        # 1 Feb 2026 is a Sunday; 1 Mar 2026 is a Sunday; 1 Apr 2026 is a Wednesday
        assert dates.first_weekday_offset(date(2026, 2, 14)) == 0
        assert dates.first_weekday_offset(date(2026, 4, 30)) == 3

    def test_first_weekday_offset_monday_grid(self) -> None:
        assert dates.first_weekday_offset(date(2026, 2, 14), first_weekday=0) == 6
        assert dates.first_weekday_offset(date(2026, 4, 30), first_weekday=0) == 2

    def test_first_weekday_offset_rejects_bad_weekday(self) -> None:
        with pytest.raises(ValueError):
            dates.first_weekday_offset(date(2026, 2, 1), first_weekday=7)

    def test_today_is_a_date(self) -> None:
        assert abs(dates.today() - date.today()) <= timedelta(days=1)

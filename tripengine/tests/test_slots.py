from __future__ import annotations

from datetime import date

import pytest

from tripengine.catalog import Confidence, TimeSlot
from tripengine.itinerary.slots import (
    best_open_slot,
    is_closed_all_day,
    is_open_during_slot,
    provider_weekday,
    slot_score,
)
from tripengine.places.models import DayTime, OpeningHours, OpeningPeriod, Place

MONDAY = date(2024, 6, 3)
TUESDAY = date(2024, 6, 4)
FRIDAY = date(2024, 6, 7)
SUNDAY = date(2024, 6, 9)


def _period(day: int, open_at: str, close_at: str | None, close_day: int | None = None) -> OpeningPeriod:
    close = None
    if close_at is not None:
        close = DayTime(day=day if close_day is None else close_day, time=close_at)
    return OpeningPeriod(open=DayTime(day=day, time=open_at), close=close)


def _place(pid: str, types: list[str], hours: OpeningHours | None = None) -> Place:
    return Place(id=pid, name=pid, types=types, opening_hours=hours)


def test_provider_weekday_starts_on_sunday():
    assert provider_weekday(SUNDAY) == 0
    assert provider_weekday(MONDAY) == 1
    assert provider_weekday(FRIDAY) == 5


class TestStructuredPeriods:
    hours = OpeningHours(periods=[_period(1, "0900", "1700")])

    def test_open_slot(self):
        result = is_open_during_slot(self.hours, TimeSlot.morning, MONDAY)
        assert result.is_open
        assert result.confidence == Confidence.high

    def test_slot_after_closing(self):
        result = is_open_during_slot(self.hours, TimeSlot.evening, MONDAY)
        assert not result.is_open
        assert result.confidence == Confidence.high

    def test_no_period_that_day_is_closed(self):
        assert not is_open_during_slot(self.hours, TimeSlot.morning, TUESDAY).is_open

    def test_close_on_next_day_runs_past_midnight(self):
        hours = OpeningHours(periods=[_period(5, "2000", "0200", close_day=6)])
        assert is_open_during_slot(hours, TimeSlot.evening, FRIDAY).is_open
        assert not is_open_during_slot(hours, TimeSlot.morning, FRIDAY).is_open

    def test_close_before_open_same_day_wraps(self):
        hours = OpeningHours(periods=[_period(1, "2100", "0400")])
        assert is_open_during_slot(hours, TimeSlot.evening, MONDAY).is_open

    def test_missing_close_means_open_until_midnight(self):
        hours = OpeningHours(periods=[_period(1, "1500", None)])
        assert is_open_during_slot(hours, TimeSlot.evening, MONDAY).is_open
        assert not is_open_during_slot(hours, TimeSlot.morning, MONDAY).is_open


class TestWeekdayText:
    hours = OpeningHours(weekday_text=[
        "Monday: 9:00 AM – 5:00 PM",
        "Tuesday: Open 24 hours",
        "Sunday: Closed",
    ])

    def test_parsed_range_is_medium_confidence(self):
        morning = is_open_during_slot(self.hours, TimeSlot.morning, MONDAY)
        evening = is_open_during_slot(self.hours, TimeSlot.evening, MONDAY)
        assert morning.is_open and morning.confidence == Confidence.medium
        assert not evening.is_open and evening.confidence == Confidence.medium

    def test_open_24_hours(self):
        assert is_open_during_slot(self.hours, TimeSlot.evening, TUESDAY).is_open

    def test_closed_keyword(self):
        result = is_open_during_slot(self.hours, TimeSlot.morning, SUNDAY)
        assert not result.is_open
        assert result.confidence == Confidence.medium

    def test_unlisted_day_falls_back_to_assumed_open(self):
        result = is_open_during_slot(self.hours, TimeSlot.morning, FRIDAY)
        assert result.is_open
        assert result.confidence == Confidence.low


def test_open_now_flag_is_low_confidence():
    result = is_open_during_slot(OpeningHours(open_now=False), TimeSlot.morning, MONDAY)
    assert not result.is_open
    assert result.confidence == Confidence.low


def test_missing_hours_assumed_open():
    result = is_open_during_slot(None, TimeSlot.evening, MONDAY)
    assert result.is_open
    assert result.confidence == Confidence.low


def test_slot_score_scales_by_confidence():
    museum = _place("m", ["museum"])
    assert slot_score(museum, TimeSlot.morning, MONDAY) == pytest.approx(0.7)
    structured = _place("m", ["museum"], OpeningHours(periods=[_period(1, "0900", "1700")]))
    assert slot_score(structured, TimeSlot.morning, MONDAY) == pytest.approx(1.0)
    assert slot_score(structured, TimeSlot.evening, MONDAY) == 0.0


def test_best_open_slot():
    museum = _place("m", ["museum"], OpeningHours(periods=[_period(1, "0900", "1700")]))
    assert best_open_slot(museum, MONDAY) == TimeSlot.morning
    late_gallery = _place("g", ["museum"], OpeningHours(periods=[_period(1, "1800", "2200")]))
    assert best_open_slot(late_gallery, MONDAY) == TimeSlot.evening
    assert best_open_slot(museum, TUESDAY) is None


def test_is_closed_all_day():
    museum = _place("m", ["museum"], OpeningHours(periods=[_period(1, "0900", "1700")]))
    assert not is_closed_all_day(museum, MONDAY)
    assert is_closed_all_day(museum, TUESDAY)
    assert not is_closed_all_day(_place("x", ["museum"]), TUESDAY)

from __future__ import annotations

import re
from datetime import date

from pydantic import BaseModel

from ..catalog import (
    CONFIDENCE_MULTIPLIERS,
    SLOT_ORDER,
    SLOT_WINDOWS,
    Confidence,
    TimeSlot,
    slot_appropriateness,
)
from ..places.models import OpeningHours, Place

MINUTES_PER_DAY = 24 * 60
_DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
_TIME_RANGE = re.compile(
    r"(\d{1,2}):?(\d{2})?\s*(AM|PM)?\s*[–-]\s*(\d{1,2}):?(\d{2})?\s*(AM|PM)?",
    re.IGNORECASE,
)


class SlotAvailability(BaseModel):
    is_open: bool
    confidence: Confidence


def provider_weekday(on: date) -> int:
    """Weekday index with 0 = Sunday."""
    return (on.weekday() + 1) % 7


def parse_hhmm(value: str) -> int:
    return int(value[:2]) * 60 + int(value[2:4])


def _to_minutes(hour: int, minute: int, meridiem: str | None) -> int:
    if meridiem == "PM" and hour != 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        hour = 0
    return hour * 60 + minute


def _overlaps(slot: TimeSlot, open_at: int, close_at: int) -> bool:
    window = SLOT_WINDOWS[slot]
    # A close at or before the open time runs past midnight
    if close_at <= open_at:
        close_at += MINUTES_PER_DAY
    return window.start < close_at and window.end > open_at


def _from_periods(hours: OpeningHours, slot: TimeSlot, weekday: int) -> SlotAvailability:
    todays = [p for p in hours.periods if p.open.day == weekday]
    if not todays:
        return SlotAvailability(is_open=False, confidence=Confidence.high)
    for period in todays:
        open_at = parse_hhmm(period.open.time)
        if period.close is None:
            close_at = MINUTES_PER_DAY
        else:
            close_at = parse_hhmm(period.close.time)
            if period.close.day != period.open.day:
                close_at += MINUTES_PER_DAY
        if _overlaps(slot, open_at, close_at):
            return SlotAvailability(is_open=True, confidence=Confidence.high)
    return SlotAvailability(is_open=False, confidence=Confidence.high)


def _from_weekday_text(hours: OpeningHours, slot: TimeSlot, weekday: int) -> SlotAvailability | None:
    day_name = _DAY_NAMES[weekday]
    line = next((t for t in hours.weekday_text if t.strip().lower().startswith(day_name)), None)
    if line is None:
        return None
    text = line.lower()
    if "closed" in text:
        return SlotAvailability(is_open=False, confidence=Confidence.medium)
    if "open 24 hours" in text:
        return SlotAvailability(is_open=True, confidence=Confidence.medium)
    match = _TIME_RANGE.search(line)
    if not match:
        return None
    open_h, open_m, open_ampm, close_h, close_m, close_ampm = match.groups()
    open_at = _to_minutes(int(open_h), int(open_m or 0), open_ampm and open_ampm.upper())
    close_at = _to_minutes(int(close_h), int(close_m or 0), close_ampm and close_ampm.upper())
    return SlotAvailability(is_open=_overlaps(slot, open_at, close_at), confidence=Confidence.medium)


def is_open_during_slot(hours: OpeningHours | None, slot: TimeSlot, on: date) -> SlotAvailability:
    """
    Resolve whether a place is open during ``slot`` on ``on``.

    Structured periods win (high confidence), then the free-text weekday
    schedule (medium), then the single open-now flag (low). With no usable
    data the place is assumed open at low confidence.
    """
    if hours is None:
        return SlotAvailability(is_open=True, confidence=Confidence.low)

    weekday = provider_weekday(on)
    if hours.periods:
        return _from_periods(hours, slot, weekday)
    if hours.weekday_text:
        resolved = _from_weekday_text(hours, slot, weekday)
        if resolved is not None:
            return resolved
    if hours.open_now is not None:
        return SlotAvailability(is_open=hours.open_now, confidence=Confidence.low)
    return SlotAvailability(is_open=True, confidence=Confidence.low)


def slot_score(place: Place, slot: TimeSlot, on: date) -> float:
    """Category fit for the slot scaled by hours confidence; 0 when confirmed closed."""
    availability = is_open_during_slot(place.opening_hours, slot, on)
    if not availability.is_open:
        return 0.0
    return slot_appropriateness(place.category, slot) * CONFIDENCE_MULTIPLIERS[availability.confidence]


def best_open_slot(place: Place, on: date) -> TimeSlot | None:
    """Highest-scoring slot in which the place is not closed, or None if it is closed all day."""
    best: TimeSlot | None = None
    best_score = 0.0
    for slot in SLOT_ORDER:
        score = slot_score(place, slot, on)
        if score > best_score:
            best, best_score = slot, score
    return best


def is_closed_all_day(place: Place, on: date) -> bool:
    return all(not is_open_during_slot(place.opening_hours, s, on).is_open for s in SLOT_ORDER)

from __future__ import annotations

import logging
import math
import uuid
from datetime import date

from ..catalog import (
    PACE_PROFILES,
    SLOT_ORDER,
    SLOT_WINDOWS,
    WALKING_ROAD_FACTOR,
    Category,
    MealType,
    Pace,
    TimeSlot,
    visit_minutes,
)
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..places.models import Coordinates, Place
from ..places.search import dedupe_places
from ..travel.geo import haversine_km, walking_minutes
from .models import (
    DailySchedule,
    DayScheduleRequest,
    FreeTimeActivity,
    MealActivity,
    PlaceActivity,
    ScheduledActivity,
    ScheduleSummary,
    ScheduleValidation,
)
from .slots import best_open_slot, is_closed_all_day, is_open_during_slot

logger = logging.getLogger(__name__)

EARLIEST_REASONABLE_START = 7 * 60
LATEST_REASONABLE_END = 23 * 60
MAX_REASONABLE_GAP = 120


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    return f"{(minutes // 60) % 24:02d}:{minutes % 60:02d}"


def new_activity_id() -> str:
    return uuid.uuid4().hex[:12]


def optimize_place_order(places: list[Place], start: Coordinates | None = None) -> list[Place]:
    """
    Greedy nearest-neighbour ordering from ``start``.

    Places without coordinates sort after every located place. This is a
    heuristic over Haversine distances, not a shortest-tour solver.
    """
    remaining = list(places)
    ordered: list[Place] = []
    current = start
    while remaining:
        if current is None:
            nearest = next((p for p in remaining if p.coordinates is not None), remaining[0])
        else:
            nearest = min(
                remaining,
                key=lambda p: haversine_km(current, p.coordinates) if p.coordinates else math.inf,
            )
        remaining.remove(nearest)
        ordered.append(nearest)
        current = nearest.coordinates or current
    return ordered


def group_by_time_preference(places: list[Place]) -> dict[TimeSlot, list[Place]]:
    buckets: dict[TimeSlot, list[Place]] = {slot: [] for slot in SLOT_ORDER}
    morning = buckets[TimeSlot.morning]
    afternoon = buckets[TimeSlot.afternoon]
    evening = buckets[TimeSlot.evening]

    for place in places:
        category = place.category
        if category == Category.nightlife:
            evening.append(place)
        elif category == Category.culture:
            morning.append(place)
        elif category == Category.nature:
            (morning if len(morning) <= len(afternoon) else afternoon).append(place)
        elif category == Category.food_drink:
            if len(evening) < 2:
                evening.append(place)
            elif len(afternoon) <= len(morning):
                afternoon.append(place)
            else:
                morning.append(place)
        elif category == Category.shopping:
            afternoon.append(place)
        else:
            smallest = min(SLOT_ORDER, key=lambda s: len(buckets[s]))
            buckets[smallest].append(place)
    return buckets


def _reassign_closed(
    buckets: dict[TimeSlot, list[Place]], on: date
) -> tuple[dict[TimeSlot, list[Place]], list[str]]:
    """Move places confirmed closed in their bucket to their best open slot, dropping the rest."""
    result: dict[TimeSlot, list[Place]] = {slot: [] for slot in SLOT_ORDER}
    moved: list[tuple[TimeSlot, Place]] = []
    dropped: list[str] = []
    for slot in SLOT_ORDER:
        for place in buckets[slot]:
            if is_open_during_slot(place.opening_hours, slot, on).is_open:
                result[slot].append(place)
                continue
            target = best_open_slot(place, on)
            if target is None:
                logger.debug("Dropping %s: no open slot on %s", place.id, on)
                dropped.append(place.id)
            else:
                moved.append((target, place))
    for target, place in moved:
        result[target].append(place)
    return result, dropped


class _DayClock:
    """Walks wall-clock time forward through one day, emitting scheduled activities."""

    def __init__(self, request: DayScheduleRequest, config: EngineConfig, scores: dict[str, float]):
        self.request = request
        self.config = config
        self.scores = scores
        self.favourites = set(request.favourited_ids)
        if request.custom_start_time:
            self.current = time_to_minutes(request.custom_start_time)
        else:
            self.current = SLOT_WINDOWS[TimeSlot.morning].start
        self.previous = request.start_location
        self.items: list[ScheduledActivity] = []
        self.travel_minutes = 0
        self.buffer_minutes = 0
        self.meals: list[MealType] = []
        self.spans: list[tuple[int, int]] = []
        self._slot_counts = {slot: 0 for slot in SLOT_ORDER}

    def _next_order(self, slot: TimeSlot) -> int:
        order = self._slot_counts[slot]
        self._slot_counts[slot] += 1
        return order

    def enter_slot(self, slot: TimeSlot) -> None:
        if slot != TimeSlot.morning:
            self.current = max(self.current, SLOT_WINDOWS[slot].start)

    def travel_to(self, place: Place) -> tuple[int, float]:
        if self.previous is None or place.coordinates is None:
            return 0, 0.0
        distance = haversine_km(self.previous, place.coordinates) * WALKING_ROAD_FACTOR
        return walking_minutes(self.previous, place.coordinates), round(distance, 2)

    def add_place(self, place: Place, slot: TimeSlot) -> None:
        travel, distance = self.travel_to(place)
        self.travel_minutes += travel
        self.current += travel

        duration = visit_minutes(place.category)
        start = minutes_to_time(self.current)
        self.spans.append((self.current, self.current + duration))
        self.current += duration
        end = minutes_to_time(self.current)

        activity = PlaceActivity(
            id=new_activity_id(),
            slot=slot,
            order_in_slot=self._next_order(slot),
            start_time=start,
            end_time=end,
            duration_minutes=duration,
            place=place,
            is_favourited=place.id in self.favourites,
            is_hidden_gem=place.is_hidden_gem or place.hidden_gem_score > 0.5,
            preference_score=self.scores.get(place.id),
            travel_minutes_from_previous=travel,
            distance_km_from_previous=distance,
        )
        self.items.append(ScheduledActivity(
            activity=activity,
            start_time=start,
            end_time=end,
            travel_time_from_previous=travel,
            distance_from_previous=distance,
        ))
        self.current += self.config.buffer_minutes
        self.buffer_minutes += self.config.buffer_minutes
        if place.coordinates is not None:
            self.previous = place.coordinates

    def add_meal(self, meal: MealType, slot: TimeSlot) -> None:
        anchor = SLOT_WINDOWS[slot].meal_anchor
        self.current = max(self.current, anchor if anchor is not None else self.current)
        start = minutes_to_time(self.current)
        self.spans.append((self.current, self.current + self.config.meal_minutes))
        self.current += self.config.meal_minutes
        end = minutes_to_time(self.current)

        activity = MealActivity(
            id=new_activity_id(),
            slot=slot,
            order_in_slot=self._next_order(slot),
            start_time=start,
            end_time=end,
            duration_minutes=self.config.meal_minutes,
            meal_type=meal,
        )
        self.items.append(ScheduledActivity(
            activity=activity,
            start_time=start,
            end_time=end,
            timing_notes=f"{meal.value.capitalize()} break",
        ))
        self.meals.append(meal)
        self.current += self.config.buffer_minutes
        self.buffer_minutes += self.config.buffer_minutes


def generate_daily_schedule(
    request: DayScheduleRequest,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    scores: dict[str, float] | None = None,
) -> DailySchedule:
    """
    Allocate places and meal breaks into one day's slots with explicit timings.

    ``request.places`` is expected in ranking order; favourites are pulled to
    the front before trimming to the pace target. With ``optimize_route`` set,
    stops are chained nearest-neighbour across slots, otherwise each slot keeps
    ranking order.
    """
    on = request.date
    candidates = dedupe_places(request.places)
    dropped = [p.id for p in candidates if is_closed_all_day(p, on)]
    candidates = [p for p in candidates if p.id not in dropped]

    target = request.max_activities or PACE_PROFILES[request.pace].target_activities
    favourites = set(request.favourited_ids)
    if len(candidates) > target:
        candidates = sorted(candidates, key=lambda p: p.id not in favourites)[:target]

    buckets, closed = _reassign_closed(group_by_time_preference(candidates), on)
    dropped.extend(closed)

    if request.optimize_route:
        anchor = request.start_location
        for slot in SLOT_ORDER:
            buckets[slot] = optimize_place_order(buckets[slot], anchor)
            located = [p for p in buckets[slot] if p.coordinates is not None]
            if located:
                anchor = located[-1].coordinates

    clock = _DayClock(request, config, scores or {})
    if request.custom_end_time:
        day_end = time_to_minutes(request.custom_end_time)
    else:
        day_end = SLOT_WINDOWS[TimeSlot.evening].end

    for slot in SLOT_ORDER:
        clock.enter_slot(slot)
        window = SLOT_WINDOWS[slot]
        if window.meal == MealType.lunch and request.include_lunch and (
            buckets[TimeSlot.afternoon] or buckets[TimeSlot.evening]
        ):
            clock.add_meal(MealType.lunch, slot)
        elif window.meal == MealType.dinner and request.include_dinner and buckets[TimeSlot.evening]:
            clock.add_meal(MealType.dinner, slot)

        slot_end = day_end if slot == TimeSlot.evening else window.end
        for place in buckets[slot]:
            arrival = clock.current + clock.travel_to(place)[0]
            if clock.current >= slot_end or arrival >= slot_end:
                logger.debug(
                    "Slot %s full at %s, skipping %s",
                    slot.value, minutes_to_time(clock.current), place.id,
                )
                break
            clock.add_place(place, slot)

    items = clock.items
    day_start = items[0].start_time if items else (request.custom_start_time or "09:00")
    day_finish = items[-1].end_time if items else (request.custom_end_time or "22:00")
    active_minutes = clock.spans[-1][1] - clock.spans[0][0] if clock.spans else 0

    return DailySchedule(
        date=on,
        city_name=request.city_name,
        activities=items,
        summary=ScheduleSummary(
            day_start=day_start,
            day_end=day_finish,
            total_active_hours=round(active_minutes / 60, 1),
            total_travel_minutes=clock.travel_minutes,
            total_buffer_minutes=clock.buffer_minutes,
            place_count=sum(1 for i in items if i.activity.type == "place"),
            meals_included=clock.meals,
        ),
        dropped_place_ids=dropped,
    )


def get_activity_count_for_pace(pace: Pace) -> dict[str, int]:
    profile = PACE_PROFILES[pace]
    return {
        "min": profile.min_activities,
        "max": profile.max_activities,
        "ideal": profile.target_activities,
    }


# -----------------------------------------------------------------------------
# Rendering & validation
# -----------------------------------------------------------------------------

def format_scheduled_activity(scheduled: ScheduledActivity) -> str:
    activity = scheduled.activity
    span = f"{scheduled.start_time}-{scheduled.end_time}"
    if isinstance(activity, PlaceActivity):
        walk = f" ({scheduled.travel_time_from_previous}min walk)" if scheduled.travel_time_from_previous > 0 else ""
        return f"{span}: {activity.place.name}{walk}"
    if isinstance(activity, MealActivity):
        return f"{span}: {activity.meal_type.value.capitalize()} break"
    if isinstance(activity, FreeTimeActivity):
        suffix = f" - {activity.suggestion}" if activity.suggestion else ""
        return f"{span}: Free time{suffix}"
    return f"{span}: {activity.notes or 'Travel'}"


def format_daily_schedule(schedule: DailySchedule) -> str:
    summary = schedule.summary
    lines = [
        f"{schedule.city_name} - {schedule.date.isoformat()}",
        f"{summary.day_start} - {summary.day_end} ({summary.total_active_hours}h)",
        "",
        *(f"  {format_scheduled_activity(a)}" for a in schedule.activities),
        "",
        f"{summary.place_count} places | {summary.total_travel_minutes}min walking",
    ]
    return "\n".join(lines)


def validate_schedule(schedule: DailySchedule) -> ScheduleValidation:
    """Advisory checks only; a schedule with issues is still usable."""
    issues: list[str] = []
    items = schedule.activities

    for current, following in zip(items, items[1:]):
        if time_to_minutes(current.end_time) > time_to_minutes(following.start_time):
            issues.append(
                f"Overlap: {current.activity.type} ends at {current.end_time} "
                f"but next starts at {following.start_time}"
            )

    if items and time_to_minutes(items[0].start_time) < EARLIEST_REASONABLE_START:
        issues.append(f"Day starts very early: {items[0].start_time}")
    if items and time_to_minutes(items[-1].end_time) > LATEST_REASONABLE_END:
        issues.append(f"Day ends very late: {items[-1].end_time}")

    for current, following in zip(items, items[1:]):
        gap = time_to_minutes(following.start_time) - time_to_minutes(current.end_time)
        if gap > MAX_REASONABLE_GAP:
            issues.append(f"Large gap ({gap}min) between {current.end_time} and {following.start_time}")

    return ScheduleValidation(is_valid=not issues, issues=issues)

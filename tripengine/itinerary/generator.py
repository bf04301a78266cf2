from __future__ import annotations

import logging
import uuid
from collections import Counter
from datetime import date, datetime, timedelta, timezone

from ..catalog import PACE_PROFILES, SLOT_ORDER, SLOT_WINDOWS, Category, Pace, TimeSlot, TravelMode
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..errors import InvalidItineraryInput
from ..places.models import Place
from ..places.search import CityPlacesService
from ..preferences.models import ScoredPlace, UserPreferences
from ..preferences.scoring import rank_places
from ..travel.models import TravelLocation
from ..travel.segments import TravelSegmentCalculator
from .models import (
    Activity,
    CityStop,
    DayScheduleRequest,
    FreeTimeActivity,
    Itinerary,
    ItineraryDay,
    ItineraryMetadata,
    ItineraryRequest,
    ItinerarySummary,
    PlaceActivity,
    TravelActivity,
)
from .schedule import generate_daily_schedule, minutes_to_time, new_activity_id, time_to_minutes

logger = logging.getLogger(__name__)

ARRIVAL_FREE_TIME_MINUTES = 180
LAST_MINUTE_OF_DAY = 24 * 60 - 1


def trip_length(start: date, end: date) -> int:
    return (end - start).days + 1


def validate_request(request: ItineraryRequest) -> None:
    if not request.cities:
        raise InvalidItineraryInput("An itinerary needs at least one city")
    if request.end_date < request.start_date:
        raise InvalidItineraryInput(
            f"End date {request.end_date} is before start date {request.start_date}"
        )


def rank_for_city(
    places: list[Place], preferences: UserPreferences, favourites: set[str]
) -> list[ScoredPlace]:
    """Favourited places first, then by combined score."""
    ranked = rank_places(places, preferences)
    return sorted(ranked, key=lambda s: s.place.id not in favourites)


def generate_day_summary(activities: list[Activity], city_name: str) -> str:
    visits = [a for a in activities if isinstance(a, PlaceActivity)]
    if not visits:
        return f"Free day to explore {city_name}"
    categories = list(dict.fromkeys(a.place.category for a in visits))
    if len(categories) == 1:
        return f"{city_name}: {categories[0].value.replace('_', ' ', 1)} exploration"
    if Category.culture in categories and Category.food_drink in categories:
        return f"{city_name}: Culture & cuisine"
    if Category.nature in categories:
        return f"{city_name}: Nature & discovery"
    return f"{city_name}: Mixed exploration"


def create_travel_day(
    day_number: int,
    on: date,
    from_city: CityStop,
    to_city: CityStop,
    segments: TravelSegmentCalculator,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> ItineraryDay:
    segment = segments.calculate_segment(
        TravelLocation(name=from_city.name, coordinates=from_city.coordinates),
        TravelLocation(name=to_city.name, coordinates=to_city.coordinates),
        TravelMode.driving,
        include_traffic=False,
    )
    depart = SLOT_WINDOWS[TimeSlot.morning].start
    arrive = depart + segment.base_duration_minutes
    travel = TravelActivity(
        id=new_activity_id(),
        slot=TimeSlot.morning,
        start_time=minutes_to_time(depart),
        end_time=minutes_to_time(min(arrive, LAST_MINUTE_OF_DAY)),
        duration_minutes=segment.base_duration_minutes,
        from_name=from_city.name,
        from_coordinates=from_city.coordinates,
        to_name=to_city.name,
        to_coordinates=to_city.coordinates,
        distance_km=segment.distance_km,
        mode=TravelMode.driving,
        notes=f"Drive from {from_city.name} to {to_city.name}",
    )

    # Free time only when the arrival leaves room before the evening window closes
    slots: dict[TimeSlot, list[Activity]] = {slot: [] for slot in SLOT_ORDER}
    slots[TimeSlot.morning].append(travel)
    settle = max(SLOT_WINDOWS[TimeSlot.afternoon].start, arrive + config.buffer_minutes)
    day_end = SLOT_WINDOWS[TimeSlot.evening].end
    if settle < day_end:
        finish = min(settle + ARRIVAL_FREE_TIME_MINUTES, day_end)
        slot = TimeSlot.afternoon if settle < SLOT_WINDOWS[TimeSlot.evening].start else TimeSlot.evening
        slots[slot].append(FreeTimeActivity(
            id=new_activity_id(),
            slot=slot,
            start_time=minutes_to_time(settle),
            end_time=minutes_to_time(finish),
            duration_minutes=finish - settle,
            suggestion=f"Settle in and explore {to_city.name} at your own pace",
        ))
    else:
        logger.debug(
            "%d-minute drive to %s leaves no free time", segment.base_duration_minutes, to_city.name
        )
    return ItineraryDay(
        day_number=day_number,
        date=on,
        city=to_city,
        is_travel_day=True,
        morning=slots[TimeSlot.morning],
        afternoon=slots[TimeSlot.afternoon],
        evening=slots[TimeSlot.evening],
        summary=f"Travel day: {from_city.name} → {to_city.name}",
    )


async def _city_candidates(
    city: CityStop,
    request: ItineraryRequest,
    places_service: CityPlacesService | None,
) -> list[Place]:
    if request.city_places is not None:
        for key in (city.id, city.name):
            if key and key in request.city_places:
                return request.city_places[key]
    if places_service is None:
        return []
    try:
        return await places_service.get_places(city.coordinates, city.name)
    except Exception:
        logger.warning("Fetching places for %s failed, scheduling it empty", city.name, exc_info=True)
        return []


async def generate_itinerary(
    request: ItineraryRequest,
    places_service: CityPlacesService | None = None,
    segments: TravelSegmentCalculator | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Itinerary:
    """
    Build a day-by-day itinerary for a multi-city trip.

    Candidate places come from ``request.city_places`` when given, otherwise
    they are fetched through ``places_service``; that fetch is the only await
    and cancelling the caller cancels it. A city whose fetch fails, or which
    has no candidates, still gets its days with empty slots. No place id is
    scheduled twice across the trip.
    """
    validate_request(request)
    segments = segments or TravelSegmentCalculator(config=config)
    preferences = request.preferences
    pace = request.pace or preferences.pace
    favourites = set(request.favourited_place_ids)
    themes = {t.day: t for t in request.day_themes}

    total_days = trip_length(request.start_date, request.end_date)
    used_ids: set[str] = set()
    ranked_by_city: dict[str, list[ScoredPlace]] = {}
    nights_used: Counter[int] = Counter()

    days: list[ItineraryDay] = []
    category_counts: Counter[Category] = Counter()
    total_activities = hidden_gems = favourited = 0
    driving_km = 0.0
    driving_minutes = 0

    city_index = 0
    day_number = 1
    on = request.start_date
    while day_number <= total_days and city_index < len(request.cities):
        city = request.cities[city_index]

        if nights_used[city_index] >= city.nights and city_index < len(request.cities) - 1:
            next_city = request.cities[city_index + 1]
            travel_day = create_travel_day(day_number, on, city, next_city, segments, config)
            leg = travel_day.morning[0]
            driving_km += leg.distance_km
            driving_minutes += leg.duration_minutes
            days.append(travel_day)
            city_index += 1
            day_number += 1
            on += timedelta(days=1)
            continue

        if city.key not in ranked_by_city:
            candidates = await _city_candidates(city, request, places_service)
            ranked_by_city[city.key] = rank_for_city(candidates, preferences, favourites)
        ranked = ranked_by_city[city.key]
        available = [s for s in ranked if s.place.id not in used_ids]

        schedule = generate_daily_schedule(
            DayScheduleRequest(
                date=on,
                city_name=city.name,
                places=[s.place for s in available],
                pace=pace,
                include_lunch=request.include_meals,
                include_dinner=request.include_meals,
                favourited_ids=sorted(favourites),
                optimize_route=False,
            ),
            config=config,
            scores={s.place.id: s.preference_score for s in available},
        )

        slots: dict[TimeSlot, list[Activity]] = {slot: [] for slot in SLOT_ORDER}
        for item in schedule.activities:
            activity = item.activity
            slots[activity.slot].append(activity)
            if isinstance(activity, PlaceActivity):
                used_ids.add(activity.place.id)
                total_activities += 1
                hidden_gems += activity.is_hidden_gem
                favourited += activity.is_favourited
                category_counts[activity.place.category] += 1

        all_activities = [a for slot in SLOT_ORDER for a in slots[slot]]
        if ranked:
            summary = generate_day_summary(all_activities, city.name)
        else:
            summary = f"Couldn't find places for {city.name}"
        theme = themes.get(day_number)
        days.append(ItineraryDay(
            day_number=day_number,
            date=on,
            city=city,
            is_travel_day=False,
            morning=slots[TimeSlot.morning],
            afternoon=slots[TimeSlot.afternoon],
            evening=slots[TimeSlot.evening],
            summary=summary,
            theme=theme.theme if theme else None,
            theme_icon=theme.icon if theme else None,
        ))
        nights_used[city_index] += 1
        day_number += 1
        on += timedelta(days=1)

    itinerary = Itinerary(
        id=f"itin-{uuid.uuid4().hex[:12]}",
        trip_id=request.trip_id,
        version=1,
        generated_at=datetime.now(timezone.utc),
        days=days,
        summary=ItinerarySummary(
            total_days=len(days),
            total_nights=sum(c.nights for c in request.cities),
            cities=[c.name for c in request.cities],
            total_activities=total_activities,
            hidden_gems_count=hidden_gems,
            favourited_count=favourited,
            total_driving_distance_km=round(driving_km),
            total_driving_minutes=driving_minutes,
            category_counts=dict(category_counts),
        ),
        metadata=ItineraryMetadata(
            pace=pace,
            prioritized_hidden_gems=preferences.prefers_hidden_gems,
            favourited_included=favourited,
        ),
    )
    logger.info(
        "Generated itinerary %s: %d days, %d activities across %d cities",
        itinerary.id, len(days), total_activities, len(request.cities),
    )
    return itinerary


async def regenerate_itinerary(
    previous: Itinerary,
    request: ItineraryRequest,
    places_service: CityPlacesService | None = None,
    segments: TravelSegmentCalculator | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> Itinerary:
    """Generate a replacement itinerary; ``previous`` is left untouched."""
    fresh = await generate_itinerary(request, places_service, segments, config)
    return fresh.model_copy(update={
        "id": previous.id,
        "trip_id": previous.trip_id or fresh.trip_id,
        "version": previous.version + 1,
    })


def calculate_slot_timing(
    activities: list[Activity],
    slot_start: str,
    buffer_minutes: int = DEFAULT_ENGINE_CONFIG.buffer_minutes,
) -> list[Activity]:
    """Return copies of ``activities`` laid end to end from ``slot_start`` with a buffer between."""
    current = time_to_minutes(slot_start)
    timed: list[Activity] = []
    for activity in activities:
        start = current
        current += activity.duration_minutes
        timed.append(activity.model_copy(update={
            "start_time": minutes_to_time(start),
            "end_time": minutes_to_time(current),
        }))
        current += buffer_minutes
    return timed


def is_day_fully_booked(day: ItineraryDay, pace: Pace) -> bool:
    visits = sum(1 for a in day.activities() if isinstance(a, PlaceActivity))
    return visits >= PACE_PROFILES[pace].max_activities

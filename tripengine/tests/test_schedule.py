from __future__ import annotations

from datetime import date

from tripengine.catalog import MealType, Pace, TimeSlot
from tripengine.itinerary.models import DayScheduleRequest
from tripengine.itinerary.schedule import (
    format_daily_schedule,
    generate_daily_schedule,
    get_activity_count_for_pace,
    group_by_time_preference,
    minutes_to_time,
    optimize_place_order,
    time_to_minutes,
    validate_schedule,
)
from tripengine.places.models import Coordinates, DayTime, OpeningHours, OpeningPeriod, Place

MONDAY = date(2024, 6, 3)


def _place(pid: str, types: list[str], lat: float | None = None, lng: float = 2.0, **kwargs) -> Place:
    coordinates = Coordinates(lat=lat, lng=lng) if lat is not None else None
    return Place(id=pid, name=pid.title(), types=types, coordinates=coordinates, **kwargs)


def _monday_hours(open_at: str, close_at: str) -> OpeningHours:
    return OpeningHours(periods=[
        OpeningPeriod(open=DayTime(day=1, time=open_at), close=DayTime(day=1, time=close_at))
    ])


def _request(places: list[Place], **kwargs) -> DayScheduleRequest:
    kwargs.setdefault("optimize_route", False)
    return DayScheduleRequest(date=MONDAY, city_name="Paris", places=places, **kwargs)


def test_time_helpers():
    assert time_to_minutes("09:30") == 570
    assert minutes_to_time(570) == "09:30"
    assert minutes_to_time(24 * 60 + 10) == "00:10"


def test_optimize_place_order_is_nearest_neighbour():
    a = _place("a", ["museum"], 48.0)
    b = _place("b", ["museum"], 48.1)
    c = _place("c", ["museum"], 48.05)
    nowhere = _place("nowhere", ["museum"])
    ordered = optimize_place_order([nowhere, b, c, a], Coordinates(lat=48.0, lng=2.0))
    assert [p.id for p in ordered] == ["a", "c", "b", "nowhere"]


def test_group_by_time_preference():
    places = [
        _place("club", ["night_club"]),
        _place("museum", ["museum"]),
        _place("r1", ["restaurant"]),
        _place("r2", ["restaurant"]),
        _place("r3", ["restaurant"]),
        _place("shop", ["clothing_store"]),
    ]
    buckets = group_by_time_preference(places)
    assert [p.id for p in buckets[TimeSlot.morning]] == ["museum"]
    assert [p.id for p in buckets[TimeSlot.afternoon]] == ["r2", "r3", "shop"]
    assert [p.id for p in buckets[TimeSlot.evening]] == ["club", "r1"]


class TestGenerateDailySchedule:
    def test_meals_anchor_and_slot_overflow(self):
        places = [
            _place("museum", ["museum"]),
            _place("bistro", ["restaurant"]),
            _place("club", ["bar"]),
        ]
        schedule = generate_daily_schedule(_request(places))

        kinds = [item.activity.type for item in schedule.activities]
        assert kinds == ["place", "meal", "meal", "place"]
        museum, lunch, dinner, bistro = schedule.activities
        assert (museum.start_time, museum.end_time) == ("09:00", "10:30")
        assert (lunch.start_time, lunch.end_time) == ("12:30", "13:30")
        assert (dinner.start_time, dinner.end_time) == ("19:30", "20:30")
        assert (bistro.start_time, bistro.end_time) == ("20:45", "21:45")
        assert schedule.summary.meals_included == [MealType.lunch, MealType.dinner]
        assert schedule.summary.place_count == 2
        assert schedule.summary.total_buffer_minutes == 60
        # The bar would start at 22:00, the end of the evening slot
        assert "club" not in {i.activity.place.id for i in schedule.activities if i.activity.type == "place"}

    def test_without_meals_evening_starts_at_slot_start(self):
        places = [_place("bistro", ["restaurant"]), _place("club", ["bar"])]
        schedule = generate_daily_schedule(
            _request(places, include_lunch=False, include_dinner=False)
        )
        assert [(i.start_time, i.end_time) for i in schedule.activities] == [
            ("18:00", "19:00"),
            ("19:15", "21:15"),
        ]
        assert all(i.activity.slot == TimeSlot.evening for i in schedule.activities)
        assert schedule.summary.meals_included == []

    def test_morning_only_day_has_no_meals(self):
        schedule = generate_daily_schedule(_request([_place("museum", ["museum"])]))
        assert [i.activity.type for i in schedule.activities] == ["place"]

    def test_pace_target_keeps_favourites(self):
        places = [_place(f"m{i}", ["museum"]) for i in range(6)]
        schedule = generate_daily_schedule(
            _request(places, pace=Pace.relaxed, favourited_ids=["m5"])
        )
        scheduled = [i.activity for i in schedule.activities if i.activity.type == "place"]
        assert {a.place.id for a in scheduled} == {"m5", "m0"}
        assert next(a for a in scheduled if a.place.id == "m5").is_favourited

    def test_max_activities_overrides_pace(self):
        places = [_place(f"m{i}", ["museum"]) for i in range(6)]
        schedule = generate_daily_schedule(_request(places, max_activities=1))
        assert schedule.summary.place_count == 1

    def test_closed_all_day_is_dropped(self):
        closed = _place("closed", ["museum"], opening_hours=OpeningHours(periods=[
            OpeningPeriod(open=DayTime(day=2, time="0900"), close=DayTime(day=2, time="1700"))
        ]))
        schedule = generate_daily_schedule(_request([closed, _place("open", ["museum"])]))
        assert schedule.dropped_place_ids == ["closed"]
        assert [i.activity.place.id for i in schedule.activities] == ["open"]

    def test_closed_in_bucket_moves_to_open_slot(self):
        late = _place("late", ["museum"], opening_hours=_monday_hours("1800", "2200"))
        schedule = generate_daily_schedule(
            _request([late], include_lunch=False, include_dinner=False)
        )
        (item,) = schedule.activities
        assert item.activity.slot == TimeSlot.evening
        assert item.start_time == "18:00"

    def test_walking_time_between_stops(self):
        a = _place("a", ["museum"], 48.0)
        b = _place("b", ["museum"], 48.009)
        schedule = generate_daily_schedule(_request(
            [b, a], optimize_route=True, start_location=Coordinates(lat=48.0, lng=2.0)
        ))
        first, second = schedule.activities
        assert first.activity.place.id == "a"
        assert first.travel_time_from_previous == 0
        assert second.travel_time_from_previous == 16
        assert second.distance_from_previous == 1.2
        assert second.start_time == "11:01"
        assert schedule.summary.total_travel_minutes == 16
        assert validate_schedule(schedule).is_valid

    def test_slot_activities_do_not_overlap(self):
        places = [_place(f"p{i}", types) for i, types in enumerate(
            [["museum"], ["park"], ["restaurant"], ["clothing_store"], ["bar"], ["spa"]]
        )]
        schedule = generate_daily_schedule(_request(places, pace=Pace.packed))
        times = [(time_to_minutes(i.start_time), time_to_minutes(i.end_time)) for i in schedule.activities]
        for (_, end), (start, _) in zip(times, times[1:]):
            assert end <= start

    def test_empty_day(self):
        schedule = generate_daily_schedule(_request([]))
        assert schedule.activities == []
        assert schedule.summary.day_start == "09:00"
        assert schedule.summary.day_end == "22:00"
        assert schedule.summary.total_active_hours == 0


def test_get_activity_count_for_pace():
    assert get_activity_count_for_pace(Pace.packed) == {"min": 5, "max": 8, "ideal": 6}


def test_validate_schedule_flags_early_start():
    schedule = generate_daily_schedule(
        _request([_place("museum", ["museum"])], custom_start_time="06:00")
    )
    result = validate_schedule(schedule)
    assert not result.is_valid
    assert result.issues == ["Day starts very early: 06:00"]


def test_format_daily_schedule():
    schedule = generate_daily_schedule(_request([_place("museum", ["museum"])]))
    text = format_daily_schedule(schedule)
    assert text.startswith("Paris - 2024-06-03")
    assert "09:00-10:30: Museum" in text

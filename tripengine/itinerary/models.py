from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..catalog import Category, MealType, Pace, TimeSlot, TravelMode
from ..places.models import Coordinates, Place
from ..preferences.models import UserPreferences


class _ActivityBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    slot: TimeSlot
    order_in_slot: int = Field(default=0, ge=0)
    start_time: str | None = Field(default=None, description="HH:MM")
    end_time: str | None = Field(default=None, description="HH:MM")
    duration_minutes: int = Field(..., ge=0)


class PlaceActivity(_ActivityBase):
    type: Literal["place"] = "place"
    place: Place
    is_favourited: bool = False
    is_hidden_gem: bool = False
    preference_score: float | None = None
    travel_minutes_from_previous: int = 0
    distance_km_from_previous: float = 0.0


class TravelActivity(_ActivityBase):
    type: Literal["travel"] = "travel"
    from_name: str
    from_coordinates: Coordinates
    to_name: str
    to_coordinates: Coordinates
    distance_km: float
    mode: TravelMode = TravelMode.driving
    notes: str | None = None


class MealActivity(_ActivityBase):
    type: Literal["meal"] = "meal"
    meal_type: MealType
    suggested_place: Place | None = None


class FreeTimeActivity(_ActivityBase):
    type: Literal["free_time"] = "free_time"
    suggestion: str | None = None


Activity = Annotated[
    Union[PlaceActivity, TravelActivity, MealActivity, FreeTimeActivity],
    Field(discriminator="type"),
]


class ScheduledActivity(BaseModel):
    activity: Activity
    start_time: str
    end_time: str
    travel_time_from_previous: int = 0
    distance_from_previous: float = 0.0
    timing_notes: str | None = None


class ScheduleSummary(BaseModel):
    day_start: str
    day_end: str
    total_active_hours: float
    total_travel_minutes: int
    total_buffer_minutes: int
    place_count: int
    meals_included: list[MealType] = Field(default_factory=list)


class DailySchedule(BaseModel):
    date: date
    city_name: str
    activities: list[ScheduledActivity]
    summary: ScheduleSummary
    dropped_place_ids: list[str] = Field(
        default_factory=list, description="Candidates left out because they are closed that day"
    )


class ScheduleValidation(BaseModel):
    is_valid: bool
    issues: list[str] = Field(default_factory=list)


class DayScheduleRequest(BaseModel):
    date: date
    city_name: str
    places: list[Place]
    pace: Pace = Pace.balanced
    start_location: Coordinates | None = None
    include_lunch: bool = True
    include_dinner: bool = True
    favourited_ids: list[str] = Field(default_factory=list)
    custom_start_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    custom_end_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    max_activities: int | None = Field(default=None, ge=1)
    optimize_route: bool = True


# ---------------------------------------------------------------------------
# Multi-day itinerary
# ---------------------------------------------------------------------------

class CityStop(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str = Field(..., min_length=1)
    coordinates: Coordinates
    nights: int = Field(..., ge=0)
    country: str | None = None

    @property
    def key(self) -> str:
        return self.id or self.name


class DayTheme(BaseModel):
    day: int = Field(..., ge=1)
    theme: str
    icon: str | None = None


class ItineraryDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_number: int
    date: date
    city: CityStop
    is_travel_day: bool = False
    morning: list[Activity] = Field(default_factory=list)
    afternoon: list[Activity] = Field(default_factory=list)
    evening: list[Activity] = Field(default_factory=list)
    summary: str
    theme: str | None = None
    theme_icon: str | None = None

    def activities(self) -> list[Activity]:
        return [*self.morning, *self.afternoon, *self.evening]


class ItinerarySummary(BaseModel):
    total_days: int
    total_nights: int
    cities: list[str]
    total_activities: int
    hidden_gems_count: int
    favourited_count: int
    total_driving_distance_km: int
    total_driving_minutes: int
    category_counts: dict[Category, int] = Field(default_factory=dict)


class ItineraryMetadata(BaseModel):
    pace: Pace
    prioritized_hidden_gems: bool
    favourited_included: int
    source: Literal["auto"] = "auto"


class Itinerary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    trip_id: str | None = None
    version: int = Field(default=1, ge=1)
    generated_at: datetime
    days: list[ItineraryDay]
    summary: ItinerarySummary
    metadata: ItineraryMetadata


class ItineraryRequest(BaseModel):
    trip_id: str | None = None
    start_date: date
    end_date: date
    cities: list[CityStop]
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    favourited_place_ids: list[str] = Field(default_factory=list)
    day_themes: list[DayTheme] = Field(default_factory=list)
    pace: Pace | None = Field(default=None, description="Overrides preferences.pace")
    include_meals: bool = True
    city_places: dict[str, list[Place]] | None = Field(
        default=None, description="Candidate places keyed by city id or name; fetched when absent"
    )


# ---------------------------------------------------------------------------
# Alternatives
# ---------------------------------------------------------------------------

class AlternativeReason(str, Enum):
    hidden_gem = "hidden_gem"
    similar = "similar"
    preference_match = "preference_match"
    highly_rated = "highly_rated"
    variety = "variety"


class AlternativePlace(BaseModel):
    place: Place
    preference_score: float
    slot_score: float
    combined_score: float
    reason: AlternativeReason
    is_same_category: bool
    is_hidden_gem: bool


class AlternativesMeta(BaseModel):
    total_candidates: int
    filtered_count: int
    current_category: Category | None = None


class AlternativesResult(BaseModel):
    similar: list[AlternativePlace] = Field(default_factory=list)
    variety: list[AlternativePlace] = Field(default_factory=list)
    all: list[AlternativePlace] = Field(default_factory=list)
    meta: AlternativesMeta


class AlternativesRequest(BaseModel):
    current_activity: PlaceActivity | None = None
    slot: TimeSlot
    on_date: date | None = None
    city_name: str
    city_coordinates: Coordinates
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    exclude_place_ids: list[str] = Field(default_factory=list)
    limit: int = Field(default=10, ge=1, le=50)
    places: list[Place] | None = Field(
        default=None, description="Candidate pool; fetched for the city when absent"
    )


class RegenerateRequest(BaseModel):
    previous: Itinerary
    request: ItineraryRequest

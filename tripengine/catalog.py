"""
Canonical domain tables shared by every engine component.

Every category, slot, pace, travel-mode and budget constant lives here so the
scorer, scheduler, travel calculator and clustering engine cannot drift apart.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    food_drink = "food_drink"
    culture = "culture"
    nature = "nature"
    nightlife = "nightlife"
    shopping = "shopping"
    activities = "activities"
    wellness = "wellness"
    services = "services"
    accommodation = "accommodation"
    other = "other"


class TimeSlot(str, Enum):
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"


class Pace(str, Enum):
    relaxed = "relaxed"
    balanced = "balanced"
    packed = "packed"


class BudgetLevel(str, Enum):
    budget = "budget"
    moderate = "moderate"
    comfort = "comfort"
    luxury = "luxury"


class TravelMode(str, Enum):
    driving = "driving"
    walking = "walking"
    transit = "transit"
    cycling = "cycling"


class TrafficLevel(str, Enum):
    light = "light"
    moderate = "moderate"
    heavy = "heavy"


class Confidence(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class MealType(str, Enum):
    lunch = "lunch"
    dinner = "dinner"


# ---------------------------------------------------------------------------
# Time slots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SlotWindow:
    start: int  # minutes from midnight
    end: int
    meal: MealType | None = None
    meal_anchor: int | None = None


SLOT_WINDOWS: dict[TimeSlot, SlotWindow] = {
    TimeSlot.morning: SlotWindow(start=9 * 60, end=12 * 60),
    TimeSlot.afternoon: SlotWindow(
        start=12 * 60, end=18 * 60, meal=MealType.lunch, meal_anchor=12 * 60 + 30
    ),
    TimeSlot.evening: SlotWindow(
        start=18 * 60, end=22 * 60, meal=MealType.dinner, meal_anchor=19 * 60 + 30
    ),
}

SLOT_ORDER: tuple[TimeSlot, ...] = (TimeSlot.morning, TimeSlot.afternoon, TimeSlot.evening)

CONFIDENCE_MULTIPLIERS: dict[Confidence, float] = {
    Confidence.high: 1.0,
    Confidence.medium: 0.9,
    Confidence.low: 0.7,
}

# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CategoryProfile:
    morning: float
    afternoon: float
    evening: float
    visit_minutes: int
    interests: tuple[str, ...] = ()

    def slot_fit(self, slot: TimeSlot) -> float:
        return getattr(self, slot.value)


CATEGORY_PROFILES: dict[Category, CategoryProfile] = {
    Category.food_drink: CategoryProfile(0.7, 0.9, 1.0, 60, ("food", "local_experiences")),
    Category.culture: CategoryProfile(
        1.0, 0.9, 0.3, 90, ("culture", "photography", "local_experiences")
    ),
    Category.nature: CategoryProfile(
        1.0, 0.8, 0.4, 120, ("nature", "adventure", "relaxation", "photography", "beach")
    ),
    Category.nightlife: CategoryProfile(0.0, 0.1, 1.0, 120, ("nightlife",)),
    Category.shopping: CategoryProfile(0.6, 1.0, 0.5, 60, ("shopping", "local_experiences")),
    Category.activities: CategoryProfile(
        0.9, 1.0, 0.5, 120, ("adventure", "photography", "local_experiences")
    ),
    Category.wellness: CategoryProfile(0.9, 0.8, 0.7, 90, ("relaxation",)),
    Category.services: CategoryProfile(0.8, 0.8, 0.3, 30),
    Category.accommodation: CategoryProfile(0.5, 0.7, 0.3, 30),
    Category.other: CategoryProfile(0.7, 0.7, 0.5, 60),
}

# Primary-category resolution order when a place maps to several categories
CATEGORY_PRIORITY: tuple[Category, ...] = (
    Category.food_drink,
    Category.nightlife,
    Category.culture,
    Category.nature,
    Category.activities,
    Category.shopping,
    Category.wellness,
    Category.accommodation,
    Category.services,
    Category.other,
)

VARIETY_CATEGORIES: tuple[Category, ...] = (
    Category.food_drink,
    Category.culture,
    Category.nature,
    Category.nightlife,
    Category.shopping,
    Category.activities,
    Category.wellness,
)


def slot_appropriateness(category: Category, slot: TimeSlot) -> float:
    return CATEGORY_PROFILES[category].slot_fit(slot)


def visit_minutes(category: Category) -> int:
    return CATEGORY_PROFILES[category].visit_minutes


# ---------------------------------------------------------------------------
# Pace
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PaceProfile:
    min_activities: int
    target_activities: int
    max_activities: int


PACE_PROFILES: dict[Pace, PaceProfile] = {
    Pace.relaxed: PaceProfile(2, 2, 3),
    Pace.balanced: PaceProfile(3, 4, 5),
    Pace.packed: PaceProfile(5, 6, 8),
}

# ---------------------------------------------------------------------------
# Travel
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModeProfile:
    speed_kmh: float
    road_factor: float
    traffic_sensitive: bool
    range_spread: float


WALKING_SPEED_KMH = 4.5
WALKING_ROAD_FACTOR = 1.2

MODE_PROFILES: dict[TravelMode, ModeProfile] = {
    TravelMode.driving: ModeProfile(60.0, 1.3, True, 1.6),
    TravelMode.walking: ModeProfile(WALKING_SPEED_KMH, WALKING_ROAD_FACTOR, False, 1.1),
    TravelMode.transit: ModeProfile(35.0, 1.4, True, 1.6),
    TravelMode.cycling: ModeProfile(15.0, 1.25, False, 1.1),
}

TRAFFIC_MULTIPLIERS: dict[TrafficLevel, float] = {
    TrafficLevel.light: 1.0,
    TrafficLevel.moderate: 1.25,
    TrafficLevel.heavy: 1.6,
}

# [start, end) hour windows on weekdays
WEEKDAY_PEAK_HOURS: tuple[tuple[int, int], ...] = ((7, 9), (17, 19))
WEEKDAY_SHOULDER_HOURS: tuple[tuple[int, int], ...] = ((6, 7), (9, 10), (16, 17), (19, 20))
# [start, end] inclusive hour window on weekends
WEEKEND_BUSY_HOURS: tuple[int, int] = (10, 18)

# Upper bounds (exclusive, km) for the distance-banded mode recommendation
MODE_RECOMMENDATION_BANDS: tuple[tuple[float, TravelMode], ...] = (
    (0.8, TravelMode.walking),
    (3.0, TravelMode.cycling),
    (10.0, TravelMode.transit),
)

# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BudgetRange:
    ideal: tuple[int, ...]
    acceptable: tuple[int, ...]


BUDGET_PRICE_RANGES: dict[BudgetLevel, BudgetRange] = {
    BudgetLevel.budget: BudgetRange(ideal=(1,), acceptable=(1, 2)),
    BudgetLevel.moderate: BudgetRange(ideal=(1, 2), acceptable=(1, 2, 3)),
    BudgetLevel.comfort: BudgetRange(ideal=(2, 3), acceptable=(1, 2, 3, 4)),
    BudgetLevel.luxury: BudgetRange(ideal=(3, 4), acceptable=(2, 3, 4)),
}

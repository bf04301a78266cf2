from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..catalog import Category, visit_minutes
from ..places.models import Coordinates, Place


class PlanItemKind(str, Enum):
    restaurant = "restaurant"
    bar = "bar"
    cafe = "cafe"
    activity = "activity"
    photo_spot = "photo_spot"
    experience = "experience"
    hotel = "hotel"


ACTIVITY_KINDS: frozenset[PlanItemKind] = frozenset(
    {PlanItemKind.activity, PlanItemKind.photo_spot, PlanItemKind.experience}
)
DINING_KINDS: frozenset[PlanItemKind] = frozenset(
    {PlanItemKind.restaurant, PlanItemKind.bar, PlanItemKind.cafe}
)

_KIND_BY_CATEGORY: dict[Category, PlanItemKind] = {
    Category.food_drink: PlanItemKind.restaurant,
    Category.nightlife: PlanItemKind.bar,
    Category.culture: PlanItemKind.activity,
    Category.nature: PlanItemKind.activity,
    Category.activities: PlanItemKind.experience,
    Category.shopping: PlanItemKind.activity,
    Category.wellness: PlanItemKind.experience,
    Category.accommodation: PlanItemKind.hotel,
}

_OUTDOOR_TYPES = {"park", "natural_feature", "campground", "beach", "hiking_area", "garden"}


def _kind_for(place: Place) -> PlanItemKind:
    if {"cafe", "coffee_shop", "bakery"}.intersection(place.types):
        return PlanItemKind.cafe
    if "bar" in place.types or "night_club" in place.types:
        return PlanItemKind.bar
    return _KIND_BY_CATEGORY.get(place.category, PlanItemKind.activity)


class PlanItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    kind: PlanItemKind
    coordinates: Coordinates | None = None
    area: str | None = None
    duration_minutes: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    best_time: str | None = Field(default=None, description='e.g. "sunset", "morning", "lunch"')
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    place_id: str | None = None

    @classmethod
    def from_place(cls, place: Place, **overrides) -> "PlanItem":
        tags = list(place.types)
        if place.category == Category.nature or _OUTDOOR_TYPES.intersection(place.types):
            tags.append("outdoor")
        fields = dict(
            id=place.id,
            name=place.name,
            kind=_kind_for(place),
            coordinates=place.coordinates,
            area=place.area,
            duration_minutes=visit_minutes(place.category),
            tags=tags,
            rating=place.rating,
            place_id=place.id,
        )
        fields.update(overrides)
        return cls(**fields)


class Cluster(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    center: Coordinates | None = Field(
        default=None, description="Mean of located members; None when no member has coordinates"
    )
    items: list[PlanItem] = Field(default_factory=list)
    total_duration_minutes: int = 0
    max_walking_minutes: int = 0

    def activity_count(self) -> int:
        return sum(1 for item in self.items if item.kind in ACTIVITY_KINDS)


class ClusterAssignment(BaseModel):
    """Where a new item should go: an existing cluster, or a new one named ``suggested_name``."""

    cluster_id: str | None = None
    should_create_new: bool = False
    suggested_name: str = ""


class CityPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    city_name: str
    clusters: list[Cluster] = Field(default_factory=list)
    unclustered: list[PlanItem] = Field(default_factory=list)

    def cluster(self, cluster_id: str) -> Cluster | None:
        return next((c for c in self.clusters if c.id == cluster_id), None)


class AddItemRequest(BaseModel):
    plan: CityPlan
    item: PlanItem | None = None
    place: Place | None = Field(default=None, description="Converted with PlanItem.from_place")


class AddItemResponse(BaseModel):
    plan: CityPlan
    assignment: ClusterAssignment

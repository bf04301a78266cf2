from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..catalog import TrafficLevel, TravelMode
from ..places.models import Coordinates


class SegmentSource(str, Enum):
    estimated = "estimated"
    cached = "cached"


class TravelLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    coordinates: Coordinates
    place_id: str | None = None


class DurationRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int
    max: int


class TravelSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin: TravelLocation
    destination: TravelLocation
    mode: TravelMode
    distance_km: float
    base_duration_minutes: int
    estimated_duration_minutes: int
    duration_range: DurationRange
    traffic: TrafficLevel | None = None
    formatted_distance: str
    formatted_duration: str
    source: SegmentSource = SegmentSource.estimated


class DepartureSuggestion(BaseModel):
    departure_time: datetime
    arrival_time: datetime
    buffer_minutes: int
    expected_traffic: TrafficLevel
    formatted_departure: str
    formatted_arrival: str
    suggestion: str


class RouteTotal(BaseModel):
    total_distance_km: float
    total_duration_minutes: int
    formatted_total_distance: str
    formatted_total_duration: str
    segment_count: int


class ModeRecommendation(BaseModel):
    mode: TravelMode
    reason: str
    distance_km: float = Field(..., ge=0.0)


# ---------------------------------------------------------------------------
# Service request bodies
# ---------------------------------------------------------------------------

class SegmentRequest(BaseModel):
    origin: TravelLocation
    destination: TravelLocation
    mode: TravelMode = TravelMode.driving
    departure_time: datetime | None = None
    include_traffic: bool = True


class RouteRequest(BaseModel):
    waypoints: list[TravelLocation] = Field(..., min_length=2)
    mode: TravelMode = TravelMode.driving
    departure_time: datetime | None = None
    include_traffic: bool = True


class RouteResponse(BaseModel):
    segments: list[TravelSegment]
    total: RouteTotal
    summary: str


class DepartureRequest(BaseModel):
    origin: TravelLocation
    destination: TravelLocation
    target_arrival: datetime
    buffer_minutes: int | None = Field(
        default=None, ge=0, description="Omit for early/recommended/latest options"
    )
    consider_traffic: bool = True

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..catalog import Category
from .categories import primary_category


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class DayTime(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=0, le=6, description="0 = Sunday, as in provider payloads")
    time: str = Field(..., pattern=r"^\d{4}$", description="HHMM, 24-hour clock")


class OpeningPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    open: DayTime
    close: DayTime | None = None


class OpeningHours(BaseModel):
    model_config = ConfigDict(frozen=True)

    periods: list[OpeningPeriod] = Field(default_factory=list)
    weekday_text: list[str] = Field(default_factory=list)
    open_now: bool | None = None


class Place(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    coordinates: Coordinates | None = None
    types: list[str] = Field(default_factory=list)
    category: Category = Category.other
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    review_count: int | None = Field(default=None, ge=0)
    price_level: int | None = Field(default=None, ge=1, le=4)
    opening_hours: OpeningHours | None = None
    hidden_gem_score: float = Field(default=0.0, ge=0.0, le=1.0)
    is_hidden_gem: bool = False
    description: str | None = None
    address: str | None = None
    area: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_category(cls, data):
        if isinstance(data, dict) and not data.get("category") and data.get("types"):
            data = {**data, "category": primary_category(data["types"])}
        return data

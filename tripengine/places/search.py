from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Protocol

from pydantic import BaseModel, Field

from ..cache import TTLCache
from ..catalog import VARIETY_CATEGORIES, Category
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from .gems import calculate_hidden_gem_score, is_hidden_gem
from .models import Coordinates, Place

logger = logging.getLogger(__name__)

MAX_PLACES_PER_CATEGORY = 15
DEFAULT_SEARCH_CATEGORIES: tuple[Category, ...] = (
    Category.food_drink,
    Category.culture,
    Category.nature,
    Category.nightlife,
    Category.shopping,
    Category.activities,
)


class SearchFilters(BaseModel):
    min_rating: float | None = Field(default=None, ge=0.0, le=5.0)
    max_price_level: int | None = Field(default=None, ge=1, le=4)
    limit: int = Field(default=MAX_PLACES_PER_CATEGORY, ge=1)


class PlacesSearch(Protocol):
    async def search(
        self,
        location: Coordinates,
        radius: int,
        categories: list[Category],
        filters: SearchFilters,
    ) -> list[Place]: ...


class CategoryStats(BaseModel):
    category: Category
    total: int
    hidden_gems: int


class CityPlaces(BaseModel):
    city_name: str
    location: Coordinates
    radius: int
    places: list[Place]
    hidden_gems: list[Place]
    by_category: list[CategoryStats]
    average_rating: float
    fetched_at: datetime
    from_cache: bool = False
    failed: bool = False
    failed_categories: list[Category] = Field(default_factory=list)


def enrich_place(place: Place) -> Place:
    """Fill hidden-gem fields from rating and review count when the provider left them blank."""
    if place.hidden_gem_score or place.is_hidden_gem:
        return place
    return place.model_copy(update={
        "hidden_gem_score": calculate_hidden_gem_score(place.rating, place.review_count),
        "is_hidden_gem": is_hidden_gem(place.rating, place.review_count),
    })


def dedupe_places(places: list[Place]) -> list[Place]:
    seen: set[str] = set()
    unique: list[Place] = []
    for place in places:
        if place.id in seen:
            continue
        seen.add(place.id)
        unique.append(place)
    return unique


def _summarize(places: list[Place]) -> tuple[list[CategoryStats], float]:
    stats = []
    for category in VARIETY_CATEGORIES:
        members = [p for p in places if p.category == category]
        if members:
            stats.append(CategoryStats(
                category=category,
                total=len(members),
                hidden_gems=sum(1 for p in members if p.is_hidden_gem),
            ))
    rated = [p.rating for p in places if p.rating is not None]
    average = round(sum(rated) / len(rated), 1) if rated else 0.0
    return stats, average


class CityPlacesService:
    """
    Fetches a city's candidate pool through a PlacesSearch collaborator.

    Results are cached per rounded location and radius. A category whose
    search raises is reported in ``failed_categories`` and the remaining
    categories are still returned; partial results are not cached.
    """

    def __init__(
        self,
        provider: PlacesSearch,
        cache: TTLCache | None = None,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        self.provider = provider
        self.config = config
        if cache is None:
            cache = TTLCache(config.city_cache_ttl, config.city_cache_size)
        self.cache = cache

    @staticmethod
    def cache_key(
        location: Coordinates, radius: int, categories: list[Category] | None = None
    ) -> str:
        key = f"{location.lat:.2f},{location.lng:.2f}:{radius}"
        if categories and list(categories) != list(DEFAULT_SEARCH_CATEGORIES):
            key += ":" + ",".join(sorted(c.value for c in categories))
        return key

    async def _fetch_category(
        self, location: Coordinates, radius: int, category: Category
    ) -> list[Place]:
        return await self.provider.search(location, radius, [category], SearchFilters())

    async def fetch_city_places(
        self,
        location: Coordinates,
        city_name: str,
        categories: list[Category] | None = None,
        force_refresh: bool = False,
    ) -> CityPlaces:
        radius = self.config.city_radius_m
        key = self.cache_key(location, radius, categories)
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached.model_copy(update={"from_cache": True})

        categories = list(categories or DEFAULT_SEARCH_CATEGORIES)
        results = await asyncio.gather(
            *(self._fetch_category(location, radius, c) for c in categories),
            return_exceptions=True,
        )

        collected: list[Place] = []
        failed_categories: list[Category] = []
        for category, result in zip(categories, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "Place search for %s in %s failed, continuing without it",
                    category.value, city_name, exc_info=result,
                )
                failed_categories.append(category)
                continue
            collected.extend(result)

        places = dedupe_places([enrich_place(p) for p in collected])
        places.sort(key=lambda p: (not p.is_hidden_gem, -p.hidden_gem_score))
        by_category, average = _summarize(places)

        response = CityPlaces(
            city_name=city_name,
            location=location,
            radius=radius,
            places=places,
            hidden_gems=[p for p in places if p.is_hidden_gem],
            by_category=by_category,
            average_rating=average,
            fetched_at=datetime.now(timezone.utc),
            failed=bool(failed_categories) and not places,
            failed_categories=failed_categories,
        )
        if not failed_categories:
            self.cache.set(key, response)
        return response

    async def get_places(
        self, location: Coordinates, city_name: str, force_refresh: bool = False
    ) -> list[Place]:
        """Return only the candidate list, as the itinerary and alternatives engines consume it."""
        result = await self.fetch_city_places(location, city_name, force_refresh=force_refresh)
        return result.places

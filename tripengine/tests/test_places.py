from __future__ import annotations

import asyncio

import pytest

from tripengine.cache import TTLCache
from tripengine.catalog import Category
from tripengine.places.categories import all_categories, category_for_type, primary_category
from tripengine.places.data_store import DataFramePlacesSearch
from tripengine.places.gems import calculate_hidden_gem_score, is_hidden_gem
from tripengine.places.models import Coordinates, Place
from tripengine.places.search import CityPlacesService, SearchFilters, dedupe_places, enrich_place

PARIS = Coordinates(lat=48.8566, lng=2.3522)


def _place(pid: str, types: list[str], **kwargs) -> Place:
    return Place(id=pid, name=kwargs.pop("name", pid), types=types, **kwargs)


class FakeSearch:
    """Serves a fixed pool, filtered by the requested categories."""

    def __init__(self, places: list[Place], failing: set[Category] | None = None):
        self.places = places
        self.failing = failing or set()
        self.calls: list[list[Category]] = []

    async def search(self, location, radius, categories, filters):
        self.calls.append(list(categories))
        if set(categories) & self.failing:
            raise RuntimeError("provider unavailable")
        return [p for p in self.places if p.category in categories]


# ---------------------------------------------------------------------------
# Categories & model
# ---------------------------------------------------------------------------

def test_category_for_known_and_unknown_types():
    assert category_for_type("museum") == Category.culture
    assert category_for_type("MUSEUM") == Category.culture
    assert category_for_type("laundromat_of_the_future") == Category.other


def test_primary_category_follows_priority_order():
    assert primary_category(["store", "restaurant"]) == Category.food_drink
    assert primary_category(["bar", "museum"]) == Category.nightlife
    assert primary_category([]) == Category.other


def test_all_categories_lists_each_once():
    assert all_categories(["museum", "art_gallery", "park"]) == [Category.culture, Category.nature]
    assert all_categories([]) == [Category.other]


def test_place_category_derived_from_types():
    assert _place("p", ["park"]).category == Category.nature
    assert _place("p", ["park"], category=Category.culture).category == Category.culture
    assert _place("p", []).category == Category.other


# ---------------------------------------------------------------------------
# Hidden gems
# ---------------------------------------------------------------------------

def test_hidden_gem_score():
    assert calculate_hidden_gem_score(4.8, 30) == pytest.approx(0.64)
    assert calculate_hidden_gem_score(3.9, 30) == 0.0
    assert calculate_hidden_gem_score(4.8, 500) == 0.0
    assert calculate_hidden_gem_score(None, 30) == 0.0
    assert calculate_hidden_gem_score(4.8, None) == 0.0


def test_is_hidden_gem_bounds():
    assert is_hidden_gem(4.3, 10)
    assert is_hidden_gem(4.9, 150)
    assert not is_hidden_gem(4.2, 50)
    assert not is_hidden_gem(4.8, 9)
    assert not is_hidden_gem(4.8, 151)
    assert not is_hidden_gem(None, 50)


def test_enrich_place_fills_gem_fields():
    place = enrich_place(_place("gem", ["cafe"], rating=4.6, review_count=60))
    assert place.is_hidden_gem
    assert place.hidden_gem_score == pytest.approx(0.36)


def test_dedupe_keeps_first_occurrence():
    a = _place("a", ["cafe"], name="first")
    b = _place("a", ["cafe"], name="second")
    assert [p.name for p in dedupe_places([a, b])] == ["first"]


# ---------------------------------------------------------------------------
# DataFrame provider
# ---------------------------------------------------------------------------

class TestDataFramePlacesSearch:
    def setup_method(self):
        self.search = DataFramePlacesSearch()

    def test_radius_filter_keeps_city(self):
        places = asyncio.run(self.search.search(PARIS, 15000, [], SearchFilters(limit=100)))
        assert places
        assert all(p.id.startswith("par-") for p in places)

    def test_category_filter(self):
        places = asyncio.run(
            self.search.search(PARIS, 15000, [Category.culture], SearchFilters(limit=100))
        )
        assert places
        assert {p.category for p in places} == {Category.culture}

    def test_min_rating_and_price_filters(self):
        filters = SearchFilters(min_rating=4.6, max_price_level=2, limit=100)
        places = asyncio.run(self.search.search(PARIS, 15000, [], filters))
        for place in places:
            assert place.rating >= 4.6
            assert place.price_level is None or place.price_level <= 2

    def test_rows_carry_opening_hours(self):
        places = asyncio.run(self.search.search(PARIS, 15000, [], SearchFilters(limit=100)))
        louvre = next(p for p in places if p.id == "par-louvre")
        assert louvre.opening_hours is not None
        assert len(louvre.opening_hours.periods) == 7
        belvedere = next(p for p in places if p.id == "par-belvedere")
        assert belvedere.opening_hours is None

    def test_nowhere_returns_empty(self):
        nowhere = Coordinates(lat=-45.0, lng=170.0)
        assert asyncio.run(self.search.search(nowhere, 1000, [], SearchFilters())) == []


# ---------------------------------------------------------------------------
# City places service
# ---------------------------------------------------------------------------

class TestCityPlacesService:
    def _pool(self):
        return [
            _place("museum", ["museum"], rating=4.7, review_count=90000),
            _place("gem", ["art_gallery"], rating=4.7, review_count=40),
            _place("bistro", ["restaurant"], rating=4.4, review_count=300),
        ]

    def test_uses_injected_empty_cache(self):
        cache = TTLCache(ttl=60, max_entries=10)
        service = CityPlacesService(FakeSearch(self._pool()), cache)
        assert service.cache is cache
        asyncio.run(service.fetch_city_places(PARIS, "Paris"))
        assert len(cache) == 1

    def test_orders_hidden_gems_first_and_summarizes(self):
        service = CityPlacesService(FakeSearch(self._pool()))
        result = asyncio.run(service.fetch_city_places(PARIS, "Paris"))
        assert result.places[0].id == "gem"
        assert [p.id for p in result.hidden_gems] == ["gem"]
        assert not result.from_cache
        assert not result.failed
        culture = next(s for s in result.by_category if s.category == Category.culture)
        assert culture.total == 2
        assert culture.hidden_gems == 1

    def test_second_fetch_is_served_from_cache(self):
        provider = FakeSearch(self._pool())
        service = CityPlacesService(provider, TTLCache(ttl=60, max_entries=5))
        asyncio.run(service.fetch_city_places(PARIS, "Paris"))
        calls = len(provider.calls)
        again = asyncio.run(service.fetch_city_places(PARIS, "Paris"))
        assert again.from_cache
        assert len(provider.calls) == calls

    def test_force_refresh_bypasses_cache(self):
        provider = FakeSearch(self._pool())
        service = CityPlacesService(provider)
        asyncio.run(service.fetch_city_places(PARIS, "Paris"))
        calls = len(provider.calls)
        fresh = asyncio.run(service.fetch_city_places(PARIS, "Paris", force_refresh=True))
        assert not fresh.from_cache
        assert len(provider.calls) == 2 * calls

    def test_category_subset_does_not_share_full_cache_entry(self):
        service = CityPlacesService(FakeSearch(self._pool()))
        subset = asyncio.run(service.fetch_city_places(PARIS, "Paris", categories=[Category.food_drink]))
        full = asyncio.run(service.fetch_city_places(PARIS, "Paris"))
        assert [p.id for p in subset.places] == ["bistro"]
        assert not full.from_cache
        assert len(full.places) == 3

    def test_failed_category_is_reported_and_not_cached(self):
        provider = FakeSearch(self._pool(), failing={Category.food_drink})
        service = CityPlacesService(provider)
        result = asyncio.run(service.fetch_city_places(PARIS, "Paris"))
        assert result.failed_categories == [Category.food_drink]
        assert not result.failed
        assert {p.id for p in result.places} == {"museum", "gem"}
        assert len(service.cache) == 0

    def test_everything_failing_marks_result_failed(self):
        provider = FakeSearch([], failing=set(Category))
        result = asyncio.run(CityPlacesService(provider).fetch_city_places(PARIS, "Paris"))
        assert result.failed
        assert result.places == []

    def test_cancellation_propagates(self):
        class Cancelling:
            async def search(self, location, radius, categories, filters):
                raise asyncio.CancelledError()

        service = CityPlacesService(Cancelling())
        with pytest.raises(asyncio.CancelledError):
            asyncio.run(service.fetch_city_places(PARIS, "Paris"))

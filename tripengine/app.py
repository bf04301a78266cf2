from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from .cache import TTLCache
from .clustering.models import AddItemRequest, AddItemResponse, PlanItem
from .clustering.plan import add_item
from .config import DEFAULT_ENGINE_CONFIG
from .errors import InvalidItineraryInput
from .itinerary.alternatives import get_alternatives
from .itinerary.generator import generate_itinerary, regenerate_itinerary
from .itinerary.models import (
    AlternativesRequest,
    AlternativesResult,
    DailySchedule,
    DayScheduleRequest,
    Itinerary,
    ItineraryRequest,
    RegenerateRequest,
)
from .itinerary.schedule import generate_daily_schedule
from .places.data_store import DataFramePlacesSearch
from .places.search import CityPlacesService
from .travel.models import (
    DepartureRequest,
    DepartureSuggestion,
    RouteRequest,
    RouteResponse,
    SegmentRequest,
    TravelSegment,
)
from .travel.segments import TravelSegmentCalculator, calculate_route_total, format_route_summary

config = DEFAULT_ENGINE_CONFIG
logging.basicConfig(level=config.log_level)

segment_cache = TTLCache(config.segment_cache_ttl, config.segment_cache_size)
city_cache = TTLCache(config.city_cache_ttl, config.city_cache_size)
places_service = CityPlacesService(DataFramePlacesSearch(config.places_csv), city_cache, config)
segments = TravelSegmentCalculator(segment_cache, config)

app = FastAPI(title="Trip Itinerary Engine API", version="1.0.0")


# ── Health ───────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Itineraries ──────────────────────────────────────────────────────────


@app.post("/itineraries", response_model=Itinerary)
async def create_itinerary(body: ItineraryRequest) -> Itinerary:
    try:
        return await generate_itinerary(body, places_service, segments, config)
    except InvalidItineraryInput as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/itineraries/regenerate", response_model=Itinerary)
async def regenerate(body: RegenerateRequest) -> Itinerary:
    try:
        return await regenerate_itinerary(
            body.previous, body.request, places_service, segments, config
        )
    except InvalidItineraryInput as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/schedules/day", response_model=DailySchedule)
def daily_schedule(body: DayScheduleRequest) -> DailySchedule:
    return generate_daily_schedule(body, config)


@app.post("/alternatives", response_model=AlternativesResult)
async def alternatives(body: AlternativesRequest) -> AlternativesResult:
    return await get_alternatives(body, places_service)


# ── Travel ───────────────────────────────────────────────────────────────


@app.post("/travel/segment", response_model=TravelSegment)
def travel_segment(body: SegmentRequest) -> TravelSegment:
    return segments.calculate_segment(
        body.origin, body.destination, body.mode, body.departure_time, body.include_traffic
    )


@app.post("/travel/route", response_model=RouteResponse)
def travel_route(body: RouteRequest) -> RouteResponse:
    legs = segments.calculate_route(
        body.waypoints, body.mode, body.departure_time, body.include_traffic
    )
    return RouteResponse(
        segments=legs, total=calculate_route_total(legs), summary=format_route_summary(legs)
    )


@app.post("/travel/departure", response_model=list[DepartureSuggestion])
def travel_departure(body: DepartureRequest) -> list[DepartureSuggestion]:
    if body.buffer_minutes is None:
        return segments.suggest_departure_options(body.origin, body.destination, body.target_arrival)
    return [
        segments.suggest_departure_time(
            body.origin, body.destination, body.target_arrival,
            body.buffer_minutes, body.consider_traffic,
        )
    ]


# ── Clusters ─────────────────────────────────────────────────────────────


@app.post("/clusters/items", response_model=AddItemResponse)
def cluster_item(body: AddItemRequest) -> AddItemResponse:
    if body.item is not None:
        item = body.item
    elif body.place is not None:
        item = PlanItem.from_place(body.place)
    else:
        raise HTTPException(status_code=422, detail="Provide either item or place")
    plan, assignment = add_item(body.plan, item, config)
    return AddItemResponse(plan=plan, assignment=assignment)


# ── Admin ────────────────────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats() -> dict:
    return {"segments": segment_cache.stats(), "city_places": city_cache.stats()}

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from ..cache import TTLCache
from ..catalog import (
    MODE_PROFILES,
    MODE_RECOMMENDATION_BANDS,
    TRAFFIC_MULTIPLIERS,
    WEEKDAY_PEAK_HOURS,
    WEEKDAY_SHOULDER_HOURS,
    WEEKEND_BUSY_HOURS,
    TrafficLevel,
    TravelMode,
)
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..places.models import Coordinates
from .geo import haversine_km, round_half_up
from .models import (
    DepartureSuggestion,
    DurationRange,
    ModeRecommendation,
    RouteTotal,
    SegmentSource,
    TravelLocation,
    TravelSegment,
)

logger = logging.getLogger(__name__)

DEFAULT_DEPARTURE_BUFFER = 15
DEPARTURE_OPTION_BUFFERS = (30, 15, 5)

_MODE_REASONS: dict[TravelMode, str] = {
    TravelMode.walking: "Short distance - walking is quick and convenient",
    TravelMode.cycling: "Medium distance - cycling is fast and avoids traffic",
    TravelMode.transit: "Urban distance - transit may be faster than driving with parking",
    TravelMode.driving: "Longer distance - driving is most practical",
}


# -----------------------------------------------------------------------------
# Traffic
# -----------------------------------------------------------------------------

def traffic_condition(when: datetime) -> TrafficLevel:
    hour = when.hour
    if when.weekday() >= 5:
        low, high = WEEKEND_BUSY_HOURS
        return TrafficLevel.moderate if low <= hour <= high else TrafficLevel.light
    if any(start <= hour < end for start, end in WEEKDAY_PEAK_HOURS):
        return TrafficLevel.heavy
    if any(start <= hour < end for start, end in WEEKDAY_SHOULDER_HOURS):
        return TrafficLevel.moderate
    return TrafficLevel.light


def apply_traffic(base_minutes: int, mode: TravelMode, level: TrafficLevel) -> int:
    if not MODE_PROFILES[mode].traffic_sensitive:
        return base_minutes
    return round_half_up(base_minutes * TRAFFIC_MULTIPLIERS[level])


def duration_range(base_minutes: int, mode: TravelMode) -> DurationRange:
    spread = MODE_PROFILES[mode].range_spread
    return DurationRange(min=base_minutes, max=round_half_up(base_minutes * spread))


# -----------------------------------------------------------------------------
# Formatting
# -----------------------------------------------------------------------------

def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{round_half_up(distance_km * 1000)} m"
    if distance_km < 10:
        return f"{distance_km:.1f} km"
    return f"{round_half_up(distance_km)} km"


def format_duration(minutes: float) -> str:
    if minutes < 60:
        return f"{round_half_up(minutes)} min"
    hours = int(minutes // 60)
    mins = round_half_up(minutes % 60)
    if mins == 0:
        return f"{hours} hr"
    return f"{hours} hr {mins} min"


def format_clock(when: datetime) -> str:
    hour = when.hour % 12 or 12
    suffix = "AM" if when.hour < 12 else "PM"
    return f"{hour}:{when.minute:02d} {suffix}"


def format_travel_segment(segment: TravelSegment) -> str:
    return (
        f"{segment.origin.name} → {segment.destination.name}: "
        f"{segment.formatted_distance} ({segment.formatted_duration})"
    )


def calculate_route_total(segments: list[TravelSegment]) -> RouteTotal:
    total_km = sum(s.distance_km for s in segments)
    total_minutes = sum(s.estimated_duration_minutes for s in segments)
    return RouteTotal(
        total_distance_km=round(total_km, 1),
        total_duration_minutes=total_minutes,
        formatted_total_distance=format_distance(total_km),
        formatted_total_duration=format_duration(total_minutes),
        segment_count=len(segments),
    )


def format_route_summary(segments: list[TravelSegment]) -> str:
    if not segments:
        return "No route"
    total = calculate_route_total(segments)
    stops = [segments[0].origin.name] + [s.destination.name for s in segments]
    return (
        f"{' → '.join(stops)}\n"
        f"Total: {total.formatted_total_distance}, {total.formatted_total_duration}"
    )


def recommend_travel_mode(origin: Coordinates, destination: Coordinates) -> ModeRecommendation:
    km = haversine_km(origin, destination)
    mode = TravelMode.driving
    for upper_km, band_mode in MODE_RECOMMENDATION_BANDS:
        if km < upper_km:
            mode = band_mode
            break
    return ModeRecommendation(mode=mode, reason=_MODE_REASONS[mode], distance_km=round(km, 2))


# -----------------------------------------------------------------------------
# Segment calculator
# -----------------------------------------------------------------------------

class TravelSegmentCalculator:
    """
    Heuristic travel-segment estimates, memoized per (origin, destination, mode).

    The cache holds only the time-independent part of a segment (distance,
    base duration, range). Traffic is applied on every call, so a cached
    entry never carries another query's time of day.
    """

    def __init__(
        self,
        cache: TTLCache | None = None,
        config: EngineConfig = DEFAULT_ENGINE_CONFIG,
    ) -> None:
        if cache is None:
            cache = TTLCache(config.segment_cache_ttl, config.segment_cache_size)
        self.cache = cache

    @staticmethod
    def cache_key(origin: Coordinates, destination: Coordinates, mode: TravelMode) -> str:
        return (
            f"{origin.lat:.4f},{origin.lng:.4f}|"
            f"{destination.lat:.4f},{destination.lng:.4f}|{mode.value}"
        )

    def _base(
        self, origin: Coordinates, destination: Coordinates, mode: TravelMode, use_cache: bool
    ) -> tuple[float, int, DurationRange, SegmentSource]:
        key = self.cache_key(origin, destination, mode)
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return (*cached, SegmentSource.cached)

        profile = MODE_PROFILES[mode]
        distance_km = haversine_km(origin, destination) * profile.road_factor
        base_minutes = round_half_up(distance_km / profile.speed_kmh * 60)
        entry = (distance_km, base_minutes, duration_range(base_minutes, mode))
        if use_cache:
            self.cache.set(key, entry)
        return (*entry, SegmentSource.estimated)

    def calculate_segment(
        self,
        origin: TravelLocation,
        destination: TravelLocation,
        mode: TravelMode = TravelMode.driving,
        when: datetime | None = None,
        include_traffic: bool = True,
        use_cache: bool = True,
    ) -> TravelSegment:
        distance_km, base_minutes, span, source = self._base(
            origin.coordinates, destination.coordinates, mode, use_cache
        )
        traffic = None
        estimated = base_minutes
        if include_traffic:
            traffic = traffic_condition(when or datetime.now())
            estimated = apply_traffic(base_minutes, mode, traffic)

        return TravelSegment(
            origin=origin,
            destination=destination,
            mode=mode,
            distance_km=round(distance_km, 1),
            base_duration_minutes=base_minutes,
            estimated_duration_minutes=estimated,
            duration_range=span,
            traffic=traffic,
            formatted_distance=format_distance(distance_km),
            formatted_duration=format_duration(estimated),
            source=source,
        )

    def calculate_route(
        self,
        waypoints: list[TravelLocation],
        mode: TravelMode = TravelMode.driving,
        when: datetime | None = None,
        include_traffic: bool = True,
    ) -> list[TravelSegment]:
        return [
            self.calculate_segment(a, b, mode, when, include_traffic)
            for a, b in zip(waypoints, waypoints[1:])
        ]

    def suggest_departure_time(
        self,
        origin: TravelLocation,
        destination: TravelLocation,
        target_arrival: datetime,
        buffer_minutes: int = DEFAULT_DEPARTURE_BUFFER,
        consider_traffic: bool = True,
    ) -> DepartureSuggestion:
        segment = self.calculate_segment(
            origin, destination, TravelMode.driving, target_arrival, consider_traffic
        )
        needed = segment.estimated_duration_minutes + buffer_minutes
        departure = target_arrival - timedelta(minutes=needed)
        expected = traffic_condition(departure)

        formatted_departure = format_clock(departure)
        formatted_arrival = format_clock(target_arrival)
        suggestion = f"Leave at {formatted_departure} to arrive by {formatted_arrival}"
        if consider_traffic and expected == TrafficLevel.heavy:
            suggestion += " (expect heavy traffic)"
        elif consider_traffic and expected == TrafficLevel.moderate:
            suggestion += " (moderate traffic expected)"

        return DepartureSuggestion(
            departure_time=departure,
            arrival_time=target_arrival,
            buffer_minutes=buffer_minutes,
            expected_traffic=expected,
            formatted_departure=formatted_departure,
            formatted_arrival=formatted_arrival,
            suggestion=suggestion,
        )

    def suggest_departure_options(
        self, origin: TravelLocation, destination: TravelLocation, target_arrival: datetime
    ) -> list[DepartureSuggestion]:
        """Early, recommended and latest departures, in that order."""
        return [
            self.suggest_departure_time(origin, destination, target_arrival, buffer)
            for buffer in DEPARTURE_OPTION_BUFFERS
        ]

    def precalculate_segments(
        self, locations: list[TravelLocation], mode: TravelMode = TravelMode.driving
    ) -> int:
        """Warm the cache for every ordered pair of ``locations``; returns the pair count."""
        count = 0
        for i, a in enumerate(locations):
            for b in locations[i + 1:]:
                self._base(a.coordinates, b.coordinates, mode, use_cache=True)
                self._base(b.coordinates, a.coordinates, mode, use_cache=True)
                count += 2
        logger.debug("Precalculated %d %s segments", count, mode.value)
        return count

    def stats(self) -> dict:
        return self.cache.stats()

    def clear(self) -> None:
        self.cache.clear()

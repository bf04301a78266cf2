from __future__ import annotations

import logging
import uuid

import numpy as np
from sklearn.metrics.pairwise import haversine_distances

from ..catalog import WALKING_ROAD_FACTOR, WALKING_SPEED_KMH
from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..places.models import Coordinates
from ..travel.geo import EARTH_RADIUS_KM, round_half_up, walking_minutes
from .models import DINING_KINDS, Cluster, ClusterAssignment, CityPlan, PlanItem, PlanItemKind

logger = logging.getLogger(__name__)

DEFAULT_AREA_NAME = "New Area"

# Day-flow positions, earliest first.
EARLY_MORNING, MORNING, LATE_MORNING, LUNCH, EARLY_AFTERNOON = 0, 1, 2, 3, 4
AFTERNOON, GOLDEN_HOUR, DINNER, EVENING, NIGHT = 5, 6, 7, 8, 9

# Checked in order; the first keyword contained in the best-time hint wins.
_BEST_TIME_KEYWORDS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("sunrise", "early"), EARLY_MORNING),
    (("morning",), MORNING),
    (("lunch",), LUNCH),
    (("afternoon",), AFTERNOON),
    (("sunset", "golden"), GOLDEN_HOUR),
    (("dinner",), DINNER),
    (("evening",), EVENING),
    (("night",), NIGHT),
)

_OUTDOOR_TAGS = {"outdoor", "nature", "park", "garden", "beach", "hike", "walk"}
_DINNER_TAGS = {"dinner", "fine-dining", "romantic"}


def new_cluster_id() -> str:
    return f"cluster-{uuid.uuid4().hex[:12]}"


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def cluster_center(items: list[PlanItem]) -> Coordinates | None:
    located = [item.coordinates for item in items if item.coordinates is not None]
    if not located:
        return None
    lat, lng = np.mean([[c.lat, c.lng] for c in located], axis=0)
    return Coordinates(lat=float(lat), lng=float(lng))


def max_walking_minutes(items: list[PlanItem]) -> int:
    """Longest walk between any two located members (pairwise, fine at cluster sizes)."""
    located = [item.coordinates for item in items if item.coordinates is not None]
    if len(located) < 2:
        return 0
    radians = np.radians([[c.lat, c.lng] for c in located])
    km = haversine_distances(radians).max() * EARTH_RADIUS_KM * WALKING_ROAD_FACTOR
    return round_half_up(km / WALKING_SPEED_KMH * 60)


def with_stats(cluster: Cluster, items: list[PlanItem] | None = None) -> Cluster:
    """Return ``cluster`` holding ``items`` (default: its own) with centroid and stats recomputed."""
    items = list(cluster.items if items is None else items)
    return cluster.model_copy(update={
        "items": items,
        "center": cluster_center(items),
        "total_duration_minutes": sum(item.duration_minutes for item in items),
        "max_walking_minutes": max_walking_minutes(items),
    })


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------

def _nearest_within(
    clusters: list[Cluster], at: Coordinates, threshold: int
) -> Cluster | None:
    best: Cluster | None = None
    best_minutes = threshold + 1
    for cluster in clusters:
        if cluster.center is None:
            continue
        minutes = walking_minutes(at, cluster.center)
        if minutes <= threshold and minutes < best_minutes:
            best, best_minutes = cluster, minutes
    return best


def find_best_cluster(
    plan: CityPlan,
    item: PlanItem,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> ClusterAssignment:
    """
    Pick the cluster a new item should join, or ask for a new one.

    Items without coordinates join the first cluster when there is one.
    Restaurants, bars and cafes try the nearest activity-bearing cluster
    within walking range first; everything then falls back to the nearest
    cluster within range. A new cluster is named after the item's area.
    """
    suggested = item.area or DEFAULT_AREA_NAME
    if item.coordinates is None:
        if plan.clusters:
            return ClusterAssignment(cluster_id=plan.clusters[0].id)
        return ClusterAssignment(should_create_new=True, suggested_name=suggested)

    threshold = config.cluster_walk_minutes
    if item.kind in DINING_KINDS:
        with_activities = [c for c in plan.clusters if c.activity_count() > 0]
        match = _nearest_within(with_activities, item.coordinates, threshold)
        if match is not None:
            return ClusterAssignment(cluster_id=match.id)

    match = _nearest_within(plan.clusters, item.coordinates, threshold)
    if match is not None:
        return ClusterAssignment(cluster_id=match.id)
    return ClusterAssignment(should_create_new=True, suggested_name=suggested)


# ---------------------------------------------------------------------------
# Day-flow ordering
# ---------------------------------------------------------------------------

def day_flow_position(item: PlanItem) -> int:
    best_time = (item.best_time or "").lower()
    if best_time:
        for keywords, position in _BEST_TIME_KEYWORDS:
            if any(k in best_time for k in keywords):
                return position

    tags = {t.lower() for t in item.tags}
    outdoor = bool(tags & _OUTDOOR_TAGS)
    if item.kind == PlanItemKind.photo_spot:
        return MORNING if outdoor else GOLDEN_HOUR
    if item.kind in (PlanItemKind.activity, PlanItemKind.experience):
        return MORNING if outdoor else EARLY_AFTERNOON
    if item.kind == PlanItemKind.cafe:
        return LATE_MORNING
    if item.kind == PlanItemKind.restaurant:
        return DINNER if tags & _DINNER_TAGS else LUNCH
    if item.kind == PlanItemKind.bar:
        return EVENING
    if item.kind == PlanItemKind.hotel:
        return NIGHT
    return AFTERNOON


def order_items_for_day(items: list[PlanItem]) -> list[PlanItem]:
    """Sort by day-flow position, higher rating first within a position."""
    return sorted(items, key=lambda i: (day_flow_position(i), -(i.rating or 0.0)))


def should_reorder_after_add(items: list[PlanItem], new_index: int) -> bool:
    if len(items) <= 1:
        return False
    new_id = items[new_index].id
    optimal = order_items_for_day(items)
    return next(i for i, item in enumerate(optimal) if item.id == new_id) != new_index

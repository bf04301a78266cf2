from __future__ import annotations

import logging
import math
from datetime import date

from ..catalog import VARIETY_CATEGORIES, Category, TimeSlot, slot_appropriateness
from ..places.models import Place
from ..places.search import CityPlacesService
from ..preferences.models import ScoredPlace
from ..preferences.scoring import filter_avoided_places, rank_places
from .models import (
    AlternativePlace,
    AlternativeReason,
    AlternativesMeta,
    AlternativesRequest,
    AlternativesResult,
)
from .slots import is_open_during_slot, slot_score

logger = logging.getLogger(__name__)

MIN_SLOT_APPROPRIATENESS = 0.3
SIMILAR_RATIO = 0.6
HIDDEN_GEM_BONUS = 0.15
SAME_CATEGORY_BOOST = 0.05

REASON_LABELS: dict[AlternativeReason, str] = {
    AlternativeReason.similar: "Similar option",
    AlternativeReason.hidden_gem: "Hidden gem",
    AlternativeReason.preference_match: "Matches your style",
    AlternativeReason.highly_rated: "Highly rated",
    AlternativeReason.variety: "Try something different",
}


def reason_label(reason: AlternativeReason) -> str:
    return REASON_LABELS[reason]


def determine_reason(scored: ScoredPlace, is_same_category: bool) -> AlternativeReason:
    if scored.place.is_hidden_gem and scored.preference_score >= 0.6:
        return AlternativeReason.hidden_gem
    if is_same_category:
        return AlternativeReason.similar
    if scored.preference_score >= 0.8:
        return AlternativeReason.preference_match
    if (scored.place.rating or 0.0) >= 4.5:
        return AlternativeReason.highly_rated
    return AlternativeReason.variety


def alternative_score(
    preference: float, slot_fit: float, is_hidden_gem: bool, is_same_category: bool
) -> float:
    score = preference * 0.5 + slot_fit * 0.25
    if is_hidden_gem:
        score += HIDDEN_GEM_BONUS
    if is_same_category:
        score += SAME_CATEGORY_BOOST
    return score


def _slot_fit(place: Place, slot: TimeSlot, on: date | None) -> float:
    if on is None:
        return slot_appropriateness(place.category, slot)
    return slot_score(place, slot, on)


def _eligible(places: list[Place], slot: TimeSlot, on: date | None) -> list[Place]:
    eligible = []
    for place in places:
        if slot_appropriateness(place.category, slot) < MIN_SLOT_APPROPRIATENESS:
            continue
        if on is not None and not is_open_during_slot(place.opening_hours, slot, on).is_open:
            continue
        eligible.append(place)
    return eligible


def _to_alternative(
    scored: ScoredPlace,
    slot: TimeSlot,
    on: date | None,
    is_same_category: bool,
    reason: AlternativeReason | None = None,
) -> AlternativePlace:
    fit = _slot_fit(scored.place, slot, on)
    return AlternativePlace(
        place=scored.place,
        preference_score=scored.preference_score,
        slot_score=fit,
        combined_score=alternative_score(
            scored.preference_score, fit, scored.place.is_hidden_gem, is_same_category
        ),
        reason=reason or determine_reason(scored, is_same_category),
        is_same_category=is_same_category,
        is_hidden_gem=scored.place.is_hidden_gem,
    )


def rank_alternatives(
    pool: list[Place],
    request: AlternativesRequest,
) -> AlternativesResult:
    """
    Split an already fetched pool into same-category and variety suggestions.

    Excluded ids, the current place, avoided places and places that fit the
    slot poorly are removed first. Without a current activity every candidate
    counts as variety and the best ``limit`` are returned.
    """
    current = request.current_activity.place if request.current_activity else None
    excluded = set(request.exclude_place_ids)
    if current is not None:
        excluded.add(current.id)

    available = [p for p in pool if p.id not in excluded]
    not_avoided = filter_avoided_places(available, request.preferences.avoidances)
    eligible = _eligible(not_avoided, request.slot, request.on_date)
    ranked = rank_places(eligible, request.preferences)
    by_score = lambda a: -a.combined_score  # noqa: E731

    meta = AlternativesMeta(
        total_candidates=len(pool),
        filtered_count=len(eligible),
        current_category=current.category if current else None,
    )

    if current is None:
        suggestions = [
            _to_alternative(
                s, request.slot, request.on_date, False,
                AlternativeReason.hidden_gem if s.place.is_hidden_gem else AlternativeReason.preference_match,
            )
            for s in ranked
        ]
        suggestions.sort(key=by_score)
        return AlternativesResult(all=suggestions[: request.limit], meta=meta)

    same: list[AlternativePlace] = []
    different: list[AlternativePlace] = []
    for scored in ranked:
        if scored.place.category == current.category:
            same.append(_to_alternative(scored, request.slot, request.on_date, True))
        elif scored.place.category in VARIETY_CATEGORIES:
            different.append(_to_alternative(scored, request.slot, request.on_date, False))
    same.sort(key=by_score)
    different.sort(key=by_score)

    similar_limit = math.ceil(request.limit * SIMILAR_RATIO)
    similar = same[:similar_limit]
    variety = different[: request.limit - similar_limit]
    combined = sorted([*similar, *variety], key=by_score)
    return AlternativesResult(similar=similar, variety=variety, all=combined, meta=meta)


async def get_alternatives(
    request: AlternativesRequest,
    places_service: CityPlacesService | None = None,
) -> AlternativesResult:
    """Fetch the city pool (unless supplied) and rank swap suggestions for one slot."""
    pool = request.places
    if pool is None:
        pool = []
        if places_service is not None:
            try:
                pool = await places_service.get_places(request.city_coordinates, request.city_name)
            except Exception:
                logger.warning(
                    "Fetching alternatives for %s failed, returning none",
                    request.city_name, exc_info=True,
                )
    return rank_alternatives(pool, request)


async def get_alternatives_by_category(
    category: Category,
    request: AlternativesRequest,
    places_service: CityPlacesService | None = None,
    limit: int = 5,
) -> list[AlternativePlace]:
    pool = request.places
    if pool is None:
        pool = []
        if places_service is not None:
            result = await places_service.fetch_city_places(
                request.city_coordinates, request.city_name, categories=[category]
            )
            pool = result.places
    excluded = set(request.exclude_place_ids)
    if request.current_activity is not None:
        excluded.add(request.current_activity.place.id)
    candidates = [p for p in pool if p.category == category and p.id not in excluded]
    candidates = filter_avoided_places(candidates, request.preferences.avoidances)
    ranked = rank_places(candidates, request.preferences)[:limit]
    return [
        _to_alternative(s, request.slot, request.on_date, True, AlternativeReason.similar)
        for s in ranked
    ]

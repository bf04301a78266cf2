from __future__ import annotations

from ..catalog import BUDGET_PRICE_RANGES, CATEGORY_PROFILES, PACE_PROFILES, BudgetLevel, Category, Pace
from ..places.categories import all_categories
from ..places.models import Place
from .models import (
    DEFAULT_SCORING_WEIGHTS,
    Avoidance,
    ScoreBreakdown,
    ScoredPlace,
    ScoringWeights,
    SpecificInterest,
    UserPreferences,
)
from .rules import DEFAULT_KEYWORD_RULES, KeywordRules, matches_avoidance, matches_interest

NEUTRAL_SCORE = 0.5
SECONDARY_CATEGORY_FACTOR = 0.5
SECONDARY_BOOST_RATE = 0.2
HIDDEN_GEM_WEIGHT = 0.3


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def interest_alignment(place: Place, preferences: UserPreferences) -> float:
    """
    Highest user weight among the interests correlated with the primary category.

    Secondary categories can nudge the score upward by a small, capped amount.
    Categories with no correlated interests score neutral.
    """
    primary = place.category
    interests = CATEGORY_PROFILES[primary].interests
    if not interests:
        return NEUTRAL_SCORE

    best = max(preferences.interest(key) for key in interests)
    for category in all_categories(place.types):
        if category == primary:
            continue
        for key in CATEGORY_PROFILES[category].interests:
            boosted = preferences.interest(key) * SECONDARY_CATEGORY_FACTOR
            if boosted > best:
                best = min(1.0, best + boosted * SECONDARY_BOOST_RATE)
    return best


def budget_match(price_level: int | None, budget: BudgetLevel) -> float:
    if price_level is None:
        return NEUTRAL_SCORE
    price_range = BUDGET_PRICE_RANGES[budget]
    if price_level in price_range.ideal:
        return 1.0
    if price_level in price_range.acceptable:
        return 0.7
    if price_level < min(price_range.ideal):
        return 0.4
    distance = price_level - max(price_range.ideal)
    return max(0.0, 0.3 - distance * 0.1)


def check_avoidances(
    place: Place,
    avoidances: list[Avoidance],
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> tuple[float, list[str]]:
    matched = [
        a for a in avoidances
        if matches_avoidance(a.tag, place.name, place.types, place.category.value, rules)
    ]
    if not matched:
        return 1.0, []
    penalty = min(1.0, sum(a.strength for a in matched))
    return 1.0 - penalty, [a.tag for a in matched]


def check_specific_interests(
    place: Place,
    interests: list[SpecificInterest],
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> tuple[float, list[str]]:
    matched = [i for i in interests if matches_interest(i.tag, place.name, place.types, rules)]
    if not matched:
        return 0.0, []
    mean = sum(i.confidence for i in matched) / len(matched)
    return min(1.0, mean), [i.tag for i in matched]


def hidden_gem_bonus(place: Place, prefers_hidden_gems: bool) -> float:
    if not prefers_hidden_gems:
        return 0.0
    if place.is_hidden_gem:
        return 0.2
    if place.hidden_gem_score > 0.5:
        return place.hidden_gem_score * 0.1
    return 0.0


def score_place(
    place: Place,
    preferences: UserPreferences,
    weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS,
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> ScoreBreakdown:
    """Score one place against preferences. Pure: equal inputs give equal breakdowns."""
    interest = interest_alignment(place, preferences)
    budget = budget_match(place.price_level, preferences.budget)
    avoid, matched_avoidances = check_avoidances(place, preferences.avoidances, rules)
    specific, matched_interests = check_specific_interests(place, preferences.specific_interests, rules)
    bonus = hidden_gem_bonus(place, preferences.prefers_hidden_gems)

    weighted = (
        interest * weights.interest_alignment
        + budget * weights.budget_match
        + avoid * weights.not_in_avoid
        + specific * weights.specific_interest_match
    )
    return ScoreBreakdown(
        total=_clamp(weighted + bonus),
        interest_alignment=interest,
        budget_match=budget,
        not_in_avoid=avoid,
        specific_interest_match=specific,
        hidden_gem_bonus=bonus,
        matched_avoidances=matched_avoidances,
        matched_interests=matched_interests,
        primary_category=place.category,
    )


def combined_score(total: float, hidden_gem_score: float) -> float:
    return total * (1 - HIDDEN_GEM_WEIGHT) + hidden_gem_score * HIDDEN_GEM_WEIGHT


def to_scored_place(
    place: Place,
    preferences: UserPreferences,
    weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS,
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> ScoredPlace:
    breakdown = score_place(place, preferences, weights, rules)
    return ScoredPlace(
        place=place,
        preference_score=breakdown.total,
        combined_score=combined_score(breakdown.total, place.hidden_gem_score),
        breakdown=breakdown,
    )


def rank_places(
    places: list[Place],
    preferences: UserPreferences,
    weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS,
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> list[ScoredPlace]:
    scored = [to_scored_place(p, preferences, weights, rules) for p in places]
    scored.sort(key=lambda s: (-s.combined_score, -s.preference_score, -(s.place.rating or 0.0)))
    return scored


def filter_avoided_places(
    places: list[Place],
    avoidances: list[Avoidance],
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> list[Place]:
    if not avoidances:
        return places
    return [p for p in places if check_avoidances(p, avoidances, rules)[0] > 0]


def limit_by_pace(scored: list[ScoredPlace], pace: Pace, days: int = 1) -> list[ScoredPlace]:
    return scored[: PACE_PROFILES[pace].max_activities * days]


def top_places_per_category(
    places: list[Place],
    preferences: UserPreferences,
    top_n: int = 5,
) -> dict[Category, list[ScoredPlace]]:
    grouped: dict[Category, list[ScoredPlace]] = {}
    for scored in rank_places(places, preferences):
        bucket = grouped.setdefault(scored.breakdown.primary_category, [])
        if len(bucket) < top_n:
            bucket.append(scored)
    return grouped


def format_score_breakdown(breakdown: ScoreBreakdown) -> str:
    lines = [
        f"Total Score: {breakdown.total * 100:.1f}%",
        f"  Interest Alignment: {breakdown.interest_alignment * 100:.1f}% "
        f"(category: {breakdown.primary_category.value})",
        f"  Budget Match: {breakdown.budget_match * 100:.1f}%",
        f"  Not Avoided: {breakdown.not_in_avoid * 100:.1f}%",
        f"  Specific Interests: {breakdown.specific_interest_match * 100:.1f}%",
        f"  Hidden Gem Bonus: +{breakdown.hidden_gem_bonus * 100:.1f}%",
    ]
    if breakdown.matched_avoidances:
        lines.append(f"  Avoided: {', '.join(breakdown.matched_avoidances)}")
    if breakdown.matched_interests:
        lines.append(f"  Matched Interests: {', '.join(breakdown.matched_interests)}")
    return "\n".join(lines)

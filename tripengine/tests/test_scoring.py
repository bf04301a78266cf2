from __future__ import annotations

import pytest

from tripengine.catalog import BudgetLevel, Category, Pace
from tripengine.places.models import Place
from tripengine.preferences.models import Avoidance, SpecificInterest, UserPreferences
from tripengine.preferences.scoring import (
    budget_match,
    check_avoidances,
    check_specific_interests,
    combined_score,
    filter_avoided_places,
    format_score_breakdown,
    hidden_gem_bonus,
    interest_alignment,
    limit_by_pace,
    rank_places,
    score_place,
    top_places_per_category,
)


def _place(pid: str, types: list[str], **kwargs) -> Place:
    return Place(id=pid, name=kwargs.pop("name", pid.title()), types=types, **kwargs)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

class TestBudgetMatch:
    def test_missing_price_is_neutral(self):
        assert budget_match(None, BudgetLevel.moderate) == 0.5

    def test_ideal_and_acceptable(self):
        assert budget_match(1, BudgetLevel.moderate) == 1.0
        assert budget_match(3, BudgetLevel.moderate) == 0.7

    def test_cheaper_than_ideal(self):
        assert budget_match(1, BudgetLevel.luxury) == 0.4

    def test_pricier_than_acceptable_decays(self):
        assert budget_match(4, BudgetLevel.moderate) == pytest.approx(0.1)
        assert budget_match(4, BudgetLevel.budget) == pytest.approx(0.0)


def test_interest_alignment_takes_best_correlated_interest():
    prefs = UserPreferences(interests={"culture": 0.9, "photography": 0.2})
    assert interest_alignment(_place("m", ["museum"]), prefs) == pytest.approx(0.9)


def test_interest_alignment_neutral_for_uncorrelated_category():
    prefs = UserPreferences(interests={"culture": 1.0})
    assert interest_alignment(_place("bank", ["bank"]), prefs) == 0.5


def test_check_avoidances_penalizes_by_strength():
    museum = _place("louvre", ["museum"])
    score, matched = check_avoidances(museum, [Avoidance(tag="museum", strength=0.6)])
    assert score == pytest.approx(0.4)
    assert matched == ["museum"]


def test_check_avoidances_caps_total_penalty():
    museum = _place("louvre", ["museum"])
    avoid = [Avoidance(tag="museum", strength=0.7), Avoidance(tag="culture", strength=0.7)]
    score, matched = check_avoidances(museum, avoid)
    assert score == 0.0
    assert matched == ["museum", "culture"]


def test_check_specific_interests_averages_confidence():
    cafe = _place("cafe", ["cafe"])
    interests = [
        SpecificInterest(tag="coffee", confidence=0.8),
        SpecificInterest(tag="cafe", confidence=0.4),
        SpecificInterest(tag="jazz", confidence=1.0),
    ]
    score, matched = check_specific_interests(cafe, interests)
    assert score == pytest.approx(0.6)
    assert matched == ["coffee", "cafe"]


def test_hidden_gem_bonus():
    gem = _place("gem", ["cafe"], is_hidden_gem=True, hidden_gem_score=0.6)
    almost = _place("almost", ["cafe"], hidden_gem_score=0.8)
    assert hidden_gem_bonus(gem, True) == 0.2
    assert hidden_gem_bonus(almost, True) == pytest.approx(0.08)
    assert hidden_gem_bonus(gem, False) == 0.0


# ---------------------------------------------------------------------------
# Aggregate score
# ---------------------------------------------------------------------------

def test_score_place_with_neutral_preferences():
    breakdown = score_place(_place("louvre", ["museum"]), UserPreferences())
    # 0.5*0.4 + 0.5*0.2 + 1.0*0.3 + 0*0.1
    assert breakdown.total == pytest.approx(0.6)
    assert breakdown.primary_category == Category.culture
    assert breakdown.matched_avoidances == []


def test_score_place_is_pure():
    place = _place("louvre", ["museum"], price_level=3)
    prefs = UserPreferences(interests={"culture": 0.8}, budget=BudgetLevel.comfort)
    assert score_place(place, prefs) == score_place(place, prefs)


def test_score_is_clamped_to_one():
    prefs = UserPreferences(
        interests={"culture": 1.0},
        budget=BudgetLevel.moderate,
        specific_interests=[SpecificInterest(tag="museum", confidence=1.0)],
        prefers_hidden_gems=True,
    )
    gem = _place("gem", ["museum"], price_level=1, is_hidden_gem=True)
    assert score_place(gem, prefs).total == 1.0


def test_combined_score_blends_hidden_gem_score():
    assert combined_score(0.6, 0.0) == pytest.approx(0.42)
    assert combined_score(0.6, 1.0) == pytest.approx(0.72)


# ---------------------------------------------------------------------------
# Ranking helpers
# ---------------------------------------------------------------------------

def test_rank_places_orders_by_combined_score():
    prefs = UserPreferences(interests={"culture": 1.0, "food": 0.1})
    ranked = rank_places([_place("bistro", ["restaurant"]), _place("louvre", ["museum"])], prefs)
    assert [s.place.id for s in ranked] == ["louvre", "bistro"]
    assert ranked[0].combined_score >= ranked[1].combined_score


def test_filter_avoided_places_drops_full_matches_only():
    places = [_place("louvre", ["museum"]), _place("park", ["park"])]
    kept = filter_avoided_places(places, [Avoidance(tag="museum")])
    assert [p.id for p in kept] == ["park"]
    partial = filter_avoided_places(places, [Avoidance(tag="museum", strength=0.5)])
    assert len(partial) == 2


def test_limit_by_pace():
    ranked = rank_places([_place(f"p{i}", ["museum"]) for i in range(12)], UserPreferences())
    assert len(limit_by_pace(ranked, Pace.balanced)) == 5
    assert len(limit_by_pace(ranked, Pace.relaxed, days=2)) == 6


def test_top_places_per_category():
    places = [_place(f"m{i}", ["museum"]) for i in range(4)] + [_place("park", ["park"])]
    grouped = top_places_per_category(places, UserPreferences(), top_n=2)
    assert len(grouped[Category.culture]) == 2
    assert len(grouped[Category.nature]) == 1


def test_format_score_breakdown_mentions_matches():
    prefs = UserPreferences(avoidances=[Avoidance(tag="museum", strength=0.5)])
    text = format_score_breakdown(score_place(_place("louvre", ["museum"]), prefs))
    assert text.startswith("Total Score:")
    assert "Avoided: museum" in text

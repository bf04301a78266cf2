from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..catalog import BudgetLevel, Category, Pace
from ..places.models import Place

INTEREST_KEYS: tuple[str, ...] = (
    "food",
    "culture",
    "nature",
    "nightlife",
    "shopping",
    "adventure",
    "relaxation",
    "photography",
    "beach",
    "local_experiences",
)
NEUTRAL_INTEREST = 0.5


class Avoidance(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str = Field(..., min_length=1)
    strength: float = Field(default=1.0, ge=0.0, le=1.0)


class SpecificInterest(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str = Field(..., min_length=1)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class UserPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    interests: dict[str, float] = Field(
        default_factory=lambda: {k: NEUTRAL_INTEREST for k in INTEREST_KEYS},
        description="Interest key -> weight in [0, 1]; missing keys read as neutral",
    )
    budget: BudgetLevel = BudgetLevel.moderate
    pace: Pace = Pace.balanced
    avoidances: list[Avoidance] = Field(default_factory=list)
    specific_interests: list[SpecificInterest] = Field(default_factory=list)
    prefers_hidden_gems: bool = False

    @field_validator("interests")
    @classmethod
    def _check_weights(cls, value: dict[str, float]) -> dict[str, float]:
        for key, weight in value.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"interest '{key}' must be within [0, 1], got {weight}")
        return value

    def interest(self, key: str) -> float:
        return self.interests.get(key, NEUTRAL_INTEREST)


class ScoringWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    interest_alignment: float = 0.4
    budget_match: float = 0.2
    not_in_avoid: float = 0.3
    specific_interest_match: float = 0.1


DEFAULT_SCORING_WEIGHTS = ScoringWeights()


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float = Field(..., ge=0.0, le=1.0)
    interest_alignment: float
    budget_match: float
    not_in_avoid: float
    specific_interest_match: float
    hidden_gem_bonus: float
    matched_avoidances: list[str] = Field(default_factory=list)
    matched_interests: list[str] = Field(default_factory=list)
    primary_category: Category


class ScoredPlace(BaseModel):
    model_config = ConfigDict(frozen=True)

    place: Place
    preference_score: float
    combined_score: float
    breakdown: ScoreBreakdown

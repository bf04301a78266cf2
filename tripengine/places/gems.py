from __future__ import annotations

MAX_GEM_REVIEWS = 150
MIN_GEM_REVIEWS = 10
MIN_GEM_RATING = 4.3


def calculate_hidden_gem_score(
    rating: float | None,
    review_count: int | None,
    max_review_count: int = MAX_GEM_REVIEWS,
) -> float:
    """
    Rate how under-discovered a well-rated place is.

    Quality is how far the rating sits above 4.0, obscurity is how far the
    review count sits below ``max_review_count``. Missing data scores 0.
    """
    if not rating or review_count is None:
        return 0.0
    quality = min(1.0, max(0.0, rating - 4.0))
    obscurity = max(0.0, 1.0 - review_count / max_review_count)
    return round(quality * obscurity, 3)


def is_hidden_gem(rating: float | None, review_count: int | None) -> bool:
    if rating is None or review_count is None:
        return False
    return rating >= MIN_GEM_RATING and MIN_GEM_REVIEWS <= review_count <= MAX_GEM_REVIEWS

from __future__ import annotations

import math
from collections.abc import Sequence

from ..places.models import RatingUpdate, Review
from ..store.memory import DocumentStore


def _round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def recompute_rating(place_id: str, reviews: Sequence[Review]) -> RatingUpdate:
    """Average review rating rounded to one decimal, or 0 with no reviews."""
    if not reviews:
        return RatingUpdate(place_id=place_id, rating=0, review_count=0)

    average = sum(r.rating for r in reviews) / len(reviews)
    return RatingUpdate(
        place_id=place_id,
        rating=_round_half_up(average),
        review_count=len(reviews),
    )


def refresh_place_rating(store: DocumentStore, place_id: str) -> RatingUpdate:
    """Recompute and persist ``rating``/``reviewCount`` for one place."""
    update = recompute_rating(place_id, store.reviews_for_place(place_id))
    store.update_place(place_id, {
        "rating": update.rating,
        "reviewCount": update.review_count,
    })
    return update

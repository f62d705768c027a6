from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from ..places.models import Place, RankedPlace, Review, TopPicksList, ensure_utc
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig

_COMPUTED_FIELDS = {"top_picks_score", "topPicksScore"}


def _recent_count(reviews: Sequence[Review], now: datetime, window_seconds: int) -> int:
    return sum(
        1 for r in reviews if (now - r.created_at).total_seconds() < window_seconds
    )


def compute_score(
    place: Place,
    reviews: Sequence[Review],
    now: datetime,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """
    Top Picks score for a single place.

    average rating
      + ln(review count + 1) * volume weight
      + (share of reviews inside the recency window) * recency weight
      + verification bonus
      - report count * report penalty

    Places without reviews score 0.0. The report penalty has no floor, so
    heavily reported places can go negative.
    """
    if not reviews:
        return 0.0

    now = ensure_utc(now)
    count = len(reviews)
    average_rating = sum(r.rating for r in reviews) / count
    volume_bonus = math.log(count + 1) * config.volume_weight
    recent = _recent_count(reviews, now, config.recency_window_seconds)
    recency_bonus = (recent / count) * config.recency_weight
    verification_bonus = config.verification_bonus if place.is_verified else 0.0
    report_penalty = place.report_count * config.report_penalty

    return average_rating + volume_bonus + recency_bonus + verification_bonus - report_penalty


def rank_place(
    place: Place,
    reviews: Sequence[Review],
    now: datetime,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> RankedPlace:
    # A stored place document may still carry a score from an earlier run
    data = {k: v for k, v in place.model_dump().items() if k not in _COMPUTED_FIELDS}
    data["top_picks_score"] = compute_score(place, reviews, now, config)
    data["review_count"] = len(reviews)
    return RankedPlace(**data)


def build_top_picks(
    places: Iterable[Place],
    reviews_by_place_id: Mapping[str, Sequence[Review]],
    now: datetime,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> TopPicksList:
    """Score every place, sort descending and keep the top ``config.top_n``."""
    now = ensure_utc(now)
    ranked = [
        rank_place(place, reviews_by_place_id.get(place.id, ()), now, config)
        for place in places
    ]
    # sorted() is stable, so ties keep their input order
    ranked = sorted(ranked, key=lambda p: p.top_picks_score, reverse=True)

    return TopPicksList(
        places=ranked[: config.top_n],
        last_updated=now,
        algorithm=config.algorithm,
    )

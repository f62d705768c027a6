from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from ..places.models import Place, Review, UserStats, ensure_utc
from ..store.memory import DocumentStore


def compute_user_stats(
    user_id: str,
    places: Sequence[Place],
    reviews: Sequence[Review],
    now: datetime,
) -> UserStats:
    added = [p for p in places if p.created_by == user_id]
    written = [r for r in reviews if r.user_id == user_id]
    return UserStats(
        user_id=user_id,
        places_added=len(added),
        reviews_written=len(written),
        # Photo uploads are not tracked server-side yet
        photos_uploaded=0,
        helpful_votes_received=sum(r.helpful_count for r in written),
        last_updated=ensure_utc(now),
    )


def refresh_user_stats(store: DocumentStore, user_id: str, now: datetime) -> UserStats:
    stats = compute_user_stats(
        user_id,
        store.places_created_by(user_id),
        store.reviews_by_author(user_id),
        now,
    )
    store.set_user_stats(stats)
    return stats

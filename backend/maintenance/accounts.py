from __future__ import annotations

import logging

from ..places.models import AnonymizationResult
from ..store.memory import (
    FAVORITES,
    PLACES,
    REVIEWS,
    USER_PREFERENCES,
    USER_STATS,
    USERS,
    DocumentStore,
)

logger = logging.getLogger(__name__)

DELETED_USER_ID = "deleted_user"
DELETED_USER_NAME = "Deleted User"


def anonymize_user(store: DocumentStore, user_id: str) -> AnonymizationResult:
    """
    Remove a deleted account's personal documents and scrub its attribution
    from reviews and places. Reviews and places themselves are kept.
    """
    # Raw-field match so malformed documents are scrubbed too
    review_ids = store.ids_where(REVIEWS, lambda d: d.get("userId") == user_id)
    place_ids = store.ids_where(PLACES, lambda d: d.get("createdBy") == user_id)

    with store.batch() as batch:
        for collection in (USERS, USER_STATS, USER_PREFERENCES, FAVORITES):
            batch.delete(collection, user_id)
        for review_id in review_ids:
            batch.update(REVIEWS, review_id, {
                "userId": DELETED_USER_ID,
                "userName": DELETED_USER_NAME,
            })
        for place_id in place_ids:
            batch.update(PLACES, place_id, {"createdBy": DELETED_USER_ID})

    logger.info(
        "Cleaned up data for deleted user %s (%d reviews, %d places anonymized)",
        user_id,
        len(review_ids),
        len(place_ids),
    )
    return AnonymizationResult(
        user_id=user_id,
        reviews_anonymized=len(review_ids),
        places_anonymized=len(place_ids),
    )

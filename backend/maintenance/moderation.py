from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol

from ..places.models import Report, ensure_utc
from ..store.memory import DocumentStore

logger = logging.getLogger(__name__)

REVIEW_THRESHOLD = 5


class ModeratorNotifier(Protocol):
    def notify(self, moderator: dict[str, Any], place_id: str, report_count: int) -> None:
        ...


class LoggingNotifier:
    """Writes one log line per moderator instead of delivering a message."""

    def notify(self, moderator: dict[str, Any], place_id: str, report_count: int) -> None:
        logger.info(
            "Notifying moderator %s about place %s with %d reports",
            moderator.get("email", moderator.get("id")),
            place_id,
            report_count,
        )


def handle_new_report(
    store: DocumentStore,
    notifier: ModeratorNotifier,
    report: Report,
    now: datetime,
    threshold: int = REVIEW_THRESHOLD,
) -> bool:
    """
    Flag ``report.place_id`` for manual review once it has ``threshold`` or
    more unresolved reports, then notify every registered moderator.

    Returns True when the place was flagged.
    """
    unresolved = len(store.unresolved_reports_for_place(report.place_id))
    if unresolved < threshold:
        return False

    store.update_place(report.place_id, {
        "needsReview": True,
        "flaggedAt": ensure_utc(now),
    })
    logger.info("Place %s flagged with %d unresolved reports", report.place_id, unresolved)

    for moderator in store.moderators():
        notifier.notify(moderator, report.place_id, unresolved)
    return True

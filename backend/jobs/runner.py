from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from ..analytics.store import record_event
from ..maintenance.accounts import anonymize_user
from ..maintenance.cleanup import prune_stale_reports
from ..maintenance.moderation import LoggingNotifier, ModeratorNotifier, handle_new_report
from ..maintenance.ratings import refresh_place_rating
from ..maintenance.user_stats import refresh_user_stats
from ..places.models import AnonymizationResult, RatingUpdate, Report, TopPicksList, UserStats
from ..scoring.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from ..scoring.engine import build_top_picks
from ..store.memory import DocumentStore
from .config import DEFAULT_JOBS_CONFIG, JobsConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOP_PICKS_JOB = "top_picks"
CLEANUP_JOB = "cleanup_reports"
RATING_JOB = "place_rating"
MODERATION_JOB = "moderation"
ACCOUNT_DELETION_JOB = "account_deletion"
USER_STATS_JOB = "user_stats"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _run(job: str, action: Callable[[], T], summarize: Callable[[T], dict[str, Any]]) -> T:
    """Run ``action``, recording its outcome. Failures are logged and re-raised."""
    start_time = time.time()
    try:
        result = action()
    except Exception:
        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.exception("Job %s failed after %.1f ms", job, elapsed_ms)
        record_event(job, "failed", {"duration_ms": elapsed_ms})
        raise

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event(job, "ok", {"duration_ms": elapsed_ms, **summarize(result)})
    return result


# ── Scheduled jobs ───────────────────────────────────────────────────────


def run_top_picks_update(
    store: DocumentStore,
    now: datetime | None = None,
    config: JobsConfig = DEFAULT_JOBS_CONFIG,
    scoring: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> TopPicksList:
    """
    Rank every place and overwrite the stored Top Picks list.

    Nothing is written unless scoring succeeds, so a failed run leaves the
    previous list in place.
    """
    now = now or _utcnow()

    def action() -> TopPicksList:
        logger.info("Starting Top Picks update...")
        places = store.list_places()
        top_picks = build_top_picks(places, store.reviews_by_place(), now, scoring)
        store.set_top_picks(config.top_picks_list_id, top_picks)
        logger.info("Updated Top Picks with %d places", len(places))
        return top_picks

    return _run(TOP_PICKS_JOB, action, lambda tp: {"places_ranked": len(tp.places)})


def run_stale_report_cleanup(
    store: DocumentStore,
    now: datetime | None = None,
    config: JobsConfig = DEFAULT_JOBS_CONFIG,
) -> int:
    now = now or _utcnow()
    return _run(
        CLEANUP_JOB,
        lambda: prune_stale_reports(store, now, config.stale_report_months),
        lambda deleted: {"deleted": deleted},
    )


# ── Document event handlers ──────────────────────────────────────────────


def on_review_written(store: DocumentStore, place_id: str) -> RatingUpdate:
    """Run after any review for ``place_id`` is created, changed or deleted."""
    return _run(
        RATING_JOB,
        lambda: refresh_place_rating(store, place_id),
        lambda update: {"place_id": update.place_id, "rating": update.rating},
    )


def on_report_created(
    store: DocumentStore,
    report: Report,
    notifier: ModeratorNotifier | None = None,
    now: datetime | None = None,
    config: JobsConfig = DEFAULT_JOBS_CONFIG,
) -> bool:
    now = now or _utcnow()
    notifier = notifier or LoggingNotifier()
    return _run(
        MODERATION_JOB,
        lambda: handle_new_report(
            store, notifier, report, now, config.report_review_threshold,
        ),
        lambda flagged: {"place_id": report.place_id, "flagged": flagged},
    )


def on_user_deleted(store: DocumentStore, user_id: str) -> AnonymizationResult:
    return _run(
        ACCOUNT_DELETION_JOB,
        lambda: anonymize_user(store, user_id),
        lambda result: {
            "reviews_anonymized": result.reviews_anonymized,
            "places_anonymized": result.places_anonymized,
        },
    )


def on_user_updated(store: DocumentStore, user_id: str, now: datetime | None = None) -> UserStats:
    now = now or _utcnow()
    return _run(
        USER_STATS_JOB,
        lambda: refresh_user_stats(store, user_id, now),
        lambda stats: {"user_id": stats.user_id},
    )

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

import pandas as pd

from ..places.models import Report, ensure_utc
from ..store.memory import DocumentStore

logger = logging.getLogger(__name__)

STALE_AFTER_MONTHS = 6


def stale_report_cutoff(now: datetime, months: int = STALE_AFTER_MONTHS) -> datetime:
    """``now`` minus ``months`` calendar months."""
    return (pd.Timestamp(ensure_utc(now)) - pd.DateOffset(months=months)).to_pydatetime()


def select_stale_reports(reports: Sequence[Report], cutoff: datetime) -> list[Report]:
    """Resolved reports created strictly before ``cutoff``."""
    if not reports:
        return []

    df = pd.DataFrame({
        "is_resolved": [r.is_resolved for r in reports],
        "created_at": pd.to_datetime([r.created_at for r in reports], utc=True),
    })
    mask = df["is_resolved"] & (df["created_at"] < pd.Timestamp(ensure_utc(cutoff)))
    return [r for r, stale in zip(reports, mask.tolist()) if stale]


def prune_stale_reports(
    store: DocumentStore,
    now: datetime,
    months: int = STALE_AFTER_MONTHS,
) -> int:
    cutoff = stale_report_cutoff(now, months)
    stale = select_stale_reports(store.list_reports(), cutoff)
    deleted = store.delete_reports([r.id for r in stale])
    logger.info("Cleaned up %d old reports (cutoff %s)", deleted, cutoff.isoformat())
    return deleted

from __future__ import annotations

from backend.analytics.aggregator import compute_job_stats
from backend.analytics.store import clear_events, get_events, record_event


def test_record_and_filter_events():
    clear_events()
    record_event("top_picks", "ok", {"duration_ms": 12.0, "places_ranked": 50})
    record_event("cleanup_reports", "ok", {"deleted": 3})

    assert len(get_events()) == 2
    assert get_events("cleanup_reports")[0]["deleted"] == 3


def test_clear_events():
    record_event("top_picks", "ok")
    clear_events()
    assert get_events() == []


def test_job_stats_per_job():
    clear_events()
    record_event("top_picks", "ok", {"duration_ms": 10.0})
    record_event("top_picks", "ok", {"duration_ms": 20.0})
    record_event("top_picks", "failed", {"duration_ms": 3.0})
    record_event("cleanup_reports", "ok", {"duration_ms": 5.0})

    stats = compute_job_stats(get_events())

    assert stats["total_runs"] == 4
    top = stats["jobs"]["top_picks"]
    assert top["runs"] == 3
    assert top["succeeded"] == 2
    assert top["failed"] == 1
    assert top["success_rate"] == 66.7
    assert top["avg_duration_ms"] == 11.0
    assert top["last_status"] == "failed"
    assert stats["jobs"]["cleanup_reports"]["success_rate"] == 100.0

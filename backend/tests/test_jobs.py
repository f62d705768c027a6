from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from backend.analytics.aggregator import compute_job_stats
from backend.analytics.store import clear_events, get_events
from backend.jobs.__main__ import main
from backend.jobs.config import JobsConfig
from backend.jobs.runner import (
    on_report_created,
    on_review_written,
    on_user_deleted,
    run_stale_report_cleanup,
    run_top_picks_update,
)
from backend.places.models import Report
from backend.store.errors import StoreUnavailableError
from backend.store.memory import DocumentStore

NOW = datetime(2026, 10, 17, 2, 0, tzinfo=timezone.utc)
LATER = datetime(2026, 10, 18, 2, 0, tzinfo=timezone.utc)

COLLECTIONS = {
    "places": {
        "bark-park": {"name": "Bark Park", "isVerified": True, "reportCount": 0},
        "muddy-trail": {"name": "Muddy Trail", "isVerified": False, "reportCount": 1},
        "new-cafe": {"name": "New Cafe"},
    },
    "reviews": {
        "r1": {"placeId": "bark-park", "userId": "u1", "rating": 5, "createdAt": "2026-10-10T00:00:00Z"},
        "r2": {"placeId": "bark-park", "userId": "u2", "rating": 4, "createdAt": "2026-10-11T00:00:00Z"},
        "r3": {"placeId": "muddy-trail", "userId": "u1", "rating": 3, "createdAt": "2026-01-11T00:00:00Z"},
    },
    "reports": {
        "old": {"placeId": "muddy-trail", "isResolved": True, "createdAt": "2025-11-01T00:00:00Z"},
        "open": {"placeId": "muddy-trail", "isResolved": False, "createdAt": "2025-11-01T00:00:00Z"},
    },
}


def _store() -> DocumentStore:
    return DocumentStore(COLLECTIONS)


def test_top_picks_job_writes_ranked_list():
    clear_events()
    store = _store()

    result = run_top_picks_update(store, now=NOW)

    stored = store.get_top_picks("national")
    assert stored == result
    assert [p.id for p in stored.places] == ["bark-park", "muddy-trail", "new-cafe"]
    assert stored.places[0].review_count == 2
    assert stored.last_updated == NOW

    doc = store.get("topPicks", "national")
    assert doc["algorithm"] == "rating_review_volume"
    assert doc["places"][0]["topPicksScore"] == pytest.approx(stored.places[0].top_picks_score)


def test_top_picks_job_uses_configured_list_id():
    store = _store()
    run_top_picks_update(store, now=NOW, config=JobsConfig(top_picks_list_id="regional"))
    assert store.get_top_picks("regional") is not None
    assert store.get_top_picks("national") is None


def test_failed_run_keeps_previous_list():
    clear_events()
    store = _store()
    run_top_picks_update(store, now=NOW)

    with patch.object(store, "reviews_by_place", side_effect=StoreUnavailableError("down")):
        with pytest.raises(StoreUnavailableError):
            run_top_picks_update(store, now=LATER)

    assert store.get_top_picks("national").last_updated == NOW

    stats = compute_job_stats(get_events())["jobs"]["top_picks"]
    assert stats["runs"] == 2
    assert stats["succeeded"] == 1
    assert stats["failed"] == 1
    assert stats["success_rate"] == 50.0
    assert stats["last_status"] == "failed"


def test_cleanup_job_returns_deleted_count():
    clear_events()
    store = _store()

    assert run_stale_report_cleanup(store, now=NOW) == 1
    assert store.ids("reports") == ["open"]
    assert get_events("cleanup_reports")[-1]["deleted"] == 1


def test_review_event_refreshes_rating():
    store = _store()
    update = on_review_written(store, "bark-park")
    assert update.rating == 4.5
    assert store.get_place("bark-park").review_count == 2


def test_report_event_uses_given_notifier():
    store = _store()
    store.put("moderators", "m1", {"email": "mod@pawmap.app"})
    notifier = MagicMock()
    for i in range(4):
        store.put("reports", f"extra{i}", {
            "placeId": "muddy-trail", "isResolved": False, "createdAt": "2026-10-01T00:00:00Z",
        })

    report = Report(id="extra3", place_id="muddy-trail", created_at=NOW)
    flagged = on_report_created(store, report, notifier=notifier, now=NOW)

    assert flagged is True
    notifier.notify.assert_called_once()
    assert store.get_place("muddy-trail").needs_review is True


def test_user_deleted_event():
    store = _store()
    result = on_user_deleted(store, "u1")
    assert result.reviews_anonymized == 2
    assert store.get_review("r3").user_id == "deleted_user"


def test_job_stats_empty():
    assert compute_job_stats([]) == {"total_runs": 0, "jobs": {}}


# ── CLI ──────────────────────────────────────────────────────────────────


def test_cli_runs_top_picks(tmp_path: Path, capsys):
    export = tmp_path / "export.json"
    export.write_text(json.dumps(COLLECTIONS), encoding="utf-8")

    assert main(["top-picks", "--data", str(export)]) == 0
    assert "3 places ranked" in capsys.readouterr().out


def test_cli_runs_cleanup(tmp_path: Path, capsys):
    export = tmp_path / "export.json"
    export.write_text(json.dumps(COLLECTIONS), encoding="utf-8")

    assert main(["cleanup", "--data", str(export)]) == 0
    assert "1 old reports deleted" in capsys.readouterr().out


def test_cli_failure_exit_status(tmp_path: Path):
    assert main(["top-picks", "--data", str(tmp_path / "missing.json")]) == 1

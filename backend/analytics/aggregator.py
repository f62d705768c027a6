from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any


def compute_job_stats(events: list[dict[str, Any]]) -> dict[str, Any]:
    """Summarise run events per job: counts, success rate, timing, last run."""
    by_job: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for e in events:
        by_job[e["job"]].append(e)

    jobs: dict[str, Any] = {}
    for name, runs in sorted(by_job.items()):
        statuses = Counter(r["status"] for r in runs)
        total = len(runs)

        times = [r["duration_ms"] for r in runs if "duration_ms" in r]
        avg_time = round(sum(times) / len(times), 1) if times else 0.0

        last = runs[-1]
        jobs[name] = {
            "runs": total,
            "succeeded": statuses.get("ok", 0),
            "failed": statuses.get("failed", 0),
            "success_rate": round(statuses.get("ok", 0) / total * 100, 1),
            "avg_duration_ms": avg_time,
            "last_status": last["status"],
            "last_run_at": last["timestamp"],
        }

    return {
        "total_runs": len(events),
        "jobs": jobs,
    }

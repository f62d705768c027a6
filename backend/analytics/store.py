from __future__ import annotations

import time
from typing import Any

_events: list[dict[str, Any]] = []


def record_event(job: str, status: str, data: dict[str, Any] | None = None) -> None:
    _events.append({
        "job": job,
        "status": status,
        "timestamp": time.time(),
        **(data or {}),
    })


def get_events(job: str | None = None) -> list[dict[str, Any]]:
    if job is None:
        return list(_events)
    return [e for e in _events if e["job"] == job]


def clear_events() -> None:
    _events.clear()

"""
Run a scheduled job once.

Usage:
    python -m backend.jobs top-picks --data export.json
    python -m backend.jobs cleanup --data export.json

``--data`` points at a JSON export shaped ``{collection: {doc_id: document}}``.
The exit status is non-zero when the job fails so the scheduler can retry.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from ..store.memory import DocumentStore, get_store
from .runner import run_stale_report_cleanup, run_top_picks_update

logger = logging.getLogger(__name__)


def _load_store(path: Path | None) -> DocumentStore:
    if path is None:
        return get_store()
    with path.open(encoding="utf-8") as f:
        return DocumentStore(json.load(f))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m backend.jobs")
    parser.add_argument("job", choices=["top-picks", "cleanup"])
    parser.add_argument("--data", type=Path, default=None, help="JSON export to load")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        store = _load_store(args.data)
        if args.job == "top-picks":
            top_picks = run_top_picks_update(store)
            print(f"Top Picks updated: {len(top_picks.places)} places ranked.")
        else:
            deleted = run_stale_report_cleanup(store)
            print(f"Cleanup complete: {deleted} old reports deleted.")
    except Exception:
        logger.exception("Job %s did not complete", args.job)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class JobsConfig:
    top_picks_list_id: str = os.getenv("TOP_PICKS_LIST_ID", "national")
    stale_report_months: int = int(os.getenv("STALE_REPORT_MONTHS", "6"))
    report_review_threshold: int = int(os.getenv("REPORT_REVIEW_THRESHOLD", "5"))


DEFAULT_JOBS_CONFIG = JobsConfig()

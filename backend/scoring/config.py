from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringConfig:
    volume_weight: float = 0.5
    recency_weight: float = 0.3
    verification_bonus: float = 0.2
    report_penalty: float = 0.1
    recency_window_seconds: int = 30 * 24 * 60 * 60
    top_n: int = 50
    algorithm: str = "rating_review_volume"


DEFAULT_SCORING_CONFIG = ScoringConfig()

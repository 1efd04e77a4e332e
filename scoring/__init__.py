"""
Scoring package

Kata trimmed-sum aggregation and Kumite bout decisions.
"""
from .aggregator import (
    ScoreBreakdown,
    Exclusion,
    compute_final_score,
    score_performance,
    finalize_performance,
    score_round,
    finalize_snapshot_scores,
)
from .kumite import (
    BoutDecision,
    SENSHU_GAP,
    bout_total,
    decide_bout,
    decide_match,
)

__all__ = [
    "ScoreBreakdown",
    "Exclusion",
    "compute_final_score",
    "score_performance",
    "finalize_performance",
    "score_round",
    "finalize_snapshot_scores",
    "BoutDecision",
    "SENSHU_GAP",
    "bout_total",
    "decide_bout",
    "decide_match",
]

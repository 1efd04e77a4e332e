"""
Kata score aggregation

Trimmed-sum rule: drop one highest and one lowest judge score, sum the rest.
- Exactly one instance of each extreme is dropped, even if it is duplicated
- Fewer than 3 surviving scores is an error, never a partial sum
- A performance stays "Pending" (final_score None) until every judge scored
"""
import math
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from tournament.config import scoring_config
from tournament.errors import (
    InsufficientScoresError,
    InvariantViolation,
    ScoreOutOfRangeError,
)
from tournament.models import CategorySnapshot, Discipline, EntityStatus, Performance


@dataclass(frozen=True)
class ScoreBreakdown:
    """Trimmed score of one performance"""
    judge_scores: Tuple[float, ...]     # as entered
    highest: float
    lowest: float
    middle_scores: Tuple[float, ...]    # ascending
    final_score: float

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["judge_scores"] = list(self.judge_scores)
        data["middle_scores"] = list(self.middle_scores)
        return data


@dataclass(frozen=True)
class Exclusion:
    """Entity left out of a computation, with the reason"""
    entity_id: str
    reason: str
    error_type: str

    @classmethod
    def from_error(cls, entity_id: str, error: InvariantViolation) -> "Exclusion":
        return cls(entity_id=entity_id, reason=str(error), error_type=type(error).__name__)

    def to_dict(self) -> Dict:
        return asdict(self)


def compute_final_score(
    judge_scores: Sequence[float],
    min_middle: Optional[int] = None,
    score_min: Optional[float] = None,
    score_max: Optional[float] = None,
) -> ScoreBreakdown:
    """
    Final score from raw judge scores.

    Args:
        judge_scores: one score per judge, each within [score_min, score_max]
        min_middle: scores that must survive trimming (default from settings)

    Raises:
        ScoreOutOfRangeError: a score outside the allowed range
        InsufficientScoresError: fewer than min_middle scores left after trimming
    """
    min_middle = scoring_config.min_middle_scores if min_middle is None else min_middle
    score_min = scoring_config.score_min if score_min is None else score_min
    score_max = scoring_config.score_max if score_max is None else score_max

    values = [float(s) for s in judge_scores]
    for value in values:
        if math.isnan(value) or not score_min <= value <= score_max:
            raise ScoreOutOfRangeError(
                f"Judge score {value} outside [{score_min}, {score_max}]"
            )

    if len(values) - 2 < min_middle:
        raise InsufficientScoresError(
            f"{len(values)} judge scores leave fewer than {min_middle} after trimming"
        )

    ordered = sorted(values)
    middle = ordered[1:-1]

    return ScoreBreakdown(
        judge_scores=tuple(values),
        highest=ordered[-1],
        lowest=ordered[0],
        middle_scores=tuple(middle),
        final_score=round(math.fsum(middle), 2),
    )


def score_performance(
    performance: Performance,
    required_judges: Optional[int] = None,
) -> Optional[ScoreBreakdown]:
    """Breakdown for a performance, or None while judge scores are missing"""
    required = scoring_config.required_judges if required_judges is None else required_judges
    scores = performance.score_values
    if len(scores) < required:
        return None
    try:
        return compute_final_score(scores)
    except InvariantViolation as e:
        e.entity_id = performance.performance_id
        raise


def finalize_performance(
    performance: Performance,
    required_judges: Optional[int] = None,
) -> Performance:
    """
    Copy of the performance with final_score recomputed from its judge scores.

    Pending performances come back with final_score None. A performance with no
    judge scores at all keeps the final_score it was recorded with (imported
    results). Same input, same output.
    """
    if not performance.judge_scores:
        return performance
    breakdown = score_performance(performance, required_judges)
    if breakdown is None:
        return performance.model_copy(update={"final_score": None})
    return performance.model_copy(update={
        "final_score": breakdown.final_score,
        "status": EntityStatus.COMPLETED,
    })


def score_round(
    performances: Sequence[Performance],
    required_judges: Optional[int] = None,
) -> Tuple[List[Performance], List[Exclusion]]:
    """
    Finalize every performance of a round.

    Performances that break a scoring invariant are returned as exclusions;
    the rest of the round is unaffected.
    """
    scored: List[Performance] = []
    excluded: List[Exclusion] = []

    for performance in performances:
        try:
            scored.append(finalize_performance(performance, required_judges))
        except InvariantViolation as e:
            logger.warning(f"Performance {performance.performance_id} excluded: {e}")
            excluded.append(Exclusion.from_error(performance.performance_id, e))

    return scored, excluded


def finalize_snapshot_scores(snapshot: CategorySnapshot) -> CategorySnapshot:
    """
    Snapshot with every Kata final score recomputed from its judge scores.

    Performances with broken scores are left out so they cannot hold a round
    open; Kumite snapshots come back unchanged.
    """
    if snapshot.discipline != Discipline.KATA:
        return snapshot
    scored, _ = score_round(snapshot.performances)
    return snapshot.model_copy(update={"performances": scored})

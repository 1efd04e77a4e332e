"""
Report assembly

Builds the category report from the full set of rounds every time it is
asked; nothing is patched incrementally, so a regenerated report always
replaces the previous one whole.

Final rankings:
- Kata: the Final 4 places 1-3 (two competitors may share 3rd)
- Kumite: Final winner / loser, 3rd place per BronzePolicy
"""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from progression.engine import BracketProgressionEngine, level_state
from progression.ranker import (
    RankingOutcome,
    assign_final_four_places,
    match_losers,
    match_winners,
    rank_round,
    round_kind_for,
    select_top,
)
from scoring.aggregator import Exclusion, score_round
from tournament.config import BronzePolicy, ProgressionConfig, progression_config
from tournament.errors import DisciplineMismatchError
from tournament.models import (
    Category,
    CategorySnapshot,
    Discipline,
    Match,
    MatchParticipant,
    Performance,
    ScoredEntity,
)
from tournament.rounds import KataRound, KumiteLevel, Round, get_round_order

from .schemas import (
    AdvancedEntry,
    ExcludedEntry,
    FinalRanking,
    ReportDocument,
    ReportEntry,
    RoundReport,
)

MEDALS = {1: "Gold", 2: "Silver", 3: "Bronze"}


# ==================== Entry builders ====================

def _report_entry(entry, entity: ScoredEntity) -> ReportEntry:
    if isinstance(entity, Performance):
        return ReportEntry(
            position=entry.position,
            entity_id=entity.performance_id,
            label=entity.label,
            competitor_ids=[entity.competitor_id],
            score=entity.final_score,
            order=entity.performance_order,
            place=entity.place,
            status=entity.status.value,
        )

    winner = entity.resolve_winner()
    return ReportEntry(
        position=entry.position,
        entity_id=entity.match_id,
        label=entity.label,
        competitor_ids=[p.competitor_id for p in entity.participants],
        order=entity.match_order,
        status=entity.status.value,
        winner_id=winner.competitor_id if winner is not None else None,
    )


def _excluded(exclusions: Iterable[Exclusion]) -> List[ExcludedEntry]:
    return [ExcludedEntry(**e.to_dict()) for e in exclusions]


def _medal(place: int, competitor: object) -> FinalRanking:
    return FinalRanking(
        place=place,
        entity_ref=competitor.competitor_id,
        label=competitor.label,
        medal=MEDALS[place],
    )


# ==================== Per-discipline preparation ====================

def _prepare_kata_round(
    level: KataRound,
    performances: Sequence[Performance],
) -> Tuple[List[Performance], List[Exclusion]]:
    """
    Recompute final scores and derive Final 4 places.

    Places are derived only when none is recorded. Once any performance
    carries a recorded place, unplaced ones stay unplaced and rank by the
    default comparator behind the placed ones.
    """
    scored, exclusions = score_round(performances)

    if level == KataRound.THIRD and scored and all(p.place is None for p in scored):
        derived = assign_final_four_places(scored)
        if derived:
            scored = [p.model_copy(update={"place": derived.get(p.performance_id)}) for p in scored]
    return scored, exclusions


def _advanced_entries(
    engine: BracketProgressionEngine,
    level: Round,
    outcome: RankingOutcome,
) -> List[AdvancedEntry]:
    next_level = engine.sequence.successor(level)
    if next_level is None:
        return []

    if isinstance(level, KumiteLevel):
        advanced = []
        for entry in outcome:
            winner = entry.entity.resolve_winner()
            if winner is not None:
                advanced.append(AdvancedEntry(
                    competitor_id=winner.competitor_id,
                    label=winner.label,
                    from_entity_id=entry.entity_id,
                ))
        return advanced

    return [
        AdvancedEntry(
            competitor_id=entry.entity.competitor_id,
            label=entry.label,
            from_entity_id=entry.entity_id,
        )
        for entry in select_top(outcome, engine.advancing_count(next_level) or 0)
    ]


# ==================== Final rankings ====================

def _kata_final_rankings(outcome: RankingOutcome) -> List[FinalRanking]:
    return [
        _medal(entry.place, entry.entity)
        for entry in outcome
        if entry.place is not None and entry.place <= 3
    ]


def _kumite_final_rankings(
    category: Category,
    outcomes: Mapping[Round, RankingOutcome],
    config: ProgressionConfig,
) -> Optional[List[FinalRanking]]:
    final = outcomes.get(KumiteLevel.FINAL)
    if final is None or not len(final):
        logger.warning(f"{category.category_id}: Final closed without a resolvable match")
        return None

    final_match: Match = final.entries[0].entity
    winner = final_match.resolve_winner()
    loser = final_match.resolve_loser()

    rankings = [_medal(1, winner)]
    if loser is not None:
        rankings.append(_medal(2, loser))

    bronze = outcomes.get(KumiteLevel.BRONZE)
    policy = config.bronze_policy
    if policy == BronzePolicy.AUTO:
        policy = BronzePolicy.BRONZE_MATCH if bronze is not None and len(bronze) else BronzePolicy.SHARED

    third: List[MatchParticipant] = []
    if policy == BronzePolicy.BRONZE_MATCH:
        if bronze is not None and not all(e.entity.is_terminal for e in bronze):
            logger.debug(f"{category.category_id}: Bronze match still pending, final rankings held back")
            return None
        if bronze is not None:
            third = match_winners(bronze)
    else:
        semifinal = outcomes.get(KumiteLevel.SEMIFINAL)
        if semifinal is not None:
            third = match_losers(semifinal)

    rankings.extend(_medal(3, p) for p in third)
    return rankings


# ==================== Public API ====================

def build_report(
    category: Category,
    rounds: Mapping[Round, Sequence[ScoredEntity]],
    config: Optional[ProgressionConfig] = None,
) -> ReportDocument:
    """
    Report for one category.

    Args:
        category: the category
        rounds: entities per round / level; rounds without entities are left out

    Raises:
        DisciplineMismatchError: a round that does not belong to the category's discipline
    """
    config = config or progression_config
    engine = BracketProgressionEngine.for_category(category, config)
    round_type = KataRound if category.discipline == Discipline.KATA else KumiteLevel

    for level in rounds:
        if not isinstance(level, round_type):
            raise DisciplineMismatchError(
                f"{category.category_type.value} category {category.category_id} "
                f"cannot report round {level.value}"
            )

    round_reports: List[RoundReport] = []
    outcomes: Dict[Round, RankingOutcome] = {}
    closed: Dict[Round, bool] = {}

    for level in engine.sequence.report_order():
        entities = list(rounds.get(level, ()))
        if not entities:
            continue

        exclusions: List[Exclusion] = []
        if isinstance(level, KataRound):
            entities, exclusions = _prepare_kata_round(level, entities)

        successor = engine.sequence.successor(level)
        next_entities = list(rounds.get(successor, ())) if successor is not None else []
        closed[level] = level_state(entities, next_entities).is_closed

        outcome = rank_round(entities, round_kind_for(level))
        outcomes[level] = outcome
        exclusions.extend(outcome.excluded)

        round_reports.append(RoundReport(
            round_name=level.value,
            round_order=get_round_order(level),
            closed=closed[level],
            results=[_report_entry(entry, entry.entity) for entry in outcome],
            advanced=_advanced_entries(engine, level, outcome) if closed[level] else [],
            excluded=_excluded(exclusions),
        ))

    final_rankings = None
    terminal = engine.sequence.terminal
    if closed.get(terminal):
        if isinstance(terminal, KataRound):
            final_rankings = _kata_final_rankings(outcomes[terminal])
        else:
            final_rankings = _kumite_final_rankings(category, outcomes, config)

    report = ReportDocument(
        category_id=category.category_id,
        category_name=category.category_name,
        category_type=category.category_type.value,
        tournament_name=category.tournament_name,
        rounds=round_reports,
        final_rankings=final_rankings,
    )
    logger.debug(
        f"Report built for {category.category_id}: {len(round_reports)} rounds"
        + (", final" if report.is_final else "")
    )
    return report


def build_report_from_snapshot(
    snapshot: CategorySnapshot,
    config: Optional[ProgressionConfig] = None,
) -> ReportDocument:
    engine = BracketProgressionEngine.for_category(snapshot.category, config)
    rounds = {level: snapshot.entities_in(level) for level in engine.sequence.report_order()}
    return build_report(snapshot.category, rounds, config)


def find_competitor_reports(
    reports: Iterable[ReportDocument],
    competitor_id: str,
) -> List[ReportDocument]:
    """Reports in which the competitor appears, in input order"""
    return [r for r in reports if competitor_id in r.competitor_ids()]

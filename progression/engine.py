"""
Bracket progression engine

State per (category, level):
    NotStarted → Open → Closed → Advanced

- NotStarted: no entities at the level yet
- Open: at least one entity is not terminal (match not Completed, Kata score pending)
- Closed: every entity is terminal and the next level does not exist yet
- Advanced: the next level exists; absorbing, duplicate triggers are no-ops

The engine only decides *when* the next level may be drawn and *who*
advances. The draw itself belongs to an external DrawGenerator.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from loguru import logger

from scoring.aggregator import Exclusion
from tournament.config import BronzePolicy, ProgressionConfig, progression_config
from tournament.errors import CallerMisuseError, DisciplineMismatchError
from tournament.models import (
    Category,
    CategorySnapshot,
    Discipline,
    MatchParticipant,
    Performance,
    ScoredEntity,
)
from tournament.rounds import (
    KATA_SEQUENCE,
    KUMITE_SEQUENCE,
    KataRound,
    KumiteLevel,
    Round,
    RoundSequence,
)

from .interfaces import DrawGenerator
from .ranker import (
    RankingOutcome,
    match_losers,
    match_winners,
    rank_round,
    round_kind_for,
    select_top,
)


class LevelState(str, Enum):
    """Progression state of one level"""
    NOT_STARTED = "not_started"
    OPEN = "open"
    CLOSED = "closed"
    ADVANCED = "advanced"

    @property
    def is_closed(self) -> bool:
        return self in (LevelState.CLOSED, LevelState.ADVANCED)


def _round_of(entity: ScoredEntity) -> Round:
    return entity.round if isinstance(entity, Performance) else entity.level


def level_state(
    entities_at_level: Sequence[ScoredEntity],
    entities_at_next_level: Sequence[ScoredEntity] = (),
) -> LevelState:
    """State of a level given its entities and its successor's entities"""
    if entities_at_next_level:
        return LevelState.ADVANCED
    if not entities_at_level:
        return LevelState.NOT_STARTED
    if all(e.is_terminal for e in entities_at_level):
        return LevelState.CLOSED
    return LevelState.OPEN


def is_level_closed(
    level: Round,
    entities_at_level: Sequence[ScoredEntity],
    entities_at_next_level: Sequence[ScoredEntity] = (),
) -> bool:
    """
    True once every entity at the level is terminal, and from the moment the
    next level exists regardless of later changes at this level.

    Raises:
        CallerMisuseError: an entity passed for `level` belongs to another level
    """
    strays = [e.entity_id for e in entities_at_level if _round_of(e) != level]
    if strays:
        raise CallerMisuseError(f"Entities not at {level.value}: {', '.join(strays)}")
    return level_state(entities_at_level, entities_at_next_level).is_closed


@dataclass
class AdvancementPlan:
    """Authorized move from one level to the next"""
    category: Category
    level: Round
    next_level: Round
    outcome: RankingOutcome
    advancing: List[object]                         # MatchParticipant (Kumite) / Performance (Kata)
    bronze_feed: List[MatchParticipant] = field(default_factory=list)

    @property
    def excluded(self) -> List[Exclusion]:
        return list(self.outcome.excluded)

    @property
    def advancing_ids(self) -> List[str]:
        return [a.competitor_id for a in self.advancing]


@dataclass
class AdvancementResult:
    """Plan plus the entities the draw generator produced for it"""
    plan: AdvancementPlan
    entities: List[ScoredEntity]


class BracketProgressionEngine:
    """Round-progression state machine for one discipline"""

    def __init__(
        self,
        discipline: Discipline,
        sequence: Optional[RoundSequence] = None,
        config: Optional[ProgressionConfig] = None,
    ):
        self.discipline = discipline
        if sequence is None:
            sequence = KATA_SEQUENCE if discipline == Discipline.KATA else KUMITE_SEQUENCE
        self.sequence = sequence
        self.config = config or progression_config

    @classmethod
    def for_category(
        cls,
        category: Category,
        config: Optional[ProgressionConfig] = None,
    ) -> "BracketProgressionEngine":
        return cls(category.discipline, config=config)

    def _check(self, snapshot: CategorySnapshot) -> None:
        if snapshot.discipline != self.discipline:
            raise DisciplineMismatchError(
                f"{self.discipline.value} engine cannot process "
                f"{snapshot.category.category_type.value} category {snapshot.category.category_id}"
            )

    def _next_entities(self, snapshot: CategorySnapshot, level: Round) -> List[ScoredEntity]:
        successor = self.sequence.successor(level)
        return snapshot.entities_in(successor) if successor is not None else []

    # ==================== State queries ====================

    def level_state(self, snapshot: CategorySnapshot, level: Round) -> LevelState:
        self._check(snapshot)
        return level_state(snapshot.entities_in(level), self._next_entities(snapshot, level))

    def level_states(self, snapshot: CategorySnapshot) -> Dict[Round, LevelState]:
        """State of every level in report order"""
        return {level: self.level_state(snapshot, level) for level in self.sequence.report_order()}

    def is_level_closed(self, snapshot: CategorySnapshot, level: Round) -> bool:
        return self.level_state(snapshot, level).is_closed

    def ready_for_next_round(self, snapshot: CategorySnapshot, level: Round) -> bool:
        """All entities at `level` terminal, successor exists but has no entities yet"""
        if self.sequence.successor(level) is None:
            return False
        return self.level_state(snapshot, level) == LevelState.CLOSED

    def is_terminal_closed(self, snapshot: CategorySnapshot) -> bool:
        """Terminal round (Final / Final 4) exists and is closed"""
        terminal = self.sequence.terminal
        return self.level_state(snapshot, terminal) == LevelState.CLOSED

    # ==================== Ranking / advancement ====================

    def rank(self, snapshot: CategorySnapshot, level: Round) -> RankingOutcome:
        self._check(snapshot)
        return rank_round(snapshot.entities_in(level), round_kind_for(level))

    def advancing_count(self, next_level: Round) -> Optional[int]:
        """Kata top-N size for the next round (None for Kumite)"""
        if next_level == KataRound.SECOND:
            return self.config.final_eight_size
        if next_level == KataRound.THIRD:
            return self.config.final_four_size
        return None

    def advancing_from(self, level: Round, outcome: RankingOutcome) -> List[object]:
        """Who leaves `level` for the next round (empty at terminal/side levels)"""
        next_level = self.sequence.successor(level)
        if next_level is None:
            return []
        if self.discipline == Discipline.KUMITE:
            return match_winners(outcome)
        count = self.advancing_count(next_level)
        return [e.entity for e in select_top(outcome, count or 0)]

    def advancement_plan(self, snapshot: CategorySnapshot) -> Optional[AdvancementPlan]:
        """Earliest level authorized to advance, or None when nothing is ready"""
        self._check(snapshot)
        for level in self.sequence.rounds:
            if not self.ready_for_next_round(snapshot, level):
                continue

            outcome = self.rank(snapshot, level)
            next_level = self.sequence.successor(level)
            plan = AdvancementPlan(
                category=snapshot.category,
                level=level,
                next_level=next_level,
                outcome=outcome,
                advancing=self.advancing_from(level, outcome),
            )
            if level == KumiteLevel.SEMIFINAL:
                plan.bronze_feed = match_losers(outcome)
            if outcome.excluded:
                logger.warning(
                    f"{snapshot.category.category_id} {level.value}: "
                    f"{len(outcome.excluded)} unresolved entities left out of advancement"
                )
            return plan
        return None

    def advance(
        self,
        snapshot: CategorySnapshot,
        draw_generator: DrawGenerator,
    ) -> Optional[AdvancementResult]:
        """
        Run the draw generator for the next level if advancement is authorized.

        The Semifinal losers go to the generator as a second, Bronze draw unless
        the Bronze policy is shared.

        Returns None (no-op) when nothing is ready, including repeated triggers
        after the next level already exists.
        """
        plan = self.advancement_plan(snapshot)
        if plan is None:
            logger.debug(f"{snapshot.category.category_id}: no level ready to advance")
            return None

        entities = list(draw_generator.generate(plan.category, plan.next_level, plan.advancing))
        if plan.bronze_feed and self.config.bronze_policy != BronzePolicy.SHARED:
            entities.extend(draw_generator.generate(plan.category, KumiteLevel.BRONZE, plan.bronze_feed))
        logger.info(
            f"🏁 {plan.category.category_id}: {plan.level.value} → {plan.next_level.value} "
            f"({len(plan.advancing)} advancing, {len(entities)} new entities)"
        )
        return AdvancementResult(plan=plan, entities=entities)

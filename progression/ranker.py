"""
Round ranking

Orders the performances / matches of one round and derives places.

Default comparator (every round except the Final 4):
1. entities with a score before entities without one (pending never counts as 0)
2. score descending
3. performance_order ascending, then entity id (total order)

Terminal comparator (Final 4): an explicitly assigned place wins over the
score; entities without a place follow in default order.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from loguru import logger

from scoring.aggregator import Exclusion
from tournament.errors import UnknownRoundKindError, UnresolvedWinnerError
from tournament.models import Match, MatchParticipant, Performance, ScoredEntity
from tournament.rounds import KataRound, Round


class RoundKind(str, Enum):
    """Which comparator a round uses"""
    DEFAULT = "default"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class RankedEntry:
    """One ranked entity"""
    position: int                   # 1-based position in the ordering
    entity_id: str
    label: str
    score: Optional[float]
    order: int                      # performance_order / match_order
    place: Optional[int]
    entity: ScoredEntity = field(repr=False, compare=False)

    def to_dict(self) -> Dict:
        return {
            "position": self.position,
            "entity_id": self.entity_id,
            "label": self.label,
            "score": self.score,
            "order": self.order,
            "place": self.place,
        }


@dataclass(frozen=True)
class RankingOutcome:
    """Ordered entries plus the entities that could not be ranked"""
    entries: Tuple[RankedEntry, ...] = ()
    excluded: Tuple[Exclusion, ...] = ()

    def __iter__(self) -> Iterator[RankedEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def entity_ids(self) -> List[str]:
        return [e.entity_id for e in self.entries]

    @property
    def entities(self) -> List[ScoredEntity]:
        return [e.entity for e in self.entries]


def parse_round_kind(round_kind: Union[str, RoundKind]) -> RoundKind:
    try:
        return RoundKind(round_kind)
    except ValueError:
        raise UnknownRoundKindError(
            f"Unknown round kind {round_kind!r} (expected 'default' or 'terminal')"
        ) from None


def round_kind_for(round_: Round) -> RoundKind:
    """The Final 4 is the only placement round"""
    return RoundKind.TERMINAL if round_ == KataRound.THIRD else RoundKind.DEFAULT


def _place_of(entity: ScoredEntity) -> Optional[int]:
    return getattr(entity, "place", None)


def default_sort_key(entity: ScoredEntity) -> Tuple:
    score = entity.ranking_score
    if score is None:
        return (1, 0.0, entity.ranking_order, entity.entity_id)
    return (0, -score, entity.ranking_order, entity.entity_id)


def terminal_sort_key(entity: ScoredEntity) -> Tuple:
    place = _place_of(entity)
    if place is None:
        return (1, 0) + default_sort_key(entity)
    return (0, place) + default_sort_key(entity)


def rank_round(
    entities: Sequence[ScoredEntity],
    round_kind: Union[str, RoundKind] = RoundKind.DEFAULT,
) -> RankingOutcome:
    """
    Rank one round.

    Completed matches whose winner cannot be resolved are excluded (with the
    reason) and the rest of the round is still ranked.

    Raises:
        UnknownRoundKindError: round_kind is neither 'default' nor 'terminal'
    """
    kind = parse_round_kind(round_kind)

    rankable: List[ScoredEntity] = []
    excluded: List[Exclusion] = []
    for entity in entities:
        if isinstance(entity, Match):
            try:
                entity.resolve_winner()
            except UnresolvedWinnerError as e:
                logger.warning(f"Match {entity.match_id} excluded from ranking: {e}")
                excluded.append(Exclusion.from_error(entity.match_id, e))
                continue
        rankable.append(entity)

    key = terminal_sort_key if kind == RoundKind.TERMINAL else default_sort_key
    ordered = sorted(rankable, key=key)

    entries = tuple(
        RankedEntry(
            position=i + 1,
            entity_id=entity.entity_id,
            label=entity.label,
            score=entity.ranking_score,
            order=entity.ranking_order,
            place=_place_of(entity),
            entity=entity,
        )
        for i, entity in enumerate(ordered)
    )
    return RankingOutcome(entries=entries, excluded=tuple(excluded))


# ==================== Advancement helpers ====================

def select_top(outcome: RankingOutcome, count: int) -> List[RankedEntry]:
    """Top `count` scored entries (pending entries never advance)"""
    return [e for e in outcome.entries if e.score is not None][:max(count, 0)]


def match_winners(outcome: RankingOutcome) -> List[MatchParticipant]:
    """Winners of terminal matches in ranked order (byes included)"""
    winners = []
    for entry in outcome.entries:
        match = entry.entity
        if isinstance(match, Match) and match.is_terminal:
            winner = match.resolve_winner()
            if winner is not None:
                winners.append(winner)
    return winners


def match_losers(outcome: RankingOutcome) -> List[MatchParticipant]:
    """Losers of completed, contested matches (Bronze feed from the Semifinal)"""
    losers = []
    for entry in outcome.entries:
        match = entry.entity
        if isinstance(match, Match) and match.is_terminal:
            loser = match.resolve_loser()
            if loser is not None:
                losers.append(loser)
    return losers


def assign_final_four_places(performances: Sequence[Performance]) -> Optional[Dict[str, int]]:
    """
    Places for the Final 4 round: {performance_id: place}.

    Four performances get 1, 2, 3, 3 (shared bronze). With fewer, the place
    advances except across equal scores, and the third slot shares place 3
    with the one after it. None while any performance is still pending.
    """
    if not performances:
        return {}
    if any(not p.is_finalized for p in performances):
        return None

    ordered = list(rank_round(performances, RoundKind.DEFAULT).entries)

    if len(ordered) == 4:
        return {e.entity_id: place for e, place in zip(ordered, (1, 2, 3, 3))}

    places: Dict[str, int] = {}
    current_place = 1
    i = 0
    while i < len(ordered):
        entry = ordered[i]
        following = ordered[i + 1] if i + 1 < len(ordered) else None

        if current_place == 3:
            places[entry.entity_id] = 3
            if following is not None:
                places[following.entity_id] = 3
            break

        places[entry.entity_id] = current_place
        is_tie = following is not None and following.score == entry.score
        if not is_tie:
            current_place += 1
        i += 1

    return places

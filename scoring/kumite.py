"""
Kumite bout decision

Decides the winner of a finished bout from the two participants' aggregated
scores:
1. Hansoku disqualifies that side
2. Points = Yuko×1 + Waza-ari×2 + Ippon×3, plus the opponent's Keikoku count
3. A lead of SENSHU_GAP points or more wins outright
4. Otherwise the higher total wins
5. Equal totals: the side that scored first wins
6. Still level: undecided (None) - the referee panel has to decide
"""
from dataclasses import dataclass
from typing import Optional

from tournament.models import KumiteScore, Match, MatchParticipant

SENSHU_GAP = 8


@dataclass(frozen=True)
class BoutDecision:
    """Bout outcome"""
    winner: Optional[MatchParticipant]
    reason: str                 # "disqualification", "point_gap", "points", "first_score", "undecided"
    aka_total: Optional[int]    # None when disqualified
    ao_total: Optional[int]

    @property
    def is_decided(self) -> bool:
        return self.winner is not None


def bout_total(own: KumiteScore, opponent: KumiteScore) -> Optional[int]:
    """Points for one side (None = disqualified)"""
    if own.disqualified:
        return None
    return own.points + opponent.keikoku


def decide_bout(aka: MatchParticipant, ao: MatchParticipant) -> BoutDecision:
    """Winner of a bout between aka (first participant) and ao (second)"""
    aka_score = aka.score or KumiteScore()
    ao_score = ao.score or KumiteScore()

    aka_total = bout_total(aka_score, ao_score)
    ao_total = bout_total(ao_score, aka_score)

    if aka_total is None and ao_total is None:
        return BoutDecision(None, "undecided", None, None)
    if aka_total is None:
        return BoutDecision(ao, "disqualification", None, ao_total)
    if ao_total is None:
        return BoutDecision(aka, "disqualification", aka_total, None)

    if abs(aka_total - ao_total) >= SENSHU_GAP:
        winner = aka if aka_total > ao_total else ao
        return BoutDecision(winner, "point_gap", aka_total, ao_total)

    if aka_total != ao_total:
        winner = aka if aka_total > ao_total else ao
        return BoutDecision(winner, "points", aka_total, ao_total)

    aka_first = aka_score.first_score_at
    ao_first = ao_score.first_score_at
    if aka_first is not None and (ao_first is None or aka_first < ao_first):
        return BoutDecision(aka, "first_score", aka_total, ao_total)
    if ao_first is not None and (aka_first is None or ao_first < aka_first):
        return BoutDecision(ao, "first_score", aka_total, ao_total)

    return BoutDecision(None, "undecided", aka_total, ao_total)


def decide_match(match: Match) -> Optional[BoutDecision]:
    """Bout decision for a two-participant match (None for byes / empty slots)"""
    if len(match.participants) != 2:
        return None
    aka, ao = match.participants
    return decide_bout(aka, ao)

"""
Round / level vocabulary

Kata rounds and Kumite match levels, their ordering, display aliases and the
ordered sequences the progression engine walks.
- KataRound: First Round → Second Round (Final 8) → Third Round (Final 4)
- KumiteLevel: Preliminary → Quarterfinal → Semifinal → Final (+ Bronze)
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .errors import UnknownRoundError


class KataRound(str, Enum):
    """Kata round"""
    FIRST = "First Round"
    SECOND = "Second Round (Final 8)"
    THIRD = "Third Round (Final 4)"


class KumiteLevel(str, Enum):
    """Kumite match level"""
    PRELIMINARY = "Preliminary"
    QUARTERFINAL = "Quarterfinal"
    SEMIFINAL = "Semifinal"
    FINAL = "Final"
    BRONZE = "Bronze"


Round = Union[KataRound, KumiteLevel]


# Round order (report order; Bronze is listed before Final)
ROUND_ORDER: Dict[str, int] = {
    KataRound.FIRST.value: 1,
    KataRound.SECOND.value: 2,
    KataRound.THIRD.value: 3,
    KumiteLevel.PRELIMINARY.value: 1,
    KumiteLevel.QUARTERFINAL.value: 2,
    KumiteLevel.SEMIFINAL.value: 3,
    KumiteLevel.BRONZE.value: 4,
    KumiteLevel.FINAL.value: 5,
}

ROUND_ALIASES: Dict[str, str] = {
    "first round": KataRound.FIRST.value,
    "round 1": KataRound.FIRST.value,
    "second round": KataRound.SECOND.value,
    "final 8": KataRound.SECOND.value,
    "round 2": KataRound.SECOND.value,
    "third round": KataRound.THIRD.value,
    "final 4": KataRound.THIRD.value,
    "final four": KataRound.THIRD.value,
    "round 3": KataRound.THIRD.value,
    "prelim": KumiteLevel.PRELIMINARY.value,
    "preliminary": KumiteLevel.PRELIMINARY.value,
    "qf": KumiteLevel.QUARTERFINAL.value,
    "quarterfinal": KumiteLevel.QUARTERFINAL.value,
    "quarter-final": KumiteLevel.QUARTERFINAL.value,
    "sf": KumiteLevel.SEMIFINAL.value,
    "semifinal": KumiteLevel.SEMIFINAL.value,
    "semi-final": KumiteLevel.SEMIFINAL.value,
    "final": KumiteLevel.FINAL.value,
    "bronze": KumiteLevel.BRONZE.value,
    "3rd place": KumiteLevel.BRONZE.value,
    "third place": KumiteLevel.BRONZE.value,
}


def normalize_round_name(raw_name: str) -> str:
    """Canonical round name (unknown names pass through unchanged)"""
    if raw_name is None:
        return ""
    cleaned = " ".join(raw_name.split())
    for member in (*KataRound, *KumiteLevel):
        if cleaned == member.value:
            return cleaned
    return ROUND_ALIASES.get(cleaned.lower(), cleaned)


def get_round_order(round_name: Union[str, Round]) -> int:
    """Round order number (unknown rounds sort last)"""
    if isinstance(round_name, Enum):
        round_name = round_name.value
    return ROUND_ORDER.get(normalize_round_name(round_name), 99)


def parse_round(raw_name: Union[str, Round]) -> Round:
    """Round name → KataRound / KumiteLevel"""
    if isinstance(raw_name, (KataRound, KumiteLevel)):
        return raw_name
    name = normalize_round_name(raw_name)
    for enum_cls in (KataRound, KumiteLevel):
        try:
            return enum_cls(name)
        except ValueError:
            continue
    raise UnknownRoundError(f"Unknown round: {raw_name!r}")


def level_for_round(round_number: int, total_rounds: int) -> KumiteLevel:
    """
    Level name of an elimination round counted from the first round.

    The last round is the Final, the one before it the Semifinal, the one
    before that the Quarterfinal; everything earlier is Preliminary.
    """
    if total_rounds < 1 or not 1 <= round_number <= total_rounds:
        raise UnknownRoundError(
            f"Round {round_number} is outside a {total_rounds}-round bracket"
        )
    remaining = total_rounds - round_number
    if remaining == 0:
        return KumiteLevel.FINAL
    if remaining == 1:
        return KumiteLevel.SEMIFINAL
    if remaining == 2:
        return KumiteLevel.QUARTERFINAL
    return KumiteLevel.PRELIMINARY


@dataclass(frozen=True)
class RoundSequence:
    """Ordered main-line rounds of one discipline"""
    rounds: Tuple[Round, ...]
    side_rounds: Tuple[Round, ...] = ()

    def __contains__(self, round_: Round) -> bool:
        return round_ in self.rounds or round_ in self.side_rounds

    def index(self, round_: Round) -> int:
        if round_ not in self.rounds:
            raise UnknownRoundError(f"{round_} is not part of {self.names()}")
        return self.rounds.index(round_)

    def successor(self, round_: Round) -> Optional[Round]:
        """Next main-line round (side rounds and the terminal round have none)"""
        if round_ in self.side_rounds:
            return None
        position = self.index(round_)
        if position + 1 < len(self.rounds):
            return self.rounds[position + 1]
        return None

    def predecessor(self, round_: Round) -> Optional[Round]:
        position = self.index(round_)
        return self.rounds[position - 1] if position > 0 else None

    def is_terminal(self, round_: Round) -> bool:
        return round_ == self.terminal

    @property
    def terminal(self) -> Round:
        return self.rounds[-1]

    def report_order(self) -> Tuple[Round, ...]:
        """All rounds in report order"""
        return tuple(sorted(self.rounds + self.side_rounds, key=get_round_order))

    def names(self) -> list:
        return [r.value for r in self.rounds]


KATA_SEQUENCE = RoundSequence(
    rounds=(KataRound.FIRST, KataRound.SECOND, KataRound.THIRD),
)

KUMITE_SEQUENCE = RoundSequence(
    rounds=(
        KumiteLevel.PRELIMINARY,
        KumiteLevel.QUARTERFINAL,
        KumiteLevel.SEMIFINAL,
        KumiteLevel.FINAL,
    ),
    side_rounds=(KumiteLevel.BRONZE,),
)

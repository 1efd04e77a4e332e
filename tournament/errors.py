"""
Engine error taxonomy

- Incomplete data (missing judge scores, open rounds) is never raised:
  it shows up as None / "Pending" and is always safe to retry.
- InvariantViolation: a single entity is unusable. Callers exclude it and
  keep ranking the rest of the round.
- CallerMisuseError: the call itself is wrong. Raised immediately.
"""
from typing import Optional


class TournamentError(Exception):
    """Base error for the progression engine"""


# ==================== Invariant violations (per entity) ====================

class InvariantViolation(TournamentError):
    """An entity breaks a scoring/progression invariant"""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        super().__init__(message)
        self.entity_id = entity_id


class InsufficientScoresError(InvariantViolation):
    """Fewer than the minimum number of scores survive trimming"""


class ScoreOutOfRangeError(InvariantViolation):
    """A judge score lies outside the allowed range"""


class UnresolvedWinnerError(InvariantViolation):
    """A Completed match has no winner that maps to one of its participants"""


# ==================== Caller misuse (per call) ====================

class CallerMisuseError(TournamentError):
    """The engine was called with arguments it cannot accept"""


class UnknownRoundKindError(CallerMisuseError):
    """Ranking requested with a round kind other than default/terminal"""


class UnknownRoundError(CallerMisuseError):
    """A round or level name that is not part of the round sequence"""


class DisciplineMismatchError(CallerMisuseError):
    """Kata data handed to the Kumite engine or the other way round"""

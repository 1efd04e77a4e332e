"""
Tournament domain package

Entities, round vocabulary, settings and the engine error taxonomy.
"""
from .errors import (
    TournamentError,
    InvariantViolation,
    InsufficientScoresError,
    ScoreOutOfRangeError,
    UnresolvedWinnerError,
    CallerMisuseError,
    UnknownRoundKindError,
    UnknownRoundError,
    DisciplineMismatchError,
)
from .rounds import (
    KataRound,
    KumiteLevel,
    RoundSequence,
    KATA_SEQUENCE,
    KUMITE_SEQUENCE,
    ROUND_ORDER,
    get_round_order,
    normalize_round_name,
    parse_round,
    level_for_round,
)
from .models import (
    Category,
    CategorySnapshot,
    CategoryType,
    Discipline,
    EntityStatus,
    JudgeScore,
    KumiteScore,
    Match,
    MatchParticipant,
    ParticipantResult,
    ParticipationType,
    Performance,
)

__all__ = [
    # Errors
    "TournamentError",
    "InvariantViolation",
    "InsufficientScoresError",
    "ScoreOutOfRangeError",
    "UnresolvedWinnerError",
    "CallerMisuseError",
    "UnknownRoundKindError",
    "UnknownRoundError",
    "DisciplineMismatchError",
    # Rounds
    "KataRound",
    "KumiteLevel",
    "RoundSequence",
    "KATA_SEQUENCE",
    "KUMITE_SEQUENCE",
    "ROUND_ORDER",
    "get_round_order",
    "normalize_round_name",
    "parse_round",
    "level_for_round",
    # Models
    "Category",
    "CategorySnapshot",
    "CategoryType",
    "Discipline",
    "EntityStatus",
    "JudgeScore",
    "KumiteScore",
    "Match",
    "MatchParticipant",
    "ParticipantResult",
    "ParticipationType",
    "Performance",
]

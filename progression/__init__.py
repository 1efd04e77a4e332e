"""
Progression package

Round ranking, the level state machine and the refresh service.
"""
from .ranker import (
    RoundKind,
    RankedEntry,
    RankingOutcome,
    rank_round,
    round_kind_for,
    select_top,
    match_winners,
    match_losers,
    assign_final_four_places,
)
from .engine import (
    LevelState,
    AdvancementPlan,
    AdvancementResult,
    BracketProgressionEngine,
    is_level_closed,
    level_state,
)
from .events import EventType, ProgressionEvent, EventPublisher, get_event_publisher
from .interfaces import SnapshotSource, DrawGenerator, ReportStore

__all__ = [
    # Ranking
    "RoundKind",
    "RankedEntry",
    "RankingOutcome",
    "rank_round",
    "round_kind_for",
    "select_top",
    "match_winners",
    "match_losers",
    "assign_final_four_places",
    # Engine
    "LevelState",
    "AdvancementPlan",
    "AdvancementResult",
    "BracketProgressionEngine",
    "is_level_closed",
    "level_state",
    # Events
    "EventType",
    "ProgressionEvent",
    "EventPublisher",
    "get_event_publisher",
    # Interfaces
    "SnapshotSource",
    "DrawGenerator",
    "ReportStore",
]

"""
Tournament entity schemas

Pydantic models for the snapshot the engine computes over. Entities are
normalized: they reference each other by id and never embed each other.
"""
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from .errors import UnresolvedWinnerError
from .rounds import KataRound, KumiteLevel, Round, normalize_round_name


# ==================== Category / status Enum ====================

class Discipline(str, Enum):
    """Engine variant"""
    KATA = "kata"
    KUMITE = "kumite"


class CategoryType(str, Enum):
    """Event type"""
    KATA = "Kata"
    TEAM_KATA = "Team Kata"
    KUMITE = "Kumite"
    TEAM_KUMITE = "Team Kumite"

    @property
    def discipline(self) -> Discipline:
        if self in (CategoryType.KATA, CategoryType.TEAM_KATA):
            return Discipline.KATA
        return Discipline.KUMITE


class ParticipationType(str, Enum):
    """Individual / team"""
    INDIVIDUAL = "Individual"
    TEAM = "Team"


class EntityStatus(str, Enum):
    """Performance / match status"""
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class ParticipantResult(str, Enum):
    """Outcome recorded for a match participant"""
    WIN = "Win"
    LOSS = "Loss"
    DRAW = "Draw"
    DISQUALIFIED = "Disqualified"
    NO_SHOW = "No Show"


# ==================== Core schemas ====================

class Category(BaseModel):
    """Tournament category (one event)"""

    category_id: str = Field(..., min_length=1, description="Category id")
    category_name: str = Field(..., min_length=1, description="Category name")
    category_type: CategoryType = Field(..., description="Kata / Team Kata / Kumite / Team Kumite")
    participation_type: ParticipationType = Field(default=ParticipationType.INDIVIDUAL)
    tournament_name: Optional[str] = Field(None, description="Tournament name")

    @property
    def discipline(self) -> Discipline:
        return self.category_type.discipline

    class Config:
        frozen = True


class JudgeScore(BaseModel):
    """One judge's Kata score.

    The range is not enforced here: an out-of-range score makes only its own
    performance unusable, not the whole snapshot.
    """

    judge_id: Optional[str] = Field(None, description="Judge id")
    judge_name: Optional[str] = Field(None, description="Judge name")
    score: float = Field(..., description="Score (5.0 - 10.0)")

    class Config:
        frozen = True


class Performance(BaseModel):
    """Kata performance: one competitor in one round"""

    performance_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    competitor_id: str = Field(..., min_length=1, description="Player or team id")
    competitor_name: str = Field(default="", description="Player or team name")
    dojo_name: Optional[str] = None
    belt_rank: Optional[str] = None

    round: KataRound = Field(default=KataRound.FIRST)
    performance_order: int = Field(..., ge=1, description="Registration order within the round")
    status: EntityStatus = Field(default=EntityStatus.SCHEDULED)

    judge_scores: List[JudgeScore] = Field(default_factory=list)
    final_score: Optional[float] = Field(None, ge=0, description="Sum of middle scores, null while pending")
    place: Optional[int] = Field(None, ge=1, le=4, description="Final 4 place")

    @field_validator("round", mode="before")
    @classmethod
    def normalize_round(cls, v):
        if isinstance(v, str):
            return normalize_round_name(v)
        return v

    @property
    def entity_id(self) -> str:
        return self.performance_id

    @property
    def label(self) -> str:
        return self.competitor_name or self.competitor_id

    @property
    def score_values(self) -> List[float]:
        return [j.score for j in self.judge_scores]

    @property
    def is_finalized(self) -> bool:
        return self.final_score is not None

    @property
    def is_terminal(self) -> bool:
        return self.is_finalized

    @property
    def ranking_score(self) -> Optional[float]:
        return self.final_score

    @property
    def ranking_order(self) -> int:
        return self.performance_order

    class Config:
        frozen = True


class KumiteScore(BaseModel):
    """Aggregated Kumite score of one participant"""

    yuko: int = Field(default=0, ge=0)
    waza_ari: int = Field(default=0, ge=0)
    ippon: int = Field(default=0, ge=0)
    chukoku: int = Field(default=0, ge=0)
    keikoku: int = Field(default=0, ge=0)
    hansoku_chui: int = Field(default=0, ge=0)
    hansoku: int = Field(default=0, ge=0)
    jogai: int = Field(default=0, ge=0)
    technical_score: float = Field(default=0.0, ge=0)
    performance_score: float = Field(default=0.0, ge=0)
    first_score_at: Optional[float] = Field(None, ge=0, description="Seconds into the bout of the first score")

    @property
    def points(self) -> int:
        """Yuko 1, Waza-ari 2, Ippon 3"""
        return self.yuko + self.waza_ari * 2 + self.ippon * 3

    @property
    def disqualified(self) -> bool:
        return self.hansoku > 0

    class Config:
        frozen = True


class MatchParticipant(BaseModel):
    """One side of a Kumite match"""

    participant_id: str = Field(..., min_length=1)
    competitor_id: str = Field(..., min_length=1, description="Player or team id")
    competitor_name: str = Field(default="")
    dojo_name: Optional[str] = None
    result: Optional[ParticipantResult] = None
    score: Optional[KumiteScore] = None

    @property
    def label(self) -> str:
        return self.competitor_name or self.competitor_id

    class Config:
        frozen = True


class Match(BaseModel):
    """Kumite match at one level"""

    match_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    match_name: str = Field(default="")
    level: KumiteLevel = Field(..., description="Preliminary / Quarterfinal / Semifinal / Final / Bronze")
    match_order: int = Field(..., ge=1, description="Schedule order within the level")
    participants: List[MatchParticipant] = Field(default_factory=list, max_length=2)
    status: EntityStatus = Field(default=EntityStatus.SCHEDULED)
    winner_id: Optional[str] = Field(None, description="Winning competitor (or participant) id")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return normalize_round_name(v)
        return v

    @model_validator(mode="after")
    def validate_winner_status(self) -> "Match":
        if self.winner_id is not None and self.status != EntityStatus.COMPLETED:
            raise ValueError(
                f"Match {self.match_id} has a winner but status is {self.status.value}"
            )
        return self

    @property
    def entity_id(self) -> str:
        return self.match_id

    @property
    def label(self) -> str:
        if self.match_name:
            return self.match_name
        names = [p.label for p in self.participants]
        return " vs ".join(names) if names else self.match_id

    @property
    def is_bye(self) -> bool:
        return len(self.participants) == 1

    @property
    def is_completed(self) -> bool:
        return self.status == EntityStatus.COMPLETED

    @property
    def is_terminal(self) -> bool:
        return self.is_completed or self.is_bye

    @property
    def ranking_score(self) -> Optional[float]:
        # Matches carry no comparable score: terminal ones rank by schedule order
        return 0.0 if self.is_terminal else None

    @property
    def ranking_order(self) -> int:
        return self.match_order

    def resolve_winner(self) -> Optional[MatchParticipant]:
        """
        Winning participant.

        None while the match is still pending. Raises UnresolvedWinnerError when
        the match is terminal but winner_id / results do not point at exactly
        one participant.
        """
        if not self.is_terminal:
            return None

        by_id = [
            p for p in self.participants
            if self.winner_id is not None and self.winner_id in (p.competitor_id, p.participant_id)
        ]
        by_result = [p for p in self.participants if p.result == ParticipantResult.WIN]

        if self.winner_id is not None:
            if len(by_id) != 1:
                raise UnresolvedWinnerError(
                    f"Winner {self.winner_id} is not a participant of match {self.match_id}",
                    entity_id=self.match_id,
                )
            if by_result and by_result != by_id:
                raise UnresolvedWinnerError(
                    f"Match {self.match_id}: winner_id and participant results disagree",
                    entity_id=self.match_id,
                )
            return by_id[0]

        if self.is_bye:
            return self.participants[0]

        if len(by_result) == 1:
            return by_result[0]

        raise UnresolvedWinnerError(
            f"Completed match {self.match_id} has no resolvable winner",
            entity_id=self.match_id,
        )

    def resolve_loser(self) -> Optional[MatchParticipant]:
        """Losing participant (None for byes and pending matches)"""
        winner = self.resolve_winner()
        if winner is None or self.is_bye:
            return None
        others = [p for p in self.participants if p.participant_id != winner.participant_id]
        return others[0] if others else None

    class Config:
        frozen = True


ScoredEntity = Union[Performance, Match]


# ==================== Snapshot container ====================

class CategorySnapshot(BaseModel):
    """Everything the engine needs for one category at one point in time"""

    category: Category
    performances: List[Performance] = Field(default_factory=list)
    matches: List[Match] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_discipline(self) -> "CategorySnapshot":
        category_id = self.category.category_id
        if self.category.discipline == Discipline.KATA and self.matches:
            raise ValueError(f"Kata category {category_id} cannot hold matches")
        if self.category.discipline == Discipline.KUMITE and self.performances:
            raise ValueError(f"Kumite category {category_id} cannot hold performances")

        foreign = [
            e.entity_id for e in (*self.performances, *self.matches)
            if e.category_id != category_id
        ]
        if foreign:
            raise ValueError(f"Entities from another category: {', '.join(foreign)}")
        return self

    @property
    def discipline(self) -> Discipline:
        return self.category.discipline

    def performances_in(self, round_: KataRound) -> List[Performance]:
        return sorted(
            (p for p in self.performances if p.round == round_),
            key=lambda p: (p.performance_order, p.performance_id),
        )

    def matches_in(self, level: KumiteLevel) -> List[Match]:
        return sorted(
            (m for m in self.matches if m.level == level),
            key=lambda m: (m.match_order, m.match_id),
        )

    def entities_in(self, round_: Round) -> List[ScoredEntity]:
        if isinstance(round_, KataRound):
            return list(self.performances_in(round_))
        return list(self.matches_in(round_))

    class Config:
        frozen = True

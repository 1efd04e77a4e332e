"""
Report schemas

A ReportDocument is derived from a category's rounds and carries no
generation time: the same rounds always serialize to the same JSON.
"""
import json
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReportEntry(BaseModel):
    """One ranked line of a round"""

    position: int = Field(..., ge=1)
    entity_id: str
    label: str
    competitor_ids: List[str] = Field(default_factory=list)
    score: Optional[float] = None
    order: int
    place: Optional[int] = None
    status: str
    winner_id: Optional[str] = None

    class Config:
        frozen = True


class AdvancedEntry(BaseModel):
    """Competitor moving on to the next round"""

    competitor_id: str
    label: str
    from_entity_id: str

    class Config:
        frozen = True


class ExcludedEntry(BaseModel):
    """Entity left out of a round's computation"""

    entity_id: str
    reason: str
    error_type: str

    class Config:
        frozen = True


class RoundReport(BaseModel):
    """Results of one round / level"""

    round_name: str
    round_order: int
    closed: bool = False
    results: List[ReportEntry] = Field(default_factory=list)
    advanced: List[AdvancedEntry] = Field(default_factory=list)
    excluded: List[ExcludedEntry] = Field(default_factory=list)

    class Config:
        frozen = True


class FinalRanking(BaseModel):
    """Medal place"""

    place: int = Field(..., ge=1, le=3)
    entity_ref: str             # competitor id
    label: str
    medal: str                  # Gold / Silver / Bronze

    class Config:
        frozen = True


class ReportDocument(BaseModel):
    """Category report"""

    category_id: str
    category_name: str
    category_type: str
    tournament_name: Optional[str] = None
    rounds: List[RoundReport] = Field(default_factory=list)
    final_rankings: Optional[List[FinalRanking]] = None

    class Config:
        frozen = True

    @property
    def is_final(self) -> bool:
        return self.final_rankings is not None

    def competitor_ids(self) -> List[str]:
        """Every competitor appearing anywhere in the report"""
        seen = []
        for round_report in self.rounds:
            for entry in round_report.results:
                for competitor_id in entry.competitor_ids:
                    if competitor_id not in seen:
                        seen.append(competitor_id)
        return seen

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Deterministic JSON (stable key order)"""
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False, indent=indent, sort_keys=True)


class StoredReport(BaseModel):
    """Report as persisted by a ReportStore"""

    report: ReportDocument
    generated_at: datetime = Field(default_factory=datetime.now)
    is_published: bool = False
    published_at: Optional[datetime] = None

    @property
    def category_id(self) -> str:
        return self.report.category_id

"""
Collaborators of the progression engine

The engine never fetches snapshots, draws brackets or persists reports
itself; hosts plug these in.
"""
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, runtime_checkable

from tournament.models import Category, CategorySnapshot, ScoredEntity
from tournament.rounds import Round

if TYPE_CHECKING:
    from reports.schemas import ReportDocument, StoredReport


@runtime_checkable
class SnapshotSource(Protocol):
    """Supplies the current state of a category"""

    def fetch_snapshot(self, category_id: str) -> CategorySnapshot:
        ...


@runtime_checkable
class DrawGenerator(Protocol):
    """
    Creates the entities of a level from the competitors feeding it:
    the advancing ones for the next level, the Semifinal losers for Bronze.
    """

    def generate(self, category: Category, level: Round, advancing: Sequence[object]) -> List[ScoredEntity]:
        ...


@runtime_checkable
class ReportStore(Protocol):
    """Persists the latest report per category (whole replace)"""

    def save(self, report: "ReportDocument") -> "StoredReport":
        ...

    def get(self, category_id: str) -> Optional["StoredReport"]:
        ...

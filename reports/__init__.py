"""
Reports package

Category report schemas, assembly and storage.
"""
from .schemas import (
    ReportEntry,
    AdvancedEntry,
    ExcludedEntry,
    RoundReport,
    FinalRanking,
    ReportDocument,
    StoredReport,
)
from .assembler import build_report, build_report_from_snapshot, find_competitor_reports
from .store import InMemoryReportStore, JsonFileReportStore, JsonSnapshotSource

__all__ = [
    "ReportEntry",
    "AdvancedEntry",
    "ExcludedEntry",
    "RoundReport",
    "FinalRanking",
    "ReportDocument",
    "StoredReport",
    "build_report",
    "build_report_from_snapshot",
    "find_competitor_reports",
    "InMemoryReportStore",
    "JsonFileReportStore",
    "JsonSnapshotSource",
]

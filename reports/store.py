"""
Report stores and snapshot sources

Reports are upserted per category: saving replaces the previous report
whole, the last writer wins.
"""
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger

from tournament.errors import CallerMisuseError
from tournament.models import CategorySnapshot

from .schemas import ReportDocument, StoredReport


def _check_category_id(category_id: str) -> str:
    if not category_id or os.sep in category_id or "/" in category_id or category_id in (".", ".."):
        raise CallerMisuseError(f"Invalid category id for file storage: {category_id!r}")
    return category_id


class InMemoryReportStore:
    """Report store kept in a dict"""

    def __init__(self):
        self._reports: Dict[str, StoredReport] = {}

    def save(self, report: ReportDocument) -> StoredReport:
        previous = self._reports.get(report.category_id)
        stored = StoredReport(
            report=report,
            is_published=previous.is_published if previous else False,
            published_at=previous.published_at if previous else None,
        )
        self._reports[report.category_id] = stored
        return stored

    def get(self, category_id: str) -> Optional[StoredReport]:
        return self._reports.get(category_id)

    def publish(self, category_id: str) -> Optional[StoredReport]:
        stored = self._reports.get(category_id)
        if stored is None:
            return None
        stored = stored.model_copy(update={"is_published": True, "published_at": datetime.now()})
        self._reports[category_id] = stored
        return stored

    def all(self) -> List[StoredReport]:
        return [self._reports[k] for k in sorted(self._reports)]


class JsonFileReportStore:
    """
    One JSON file per category under `directory`.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so readers never see a half-written report.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, category_id: str) -> Path:
        return self.directory / f"{_check_category_id(category_id)}.json"

    def _write(self, stored: StoredReport) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(stored.category_id)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(stored.model_dump_json(indent=2))
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def save(self, report: ReportDocument) -> StoredReport:
        previous = self.get(report.category_id)
        stored = StoredReport(
            report=report,
            is_published=previous.is_published if previous else False,
            published_at=previous.published_at if previous else None,
        )
        self._write(stored)
        logger.debug(f"Report saved: {self._path(report.category_id)}")
        return stored

    def get(self, category_id: str) -> Optional[StoredReport]:
        path = self._path(category_id)
        if not path.exists():
            return None
        return StoredReport.model_validate_json(path.read_text(encoding="utf-8"))

    def publish(self, category_id: str) -> Optional[StoredReport]:
        stored = self.get(category_id)
        if stored is None:
            return None
        stored = stored.model_copy(update={"is_published": True, "published_at": datetime.now()})
        self._write(stored)
        return stored

    def all(self) -> List[StoredReport]:
        if not self.directory.exists():
            return []
        return [
            StoredReport.model_validate_json(p.read_text(encoding="utf-8"))
            for p in sorted(self.directory.glob("*.json"))
        ]


class JsonSnapshotSource:
    """
    Snapshots read from JSON files.

    `path` is either one snapshot file or a directory of `<category_id>.json`
    files. Files are re-read on every fetch.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def fetch_snapshot(self, category_id: str) -> CategorySnapshot:
        if self.path.is_dir():
            file_path = self.path / f"{_check_category_id(category_id)}.json"
        else:
            file_path = self.path

        snapshot = CategorySnapshot.model_validate_json(file_path.read_text(encoding="utf-8"))
        if snapshot.category.category_id != category_id:
            raise KeyError(f"{file_path} holds category {snapshot.category.category_id}, not {category_id}")
        return snapshot

    def category_ids(self) -> List[str]:
        """Categories available from this source"""
        if self.path.is_dir():
            return sorted(p.stem for p in self.path.glob("*.json"))
        snapshot = CategorySnapshot.model_validate_json(self.path.read_text(encoding="utf-8"))
        return [snapshot.category.category_id]

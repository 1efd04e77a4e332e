"""
Progression service

One refresh of a category:
1. fetch the snapshot
2. recompute Kata final scores
3. draw the next level when the engine authorizes it
4. rebuild the report and store it when it changed
5. publish events for what happened
"""
from typing import Dict, Iterable, Optional, Set, Tuple

from loguru import logger
from pydantic import ValidationError

from reports.assembler import build_report_from_snapshot
from reports.schemas import StoredReport
from scoring.aggregator import finalize_snapshot_scores
from tournament.config import ProgressionConfig, progression_config
from tournament.errors import TournamentError
from tournament.models import CategorySnapshot, Match, Performance, ScoredEntity

from .engine import AdvancementResult, BracketProgressionEngine
from .events import EventPublisher, EventType, ProgressionEvent, get_event_publisher
from .interfaces import DrawGenerator, ReportStore, SnapshotSource


def with_entities(snapshot: CategorySnapshot, entities: Iterable[ScoredEntity]) -> CategorySnapshot:
    """Snapshot plus newly drawn entities"""
    entities = list(entities)
    return CategorySnapshot(
        category=snapshot.category,
        performances=list(snapshot.performances) + [e for e in entities if isinstance(e, Performance)],
        matches=list(snapshot.matches) + [e for e in entities if isinstance(e, Match)],
    )


class ProgressionService:
    """Keeps category reports and brackets moving"""

    def __init__(
        self,
        source: SnapshotSource,
        store: ReportStore,
        draw_generator: Optional[DrawGenerator] = None,
        publisher: Optional[EventPublisher] = None,
        config: Optional[ProgressionConfig] = None,
    ):
        self.source = source
        self.store = store
        self.draw_generator = draw_generator
        self.publisher = publisher or get_event_publisher()
        self.config = config or progression_config
        self._announced: Set[Tuple[str, str]] = set()

    # ==================== Steps ====================

    def finalize_scores(self, snapshot: CategorySnapshot) -> CategorySnapshot:
        """Snapshot with every Kata final score recomputed from its judge scores"""
        return finalize_snapshot_scores(snapshot)

    def _announce_closed(self, category_id: str, level_name: str) -> None:
        key = (category_id, level_name)
        if key in self._announced:
            return
        self._announced.add(key)
        self.publisher.publish(ProgressionEvent(
            event_type=EventType.LEVEL_CLOSED,
            category_id=category_id,
            level=level_name,
        ))

    def _forget(self, category_id: str) -> None:
        """Drop a finished category's announcements; nothing can close there any more"""
        self._announced = {key for key in self._announced if key[0] != category_id}

    def advance(self, snapshot: CategorySnapshot) -> Optional[AdvancementResult]:
        """Draw the next level if authorized"""
        engine = BracketProgressionEngine.for_category(snapshot.category, self.config)
        category_id = snapshot.category.category_id

        if self.draw_generator is None:
            plan = engine.advancement_plan(snapshot)
            if plan is not None:
                self._announce_closed(category_id, plan.level.value)
            return None

        result = engine.advance(snapshot, self.draw_generator)
        if result is None:
            return None

        plan = result.plan
        self._announce_closed(category_id, plan.level.value)
        self.publisher.publish(ProgressionEvent(
            event_type=EventType.ROUND_ADVANCED,
            category_id=category_id,
            level=plan.next_level.value,
            data={
                "from_level": plan.level.value,
                "advancing": plan.advancing_ids,
                "bronze_feed": [p.competitor_id for p in plan.bronze_feed],
                "new_entities": [e.entity_id for e in result.entities],
            },
        ))

        return result

    # ==================== Refresh ====================

    def refresh(self, category_id: str) -> StoredReport:
        """
        Bring one category up to date.

        Raises:
            TournamentError: caller misuse (e.g. discipline mismatch)
            ValidationError: malformed snapshot
        """
        snapshot = self.source.fetch_snapshot(category_id)
        result = self.advance(self.finalize_scores(snapshot))
        if result is not None:
            snapshot = with_entities(snapshot, result.entities)

        report = build_report_from_snapshot(snapshot, self.config)
        if report.is_final:
            self._forget(category_id)

        previous = self.store.get(category_id)
        if previous is not None and previous.report.to_json() == report.to_json():
            logger.debug(f"{category_id}: report unchanged")
            return previous

        stored = self.store.save(report)
        logger.info(f"📝 Report regenerated: {category_id} ({len(report.rounds)} rounds)")

        for round_report in report.rounds:
            for excluded in round_report.excluded:
                self.publisher.publish(ProgressionEvent(
                    event_type=EventType.ENTITY_EXCLUDED,
                    category_id=category_id,
                    level=round_report.round_name,
                    data=excluded.model_dump(),
                ))
        self.publisher.publish(ProgressionEvent(
            event_type=EventType.REPORT_REGENERATED,
            category_id=category_id,
            data={"is_final": report.is_final},
        ))
        return stored

    def refresh_all(self, category_ids: Iterable[str]) -> Dict[str, Optional[StoredReport]]:
        """Refresh several categories; a failing category never stops the others"""
        results: Dict[str, Optional[StoredReport]] = {}
        for category_id in category_ids:
            try:
                results[category_id] = self.refresh(category_id)
            except (TournamentError, ValidationError, OSError, KeyError) as e:
                logger.error(f"❌ Refresh failed for {category_id}: {e}")
                self.publisher.publish(ProgressionEvent(
                    event_type=EventType.REFRESH_FAILED,
                    category_id=category_id,
                    data={"error": str(e), "error_type": type(e).__name__},
                ))
                results[category_id] = None
        return results


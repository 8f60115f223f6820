"""Application state container.

Owns the in-memory collections, writes through the record store and
re-runs the statistics engine after every study record mutation.
"""

from collections.abc import Callable
from datetime import date

import structlog

from study_tracker.models.stats import StudyStats
from study_tracker.models.study import (
    DEFAULT_SUBJECT,
    KeyPoint,
    KeyPointDraft,
    Mistake,
    MistakeDraft,
    StudyRecord,
    StudyRecordDraft,
)
from study_tracker.stats.engine import compute_stats
from study_tracker.storage.record_store import EntityKind, RecordStore, StorageError

logger = structlog.get_logger()


class StudyTracker:
    """Single owner of study records, mistakes, key points and stats.

    Mutations run one at a time: persist, apply to memory, then recompute.

    Args:
        store: Persistence for entities and the stats cache.
        today: Returns the current calendar day.
        default_subject: Subject for records created by toggling a day.
    """

    def __init__(
        self,
        store: RecordStore,
        today: Callable[[], date] = date.today,
        default_subject: str = DEFAULT_SUBJECT,
    ):
        self.store = store
        self.today = today
        self.default_subject = default_subject

        self.study_records: list[StudyRecord] = []
        self.mistakes: list[Mistake] = []
        self.key_points: list[KeyPoint] = []
        self.stats = StudyStats()
        self.is_loading = True

    def load_data(self) -> None:
        """Load all collections, falling back to empty state on failure."""
        self.is_loading = True
        try:
            study_records = self.store.load_all(EntityKind.STUDY_RECORDS)
            mistakes = self.store.load_all(EntityKind.MISTAKES)
            key_points = self.store.load_all(EntityKind.KEY_POINTS)
        except StorageError as e:
            logger.error("data_load_failed", error=str(e))
            study_records, mistakes, key_points = [], [], []

        # Stats are only a cache and are recomputed below
        try:
            stats = self.store.load_stats()
        except StorageError as e:
            logger.warning("stats_cache_load_failed", error=str(e))
            stats = StudyStats()

        self.study_records = study_records
        self.mistakes = mistakes
        self.key_points = key_points
        self.stats = stats
        try:
            self.calculate_stats()
        finally:
            self.is_loading = False
        logger.info(
            "data_loaded",
            study_records=len(self.study_records),
            mistakes=len(self.mistakes),
            key_points=len(self.key_points),
        )

    # Study records

    def get_study_record(self, record_id: str) -> StudyRecord | None:
        return next((r for r in self.study_records if r.id == record_id), None)

    def add_study_record(self, draft: StudyRecordDraft) -> StudyRecord:
        record = self.store.upsert(EntityKind.STUDY_RECORDS, StudyRecord.from_draft(draft))
        self.study_records = [*self.study_records, record]
        logger.info("study_record_added", record_id=record.id, date=str(record.date))
        self.calculate_stats()
        return record

    def update_study_record(self, record: StudyRecord) -> StudyRecord:
        stored = self.store.upsert(EntityKind.STUDY_RECORDS, record)
        self.study_records = _replace(self.study_records, stored)
        logger.info("study_record_updated", record_id=stored.id)
        self.calculate_stats()
        return stored

    def delete_study_record(self, record_id: str) -> bool:
        deleted = self.store.delete(EntityKind.STUDY_RECORDS, record_id)
        self.study_records = [r for r in self.study_records if r.id != record_id]
        logger.info("study_record_deleted", record_id=record_id, found=deleted)
        self.calculate_stats()
        return deleted

    def toggle_study_completion(self, day: date) -> StudyRecord:
        """Flip the first record of day, or create a completed one."""
        existing = next((r for r in self.study_records if r.date == day), None)
        if existing is not None:
            return self.update_study_record(
                existing.model_copy(update={"is_completed": not existing.is_completed})
            )
        return self.add_study_record(
            StudyRecordDraft(date=day, subject=self.default_subject, tags=[], is_completed=True)
        )

    def calculate_stats(self) -> StudyStats:
        """Recompute stats from the in-memory records and cache them."""
        stats = compute_stats(self.study_records, self.today())
        self.stats = stats
        logger.debug(
            "stats_recalculated",
            total_days=stats.total_days,
            current_streak=stats.current_streak,
            longest_streak=stats.longest_streak,
        )
        try:
            self.store.save_stats(stats)
        except StorageError as e:
            logger.warning("stats_persist_failed", error=str(e))
        return stats

    # Mistakes

    def get_mistake(self, mistake_id: str) -> Mistake | None:
        return next((m for m in self.mistakes if m.id == mistake_id), None)

    def add_mistake(self, draft: MistakeDraft) -> Mistake:
        mistake = self.store.upsert(EntityKind.MISTAKES, Mistake.from_draft(draft))
        self.mistakes = [*self.mistakes, mistake]
        logger.info("mistake_added", mistake_id=mistake.id)
        return mistake

    def update_mistake(self, mistake: Mistake) -> Mistake:
        stored = self.store.upsert(EntityKind.MISTAKES, mistake)
        self.mistakes = _replace(self.mistakes, stored)
        return stored

    def delete_mistake(self, mistake_id: str) -> bool:
        deleted = self.store.delete(EntityKind.MISTAKES, mistake_id)
        self.mistakes = [m for m in self.mistakes if m.id != mistake_id]
        return deleted

    def toggle_mistake_mastery(self, mistake_id: str) -> Mistake | None:
        mistake = self.get_mistake(mistake_id)
        if mistake is None:
            return None
        return self.update_mistake(
            mistake.model_copy(update={"is_mastered": not mistake.is_mastered})
        )

    # Key points

    def get_key_point(self, key_point_id: str) -> KeyPoint | None:
        return next((k for k in self.key_points if k.id == key_point_id), None)

    def add_key_point(self, draft: KeyPointDraft) -> KeyPoint:
        key_point = self.store.upsert(EntityKind.KEY_POINTS, KeyPoint.from_draft(draft))
        self.key_points = [*self.key_points, key_point]
        logger.info("key_point_added", key_point_id=key_point.id)
        return key_point

    def update_key_point(self, key_point: KeyPoint) -> KeyPoint:
        stored = self.store.upsert(EntityKind.KEY_POINTS, key_point)
        self.key_points = _replace(self.key_points, stored)
        return stored

    def delete_key_point(self, key_point_id: str) -> bool:
        deleted = self.store.delete(EntityKind.KEY_POINTS, key_point_id)
        self.key_points = [k for k in self.key_points if k.id != key_point_id]
        return deleted

    # Whole store

    def clear_all(self) -> None:
        self.store.clear_all()
        self.study_records = []
        self.mistakes = []
        self.key_points = []
        self.stats = StudyStats()

    def export_data(self) -> str:
        return self.store.export_data()


def _replace(entities: list, updated) -> list:
    """Swap in updated by id, appending it if it was not held in memory."""
    if not any(e.id == updated.id for e in entities):
        return [*entities, updated]
    return [updated if e.id == updated.id else e for e in entities]

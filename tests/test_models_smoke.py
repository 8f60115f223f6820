"""Smoke tests for Pydantic models."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from study_tracker.models.stats import CalendarDay, StudyStats
from study_tracker.models.study import (
    ErrorReason,
    KeyPoint,
    KeyPointDraft,
    Mistake,
    MistakeDraft,
    StudyRecord,
    StudyRecordDraft,
)


class TestStudyRecord:
    def test_instantiation(self):
        record = StudyRecord(date="2024-01-04", subject="Math")
        assert record.date == date(2024, 1, 4)
        assert record.subject == "Math"
        assert record.duration is None
        assert record.content is None
        assert record.tags == []
        assert record.is_completed is True
        assert isinstance(record.created_at, datetime)
        assert record.id

    def test_ids_are_unique(self):
        a = StudyRecord(date="2024-01-04", subject="Math")
        b = StudyRecord(date="2024-01-04", subject="Math")
        assert a.id != b.id

    def test_date_serializes_as_iso(self):
        record = StudyRecord(date=date(2024, 1, 4), subject="Math")
        assert record.model_dump(mode="json")["date"] == "2024-01-04"

    @pytest.mark.parametrize("bad", ["2024/01/04", "2024-1-4", "20240104", "yesterday"])
    def test_malformed_date_rejected(self, bad):
        with pytest.raises(ValidationError):
            StudyRecord(date=bad, subject="Math")

    def test_impossible_date_rejected(self):
        with pytest.raises(ValidationError):
            StudyRecord(date="2024-02-30", subject="Math")

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            StudyRecord(date="2024-01-04", subject="Math", duration=-5)

    def test_from_draft_copies_fields(self):
        draft = StudyRecordDraft(
            date="2024-01-04", subject="Math", duration=30, content="limits", tags=["calc"]
        )
        record = StudyRecord.from_draft(draft)
        assert record.date == date(2024, 1, 4)
        assert record.duration == 30
        assert record.content == "limits"
        assert record.tags == ["calc"]


class TestMistake:
    def test_defaults(self):
        mistake = Mistake.from_draft(
            MistakeDraft(date="2024-01-04", content="sign error", subject="Math")
        )
        assert mistake.error_reason == ErrorReason.OTHER
        assert mistake.importance == 3
        assert mistake.is_mastered is False
        assert mistake.images == []

    def test_free_text_error_reason(self):
        mistake = Mistake(
            date="2024-01-04", content="x", subject="Math", error_reason="misread the question"
        )
        assert mistake.error_reason == "misread the question"

    @pytest.mark.parametrize("importance", [0, 6])
    def test_importance_bounds(self, importance):
        with pytest.raises(ValidationError):
            MistakeDraft(date="2024-01-04", content="x", subject="Math", importance=importance)


class TestKeyPoint:
    def test_instantiation(self):
        point = KeyPoint.from_draft(
            KeyPointDraft(date="2024-01-04", content="chain rule", tags=["calc"])
        )
        assert point.tags == ["calc"]
        assert point.voice_note is None


class TestStudyStats:
    def test_default_is_zero(self):
        stats = StudyStats()
        assert stats.total_days == 0
        assert stats.current_streak == 0
        assert stats.longest_streak == 0
        assert stats.total_hours == 0.0
        assert stats.subject_distribution == {}

    def test_ranked_subjects(self):
        stats = StudyStats(subject_distribution={"Art": 1.0, "Math": 3.5, "Bio": 1.0})
        assert stats.ranked_subjects() == [("Math", 3.5), ("Art", 1.0), ("Bio", 1.0)]

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            StudyStats(total_days=-1)


class TestCalendarDay:
    def test_defaults(self):
        day = CalendarDay(date=date(2024, 1, 4))
        assert day.is_studied is False
        assert day.duration is None
        assert day.is_today is False

"""Filtering and ordering helpers for list views."""

from datetime import date
from enum import StrEnum

from study_tracker.models.study import KeyPoint, Mistake, StudyRecord, Tag


class MasteryFilter(StrEnum):
    ALL = "all"
    MASTERED = "mastered"
    UNMASTERED = "unmastered"


def records_on(records: list[StudyRecord], day: date) -> list[StudyRecord]:
    return [r for r in records if r.date == day]


def filter_mistakes(
    mistakes: list[Mistake], mastery: MasteryFilter = MasteryFilter.ALL
) -> list[Mistake]:
    """Filter mistakes by mastery status, newest first."""
    if mastery == MasteryFilter.MASTERED:
        selected = [m for m in mistakes if m.is_mastered]
    elif mastery == MasteryFilter.UNMASTERED:
        selected = [m for m in mistakes if not m.is_mastered]
    else:
        selected = list(mistakes)
    return sorted(selected, key=lambda m: m.date, reverse=True)


def filter_key_points(key_points: list[KeyPoint], tag: Tag | None = None) -> list[KeyPoint]:
    """Filter key points carrying tag (all when tag is None), newest first."""
    selected = key_points if tag is None else [k for k in key_points if tag in k.tags]
    return sorted(selected, key=lambda k: k.date, reverse=True)


def all_tags(key_points: list[KeyPoint]) -> list[Tag]:
    """Distinct key point tags in first-seen order."""
    return list(dict.fromkeys(tag for point in key_points for tag in point.tags))


def mastered_count(mistakes: list[Mistake]) -> int:
    return sum(1 for m in mistakes if m.is_mastered)

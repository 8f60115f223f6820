"""Statistics engine: derives StudyStats from raw study records.

This is a pure computation module with no I/O and no clock access;
callers pass ``today`` explicitly.
"""

import math
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from study_tracker.models.stats import StudyStats
from study_tracker.models.study import StudyRecord


def compute_stats(records: Iterable[StudyRecord], today: date) -> StudyStats:
    """Compute a statistics snapshot from the full record collection.

    Args:
        records: All study records, in any order. Dates may repeat.
        today: The calendar day the current streak is measured against.

    Returns:
        A fresh StudyStats. Only completed records are counted.
    """
    completed = [r for r in records if r.is_completed]
    if not completed:
        return StudyStats()

    days = sorted({r.date for r in completed})
    longest_streak, current_streak = _compute_streaks(days, today)

    # fsum is exactly rounded, so the totals do not depend on input order
    total_hours = math.fsum((r.duration or 0) / 60 for r in completed)

    hours_by_subject: dict[str, list[float]] = defaultdict(list)
    for record in completed:
        if record.subject and record.duration:
            hours_by_subject[record.subject].append(record.duration / 60)

    return StudyStats(
        total_days=len(days),
        current_streak=current_streak,
        longest_streak=longest_streak,
        total_hours=total_hours,
        subject_distribution={
            subject: math.fsum(hours) for subject, hours in hours_by_subject.items()
        },
    )


def _compute_streaks(days: list[date], today: date) -> tuple[int, int]:
    """Return (longest, current) streaks for sorted, distinct study days."""
    longest = 0
    run = 1
    for previous, current in zip(days, days[1:]):
        if (current - previous).days == 1:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
    longest = max(longest, run)

    if days[-1] == today:
        return longest, run

    # No study today: a gap of one day and a longer lapse both reset to 0.
    return longest, 0

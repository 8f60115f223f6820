"""Month calendar of studied days."""

import calendar
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from study_tracker.models.stats import CalendarDay
from study_tracker.models.study import StudyRecord

# Weeks start on Sunday
_CALENDAR = calendar.Calendar(firstweekday=calendar.SUNDAY)


def build_month(
    records: Iterable[StudyRecord],
    year: int,
    month: int,
    today: date,
) -> list[list[CalendarDay | None]]:
    """Build the week rows for one month.

    Cells belonging to the neighbouring months are None.

    Raises:
        ValueError: If month is not within 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be within 1-12, got {month}")

    studied: set[date] = set()
    minutes: dict[date, float] = defaultdict(float)
    for record in records:
        if not record.is_completed:
            continue
        studied.add(record.date)
        if record.duration is not None:
            minutes[record.date] += record.duration

    weeks = []
    for week in _CALENDAR.monthdatescalendar(year, month):
        row: list[CalendarDay | None] = []
        for day in week:
            if day.month != month:
                row.append(None)
                continue
            row.append(
                CalendarDay(
                    date=day,
                    is_studied=day in studied,
                    duration=minutes.get(day),
                    is_today=day == today,
                )
            )
        weeks.append(row)
    return weeks

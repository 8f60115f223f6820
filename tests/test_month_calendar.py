"""Tests for the month calendar builder."""

from datetime import date

import pytest

from study_tracker.models.study import StudyRecord
from study_tracker.stats.month_calendar import build_month


def in_month(weeks):
    return [cell for week in weeks for cell in week if cell is not None]


class TestBuildMonth:
    def test_layout_sunday_first(self):
        # January 2024 starts on a Monday
        weeks = build_month([], 2024, 1, today=date(2024, 1, 15))
        assert all(len(week) == 7 for week in weeks)
        assert weeks[0][0] is None
        assert weeks[0][1].date == date(2024, 1, 1)
        assert len(in_month(weeks)) == 31

    def test_studied_days_and_duration(self):
        records = [
            StudyRecord(date="2024-01-03", subject="Math", duration=30),
            StudyRecord(date="2024-01-03", subject="Art", duration=45),
            StudyRecord(date="2024-01-05", subject="Math"),
            StudyRecord(date="2024-01-07", subject="Math", duration=60, is_completed=False),
        ]
        days = {cell.date: cell for cell in in_month(build_month(records, 2024, 1, date(2024, 1, 5)))}

        assert days[date(2024, 1, 3)].is_studied is True
        assert days[date(2024, 1, 3)].duration == 75
        assert days[date(2024, 1, 5)].is_studied is True
        assert days[date(2024, 1, 5)].duration is None
        assert days[date(2024, 1, 7)].is_studied is False
        assert days[date(2024, 1, 7)].duration is None

    def test_marks_today(self):
        weeks = build_month([], 2024, 1, today=date(2024, 1, 5))
        today_cells = [cell for cell in in_month(weeks) if cell.is_today]
        assert [cell.date for cell in today_cells] == [date(2024, 1, 5)]

    def test_other_month_records_ignored(self):
        records = [StudyRecord(date="2024-02-01", subject="Math", duration=30)]
        weeks = build_month(records, 2024, 1, today=date(2024, 1, 5))
        assert not any(cell.is_studied for cell in in_month(weeks))

    def test_leap_february(self):
        assert len(in_month(build_month([], 2024, 2, today=date(2024, 2, 1)))) == 29

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_month(self, month):
        with pytest.raises(ValueError):
            build_month([], 2024, month, today=date(2024, 1, 1))

"""Derived statistics and calendar models."""

from datetime import date

from pydantic import BaseModel, Field


class StudyStats(BaseModel):
    """Aggregate snapshot derived from completed study records.

    Always re-derivable from the records; a persisted copy is only a cache.
    """

    total_days: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    total_hours: float = Field(default=0.0, ge=0)
    subject_distribution: dict[str, float] = Field(default_factory=dict)

    def ranked_subjects(self) -> list[tuple[str, float]]:
        """Subjects ordered by studied hours, largest first."""
        return sorted(
            self.subject_distribution.items(), key=lambda item: (-item[1], item[0])
        )


class CalendarDay(BaseModel):
    """One in-month cell of the study calendar."""

    date: date
    is_studied: bool = False
    duration: float | None = None  # completed minutes that day
    is_today: bool = False

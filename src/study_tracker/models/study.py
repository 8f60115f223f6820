"""Study record, mistake and key point models."""

import re
import uuid
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

Tag = str

DEFAULT_SUBJECT = "Unclassified"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _new_id() -> str:
    return uuid.uuid4().hex


def _parse_calendar_date(value: object) -> object:
    """Accept only YYYY-MM-DD strings so stored dates sort lexically."""
    if isinstance(value, str):
        if not _DATE_PATTERN.match(value):
            raise ValueError(f"date must be YYYY-MM-DD, got {value!r}")
        return date.fromisoformat(value)
    return value


class ErrorReason(StrEnum):
    """Why a mistake was made."""

    CONCEPT = "concept_unclear"
    CALCULATION = "calculation_error"
    CARELESS = "careless"
    STRATEGY = "wrong_strategy"
    OTHER = "other"


class StudyRecordDraft(BaseModel):
    """User-authored fields of a study record."""

    date: date
    subject: str
    duration: float | None = Field(default=None, ge=0)  # minutes
    content: str | None = None
    tags: list[Tag] = Field(default_factory=list)
    is_completed: bool = True

    check_date = field_validator("date", mode="before")(_parse_calendar_date)


class StudyRecord(StudyRecordDraft):
    """A logged study session for one subject on one day."""

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_draft(cls, draft: StudyRecordDraft) -> "StudyRecord":
        return cls(**draft.model_dump())


class MistakeDraft(BaseModel):
    """User-authored fields of a mistake."""

    date: date
    content: str
    subject: Tag
    error_reason: ErrorReason | str = ErrorReason.OTHER
    importance: int = Field(default=3, ge=1, le=5)
    images: list[str] = Field(default_factory=list)
    is_mastered: bool = False

    check_date = field_validator("date", mode="before")(_parse_calendar_date)


class Mistake(MistakeDraft):
    """A mistake worth reviewing later."""

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_draft(cls, draft: MistakeDraft) -> "Mistake":
        return cls(**draft.model_dump())


class KeyPointDraft(BaseModel):
    """User-authored fields of a key point."""

    date: date
    content: str
    tags: list[Tag] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    voice_note: str | None = None

    check_date = field_validator("date", mode="before")(_parse_calendar_date)


class KeyPoint(KeyPointDraft):
    """A takeaway noted during study."""

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_draft(cls, draft: KeyPointDraft) -> "KeyPoint":
        return cls(**draft.model_dump())

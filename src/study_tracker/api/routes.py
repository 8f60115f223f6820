"""REST API routes for study records, mistakes, key points and stats."""

from datetime import date

import structlog
from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from study_tracker.models.stats import CalendarDay, StudyStats
from study_tracker.models.study import (
    KeyPoint,
    KeyPointDraft,
    Mistake,
    MistakeDraft,
    StudyRecord,
    StudyRecordDraft,
)
from study_tracker.queries import (
    MasteryFilter,
    all_tags,
    filter_key_points,
    filter_mistakes,
    mastered_count,
    records_on,
)
from study_tracker.state import StudyTracker
from study_tracker.stats.month_calendar import build_month
from study_tracker.storage.record_store import StorageError

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class ToggleRequest(BaseModel):
    day: date | None = None


class ProfileSummary(BaseModel):
    stats: StudyStats
    ranked_subjects: list[tuple[str, float]]
    mistake_count: int
    mastered_count: int
    key_point_count: int


def get_tracker(request: Request) -> StudyTracker:
    return request.app.state.tracker


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return JSONResponse({"detail": "Storage unavailable"}, status_code=503)


def _check_ids(path_id: str, body_id: str) -> None:
    if path_id != body_id:
        raise HTTPException(status_code=400, detail="Path id does not match body id")


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/stats")
async def get_stats(request: Request) -> StudyStats:
    return get_tracker(request).stats


@router.get("/profile")
async def get_profile(request: Request) -> ProfileSummary:
    """Stats with subjects ranked by hours and mistake mastery counts."""
    tracker = get_tracker(request)
    return ProfileSummary(
        stats=tracker.stats,
        ranked_subjects=tracker.stats.ranked_subjects(),
        mistake_count=len(tracker.mistakes),
        mastered_count=mastered_count(tracker.mistakes),
        key_point_count=len(tracker.key_points),
    )


@router.get("/calendar/{year}/{month}")
async def get_calendar(request: Request, year: int, month: int) -> list[list[CalendarDay | None]]:
    """Week rows for a month, Sunday first."""
    tracker = get_tracker(request)
    try:
        return build_month(tracker.study_records, year, month, tracker.today())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Study records

@router.get("/records")
async def list_records(request: Request, date: date | None = None) -> list[StudyRecord]:
    records = get_tracker(request).study_records
    return records if date is None else records_on(records, date)


@router.post("/records", status_code=201)
async def create_record(request: Request, draft: StudyRecordDraft) -> StudyRecord:
    return get_tracker(request).add_study_record(draft)


@router.post("/records/toggle")
async def toggle_record(request: Request, body: ToggleRequest) -> StudyRecord:
    """Mark a day (today by default) completed or flip its first record."""
    tracker = get_tracker(request)
    return tracker.toggle_study_completion(body.day or tracker.today())


@router.get("/records/{record_id}")
async def get_record(request: Request, record_id: str) -> StudyRecord:
    record = get_tracker(request).get_study_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Study record not found")
    return record


@router.put("/records/{record_id}")
async def update_record(request: Request, record_id: str, record: StudyRecord) -> StudyRecord:
    _check_ids(record_id, record.id)
    tracker = get_tracker(request)
    if tracker.get_study_record(record_id) is None:
        raise HTTPException(status_code=404, detail="Study record not found")
    return tracker.update_study_record(record)


@router.delete("/records/{record_id}", status_code=204)
async def delete_record(request: Request, record_id: str) -> Response:
    if not get_tracker(request).delete_study_record(record_id):
        raise HTTPException(status_code=404, detail="Study record not found")
    return Response(status_code=204)


# Mistakes

@router.get("/mistakes")
async def list_mistakes(
    request: Request, mastery: MasteryFilter = Query(default=MasteryFilter.ALL, alias="filter")
) -> list[Mistake]:
    return filter_mistakes(get_tracker(request).mistakes, mastery)


@router.post("/mistakes", status_code=201)
async def create_mistake(request: Request, draft: MistakeDraft) -> Mistake:
    return get_tracker(request).add_mistake(draft)


@router.put("/mistakes/{mistake_id}")
async def update_mistake(request: Request, mistake_id: str, mistake: Mistake) -> Mistake:
    _check_ids(mistake_id, mistake.id)
    tracker = get_tracker(request)
    if tracker.get_mistake(mistake_id) is None:
        raise HTTPException(status_code=404, detail="Mistake not found")
    return tracker.update_mistake(mistake)


@router.post("/mistakes/{mistake_id}/mastery")
async def toggle_mastery(request: Request, mistake_id: str) -> Mistake:
    mistake = get_tracker(request).toggle_mistake_mastery(mistake_id)
    if mistake is None:
        raise HTTPException(status_code=404, detail="Mistake not found")
    return mistake


@router.delete("/mistakes/{mistake_id}", status_code=204)
async def delete_mistake(request: Request, mistake_id: str) -> Response:
    if not get_tracker(request).delete_mistake(mistake_id):
        raise HTTPException(status_code=404, detail="Mistake not found")
    return Response(status_code=204)


# Key points

@router.get("/key-points")
async def list_key_points(request: Request, tag: str | None = None) -> list[KeyPoint]:
    return filter_key_points(get_tracker(request).key_points, tag)


@router.post("/key-points", status_code=201)
async def create_key_point(request: Request, draft: KeyPointDraft) -> KeyPoint:
    return get_tracker(request).add_key_point(draft)


@router.put("/key-points/{key_point_id}")
async def update_key_point(request: Request, key_point_id: str, key_point: KeyPoint) -> KeyPoint:
    _check_ids(key_point_id, key_point.id)
    tracker = get_tracker(request)
    if tracker.get_key_point(key_point_id) is None:
        raise HTTPException(status_code=404, detail="Key point not found")
    return tracker.update_key_point(key_point)


@router.delete("/key-points/{key_point_id}", status_code=204)
async def delete_key_point(request: Request, key_point_id: str) -> Response:
    if not get_tracker(request).delete_key_point(key_point_id):
        raise HTTPException(status_code=404, detail="Key point not found")
    return Response(status_code=204)


@router.get("/tags")
async def list_tags(request: Request) -> list[str]:
    return all_tags(get_tracker(request).key_points)


# Whole store

@router.get("/export")
async def export_data(request: Request) -> Response:
    return Response(content=get_tracker(request).export_data(), media_type="application/json")


@router.delete("/data", status_code=204)
async def clear_data(request: Request) -> Response:
    get_tracker(request).clear_all()
    logger.info("data_cleared")
    return Response(status_code=204)

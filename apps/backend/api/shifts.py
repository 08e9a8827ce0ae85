from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.orm import Session
from database import get_db
from models.schemas import DayDetail, DraftState, MonthlyCalendar, ScheduledTeacher, ShiftAssignment, Workload
from services.scheduling import draft as staging
from services.scheduling.aggregation import group_lessons, unique_students_by_date, workload_by_teacher
from services.scheduling.calendar_index import bucket_by_date, build_month_calendar, dates_of_month, month_range
from services.scheduling.errors import (
    AssignmentNotFound, ConflictError, DraftEntryNotFound, PartialFailure,
    ScheduleValidationError, SchedulingError, StoreError,
)
from services.scheduling.sources import load_lessons, load_teachers
from services.scheduling.store import ShiftAssignmentStore
from services.scheduling.workflows import ShiftScheduler
from services.roster_export import to_csv, to_markdown
from services.pdf_service import generate_roster_pdf
from api.config import load_shift_defaults
from pydantic import BaseModel
from typing import List, Optional
from datetime import date, time
from urllib.parse import quote

router = APIRouter(prefix="/shifts", tags=["Shifts"])

class AssignRequest(BaseModel):
    org_id: Optional[str] = None
    teacher_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

class BatchAssignRequest(BaseModel):
    org_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    teacher_ids: List[str] = []
    start_time: Optional[time] = None
    end_time: Optional[time] = None

class TimeEditRequest(BaseModel):
    start_time: Optional[time] = None
    end_time: Optional[time] = None

class EnterDraftRequest(BaseModel):
    org_id: Optional[str] = None
    year: int
    month: int
    teacher_ids: Optional[List[str]] = None

class DraftEntryRequest(BaseModel):
    draft: DraftState
    teacher_id: str
    scheduled_date: date

class StageRequest(DraftEntryRequest):
    start_time: Optional[time] = None
    end_time: Optional[time] = None

class DraftTimeRequest(DraftEntryRequest):
    start_time: time
    end_time: time

def _http_error(e: SchedulingError) -> HTTPException:
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (DraftEntryNotFound, AssignmentNotFound)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ScheduleValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, PartialFailure):
        return HTTPException(status_code=502, detail=f"Save incomplete, please retry: {e}")
    if isinstance(e, StoreError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))

def _month(year: int, month: int):
    try:
        return month_range(year, month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid month {year}-{month}: {e}")

def _scheduler(db: Session) -> ShiftScheduler:
    return ShiftScheduler(ShiftAssignmentStore(db))

@router.get("/", response_model=List[ShiftAssignment])
async def list_shifts(
    year: int,
    month: int,
    org_id: Optional[str] = None,
    teacher_ids: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    first, last = _month(year, month)
    try:
        return ShiftAssignmentStore(db).list(first, last, org_id, teacher_ids)
    except SchedulingError as e:
        raise _http_error(e)

@router.get("/calendar", response_model=MonthlyCalendar)
async def get_calendar(
    year: int,
    month: int,
    org_id: Optional[str] = None,
    teacher_ids: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Month grid for the shift calendar.

    Each day carries the scheduled teachers and the number of distinct
    students (regular and trial) with a lesson that day.
    """
    first, last = _month(year, month)
    try:
        assignments = ShiftAssignmentStore(db).list(first, last, org_id, teacher_ids)
    except SchedulingError as e:
        raise _http_error(e)
    teachers = load_teachers(db, org_id, teacher_ids)
    lessons = load_lessons(db, org_id, first, last)
    counts = unique_students_by_date(lessons, dates_of_month(year, month))
    return build_month_calendar(year, month, assignments, teachers, counts)

@router.get("/day/{day}", response_model=DayDetail)
async def get_day(
    day: date,
    org_id: Optional[str] = None,
    teacher_ids: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        assignments = ShiftAssignmentStore(db).list(day, day, org_id, teacher_ids)
    except SchedulingError as e:
        raise _http_error(e)
    teachers = load_teachers(db, org_id, teacher_ids)
    lessons = load_lessons(db, org_id, day, day)

    scheduled = []
    for teacher in bucket_by_date(assignments, [day], teachers)[day]:
        assignment = next(a for a in assignments if a.teacher_id == teacher.id)
        scheduled.append(ScheduledTeacher(teacher=teacher, assignment=assignment))

    return DayDetail(
        day=day,
        teachers=scheduled,
        groups=group_lessons(lessons, day),
        student_count=unique_students_by_date(lessons, [day])[day],
    )

@router.get("/workload", response_model=List[Workload])
async def get_workload(
    year: int,
    month: int,
    org_id: Optional[str] = None,
    teacher_ids: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
):
    first, last = _month(year, month)
    try:
        assignments = ShiftAssignmentStore(db).list(first, last, org_id, teacher_ids)
    except SchedulingError as e:
        raise _http_error(e)
    return workload_by_teacher(assignments, load_teachers(db, org_id, teacher_ids), year, month)

@router.post("/assign")
async def assign_teacher(req: AssignRequest, db: Session = Depends(get_db)):
    """
    Schedules one teacher on one date immediately.

    An existing shift for the same teacher and date is replaced.
    """
    try:
        inserted = _scheduler(db).assign_teacher(req.org_id, req.teacher_id, req.scheduled_date, req.start_time, req.end_time)
    except SchedulingError as e:
        raise _http_error(e)
    return {"status": "success", "assignments": inserted}

@router.post("/batch")
async def assign_batch(req: BatchAssignRequest, db: Session = Depends(get_db)):
    """
    Schedules several teachers on one date with a shared time range.

    Produces one shift per teacher, replacing any shift they already had
    that day.
    """
    try:
        inserted = _scheduler(db).assign_batch(req.org_id, req.scheduled_date, req.teacher_ids, req.start_time, req.end_time)
    except SchedulingError as e:
        raise _http_error(e)
    return {"status": "success", "assignments": inserted}

@router.patch("/{assignment_id}", response_model=ShiftAssignment)
async def edit_shift_time(assignment_id: int, req: TimeEditRequest, org_id: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        return _scheduler(db).edit_time(org_id, assignment_id, req.start_time, req.end_time)
    except SchedulingError as e:
        raise _http_error(e)

@router.delete("/{teacher_id}/{scheduled_date}")
async def remove_shift(teacher_id: str, scheduled_date: date, org_id: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        deleted = _scheduler(db).remove(org_id, teacher_id, scheduled_date)
    except SchedulingError as e:
        raise _http_error(e)
    return {"status": "deleted", "teacher_id": teacher_id, "deleted": deleted}

# --- Draft (edit mode) ---
# The draft lives with the client: each call takes the current DraftState
# and returns the next one. Nothing is written until /draft/commit.

@router.post("/draft", response_model=DraftState)
async def enter_edit_mode(req: EnterDraftRequest, db: Session = Depends(get_db)):
    first, last = _month(req.year, req.month)
    try:
        committed = ShiftAssignmentStore(db).list(first, last, req.org_id, req.teacher_ids)
    except SchedulingError as e:
        raise _http_error(e)
    return staging.enter_edit_mode(committed, req.org_id or "", req.year, req.month, req.teacher_ids)

@router.post("/draft/stage", response_model=DraftState)
async def stage_shift(req: StageRequest, db: Session = Depends(get_db)):
    default_start, default_end = load_shift_defaults(db)
    try:
        return staging.stage_add(
            req.draft, req.teacher_id, req.scheduled_date,
            req.start_time or default_start, req.end_time or default_end,
        )
    except SchedulingError as e:
        raise _http_error(e)

@router.post("/draft/confirm", response_model=DraftState)
async def confirm_shift(req: DraftEntryRequest):
    try:
        return staging.confirm(req.draft, req.teacher_id, req.scheduled_date)
    except SchedulingError as e:
        raise _http_error(e)

@router.post("/draft/cancel", response_model=DraftState)
async def cancel_shift(req: DraftEntryRequest):
    try:
        return staging.cancel(req.draft, req.teacher_id, req.scheduled_date)
    except SchedulingError as e:
        raise _http_error(e)

@router.post("/draft/time", response_model=DraftState)
async def edit_draft_time(req: DraftTimeRequest):
    try:
        return staging.edit_time(req.draft, req.teacher_id, req.scheduled_date, req.start_time, req.end_time)
    except SchedulingError as e:
        raise _http_error(e)

@router.post("/draft/discard")
async def discard_draft(draft: DraftState):
    staging.discard(draft)
    return {"status": "discarded"}

@router.post("/draft/commit")
async def commit_draft(draft: DraftState, db: Session = Depends(get_db)):
    """
    Saves the draft: replaces the month's shifts for every affected teacher
    with the draft's entries. On a 502 the same draft can be committed again.
    """
    try:
        inserted = _scheduler(db).commit_draft(draft)
    except SchedulingError as e:
        raise _http_error(e)
    return {"status": "success", "assignments": inserted}

# --- Export ---

@router.get("/export/{teacher_id}/{fmt}")
async def export_roster(
    teacher_id: str,
    fmt: str,
    year: int,
    month: int,
    org_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if fmt not in ("csv", "markdown", "pdf"):
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {fmt}")
    first, last = _month(year, month)

    teachers = load_teachers(db, org_id, [teacher_id])
    if not teachers:
        raise HTTPException(status_code=404, detail="Teacher not found")
    teacher = teachers[0]

    try:
        assignments = ShiftAssignmentStore(db).list(first, last, org_id, [teacher_id])
    except SchedulingError as e:
        raise _http_error(e)
    if not assignments:
        raise HTTPException(status_code=404, detail="No shifts to export")

    filename = quote(f"{teacher.display_name}_排班")
    if fmt == "csv":
        return Response(
            content=to_csv(teacher, assignments),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}.csv"},
        )
    if fmt == "markdown":
        return Response(content=to_markdown(teacher, assignments), media_type="text/markdown; charset=utf-8")

    pdf_buffer = generate_roster_pdf(teacher.display_name, year, month, assignments)
    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}.pdf"},
    )

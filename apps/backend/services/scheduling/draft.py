"""
Edit-mode staging for the shift calendar.

Every operation takes a DraftState and returns a new one; the input is never
mutated. Entries are keyed by (teacher_id, scheduled_date), which the conflict
check keeps unique. Nothing here touches the store: persisting a draft is the
job of ShiftScheduler.commit_draft.
"""
import logging
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Tuple

from models.schemas import DraftAssignment, DraftState, ShiftAssignment
from services.scheduling.calendar_index import month_range
from services.scheduling.conflicts import can_assign
from services.scheduling.errors import ConflictError, DraftEntryNotFound, ScheduleValidationError
from services.scheduling.timeslots import DEFAULT_END_TIME, DEFAULT_START_TIME, check_time_range

logger = logging.getLogger(__name__)


def draft_month_range(year: int, month: int) -> Tuple[date, date]:
    """Month bounds of a draft. Drafts arrive from clients, so a bad month is a validation error."""
    try:
        return month_range(year, month)
    except ValueError as e:
        raise ScheduleValidationError(f"Invalid draft month {year}-{month}: {e}") from e


def enter_edit_mode(
    committed: Iterable[ShiftAssignment],
    org_id: str,
    year: int,
    month: int,
    teacher_ids: Optional[Iterable[str]] = None,
) -> DraftState:
    """
    Snapshots the month's committed shifts as a draft.

    When the session is limited to `teacher_ids`, those teachers form the
    commit scope and staging accepts only them.
    """
    first, last = draft_month_range(year, month)
    teacher_filter = []
    for t in teacher_ids or []:
        if t and t not in teacher_filter:
            teacher_filter.append(t)

    entries = [
        DraftAssignment(**{**a.model_dump(), "is_new": False, "confirmed": False})
        for a in committed
        if first <= a.scheduled_date <= last
        and (not teacher_filter or a.teacher_id in teacher_filter)
    ]

    scope = list(teacher_filter)
    for e in entries:
        if e.teacher_id not in scope:
            scope.append(e.teacher_id)

    return DraftState(
        org_id=org_id, year=year, month=month,
        scope_teacher_ids=scope, teacher_filter=teacher_filter, entries=entries,
    )


def stage_add(
    state: DraftState,
    teacher_id: str,
    scheduled_date: date,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
) -> DraftState:
    """
    Stages a dropped teacher onto a date.

    Raises ConflictError if the teacher already has an entry that day; unlike
    the batch flow, staging never overwrites.
    """
    if not teacher_id:
        raise ScheduleValidationError("Select a teacher to schedule")
    if state.teacher_filter and teacher_id not in state.teacher_filter:
        raise ScheduleValidationError(f"Teacher {teacher_id} is not part of this edit session")
    first, last = draft_month_range(state.year, state.month)
    if not first <= scheduled_date <= last:
        raise ScheduleValidationError(
            f"{scheduled_date.isoformat()} is outside the month being edited ({state.year}-{state.month:02d})"
        )
    if not can_assign(state.entries, teacher_id, scheduled_date):
        logger.warning("Staging refused: %s already scheduled on %s", teacher_id, scheduled_date)
        raise ConflictError(teacher_id, scheduled_date)

    start_time = start_time or DEFAULT_START_TIME
    end_time = end_time or DEFAULT_END_TIME
    check_time_range(start_time, end_time)

    staged = DraftAssignment(
        teacher_id=teacher_id,
        org_id=state.org_id,
        scheduled_date=scheduled_date,
        start_time=start_time,
        end_time=end_time,
        is_new=True,
    )
    return _with_entries(state, state.entries + [staged])


def confirm(state: DraftState, teacher_id: str, scheduled_date: date) -> DraftState:
    index = _find(state, teacher_id, scheduled_date)
    entries = list(state.entries)
    entries[index] = entries[index].model_copy(update={"confirmed": True})
    return _with_entries(state, entries)


def cancel(state: DraftState, teacher_id: str, scheduled_date: date) -> DraftState:
    index = _find(state, teacher_id, scheduled_date)
    return _with_entries(state, state.entries[:index] + state.entries[index + 1:])


def edit_time(
    state: DraftState,
    teacher_id: str,
    scheduled_date: date,
    start_time: time,
    end_time: time,
) -> DraftState:
    check_time_range(start_time, end_time)
    index = _find(state, teacher_id, scheduled_date)
    entries = list(state.entries)
    entries[index] = entries[index].model_copy(update={
        "start_time": start_time,
        "end_time": end_time,
        "updated_at": datetime.now(),
    })
    return _with_entries(state, entries)


def discard(state: DraftState) -> None:
    """Leaves edit mode without saving. Persisted shifts are untouched."""
    staged = sum(1 for e in state.entries if e.is_new)
    logger.info(
        "Discarded draft for %s %d-%02d (%d entries, %d staged)",
        state.org_id, state.year, state.month, len(state.entries), staged,
    )


def draft_teacher_ids(state: DraftState) -> List[str]:
    """Teachers touched by a commit: those in the original snapshot plus those in the draft."""
    ids = list(state.scope_teacher_ids)
    for e in state.entries:
        if e.teacher_id not in ids:
            ids.append(e.teacher_id)
    return ids


def _find(state: DraftState, teacher_id: str, scheduled_date: date) -> int:
    for index, e in enumerate(state.entries):
        if e.teacher_id == teacher_id and e.scheduled_date == scheduled_date:
            return index
    raise DraftEntryNotFound(teacher_id, scheduled_date)


def _with_entries(state: DraftState, entries: List[DraftAssignment]) -> DraftState:
    return state.model_copy(update={"entries": entries})

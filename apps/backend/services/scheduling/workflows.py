import logging
from datetime import date, time
from typing import Iterable, List, Optional

from models.schemas import DraftState, ShiftAssignment
from services.scheduling.conflicts import can_assign, duplicate_keys
from services.scheduling.draft import draft_month_range, draft_teacher_ids
from services.scheduling.errors import PartialFailure, ScheduleValidationError
from services.scheduling.store import ShiftAssignmentStore, valid_org_id
from services.scheduling.timeslots import check_time_range

logger = logging.getLogger(__name__)


class ShiftScheduler:
    """
    Write-side workflows for teacher shifts.

    Overwrite flows (single and batch assignment, draft commit) all follow the
    same two steps: delete what is already there for the targeted scope, then
    bulk-insert the new set. The two steps are separate store commits. If the
    insert fails after the delete, the caller should re-run the same call;
    delete-then-insert is idempotent, so the retry restores the intended state.

    Validation always happens before the first store call.
    """
    def __init__(self, store: ShiftAssignmentStore):
        self.store = store

    def assign_teacher(
        self,
        org_id: Optional[str],
        teacher_id: Optional[str],
        scheduled_date: Optional[date],
        start_time: Optional[time],
        end_time: Optional[time],
    ) -> List[ShiftAssignment]:
        return self.assign_batch(org_id, scheduled_date, [teacher_id] if teacher_id else [], start_time, end_time)

    def assign_batch(
        self,
        org_id: Optional[str],
        scheduled_date: Optional[date],
        teacher_ids: Iterable[str],
        start_time: Optional[time],
        end_time: Optional[time],
    ) -> List[ShiftAssignment]:
        """One shift per selected teacher on one date; last write wins per (teacher, date)."""
        org = self._require_org(org_id)
        teacher_ids = _unique(teacher_ids)
        if not teacher_ids:
            raise ScheduleValidationError("Select at least one teacher")
        if scheduled_date is None:
            raise ScheduleValidationError("Select a date")
        check_time_range(start_time, end_time)

        existing = self.store.list(scheduled_date, scheduled_date, org, teacher_ids)
        for teacher_id in teacher_ids:
            if not can_assign(existing, teacher_id, scheduled_date):
                self.store.delete_by_teacher_and_date(teacher_id, scheduled_date, org)

        fresh = [
            ShiftAssignment(
                teacher_id=teacher_id,
                org_id=org,
                scheduled_date=scheduled_date,
                start_time=start_time,
                end_time=end_time,
            )
            for teacher_id in teacher_ids
        ]
        inserted = self._insert(fresh, f"batch {scheduled_date}")
        logger.info("Assigned %d teachers on %s for org %s", len(inserted), scheduled_date, org)
        return inserted

    def edit_time(
        self,
        org_id: Optional[str],
        assignment_id: int,
        start_time: Optional[time],
        end_time: Optional[time],
    ) -> ShiftAssignment:
        org = self._require_org(org_id)
        check_time_range(start_time, end_time)
        return self.store.update(assignment_id, org, start_time=start_time, end_time=end_time)

    def remove(self, org_id: Optional[str], teacher_id: Optional[str], scheduled_date: date) -> int:
        org = self._require_org(org_id)
        if not teacher_id:
            raise ScheduleValidationError("Select a teacher to remove")
        return self.store.delete_by_teacher_and_date(teacher_id, scheduled_date, org)

    def commit_draft(self, draft: DraftState) -> List[ShiftAssignment]:
        """
        Makes the month's persisted shifts match the draft exactly.

        Deletes every shift in the month for the snapshot's teachers plus the
        draft's teachers, then re-inserts every draft entry (staged or not,
        confirmed or not). Entries that were already persisted keep their id
        and timestamps. No per-field diffing: edits, cancellations and time changes
        are all reconciled by this one replace.
        """
        org = self._require_org(draft.org_id)
        first, last = draft_month_range(draft.year, draft.month)

        duplicates = duplicate_keys(draft.entries)
        if duplicates:
            teacher_id, day = duplicates[0]
            raise ScheduleValidationError(f"Draft schedules teacher {teacher_id} twice on {day.isoformat()}")
        for e in draft.entries:
            if not first <= e.scheduled_date <= last:
                raise ScheduleValidationError(
                    f"Draft entry on {e.scheduled_date.isoformat()} is outside {draft.year}-{draft.month:02d}"
                )
            if draft.teacher_filter and e.teacher_id not in draft.teacher_filter:
                raise ScheduleValidationError(f"Draft entry for teacher {e.teacher_id} is outside this edit session")
            check_time_range(e.start_time, e.end_time)

        teacher_ids = draft_teacher_ids(draft)
        if teacher_ids:
            self.store.delete_by_teachers_and_date_range(teacher_ids, first, last, org)

        rows = [
            ShiftAssignment(
                id=None if e.is_new else e.id,
                teacher_id=e.teacher_id,
                org_id=org,
                scheduled_date=e.scheduled_date,
                start_time=e.start_time,
                end_time=e.end_time,
                created_at=None if e.is_new else e.created_at,
                updated_at=None if e.is_new else e.updated_at,
            )
            for e in draft.entries
        ]
        inserted = self._insert(rows, f"draft {draft.year}-{draft.month:02d}")
        logger.info(
            "Committed draft for org %s %d-%02d: %d teachers replaced, %d shifts written",
            org, draft.year, draft.month, len(teacher_ids), len(inserted),
        )
        return inserted

    def _insert(self, rows: List[ShiftAssignment], description: str) -> List[ShiftAssignment]:
        try:
            return self.store.insert_many(rows)
        except PartialFailure:
            logger.warning("Insert for %s failed after delete; shifts are missing until retried", description)
            raise

    def _require_org(self, org_id: Optional[str]) -> str:
        org = valid_org_id(org_id)
        if org is None:
            raise ScheduleValidationError("A valid organization is required to change shifts")
        return org


def _unique(values: Iterable[Optional[str]]) -> List[str]:
    seen = []
    for v in values:
        if v and v not in seen:
            seen.append(v)
    return seen

import logging
import re
from datetime import date, time
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import ShiftAssignmentDB
from models.schemas import ShiftAssignment
from services.scheduling.errors import AssignmentNotFound, PartialFailure, StoreError

logger = logging.getLogger(__name__)

UUID_REGEX = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
NIL_ORG_ID = "00000000-0000-0000-0000-000000000000"


def valid_org_id(org_id: Optional[str]) -> Optional[str]:
    """
    Normalizes an organization id, or returns None when it cannot scope a query.

    Empty, malformed and nil-UUID ids are all rejected. Callers treat None as
    "query nothing", never as "query every organization".
    """
    if not org_id:
        return None
    org_id = str(org_id).strip()
    if not UUID_REGEX.match(org_id) or org_id == NIL_ORG_ID:
        return None
    return org_id


def _store_message(exc: SQLAlchemyError) -> str:
    return str(getattr(exc, "orig", None) or exc)


class ShiftAssignmentStore:
    """
    CRUD adapter over the `teacher_schedule` table.

    Every call is scoped by organization and runs as its own commit, so a
    delete followed by an insert is two independent units of work.
    Nothing is retried here.
    """
    def __init__(self, db: Session):
        self.db = db

    def list(
        self,
        range_start: date,
        range_end: date,
        org_id: Optional[str],
        teacher_ids: Optional[Iterable[str]] = None,
    ) -> List[ShiftAssignment]:
        org = valid_org_id(org_id)
        if org is None:
            logger.warning("Shift query skipped: no valid org_id (got %r)", org_id)
            return []

        query = self.db.query(ShiftAssignmentDB).filter(
            ShiftAssignmentDB.org_id == org,
            ShiftAssignmentDB.scheduled_date >= range_start,
            ShiftAssignmentDB.scheduled_date <= range_end,
        )
        teacher_ids = [t for t in (teacher_ids or []) if t]
        if teacher_ids:
            query = query.filter(ShiftAssignmentDB.teacher_id.in_(teacher_ids))

        try:
            rows = query.order_by(
                ShiftAssignmentDB.scheduled_date,
                ShiftAssignmentDB.start_time,
                ShiftAssignmentDB.id,
            ).all()
        except SQLAlchemyError as e:
            logger.exception("Failed to list shifts for org %s", org)
            raise StoreError(_store_message(e)) from e
        return [ShiftAssignment.model_validate(r) for r in rows]

    def insert_many(self, assignments: Iterable[ShiftAssignment]) -> List[ShiftAssignment]:
        """Bulk insert in one commit. Duplicates are not filtered here."""
        rows = []
        for a in assignments:
            org = valid_org_id(a.org_id)
            if org is None:
                logger.warning("Dropping shift for teacher %s: no valid org_id", a.teacher_id)
                continue
            row = ShiftAssignmentDB(
                id=a.id,
                teacher_id=a.teacher_id,
                org_id=org,
                scheduled_date=a.scheduled_date,
                start_time=a.start_time,
                end_time=a.end_time,
            )
            # Carried-over ids and timestamps survive a delete+reinsert; fresh rows take column defaults
            if a.created_at is not None:
                row.created_at = a.created_at
            if a.updated_at is not None:
                row.updated_at = a.updated_at
            rows.append(row)
        if not rows:
            return []

        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Bulk insert of %d shifts failed", len(rows))
            raise PartialFailure(_store_message(e)) from e

        logger.info("Inserted %d shifts", len(rows))
        return [ShiftAssignment.model_validate(r) for r in rows]

    def delete_by_teacher_and_date(self, teacher_id: str, scheduled_date: date, org_id: Optional[str]) -> int:
        org = valid_org_id(org_id)
        if org is None or not teacher_id:
            logger.warning("Shift delete skipped: missing org_id or teacher_id")
            return 0

        query = self.db.query(ShiftAssignmentDB).filter(
            ShiftAssignmentDB.org_id == org,
            ShiftAssignmentDB.teacher_id == teacher_id,
            ShiftAssignmentDB.scheduled_date == scheduled_date,
        )
        return self._delete(query, f"teacher {teacher_id} on {scheduled_date}")

    def delete_by_teachers_and_date_range(
        self,
        teacher_ids: Iterable[str],
        range_start: date,
        range_end: date,
        org_id: Optional[str],
    ) -> int:
        org = valid_org_id(org_id)
        teacher_ids = [t for t in teacher_ids if t]
        if org is None or not teacher_ids:
            logger.warning("Range delete skipped: missing org_id or teacher ids")
            return 0

        query = self.db.query(ShiftAssignmentDB).filter(
            ShiftAssignmentDB.org_id == org,
            ShiftAssignmentDB.teacher_id.in_(teacher_ids),
            ShiftAssignmentDB.scheduled_date >= range_start,
            ShiftAssignmentDB.scheduled_date <= range_end,
        )
        return self._delete(query, f"{len(teacher_ids)} teachers {range_start}..{range_end}")

    def update(
        self,
        assignment_id: int,
        org_id: Optional[str],
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
    ) -> ShiftAssignment:
        org = valid_org_id(org_id)
        if org is None:
            raise AssignmentNotFound(f"Shift {assignment_id} not found")

        try:
            row = self.db.query(ShiftAssignmentDB).filter(
                ShiftAssignmentDB.id == assignment_id,
                ShiftAssignmentDB.org_id == org,
            ).first()
            if not row:
                raise AssignmentNotFound(f"Shift {assignment_id} not found")

            if start_time is not None:
                row.start_time = start_time
            if end_time is not None:
                row.end_time = end_time
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to update shift %s", assignment_id)
            raise StoreError(_store_message(e)) from e

        return ShiftAssignment.model_validate(row)

    def _delete(self, query, description: str) -> int:
        try:
            count = query.delete(synchronize_session="fetch")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to delete shifts for %s", description)
            raise StoreError(_store_message(e)) from e
        logger.info("Deleted %d shifts for %s", count, description)
        return count

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from database import RegularLessonDB, TeacherDB, TrialLessonDB
from models.schemas import LessonRecord, LessonSource, Teacher
from services.scheduling.store import valid_org_id

logger = logging.getLogger(__name__)

# Regular lessons without a student id all count as one student
UNKNOWN_STUDENT_IDENTITY = ""


def load_teachers(db: Session, org_id: Optional[str], teacher_ids: Optional[Iterable[str]] = None) -> List[Teacher]:
    org = valid_org_id(org_id)
    if org is None:
        logger.warning("Teacher query skipped: no valid org_id (got %r)", org_id)
        return []

    query = db.query(TeacherDB).filter(TeacherDB.org_id == org)
    teacher_ids = [t for t in (teacher_ids or []) if t]
    if teacher_ids:
        query = query.filter(TeacherDB.id.in_(teacher_ids))
    return [Teacher.model_validate(t) for t in query.order_by(TeacherDB.teacher_nickname, TeacherDB.id).all()]


def load_lessons(db: Session, org_id: Optional[str], range_start: date, range_end: date) -> List[LessonRecord]:
    """
    Merges regular and trial lessons in the date range into one list.

    Both feeds are read-only. A trial row has no separate student id, so its
    own id is used as the student identity.
    """
    org = valid_org_id(org_id)
    if org is None:
        logger.warning("Lesson query skipped: no valid org_id (got %r)", org_id)
        return []

    regular = db.query(RegularLessonDB).filter(
        RegularLessonDB.org_id == org,
        RegularLessonDB.lesson_date >= range_start,
        RegularLessonDB.lesson_date <= range_end,
    ).all()
    trial = db.query(TrialLessonDB).filter(
        TrialLessonDB.org_id == org,
        TrialLessonDB.lesson_date >= range_start,
        TrialLessonDB.lesson_date <= range_end,
    ).all()

    records = [
        LessonRecord(
            student_identity=l.student_id or UNKNOWN_STUDENT_IDENTITY,
            lesson_date=l.lesson_date,
            time_slot=l.regular_timeslot,
            course_label=l.course_type,
            student_name=l.student_name,
            source=LessonSource.REGULAR,
        )
        for l in regular
    ]
    records += [
        LessonRecord(
            student_identity=t.id,
            lesson_date=t.lesson_date,
            time_slot=t.actual_timeslot,
            course_label=t.course_type,
            student_name=t.full_name,
            source=LessonSource.TRIAL,
        )
        for t in trial
    ]
    return records

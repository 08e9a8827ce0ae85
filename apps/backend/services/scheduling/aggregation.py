from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from models.schemas import GroupedStudent, LessonGroup, LessonRecord, ShiftAssignment, Teacher, Workload
from services.scheduling.calendar_index import month_range
from services.scheduling.timeslots import shift_hours


def monthly_workload(assignments: Iterable[ShiftAssignment], teacher_id: str, year: int, month: int) -> Workload:
    """
    Work-days and total hours for one teacher in one month.

    Hours are plain wall-clock end minus start per shift; each shift counts as
    one work-day.
    """
    first, last = month_range(year, month)
    shifts = [
        a for a in assignments
        if a.teacher_id == teacher_id and first <= a.scheduled_date <= last
    ]
    hours = sum(shift_hours(a.start_time, a.end_time) for a in shifts)
    return Workload(teacher_id=teacher_id, work_days=len(shifts), work_hours=round(hours, 2))


def workload_by_teacher(
    assignments: Iterable[ShiftAssignment],
    teachers: List[Teacher],
    year: int,
    month: int,
) -> List[Workload]:
    assignments = list(assignments)
    return [monthly_workload(assignments, t.id, year, month) for t in teachers]


def unique_students_by_date(
    lessons: Iterable[LessonRecord],
    dates: Optional[Iterable[date]] = None,
) -> Dict[date, int]:
    """
    Distinct student identities per lesson date, across both lesson sources.

    Several lessons of the same student on one day (different courses or time
    slots, or a regular and a trial lesson) count once.
    """
    identities = defaultdict(set)
    for lesson in lessons:
        identities[lesson.lesson_date].add(lesson.student_identity)

    if dates is None:
        return {d: len(ids) for d, ids in identities.items()}
    return {d: len(identities.get(d, ())) for d in dates}


def group_lessons(lessons: Iterable[LessonRecord], day: date) -> List[LessonGroup]:
    groups = {}
    for lesson in lessons:
        if lesson.lesson_date != day:
            continue
        key = (lesson.time_slot or "", lesson.course_label or "")
        if key not in groups:
            groups[key] = LessonGroup(time=lesson.time_slot, course=lesson.course_label)
        groups[key].students.append(
            GroupedStudent(name=lesson.student_name, student_id=lesson.student_identity)
        )
    return [groups[k] for k in sorted(groups)]

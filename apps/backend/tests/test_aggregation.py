from datetime import date, time

from models.schemas import LessonRecord, LessonSource, ShiftAssignment, Teacher
from services.scheduling.aggregation import (
    group_lessons, monthly_workload, unique_students_by_date, workload_by_teacher,
)

ORG = "11111111-1111-1111-1111-111111111111"

def _shift(teacher_id, day, start, end):
    return ShiftAssignment(teacher_id=teacher_id, org_id=ORG, scheduled_date=day, start_time=start, end_time=end)

def _lesson(identity, day, slot="10:00", course="Piano", source=LessonSource.REGULAR, name=None):
    return LessonRecord(student_identity=identity, lesson_date=day, time_slot=slot,
                        course_label=course, student_name=name or identity, source=source)

SHIFTS = [
    _shift("T1", date(2024, 6, 3), time(9), time(12)),
    _shift("T1", date(2024, 6, 4), time(13), time(18)),
    _shift("T1", date(2024, 7, 1), time(9), time(18)),
    _shift("T2", date(2024, 6, 3), time(9, 30), time(11)),
]

def test_monthly_workload():
    load = monthly_workload(SHIFTS, "T1", 2024, 6)
    assert load.work_days == 2
    assert load.work_hours == 8.0

def test_monthly_workload_fractional_hours():
    load = monthly_workload(SHIFTS, "T2", 2024, 6)
    assert load.work_days == 1
    assert load.work_hours == 1.5

def test_workload_for_idle_teacher():
    load = monthly_workload(SHIFTS, "T3", 2024, 6)
    assert (load.work_days, load.work_hours) == (0, 0.0)

def test_workload_by_teacher_follows_teacher_order():
    teachers = [Teacher(id="T2"), Teacher(id="T1"), Teacher(id="T3")]
    loads = workload_by_teacher(iter(SHIFTS), teachers, 2024, 6)
    assert [l.teacher_id for l in loads] == ["T2", "T1", "T3"]
    assert [l.work_days for l in loads] == [1, 2, 0]

def test_unique_students_across_sources():
    lessons = [
        _lesson("A", date(2024, 6, 10)),
        _lesson("A", date(2024, 6, 10), slot="14:00", course="Music Focus"),
        _lesson("A", date(2024, 6, 10), source=LessonSource.TRIAL),
        _lesson("B", date(2024, 6, 10)),
        _lesson("C", date(2024, 6, 11), source=LessonSource.TRIAL),
    ]
    counts = unique_students_by_date(lessons)
    assert counts == {date(2024, 6, 10): 2, date(2024, 6, 11): 1}

def test_unique_students_fills_requested_dates():
    counts = unique_students_by_date([_lesson("A", date(2024, 6, 10))],
                                     [date(2024, 6, 9), date(2024, 6, 10)])
    assert counts == {date(2024, 6, 9): 0, date(2024, 6, 10): 1}

def test_group_lessons_by_time_and_course():
    day = date(2024, 6, 10)
    lessons = [
        _lesson("A", day, slot="14:00", course="Music Focus", name="Amy"),
        _lesson("B", day, slot="10:00", course="Piano", name="Ben"),
        _lesson("A", day, slot="10:00", course="Piano", name="Amy"),
        _lesson("D", day, slot="10:00", course="Drums", name="Dan"),
        _lesson("E", date(2024, 6, 11), slot="10:00", course="Piano"),
    ]
    groups = group_lessons(lessons, day)

    assert [(g.time, g.course) for g in groups] == [
        ("10:00", "Drums"),
        ("10:00", "Piano"),
        ("14:00", "Music Focus"),
    ]
    assert [s.name for s in groups[1].students] == ["Ben", "Amy"]
    assert [s.student_id for s in groups[2].students] == ["A"]

def test_group_lessons_without_time_slot():
    day = date(2024, 6, 10)
    groups = group_lessons([_lesson("A", day, slot=None), _lesson("B", day, slot="09:00")], day)
    assert [g.time for g in groups] == [None, "09:00"]

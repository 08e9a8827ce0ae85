from datetime import date

from database import RegularLessonDB
from services.scheduling.aggregation import unique_students_by_date
from services.scheduling.sources import UNKNOWN_STUDENT_IDENTITY, load_lessons, load_teachers
from conftest import ORG_ID

def test_load_lessons_merges_both_sources(db_session, lessons):
    records = load_lessons(db_session, ORG_ID, date(2024, 6, 1), date(2024, 6, 30))

    assert len(records) == 5
    assert {r.source.value for r in records} == {"regular", "trial"}
    assert unique_students_by_date(records) == {date(2024, 6, 10): 2, date(2024, 6, 11): 1}

def test_lessons_without_student_id_count_once(db_session, lessons):
    day = date(2024, 6, 12)
    db_session.add_all([
        RegularLessonDB(org_id=ORG_ID, student_id=None, student_name="Walk-in", lesson_date=day,
                        regular_timeslot="10:00", course_type="Piano"),
        RegularLessonDB(org_id=ORG_ID, student_id=None, student_name="Walk-in 2", lesson_date=day,
                        regular_timeslot="11:00", course_type="Piano"),
    ])
    db_session.commit()

    records = load_lessons(db_session, ORG_ID, day, day)

    assert [r.student_identity for r in records] == [UNKNOWN_STUDENT_IDENTITY] * 2
    assert unique_students_by_date(records, [day]) == {day: 1}

def test_sources_need_an_org(db_session, teachers, lessons):
    assert load_lessons(db_session, None, date(2024, 6, 1), date(2024, 6, 30)) == []
    assert load_teachers(db_session, "placeholder") == []
    assert [t.id for t in load_teachers(db_session, ORG_ID, ["T2"])] == ["T2"]

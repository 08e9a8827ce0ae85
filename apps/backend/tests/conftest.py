import pytest
import sys
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure backend path is in sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from database import Base, get_db, TeacherDB, RegularLessonDB, TrialLessonDB
from main import app

ORG_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ORG_ID = "22222222-2222-2222-2222-222222222222"

# Use in-memory DB for tests with StaticPool to share connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def client(db_session):
    """Test client with overridden dependency."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    from fastapi.testclient import TestClient
    yield TestClient(app)
    del app.dependency_overrides[get_db]

@pytest.fixture
def teachers(db_session):
    rows = [
        TeacherDB(id="T1", org_id=ORG_ID, teacher_fullname="Alice Wong", teacher_nickname="Alice"),
        TeacherDB(id="T2", org_id=ORG_ID, teacher_fullname="Bob Chan", teacher_nickname="Bob"),
        TeacherDB(id="T3", org_id=ORG_ID, teacher_fullname="Carol Lee", teacher_nickname="Carol"),
        TeacherDB(id="X1", org_id=OTHER_ORG_ID, teacher_fullname="Xavier", teacher_nickname="Xavier"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows

@pytest.fixture
def lessons(db_session):
    from datetime import date
    db_session.add_all([
        RegularLessonDB(org_id=ORG_ID, student_id="A", student_name="Amy", lesson_date=date(2024, 6, 10),
                        regular_timeslot="10:00", course_type="Piano"),
        RegularLessonDB(org_id=ORG_ID, student_id="A", student_name="Amy", lesson_date=date(2024, 6, 10),
                        regular_timeslot="14:00", course_type="Music Focus"),
        RegularLessonDB(org_id=ORG_ID, student_id="B", student_name="Ben", lesson_date=date(2024, 6, 10),
                        regular_timeslot="10:00", course_type="Piano"),
        TrialLessonDB(id="A", org_id=ORG_ID, full_name="Amy", lesson_date=date(2024, 6, 10),
                      actual_timeslot="10:00", course_type="Piano"),
        TrialLessonDB(id="trial-9", org_id=ORG_ID, full_name="Tina", lesson_date=date(2024, 6, 11),
                      actual_timeslot="09:30", course_type="Piano"),
        RegularLessonDB(org_id=OTHER_ORG_ID, student_id="Z", student_name="Zed", lesson_date=date(2024, 6, 10),
                        regular_timeslot="10:00", course_type="Piano"),
    ])
    db_session.commit()

from datetime import datetime
import os

from dotenv import load_dotenv
from sqlalchemy import create_engine, Column, Integer, String, JSON, Date, DateTime, Time, UniqueConstraint
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv() # Load env vars from .env

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./teacher_shifts.db")
CONNECT_ARGS = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=CONNECT_ARGS)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def _now():
    # Shifts are wall-clock local; timestamps follow the same clock
    return datetime.now()


class TeacherDB(Base):
    """Employee directory row. Owned by the staff module, read-only here."""
    __tablename__ = "hanami_employee"

    id = Column(String, primary_key=True, index=True)
    org_id = Column(String, index=True)
    teacher_fullname = Column(String)
    teacher_nickname = Column(String)


class ShiftAssignmentDB(Base):
    __tablename__ = "teacher_schedule"
    __table_args__ = (
        UniqueConstraint("teacher_id", "scheduled_date", "org_id", name="uq_teacher_schedule_teacher_date_org"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(String, index=True, nullable=False)
    org_id = Column(String, index=True, nullable=False)
    scheduled_date = Column(Date, index=True, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)


class RegularLessonDB(Base):
    """Regular enrollment lessons (one row per student per lesson date)."""
    __tablename__ = "hanami_student_lesson"

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(String, index=True)
    student_id = Column(String, index=True)
    student_name = Column(String)
    lesson_date = Column(Date, index=True)
    regular_timeslot = Column(String)
    course_type = Column(String)


class TrialLessonDB(Base):
    """Trial students. The row id doubles as the student's identity."""
    __tablename__ = "hanami_trial_students"

    id = Column(String, primary_key=True, index=True)
    org_id = Column(String, index=True)
    full_name = Column(String)
    lesson_date = Column(Date, index=True)
    actual_timeslot = Column(String)
    course_type = Column(String)


class SchedulerConfigDB(Base):
    __tablename__ = "scheduler_config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, index=True) # e.g. "shift_defaults"
    value_json = Column(JSON)


def init_db():
    Base.metadata.create_all(bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

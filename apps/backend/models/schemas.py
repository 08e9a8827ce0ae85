from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, datetime, time
from enum import Enum

class LessonSource(str, Enum):
    REGULAR = "regular"
    TRIAL = "trial"

class Teacher(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    teacher_fullname: Optional[str] = None
    teacher_nickname: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.teacher_nickname or self.teacher_fullname or self.id

class ShiftAssignment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    teacher_id: str
    org_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class DraftAssignment(ShiftAssignment):
    is_new: bool = False # staged, not yet persisted
    confirmed: bool = False # UI acknowledgement only, ignored on commit

class DraftState(BaseModel):
    """Edit-mode working copy of one organization's month."""
    org_id: str
    year: int
    month: int
    scope_teacher_ids: List[str] = []
    teacher_filter: List[str] = [] # edit mode limited to these teachers; empty means all
    entries: List[DraftAssignment] = []

class LessonRecord(BaseModel):
    student_identity: str
    lesson_date: date
    time_slot: Optional[str] = None
    course_label: Optional[str] = None
    student_name: Optional[str] = None
    source: LessonSource

class GroupedStudent(BaseModel):
    name: Optional[str] = None
    student_id: str

class LessonGroup(BaseModel):
    time: Optional[str] = None
    course: Optional[str] = None
    students: List[GroupedStudent] = []

class Workload(BaseModel):
    teacher_id: str
    work_days: int = 0
    work_hours: float = 0.0

class CalendarDay(BaseModel):
    day: date
    teachers: List[Teacher] = []
    student_count: int = 0

class MonthlyCalendar(BaseModel):
    year: int
    month: int
    leading_blanks: int # Sunday-first grid padding before day 1
    trailing_blanks: int
    days: List[CalendarDay]

class ScheduledTeacher(BaseModel):
    teacher: Teacher
    assignment: ShiftAssignment

class DayDetail(BaseModel):
    day: date
    teachers: List[ScheduledTeacher] = []
    groups: List[LessonGroup] = []
    student_count: int = 0

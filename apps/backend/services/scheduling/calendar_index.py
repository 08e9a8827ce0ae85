import calendar
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from models.schemas import CalendarDay, MonthlyCalendar, ShiftAssignment, Teacher


def month_range(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of the month. Raises ValueError for a bad month."""
    days = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days)


def dates_of_month(year: int, month: int) -> List[date]:
    first, last = month_range(year, month)
    return [first + timedelta(days=offset) for offset in range(last.day)]


def sunday_first_weekday(day: date) -> int:
    # date.weekday() is Monday=0; the calendar grid starts on Sunday
    return (day.weekday() + 1) % 7


def bucket_by_date(
    assignments: Iterable[ShiftAssignment],
    dates: Iterable[date],
    teachers: List[Teacher],
) -> Dict[date, List[Teacher]]:
    """
    Groups assigned teachers per date.

    Every requested date gets a bucket (possibly empty). Teacher ids that do not
    resolve against `teachers` are dropped silently: they belong to removed staff
    or another organization. Bucket order follows the order of `teachers`.
    """
    ids_by_date = defaultdict(set)
    for assignment in assignments:
        ids_by_date[assignment.scheduled_date].add(assignment.teacher_id)

    buckets = {}
    for day in dates:
        scheduled_ids = ids_by_date.get(day, set())
        buckets[day] = [t for t in teachers if t.id in scheduled_ids]
    return buckets


def build_month_calendar(
    year: int,
    month: int,
    assignments: Iterable[ShiftAssignment],
    teachers: List[Teacher],
    student_counts: Optional[Dict[date, int]] = None,
) -> MonthlyCalendar:
    dates = dates_of_month(year, month)
    buckets = bucket_by_date(assignments, dates, teachers)
    student_counts = student_counts or {}

    return MonthlyCalendar(
        year=year,
        month=month,
        leading_blanks=sunday_first_weekday(dates[0]),
        trailing_blanks=6 - sunday_first_weekday(dates[-1]),
        days=[
            CalendarDay(day=d, teachers=buckets[d], student_count=student_counts.get(d, 0))
            for d in dates
        ],
    )

import csv
import io
from typing import List

from models.schemas import ShiftAssignment, Teacher
from services.scheduling.timeslots import format_hhmm

EXPORT_HEADERS = ["日期", "老師", "上班時間", "下班時間"]


def _rows(teacher: Teacher, assignments: List[ShiftAssignment]):
    ordered = sorted(assignments, key=lambda a: (a.scheduled_date, a.start_time))
    return [
        [a.scheduled_date.isoformat(), teacher.display_name, format_hhmm(a.start_time), format_hhmm(a.end_time)]
        for a in ordered
    ]


def to_csv(teacher: Teacher, assignments: List[ShiftAssignment]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(_rows(teacher, assignments))
    return buffer.getvalue()


def to_markdown(teacher: Teacher, assignments: List[ShiftAssignment]) -> str:
    lines = [
        "| " + " | ".join(EXPORT_HEADERS) + " |",
        "|" + "---|" * len(EXPORT_HEADERS),
    ]
    for row in _rows(teacher, assignments):
        # Pipes in a display name would split the cell
        lines.append("| " + " | ".join(cell.replace("|", "\\|") for cell in row) + " |")
    return "\n".join(lines)

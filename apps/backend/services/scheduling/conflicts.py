from collections import Counter
from datetime import date
from typing import Iterable, List, Tuple

from models.schemas import ShiftAssignment


def can_assign(entries: Iterable[ShiftAssignment], teacher_id: str, scheduled_date: date) -> bool:
    """True iff no entry already holds this (teacher, date) pair."""
    return not any(
        e.teacher_id == teacher_id and e.scheduled_date == scheduled_date
        for e in entries
    )


def duplicate_keys(entries: Iterable[ShiftAssignment]) -> List[Tuple[str, date]]:
    counts = Counter((e.teacher_id, e.scheduled_date) for e in entries)
    return sorted(key for key, n in counts.items() if n > 1)

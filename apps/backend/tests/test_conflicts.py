from datetime import date, time

from models.schemas import DraftAssignment, ShiftAssignment
from services.scheduling.conflicts import can_assign, duplicate_keys

ORG = "11111111-1111-1111-1111-111111111111"

def _shift(teacher_id, day, cls=ShiftAssignment):
    return cls(teacher_id=teacher_id, org_id=ORG, scheduled_date=day, start_time=time(9), end_time=time(18))

def test_can_assign_free_pair():
    entries = [_shift("T1", date(2024, 6, 10))]
    assert can_assign(entries, "T1", date(2024, 6, 11))
    assert can_assign(entries, "T2", date(2024, 6, 10))
    assert can_assign([], "T1", date(2024, 6, 10))

def test_can_assign_rejects_taken_pair_in_drafts_too():
    entries = [_shift("T1", date(2024, 6, 10), DraftAssignment)]
    assert not can_assign(entries, "T1", date(2024, 6, 10))

def test_duplicate_keys():
    entries = [
        _shift("T1", date(2024, 6, 10)),
        _shift("T1", date(2024, 6, 10)),
        _shift("T2", date(2024, 6, 10)),
    ]
    assert duplicate_keys(entries) == [("T1", date(2024, 6, 10))]
    assert duplicate_keys(entries[1:]) == []

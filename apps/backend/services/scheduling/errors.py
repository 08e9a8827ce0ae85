from datetime import date


class SchedulingError(Exception):
    """Base class for every recoverable shift-scheduling failure."""


class ScheduleValidationError(SchedulingError):
    """A required selection is missing or malformed. Raised before any store call."""


class ConflictError(SchedulingError):
    def __init__(self, teacher_id: str, scheduled_date: date):
        self.teacher_id = teacher_id
        self.scheduled_date = scheduled_date
        super().__init__(f"Teacher {teacher_id} is already scheduled on {scheduled_date.isoformat()}")


class DraftEntryNotFound(SchedulingError):
    def __init__(self, teacher_id: str, scheduled_date: date):
        self.teacher_id = teacher_id
        self.scheduled_date = scheduled_date
        super().__init__(f"No draft entry for teacher {teacher_id} on {scheduled_date.isoformat()}")


class StoreError(SchedulingError):
    """The assignment store rejected a call. Carries the store's own message."""


class PartialFailure(StoreError):
    """Bulk insert failed. Any delete issued before it has already been applied."""


class AssignmentNotFound(StoreError):
    pass

"""
Domain errors raised by the store and validation modules.

None of these know about HTTP; the route handlers in main.py decide the
status code for each one.
"""


class FocusFlowError(Exception):
    """Base class for errors raised by the data-access layer."""


class FieldError(ValueError):
    """A single request field failed validation."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class InvalidIdError(FieldError):
    def __init__(self, raw=None):
        super().__init__("id", "Invalid id")
        self.raw = raw


class HabitNotFoundError(FocusFlowError):
    def __init__(self, habit_id):
        super().__init__(f"Habit {habit_id} not found")
        self.habit_id = habit_id


class DuplicateUserError(FocusFlowError):
    pass


class IdAllocationError(FocusFlowError):
    pass

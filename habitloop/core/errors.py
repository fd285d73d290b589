from typing import Optional


class HabitError(Exception):
    """Base class for every error raised by the habit engine."""


class ValidationError(HabitError):
    """Invalid habit fields on create/edit (empty name, target below 1, bad reorder list)."""


class NotFoundError(HabitError):
    """An operation referenced a habit that is not in the active set."""

    def __init__(self, habit_id: str, message: Optional[str] = None):
        self.habit_id = habit_id
        super().__init__(message or f"Habit {habit_id} not found")


class StorageError(HabitError):
    """
    The store rejected a write.

    The in-memory mutation has already been applied when this is raised;
    ``habit_id`` is now listed in the engine's ``unsynced`` set.
    """

    def __init__(self, habit_id: str, cause: Exception):
        self.habit_id = habit_id
        self.cause = cause
        super().__init__(f"Failed to persist habit {habit_id}: {cause}")

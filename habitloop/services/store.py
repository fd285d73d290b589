"""Habit store protocol and the in-memory store."""

from typing import Dict, List, Optional, Protocol

from habitloop.models.habit import Habit, HabitEntry, sort_key


class HabitStore(Protocol):
    """Persistence collaborator injected into the progress engine."""

    async def load_active_habits(self) -> List[Habit]:
        """Non-archived habits with their entries, sorted by (sort_order, created_at)."""
        ...

    async def load_habit(self, habit_id: str) -> Optional[Habit]:
        """One habit with its entries, archived or not. None if the store has never seen it."""
        ...

    async def save_habit(self, habit: Habit) -> None:
        """Idempotent upsert of the habit's own fields."""
        ...

    async def save_entry(self, entry: HabitEntry) -> None:
        """Idempotent upsert of one entry."""
        ...


class MemoryHabitStore:
    """
    Keeps habits in a dict.

    Everything is deep-copied on the way in and out so callers never share
    objects with the store, the same as going through a real database.
    ``fail_writes`` makes every save raise, for exercising failure paths.
    """

    def __init__(self, habits: List[Habit] = None):
        self._habits: Dict[str, Habit] = {}
        self._entries: Dict[str, Dict[str, HabitEntry]] = {}
        self.fail_writes = False
        for habit in habits or []:
            self._put_habit(habit)
            for entry in habit.entries:
                self._put_entry(entry)

    def _check_writable(self):
        if self.fail_writes:
            raise IOError("store is read-only")

    def _put_habit(self, habit: Habit):
        self._habits[habit.id] = habit.model_copy(update={"entries": []}, deep=True)
        self._entries.setdefault(habit.id, {})

    def _put_entry(self, entry: HabitEntry):
        self._entries.setdefault(entry.habit_id, {})[entry.id] = entry.model_copy(deep=True)

    async def load_active_habits(self) -> List[Habit]:
        habits = []
        for habit in self._habits.values():
            if habit.is_archived:
                continue
            entries = sorted(self._entries.get(habit.id, {}).values(), key=lambda e: e.date)
            habits.append(habit.model_copy(update={"entries": [e.model_copy() for e in entries]}, deep=True))
        return sorted(habits, key=sort_key)

    async def load_habit(self, habit_id: str) -> Optional[Habit]:
        habit = self._habits.get(habit_id)
        if habit is None:
            return None
        entries = sorted(self._entries.get(habit_id, {}).values(), key=lambda e: e.date)
        return habit.model_copy(update={"entries": [e.model_copy() for e in entries]}, deep=True)

    async def save_habit(self, habit: Habit) -> None:
        self._check_writable()
        self._put_habit(habit)

    async def save_entry(self, entry: HabitEntry) -> None:
        self._check_writable()
        self._put_entry(entry)

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from habitloop.core.config import settings
from habitloop.models.habit import Habit, HabitEntry
from habitloop.services.progress import ProgressEngine
from habitloop.services.store import MemoryHabitStore

UTC = ZoneInfo("UTC")

# Wednesday afternoon
NOW = datetime(2025, 9, 17, 14, 30, tzinfo=UTC)
TODAY = date(2025, 9, 17)


@pytest.fixture(autouse=True)
def utc_settings(monkeypatch):
    monkeypatch.setattr(settings, "TIMEZONE", "UTC")
    monkeypatch.setattr(settings, "CONTRIBUTION_WEEKS", 52)


@pytest.fixture
def store():
    return MemoryHabitStore()


@pytest.fixture
async def engine(store):
    engine = ProgressEngine(store, clock=lambda: NOW)
    await engine.load()
    return engine


def make_habit(target_count=1, counts=None, **fields) -> Habit:
    """A habit snapshot with one entry per ``{day: count}`` item."""
    habit = Habit(name=fields.pop("name", "Read"), target_count=target_count,
                  created_at=fields.pop("created_at", NOW), **fields)
    habit.entries = [
        HabitEntry(habit_id=habit.id, date=day, count=count, created_at=NOW)
        for day, count in sorted((counts or {}).items())
    ]
    return habit

from datetime import date, time

from conftest import NOW, TODAY, make_habit
from habitloop.models.habit import Weekday
from habitloop.services.mongo_store import (
    entry_from_document,
    entry_to_document,
    habit_from_document,
    habit_to_document,
)
from habitloop.services.store import MemoryHabitStore


def test_habit_document_leaves_entries_out():
    habit = make_habit(counts={TODAY: 2}, reminder_time=time(9, 15),
                       reminder_days=[Weekday.TUESDAY, Weekday.SUNDAY])
    doc = habit_to_document(habit)

    assert doc["_id"] == habit.id
    assert "entries" not in doc
    assert doc["reminder_time"] == "09:15:00"
    assert doc["reminder_days"] == [1, 3]
    assert doc["is_archived"] is False


def test_habit_document_is_read_back_with_entries():
    habit = make_habit(counts={TODAY: 2}, reminder_time=time(9, 15))
    entries = [entry_from_document(entry_to_document(e)) for e in habit.entries]
    restored = habit_from_document(habit_to_document(habit), entries)

    assert restored.id == habit.id
    assert restored.reminder_time == time(9, 15)
    assert restored.entries[0].date == TODAY
    assert restored.entries[0].count == 2


def test_entry_document_stores_day_as_iso_string():
    habit = make_habit(counts={date(2025, 1, 5): 3})
    doc = entry_to_document(habit.entries[0])
    assert doc["date"] == "2025-01-05"
    assert doc["habit_id"] == habit.id
    assert doc["_id"] == habit.entries[0].id


def test_naive_timestamps_are_read_back_as_utc():
    habit = make_habit(counts={TODAY: 1})
    doc = habit_to_document(habit)
    doc["created_at"] = doc["created_at"].replace(tzinfo=None)
    entry_doc = entry_to_document(habit.entries[0])
    entry_doc["created_at"] = entry_doc["created_at"].replace(tzinfo=None)

    restored = habit_from_document(doc, [entry_from_document(entry_doc)])
    assert restored.created_at == NOW
    assert restored.created_at.tzinfo is not None
    assert restored.entries[0].created_at == NOW


async def test_memory_store_loads_archived_habit():
    habit = make_habit(counts={TODAY: 2}, is_archived=True)
    store = MemoryHabitStore([habit])

    assert await store.load_active_habits() == []
    loaded = await store.load_habit(habit.id)
    assert loaded.is_archived is True
    assert loaded.entries[0].count == 2
    assert await store.load_habit("missing") is None

from datetime import date, time
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from habitloop.core.time_utils import to_local
from habitloop.models.habit import Habit, HabitEntry, sort_key


def habit_to_document(habit: Habit) -> Dict[str, Any]:
    doc = habit.model_dump(by_alias=True, exclude={"entries"})
    # BSON has no time type
    doc["reminder_time"] = habit.reminder_time.isoformat() if habit.reminder_time else None
    doc["reminder_days"] = [int(day) for day in habit.reminder_days]
    return doc


def habit_from_document(doc: Dict[str, Any], entries: List[HabitEntry]) -> Habit:
    data = dict(doc)
    if data.get("reminder_time"):
        data["reminder_time"] = time.fromisoformat(data["reminder_time"])
    if data.get("created_at"):
        data["created_at"] = to_local(data["created_at"])
    data["entries"] = entries
    return Habit(**data)


def entry_to_document(entry: HabitEntry) -> Dict[str, Any]:
    doc = entry.model_dump(by_alias=True)
    # BSON has no date type; ISO strings keep ordering and equality
    doc["date"] = entry.date.isoformat()
    return doc


def entry_from_document(doc: Dict[str, Any]) -> HabitEntry:
    data = dict(doc)
    data["date"] = date.fromisoformat(data["date"])
    if data.get("created_at"):
        data["created_at"] = to_local(data["created_at"])
    return HabitEntry(**data)


class MongoHabitStore:
    """
    Habit store backed by two collections: ``habits`` and ``habit_entries``.

    The unique (habit_id, date) index makes the database itself refuse a
    second entry for the same day.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def ensure_indexes(self):
        await self.db.habit_entries.create_index(
            [("habit_id", ASCENDING), ("date", ASCENDING)], unique=True
        )
        await self.db.habits.create_index([("is_archived", ASCENDING), ("sort_order", ASCENDING)])

    async def load_active_habits(self) -> List[Habit]:
        habit_docs = await self.db.habits.find({"is_archived": False}).to_list(length=None)
        if not habit_docs:
            return []

        habit_ids = [doc["_id"] for doc in habit_docs]
        entries_by_habit: Dict[str, List[HabitEntry]] = {habit_id: [] for habit_id in habit_ids}
        cursor = self.db.habit_entries.find({"habit_id": {"$in": habit_ids}}).sort("date", ASCENDING)
        async for entry_doc in cursor:
            entries_by_habit[entry_doc["habit_id"]].append(entry_from_document(entry_doc))

        habits = [habit_from_document(doc, entries_by_habit[doc["_id"]]) for doc in habit_docs]
        return sorted(habits, key=sort_key)

    async def load_habit(self, habit_id: str) -> Optional[Habit]:
        doc = await self.db.habits.find_one({"_id": habit_id})
        if doc is None:
            return None
        cursor = self.db.habit_entries.find({"habit_id": habit_id}).sort("date", ASCENDING)
        entries = [entry_from_document(entry_doc) async for entry_doc in cursor]
        return habit_from_document(doc, entries)

    async def save_habit(self, habit: Habit) -> None:
        await self.db.habits.replace_one({"_id": habit.id}, habit_to_document(habit), upsert=True)

    async def save_entry(self, entry: HabitEntry) -> None:
        await self.db.habit_entries.replace_one({"_id": entry.id}, entry_to_document(entry), upsert=True)

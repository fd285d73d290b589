from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime, time
from enum import IntEnum
from uuid import uuid4

from habitloop.core.time_utils import get_current_time, day_key, DayLike


def new_id() -> str:
    return uuid4().hex


class Weekday(IntEnum):
    """Reminder day tags. Sunday is 1, as in the mobile client's calendar."""
    SUNDAY = 1
    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7

    @property
    def full_name(self) -> str:
        return self.name.capitalize()

    @property
    def short_name(self) -> str:
        return self.name[0]


def _normalize_days(days: List[Weekday]) -> List[Weekday]:
    # Stored as a set: unique, sorted Sunday first
    return sorted(set(days))


class HabitEntry(BaseModel):
    """
    Progress logged for one habit on one calendar day.

    ``date`` is always a day key, never a raw instant. ``habit_id`` is a
    lookup reference to the owning habit.
    """
    id: str = Field(default_factory=new_id, alias="_id")
    habit_id: str
    date: date
    count: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=get_current_time)

    class Config:
        populate_by_name = True


class Habit(BaseModel):
    """
    Represents a Habit in the system.

    Attributes:
    - target_count: daily goal (1 for yes/no habits, 8 for glasses of water...).
    - sort_order: user-defined position among active habits.
    - is_archived: soft delete. Archived habits keep their entries.
    - reminder_*: read by the notification side, never interpreted here.
    - entries: at most one HabitEntry per day.
    """
    id: str = Field(default_factory=new_id, alias="_id")
    name: str
    icon: str = "star.fill" # icon identifier
    color: str = "#007AFF" # hex color
    target_count: int = 1
    unit: str = "times" # 'times', 'glasses', 'minutes', ...
    created_at: datetime = Field(default_factory=get_current_time)
    is_archived: bool = False
    sort_order: int = 0

    # Reminders
    reminder_enabled: bool = False
    reminder_time: Optional[time] = None
    reminder_days: List[Weekday] = []

    entries: List[HabitEntry] = []

    @field_validator("reminder_days")
    @classmethod
    def unique_reminder_days(cls, days: List[Weekday]) -> List[Weekday]:
        return _normalize_days(days)

    class Config:
        populate_by_name = True
        validate_assignment = True


class HabitCreate(BaseModel):
    # name/target_count are checked by the progress engine, not here
    name: str
    icon: str = "star.fill"
    color: str = "#007AFF"
    target_count: int = 1
    unit: str = "times"
    reminder_enabled: bool = False
    reminder_time: Optional[time] = None
    reminder_days: List[Weekday] = []

    @field_validator("reminder_days")
    @classmethod
    def unique_reminder_days(cls, days: List[Weekday]) -> List[Weekday]:
        return _normalize_days(days)


class HabitUpdate(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    target_count: Optional[int] = None
    unit: Optional[str] = None
    reminder_enabled: Optional[bool] = None
    reminder_time: Optional[time] = None
    reminder_days: Optional[List[Weekday]] = None


# --- Entry helpers ---

def find_entry(habit: Habit, day: DayLike) -> Optional[HabitEntry]:
    key = day_key(day)
    for entry in habit.entries:
        if entry.date == key:
            return entry
    return None


def entry_count(habit: Habit, day: DayLike) -> int:
    entry = find_entry(habit, day)
    return entry.count if entry else 0


def completion_ratio(habit: Habit, day: DayLike) -> float:
    """count / target, capped at 1.0. A non-positive target gives 0.0."""
    if habit.target_count <= 0:
        return 0.0
    return min(entry_count(habit, day) / habit.target_count, 1.0)


def completed_on(habit: Habit, day: DayLike) -> bool:
    return entry_count(habit, day) >= habit.target_count


def sort_key(habit: Habit):
    return (habit.sort_order, habit.created_at)

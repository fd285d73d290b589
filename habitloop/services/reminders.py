from typing import List

from pydantic import BaseModel

from habitloop.models.habit import Habit, Weekday


class ReminderSlot(BaseModel):
    """One weekly repeating reminder, as a notification service would schedule it."""
    identifier: str
    habit_id: str
    habit_name: str
    weekday: Weekday
    hour: int
    minute: int
    title: str
    body: str = "Don't forget your daily habit!"


def reminder_identifier(habit_id: str, weekday: Weekday) -> str:
    return f"habit_{habit_id}_day_{int(weekday)}"


def reminder_identifiers(habit: Habit) -> List[str]:
    """Every identifier the habit could own. Cancel these before rescheduling."""
    return [reminder_identifier(habit.id, day) for day in Weekday]


def reminder_slots(habit: Habit) -> List[ReminderSlot]:
    if not habit.reminder_enabled or habit.reminder_time is None or habit.is_archived:
        return []
    return [
        ReminderSlot(
            identifier=reminder_identifier(habit.id, day),
            habit_id=habit.id,
            habit_name=habit.name,
            weekday=day,
            hour=habit.reminder_time.hour,
            minute=habit.reminder_time.minute,
            title=f"Time to {habit.name}",
        )
        for day in habit.reminder_days
    ]

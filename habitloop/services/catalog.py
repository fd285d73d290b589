from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from habitloop.core.errors import NotFoundError
from habitloop.models.habit import HabitCreate


class HabitTemplate(BaseModel):
    name: str
    icon: str
    color: str
    target_count: int
    unit: str

    class Config:
        frozen = True


TEMPLATES = (
    HabitTemplate(name="Drink Water", icon="drop.fill", color="#007AFF", target_count=80, unit="oz"),
    HabitTemplate(name="Exercise", icon="figure.run", color="#FF3B30", target_count=1, unit="session"),
    HabitTemplate(name="Read", icon="book.fill", color="#FF9500", target_count=30, unit="minutes"),
    HabitTemplate(name="Meditate", icon="brain.head.profile", color="#AF52DE", target_count=10, unit="minutes"),
    HabitTemplate(name="Walk", icon="figure.walk", color="#34C759", target_count=10000, unit="steps"),
    HabitTemplate(name="Sleep Early", icon="bed.double.fill", color="#5856D6", target_count=1, unit="night"),
    HabitTemplate(name="Journal", icon="pencil", color="#FF2D92", target_count=1, unit="entry"),
    HabitTemplate(name="Stretch", icon="figure.flexibility", color="#32D74B", target_count=1, unit="session"),
)

# Choices offered when building a custom habit
AVAILABLE_ICONS = [
    "star.fill", "heart.fill", "flame.fill", "bolt.fill", "leaf.fill",
    "drop.fill", "book.fill", "pencil", "figure.run", "brain.head.profile",
    "bed.double.fill", "figure.walk", "dumbbell.fill", "cup.and.saucer.fill",
]
AVAILABLE_COLORS = [
    "#007AFF", "#FF3B30", "#FF9500", "#AF52DE", "#34C759",
    "#5856D6", "#FF2D92", "#32D74B", "#00C7BE", "#FFD60A",
]
AVAILABLE_UNITS = ["times", "minutes", "hours", "glasses", "pages", "steps", "sessions"]

OVERRIDABLE = ("target_count", "reminder_enabled", "reminder_time", "reminder_days")


def templates() -> List[HabitTemplate]:
    return list(TEMPLATES)


def get_template(name: str) -> HabitTemplate:
    for template in TEMPLATES:
        if template.name.lower() == name.strip().lower():
            return template
    raise NotFoundError(name, f"No habit template named '{name}'")


def instantiate(template: HabitTemplate, overrides: Optional[Mapping[str, Any]] = None) -> HabitCreate:
    """
    Turns a template into creation fields for the progress engine.

    Only the daily target and the reminder settings can be overridden;
    ``None`` values are ignored.
    """
    fields = template.model_dump()
    for key, value in (overrides or {}).items():
        if key not in OVERRIDABLE:
            raise ValueError(f"Template field '{key}' cannot be overridden")
        if value is not None:
            fields[key] = value
    return HabitCreate(**fields)

"""
Progress engine: the single owner of the in-memory habit list.

Every command goes through here. The engine mutates its own copy of the
active habits, writes the change to the injected store, reloads
(read-after-write) and then publishes a snapshot to its observers.

The engine does no locking. Callers that may issue commands concurrently
must serialize the mutating methods themselves; the FastAPI app does it with
one ``asyncio.Lock``.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError as PydanticValidationError

from habitloop.core.errors import NotFoundError, StorageError, ValidationError
from habitloop.core.time_utils import DayLike, day_key, get_current_time
from habitloop.models.habit import (
    Habit,
    HabitCreate,
    HabitEntry,
    HabitUpdate,
    completed_on,
    completion_ratio,
    entry_count,
    find_entry,
    sort_key,
)
from habitloop.services.store import HabitStore

logger = logging.getLogger(__name__)

Observer = Callable[[List[Habit]], None]


def _snapshot(habits: Iterable[Habit]) -> List[Habit]:
    return [habit.model_copy(deep=True) for habit in habits]


def _coerce(model, fields):
    if isinstance(fields, model):
        return fields
    try:
        return model(**dict(fields))
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e


def validate_fields(name: Optional[str], target_count: Optional[int]):
    """Name must not be blank, target must be at least 1. ``None`` means 'not provided'."""
    if name is not None and not name.strip():
        raise ValidationError("Habit name must not be empty")
    if target_count is not None and target_count < 1:
        raise ValidationError("Daily target must be at least 1")


class ProgressEngine:
    def __init__(self, store: HabitStore, clock: Callable[[], datetime] = get_current_time):
        self.store = store
        self.clock = clock
        self._habits: List[Habit] = []
        self._observers: List[Observer] = []
        self._unsynced: Set[str] = set()
        self._archived: Dict[str, Habit] = {}

    # --- Loading & snapshots ---

    async def load(self):
        self._habits = sorted(await self.store.load_active_habits(), key=sort_key)
        logger.info(f"Loaded {len(self._habits)} active habits")

    def list_active(self) -> List[Habit]:
        return _snapshot(self._habits)

    @property
    def habits(self) -> List[Habit]:
        return self.list_active()

    @property
    def active_count(self) -> int:
        return len(self._habits)

    @property
    def unsynced(self) -> Set[str]:
        return set(self._unsynced)

    def get_habit(self, habit_id: str) -> Habit:
        return self._find(habit_id).model_copy(deep=True)

    def _find(self, habit_id: str) -> Habit:
        for habit in self._habits:
            if habit.id == habit_id:
                return habit
        raise NotFoundError(habit_id)

    def _day(self, day: Optional[DayLike], now: Optional[DayLike]):
        if day is not None:
            return day_key(day)
        return day_key(now if now is not None else self.clock())

    # --- Observers ---

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Registers ``observer``; returns a function that removes it again."""
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _publish(self):
        for observer in list(self._observers):
            try:
                observer(self.list_active())
            except Exception:
                logger.exception("Habit observer failed")

    # --- Persistence ---

    async def _commit(self, habits: List[Habit], entries: List[HabitEntry] = ()):
        """
        Writes the changed habits/entries, reloads and publishes.

        On a store failure the in-memory change is kept, the habits are
        flagged unsynced and StorageError is raised after publishing.
        """
        failure = None
        failed_id = None
        for habit in habits:
            try:
                await self.store.save_habit(habit)
            except Exception as e:
                logger.error(f"Failed to save habit {habit.id}: {e}")
                self._unsynced.add(habit.id)
                failure, failed_id = failure or e, failed_id or habit.id
        for entry in entries:
            try:
                await self.store.save_entry(entry)
            except Exception as e:
                logger.error(f"Failed to save entry {entry.id} of habit {entry.habit_id}: {e}")
                self._unsynced.add(entry.habit_id)
                failure, failed_id = failure or e, failed_id or entry.habit_id

        if failure is None:
            for habit in habits:
                self._unsynced.discard(habit.id)
            await self._reload()

        self._publish()

        if failure is not None:
            raise StorageError(failed_id, failure)

    async def _reload(self):
        """Read-after-write. Habits the store has not accepted yet keep their in-memory version."""
        try:
            stored = await self.store.load_active_habits()
        except Exception as e:
            logger.error(f"Failed to reload habits, keeping in-memory state: {e}")
            return
        # an unsynced archive is still active in the store
        known = self._habits + list(self._archived.values())
        pending = {habit.id: habit for habit in known if habit.id in self._unsynced}
        habits = [pending.pop(habit.id, habit) for habit in stored]
        habits.extend(pending.values())
        self._habits = sorted((habit for habit in habits if not habit.is_archived), key=sort_key)

    async def sync(self) -> Set[str]:
        """Retries every unsynced habit. Returns the ids that are still unsynced."""
        for habit_id in sorted(self._unsynced):
            habit = next((h for h in self._habits if h.id == habit_id), None) or self._archived.get(habit_id)
            if habit is None:
                self._unsynced.discard(habit_id)
                continue
            try:
                await self.store.save_habit(habit)
                for entry in habit.entries:
                    await self.store.save_entry(entry)
            except Exception as e:
                logger.error(f"Habit {habit_id} is still unsynced: {e}")
                continue
            self._unsynced.discard(habit_id)

        if not self._unsynced:
            await self._reload()
        self._publish()
        return self.unsynced

    # --- Habit management ---

    async def create_habit(self, fields: Union[HabitCreate, Mapping[str, Any]]) -> Habit:
        data = _coerce(HabitCreate, fields)
        validate_fields(data.name, data.target_count)

        habit = Habit(
            **data.model_dump(),
            created_at=self.clock(),
            sort_order=self.active_count,
        )
        self._habits = sorted(self._habits + [habit], key=sort_key)
        logger.info(f"Created habit '{habit.name}' ({habit.id})")

        await self._commit([habit])
        return self.get_habit(habit.id)

    async def edit_habit(self, habit_id: str, fields: Union[HabitUpdate, Mapping[str, Any]]) -> Habit:
        habit = self._find(habit_id)
        changes = _coerce(HabitUpdate, fields).model_dump(exclude_unset=True)
        # Explicit nulls only make sense for reminder_time
        changes = {k: v for k, v in changes.items() if v is not None or k == "reminder_time"}
        validate_fields(changes.get("name"), changes.get("target_count"))

        for field, value in changes.items():
            setattr(habit, field, value)

        await self._commit([habit])
        return self.get_habit(habit.id)

    async def archive_habit(self, habit_id: str):
        """
        Soft-deletes the habit and packs the remaining sort orders to 0..n-1.

        Archiving a habit that is already archived, in this run or an earlier
        one, is a no-op.
        """
        try:
            habit = self._find(habit_id)
        except NotFoundError:
            if habit_id in self._archived:
                return
            stored = await self.store.load_habit(habit_id)
            if stored is not None and stored.is_archived:
                self._archived[habit_id] = stored
                return
            raise

        habit.is_archived = True
        self._archived[habit_id] = habit
        remaining = [h for h in self._habits if h.id != habit_id]
        changed = [habit]
        for index, other in enumerate(remaining):
            if other.sort_order != index:
                other.sort_order = index
                changed.append(other)
        self._habits = remaining
        logger.info(f"Archived habit '{habit.name}' ({habit.id})")

        await self._commit(changed)

    async def reorder(self, habit_ids: List[str]) -> List[Habit]:
        """
        Moves the listed habits to the front, in list order. Habits left out
        keep their relative order behind them.
        """
        if len(set(habit_ids)) != len(habit_ids):
            raise ValidationError("Reorder list contains duplicates")
        listed = [self._find(habit_id) for habit_id in habit_ids]
        rest = [h for h in self._habits if h.id not in set(habit_ids)]

        ordered = _snapshot(listed + rest)
        changed = []
        for index, habit in enumerate(ordered):
            if habit.sort_order != index:
                habit.sort_order = index
                changed.append(habit)
        # single swap so no reader sees a half-renumbered list
        self._habits = ordered

        await self._commit(changed)
        return self.list_active()

    # --- Progress ---

    async def set_count(self, habit_id: str, count: int, day: Optional[DayLike] = None,
                        now: Optional[DayLike] = None) -> int:
        habit = self._find(habit_id)
        key = self._day(day, now)
        count = max(0, int(count))

        entry = find_entry(habit, key)
        if entry is not None:
            entry.count = count
        elif count > 0:
            entry = HabitEntry(habit_id=habit.id, date=key, count=count, created_at=self.clock())
            habit.entries.append(entry)
            habit.entries.sort(key=lambda e: e.date)

        await self._commit([habit], [entry] if entry is not None else [])
        return count

    async def increment(self, habit_id: str, day: Optional[DayLike] = None,
                        now: Optional[DayLike] = None) -> int:
        key = self._day(day, now)
        return await self.set_count(habit_id, self.current_count(habit_id, key) + 1, day=key)

    async def decrement(self, habit_id: str, day: Optional[DayLike] = None,
                        now: Optional[DayLike] = None) -> int:
        key = self._day(day, now)
        return await self.set_count(habit_id, max(0, self.current_count(habit_id, key) - 1), day=key)

    def current_count(self, habit_id: str, day: Optional[DayLike] = None, now: Optional[DayLike] = None) -> int:
        return entry_count(self._find(habit_id), self._day(day, now))

    def is_completed(self, habit_id: str, day: Optional[DayLike] = None, now: Optional[DayLike] = None) -> bool:
        return completed_on(self._find(habit_id), self._day(day, now))

    def progress_ratio(self, habit_id: str, day: Optional[DayLike] = None, now: Optional[DayLike] = None) -> float:
        return completion_ratio(self._find(habit_id), self._day(day, now))

    def progress(self, habit_id: str, day: Optional[DayLike] = None, now: Optional[DayLike] = None) -> Dict[str, Any]:
        key = self._day(day, now)
        return {
            "day": key,
            "count": self.current_count(habit_id, key),
            "ratio": self.progress_ratio(habit_id, key),
            "is_completed": self.is_completed(habit_id, key),
        }

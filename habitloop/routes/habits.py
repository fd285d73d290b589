import asyncio
from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from habitloop.core.dependencies import get_engine, get_write_lock, http_error
from habitloop.core.errors import HabitError, NotFoundError, StorageError
from habitloop.models.habit import Habit, HabitCreate, HabitUpdate, Weekday
from habitloop.services import catalog
from habitloop.services.progress import ProgressEngine
from habitloop.services.reminders import ReminderSlot, reminder_slots

router = APIRouter(prefix="/habits", tags=["Habits"])


class ReorderRequest(BaseModel):
    habit_ids: List[str]


class CountRequest(BaseModel):
    count: int
    day: Optional[date] = None


class TemplateOverrides(BaseModel):
    target_count: Optional[int] = None
    reminder_enabled: Optional[bool] = None
    reminder_time: Optional[time] = None
    reminder_days: Optional[List[Weekday]] = None


def _progress_response(engine: ProgressEngine, habit_id: str, day: Optional[date], synced: bool) -> dict:
    progress = engine.progress(habit_id, day=day)
    return {
        "habit": engine.get_habit(habit_id),
        "synced": synced,
        **progress,
    }


@router.get("/", response_model=List[Habit])
async def get_habits(engine: ProgressEngine = Depends(get_engine)):
    return engine.list_active()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_habit(habit_in: HabitCreate, engine: ProgressEngine = Depends(get_engine),
                       lock: asyncio.Lock = Depends(get_write_lock)):
    async with lock:
        try:
            habit = await engine.create_habit(habit_in)
            synced = True
        except StorageError as e:
            habit, synced = engine.get_habit(e.habit_id), False
        except HabitError as e:
            raise http_error(e)
    return {"habit": habit, "synced": synced}


# --- Templates ---

@router.get("/templates", response_model=List[catalog.HabitTemplate])
async def get_templates():
    return catalog.templates()


@router.post("/templates/{name}", status_code=status.HTTP_201_CREATED)
async def create_from_template(name: str, overrides: Optional[TemplateOverrides] = None,
                               engine: ProgressEngine = Depends(get_engine),
                               lock: asyncio.Lock = Depends(get_write_lock)):
    """Creates a habit from one of the predefined templates, e.g. ``/habits/templates/Read``."""
    try:
        template = catalog.get_template(name)
    except NotFoundError as e:
        raise http_error(e)
    fields = catalog.instantiate(template, overrides.model_dump(exclude_none=True) if overrides else None)

    async with lock:
        try:
            habit = await engine.create_habit(fields)
            synced = True
        except StorageError as e:
            habit, synced = engine.get_habit(e.habit_id), False
        except HabitError as e:
            raise http_error(e)
    return {"habit": habit, "synced": synced}


@router.put("/order")
async def reorder_habits(body: ReorderRequest, engine: ProgressEngine = Depends(get_engine),
                         lock: asyncio.Lock = Depends(get_write_lock)):
    async with lock:
        synced = True
        try:
            await engine.reorder(body.habit_ids)
        except StorageError:
            synced = False
        except HabitError as e:
            raise http_error(e)
    return {"habits": engine.list_active(), "synced": synced}


# --- Single habit ---

@router.get("/{habit_id}", response_model=Habit)
async def get_habit(habit_id: str, engine: ProgressEngine = Depends(get_engine)):
    try:
        return engine.get_habit(habit_id)
    except NotFoundError as e:
        raise http_error(e)


@router.patch("/{habit_id}")
async def update_habit(habit_id: str, changes: HabitUpdate, engine: ProgressEngine = Depends(get_engine),
                       lock: asyncio.Lock = Depends(get_write_lock)):
    async with lock:
        synced = True
        try:
            await engine.edit_habit(habit_id, changes)
        except StorageError:
            synced = False
        except HabitError as e:
            raise http_error(e)
        habit = engine.get_habit(habit_id)
    return {"habit": habit, "synced": synced}


@router.delete("/{habit_id}")
async def archive_habit(habit_id: str, engine: ProgressEngine = Depends(get_engine),
                        lock: asyncio.Lock = Depends(get_write_lock)):
    async with lock:
        synced = True
        try:
            await engine.archive_habit(habit_id)
        except StorageError:
            synced = False
        except HabitError as e:
            raise http_error(e)
    return {"message": "Habit archived", "synced": synced}


@router.get("/{habit_id}/reminders", response_model=List[ReminderSlot])
async def get_reminders(habit_id: str, engine: ProgressEngine = Depends(get_engine)):
    try:
        return reminder_slots(engine.get_habit(habit_id))
    except NotFoundError as e:
        raise http_error(e)


# --- Progress ---

@router.get("/{habit_id}/progress")
async def get_progress(habit_id: str, day: Optional[date] = None, engine: ProgressEngine = Depends(get_engine)):
    try:
        return _progress_response(engine, habit_id, day, habit_id not in engine.unsynced)
    except NotFoundError as e:
        raise http_error(e)


@router.post("/{habit_id}/increment")
async def increment_habit(habit_id: str, day: Optional[date] = None, engine: ProgressEngine = Depends(get_engine),
                          lock: asyncio.Lock = Depends(get_write_lock)):
    async with lock:
        synced = True
        try:
            await engine.increment(habit_id, day=day)
        except StorageError:
            synced = False
        except HabitError as e:
            raise http_error(e)
        return _progress_response(engine, habit_id, day, synced)


@router.post("/{habit_id}/decrement")
async def decrement_habit(habit_id: str, day: Optional[date] = None, engine: ProgressEngine = Depends(get_engine),
                          lock: asyncio.Lock = Depends(get_write_lock)):
    async with lock:
        synced = True
        try:
            await engine.decrement(habit_id, day=day)
        except StorageError:
            synced = False
        except HabitError as e:
            raise http_error(e)
        return _progress_response(engine, habit_id, day, synced)


@router.put("/{habit_id}/count")
async def set_habit_count(habit_id: str, body: CountRequest, engine: ProgressEngine = Depends(get_engine),
                          lock: asyncio.Lock = Depends(get_write_lock)):
    async with lock:
        synced = True
        try:
            await engine.set_count(habit_id, body.count, day=body.day)
        except StorageError:
            synced = False
        except HabitError as e:
            raise http_error(e)
        return _progress_response(engine, habit_id, body.day, synced)

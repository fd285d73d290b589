from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from habitloop.core.dependencies import get_engine, http_error
from habitloop.core.errors import NotFoundError
from habitloop.core.time_utils import current_day, week_interval
from habitloop.services import aggregation
from habitloop.services.progress import ProgressEngine

router = APIRouter(prefix="/analytics", tags=["Analytics"])


def _habit(engine: ProgressEngine, habit_id: str):
    try:
        return engine.get_habit(habit_id)
    except NotFoundError as e:
        raise http_error(e)


@router.get("/today")
async def get_today_summary(day: Optional[date] = None, engine: ProgressEngine = Depends(get_engine)):
    """Completed vs total active habits for ``day`` (today by default)."""
    return aggregation.daily_summary(engine.list_active(), day or current_day(engine.clock()))


@router.get("/{habit_id}/week")
async def get_week(habit_id: str, day: Optional[date] = None, engine: ProgressEngine = Depends(get_engine)):
    """Dot row for the Sunday-first week containing ``day``."""
    habit = _habit(engine, habit_id)
    today = current_day(engine.clock())
    week_days = week_interval(day or today)
    return {
        "week_start": week_days[0],
        "days": aggregation.weekly_grid(habit, week_days, today),
        "completed_days": aggregation.week_completion_count(habit, week_days),
    }


@router.get("/{habit_id}/month")
async def get_month(habit_id: str, month: Optional[date] = None, engine: ProgressEngine = Depends(get_engine)):
    """Calendar heatmap for the month containing ``month``."""
    habit = _habit(engine, habit_id)
    today = current_day(engine.clock())
    grid = aggregation.monthly_grid(habit, month or today, today)
    return {
        "grid": grid,
        "completed_days": aggregation.month_completion_count(habit, grid.month, today),
        "total_days": len(grid.cells),
    }


@router.get("/{habit_id}/contributions")
async def get_contributions(habit_id: str, reference: Optional[date] = None,
                            engine: ProgressEngine = Depends(get_engine)):
    """52 weeks x 7 days, oldest week first."""
    habit = _habit(engine, habit_id)
    today = current_day(engine.clock())
    return {"weeks": aggregation.contribution_matrix(habit, reference or today, today)}

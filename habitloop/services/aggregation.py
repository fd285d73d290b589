"""
Read-only views over habit snapshots.

Nothing here mutates a habit or touches the store. Every function takes an
optional ``today``; when omitted the current day in the configured zone is
used. Day arithmetic goes through ``habitloop.core.time_utils`` only.
"""
from datetime import date
from typing import Iterable, List, Optional, Sequence

from habitloop.core.config import settings
from habitloop.core.time_utils import (
    DayLike,
    add_weeks,
    current_day,
    day_key,
    month_days,
    month_interval,
    week_interval,
    weekday_index,
)
from habitloop.models.analytics import DailySummary, DayCell, MonthGrid
from habitloop.models.habit import Habit, completed_on, completion_ratio, entry_count


def _today(today: Optional[DayLike]) -> date:
    return current_day(today)


def day_cell(habit: Habit, day: DayLike, today: Optional[DayLike] = None) -> DayCell:
    """
    Builds the render-ready cell for one day.

    A future day is always neutral: zero count, zero ratio, not completed.
    """
    key = day_key(day)
    ref = _today(today)

    if key > ref:
        return DayCell(day=key, is_future=True, state="future")

    count = entry_count(habit, key)
    ratio = completion_ratio(habit, key)
    is_completed = completed_on(habit, key)
    if is_completed:
        state = "complete"
    elif ratio == 0:
        state = "empty"
    else:
        state = "partial"

    return DayCell(
        day=key,
        count=count,
        ratio=ratio,
        is_completed=is_completed,
        is_today=key == ref,
        state=state,
    )


def daily_summary(habits: Iterable[Habit], day: DayLike) -> DailySummary:
    """How many active habits are done on ``day``."""
    active = [h for h in habits if not h.is_archived]
    completed = sum(1 for h in active if completed_on(h, day))
    total = len(active)
    return DailySummary(
        day=day_key(day),
        completed=completed,
        total=total,
        ratio=completed / total if total else 0.0,
    )


def weekly_grid(habit: Habit, week_days: Sequence[DayLike], today: Optional[DayLike] = None) -> List[DayCell]:
    if len(week_days) != 7:
        raise ValueError(f"A week has 7 days, got {len(week_days)}")
    ref = _today(today)
    return [day_cell(habit, day, ref) for day in week_days]


def monthly_grid(habit: Habit, month: DayLike, today: Optional[DayLike] = None) -> MonthGrid:
    """
    Calendar heatmap for the month containing ``month``.

    ``leading_blanks`` is the number of empty slots before the 1st in a
    Sunday-first grid.
    """
    ref = _today(today)
    start, _ = month_interval(month)
    return MonthGrid(
        month=start,
        leading_blanks=weekday_index(start),
        cells=[day_cell(habit, day, ref) for day in month_days(start)],
    )


def contribution_matrix(habit: Habit, reference: DayLike, today: Optional[DayLike] = None,
                        weeks: Optional[int] = None) -> List[List[Optional[DayCell]]]:
    """
    Yearly activity heatmap: ``weeks`` columns (52 by default) of 7 days,
    Sunday first, ending with the week that contains ``reference``.

    The last week is always complete, with its future days flagged. In any
    earlier week a day after today is left out (None).
    """
    ref = _today(today)
    if weeks is None:
        weeks = settings.CONTRIBUTION_WEEKS
    current_week_start = week_interval(reference)[0]

    matrix = []
    for offset in range(weeks):
        week_start = add_weeks(current_week_start, offset - (weeks - 1))
        is_current_week = offset == weeks - 1
        column = []
        for day in week_interval(week_start):
            if day > ref and not is_current_week:
                column.append(None)
            else:
                column.append(day_cell(habit, day, ref))
        matrix.append(column)
    return matrix


def month_completion_count(habit: Habit, month: DayLike, today: Optional[DayLike] = None) -> int:
    """Completed days in the month, counting only up to today."""
    ref = _today(today)
    return sum(1 for day in month_days(month) if day <= ref and completed_on(habit, day))


def week_completion_count(habit: Habit, week_days: Sequence[DayLike]) -> int:
    return sum(1 for day in week_days if completed_on(habit, day))


def weekly_progress(habit: Habit, start: DayLike) -> List[float]:
    """Raw completion ratio for the 7 days of the week containing ``start``."""
    return [completion_ratio(habit, day) for day in week_interval(start)]


def monthly_progress(habit: Habit, month: DayLike) -> List[float]:
    return [completion_ratio(habit, day) for day in month_days(month)]

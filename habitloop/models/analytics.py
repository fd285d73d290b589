from pydantic import BaseModel
from datetime import date
from typing import List, Literal

CellState = Literal["future", "empty", "partial", "complete"]


class DayCell(BaseModel):
    """
    One day of one habit, ready to render.

    state:
    - 'future': after today. Always neutral, whatever is stored.
    - 'empty': ratio == 0.
    - 'partial': 0 < ratio and target not reached.
    - 'complete': count >= target.
    """
    day: date
    count: int = 0
    ratio: float = 0.0
    is_completed: bool = False
    is_future: bool = False
    is_today: bool = False
    state: CellState = "empty"


class MonthGrid(BaseModel):
    month: date # first day of the month
    leading_blanks: int # weekday index of the 1st, 0 = Sunday
    cells: List[DayCell]


class DailySummary(BaseModel):
    day: date
    completed: int
    total: int
    ratio: float = 0.0

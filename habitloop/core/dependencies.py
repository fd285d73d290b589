import asyncio
from fastapi import HTTPException, Request, status

from habitloop.core.errors import HabitError, NotFoundError, ValidationError
from habitloop.services.progress import ProgressEngine


def get_engine(request: Request) -> ProgressEngine:
    return request.app.state.engine


def get_write_lock(request: Request) -> asyncio.Lock:
    """Every mutating route runs under this lock: one writer at a time."""
    return request.app.state.write_lock


def http_error(error: HabitError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))

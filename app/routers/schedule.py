"""Schedule router - per-day and calendar views."""
from datetime import date

from fastapi import APIRouter, Depends, Query

from app.database import get_store
from app.models.schedule import BusyDates, DaySchedule
from app.services.schedule_service import ScheduleService


router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("", response_model=BusyDates)
async def get_busy_dates(
    start: date = Query(..., description="First date of the window"),
    days: int = Query(21, ge=1, le=366, description="Window length in days"),
    store=Depends(get_store),
):
    """Dates in a window that have a task or a due goal."""
    service = ScheduleService(store)
    return await service.get_busy_dates(start=start, days=days)


@router.get("/{day}", response_model=DaySchedule)
async def get_day(day: date, store=Depends(get_store)):
    """
    Goals and tasks for one day, ordered by time.

    - Items without a time come last
    """
    service = ScheduleService(store)
    return await service.get_day(day)

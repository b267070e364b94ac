"""Per-day schedule projection models."""
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel


class ScheduleItemType(str, Enum):
    """Source of a schedule item."""

    GOAL = "goal"
    TASK = "task"


class ScheduleItem(CamelModel):
    """A goal or task shown on a given day."""

    id: str
    title: str
    description: Optional[str] = None
    scheduled_time: Optional[str] = None
    display_time: Optional[str] = None
    type: ScheduleItemType
    is_completed: bool
    source_id: str
    is_recurring: bool = False


class DaySchedule(CamelModel):
    """All items for one calendar day."""

    day: date = Field(alias="date")
    items: list[ScheduleItem]


class BusyDates(CamelModel):
    """Dates in a window that have at least one task or due goal."""

    start: date
    days: int
    dates: list[date]

"""Schedule task model definitions."""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from app.models.base import CamelModel, to_local_naive, validate_weekdays


class Recurrence(str, Enum):
    """How a task creation request repeats."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"


class ScheduleTaskBase(CamelModel):
    """Base schedule task fields."""

    title: str = Field(min_length=1)
    description: Optional[str] = None
    scheduled_time: str
    is_reminder: bool = True
    reminder_minutes: Optional[int] = Field(default=None, ge=0)  # None means 60


class ScheduleTaskCreate(ScheduleTaskBase):
    """
    Task creation request.

    `date` is the anchor date of the series; a recurring request expands into
    independent task records, one per occurrence.
    """

    day: date = Field(alias="date")
    recurrence: Recurrence = Recurrence.NONE
    duration_weeks: int = Field(default=1, ge=1, le=52)
    selected_week_days: Optional[list[int]] = None

    @model_validator(mode="after")
    def check_week_days(self) -> "ScheduleTaskCreate":
        if self.recurrence == Recurrence.WEEKLY:
            if not self.selected_week_days:
                raise ValueError("selectedWeekDays is required for weekly recurrence")
            self.selected_week_days = validate_weekdays(self.selected_week_days)
        else:
            self.selected_week_days = None
        return self


class ScheduleTaskUpdate(CamelModel):
    """Schedule task update model - all fields optional."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    scheduled_time: Optional[str] = None
    is_reminder: Optional[bool] = None
    reminder_minutes: Optional[int] = Field(default=None, ge=0)
    is_completed: Optional[bool] = None
    day: Optional[date] = Field(default=None, alias="date")


class ScheduleTask(ScheduleTaskBase):
    """Full schedule task model as persisted."""

    id: str
    day: date = Field(alias="date")
    is_completed: bool = False
    recurrence: Optional[Recurrence] = None
    recurrence_end_date: Optional[date] = None
    selected_week_days: Optional[list[int]] = None
    created_at: Optional[datetime] = None

    @field_validator("day", "recurrence_end_date", mode="before")
    @classmethod
    def strip_time_component(cls, value):
        # Older records store full ISO timestamps
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @field_validator("created_at")
    @classmethod
    def localize_created_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return to_local_naive(value)


class TaskBatch(CamelModel):
    """Result of a task creation request."""

    tasks: list[ScheduleTask]
    skipped_past: int = 0
    recurrence_end_date: Optional[date] = None
    message: str

"""Recurrence expansion - turns one task request into dated task instances."""
import uuid
from datetime import date, datetime, timedelta
from typing import Optional

from app.models.schedule_task import Recurrence, ScheduleTask, ScheduleTaskCreate, TaskBatch
from app.services.goal_state import weekday_index


def new_task_id() -> str:
    """Generate a unique task id."""
    return uuid.uuid4().hex


def series_end_date(anchor: date, duration_weeks: int) -> date:
    """Last day of the window covered by a recurring series."""
    return anchor + timedelta(days=duration_weeks * 7 - 1)


def candidate_dates(
    anchor: date,
    recurrence: Recurrence,
    duration_weeks: int,
    selected_week_days: Optional[list[int]] = None,
) -> list[date]:
    """
    List the occurrence dates of a series before any past-date filtering.

    Args:
        anchor: First day of the series
        recurrence: none, daily or weekly
        duration_weeks: Length of the series window in weeks
        selected_week_days: Weekdays (0 = Sunday) included in a weekly series

    Returns:
        Dates in ascending order

    Raises:
        ValueError: If a weekly series has no weekdays selected
    """
    if recurrence == Recurrence.NONE:
        return [anchor]

    window = [anchor + timedelta(days=offset) for offset in range(duration_weeks * 7)]

    if recurrence == Recurrence.DAILY:
        return window

    if not selected_week_days:
        raise ValueError("Weekly recurrence requires at least one weekday")
    return [day for day in window if weekday_index(day) in selected_week_days]


def expand_recurrence(
    template: ScheduleTaskCreate,
    now: Optional[datetime] = None,
) -> TaskBatch:
    """
    Expand a creation request into independent task records.

    Occurrences dated before today are dropped from the batch; an empty batch
    is a valid result, not an error.

    Args:
        template: Task creation request carrying the anchor date and recurrence
        now: Current time (defaults to now)

    Returns:
        TaskBatch with the surviving tasks and the number of dropped ones
    """
    if now is None:
        now = datetime.now()
    today = now.date()

    dates = candidate_dates(
        template.day,
        template.recurrence,
        template.duration_weeks,
        template.selected_week_days,
    )

    end_date = None
    if template.recurrence != Recurrence.NONE:
        end_date = series_end_date(template.day, template.duration_weeks)

    tasks = [
        ScheduleTask(
            id=new_task_id(),
            title=template.title,
            description=template.description,
            scheduled_time=template.scheduled_time,
            is_reminder=template.is_reminder,
            reminder_minutes=template.reminder_minutes,
            day=day,
            is_completed=False,
            recurrence=template.recurrence,
            recurrence_end_date=end_date,
            selected_week_days=template.selected_week_days,
            created_at=now,
        )
        for day in dates
        if day >= today
    ]
    skipped = len(dates) - len(tasks)

    if not tasks:
        message = "All occurrences were in the past, nothing was added"
    elif len(tasks) == 1:
        message = "Task added to schedule"
    else:
        message = f"{len(tasks)} tasks added to schedule"

    return TaskBatch(
        tasks=tasks,
        skipped_past=skipped,
        recurrence_end_date=end_date,
        message=message,
    )

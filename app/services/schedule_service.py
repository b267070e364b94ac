"""Schedule service - per-day view merging goals and tasks."""
from datetime import date, datetime, timedelta
from typing import Optional

from app.models.goal import Goal
from app.models.schedule import BusyDates, DaySchedule, ScheduleItem, ScheduleItemType
from app.models.schedule_task import Recurrence, ScheduleTask
from app.services.goal_service import GoalService
from app.services.goal_state import is_completed_on, weekday_index
from app.services.task_service import TaskService
from app.store.base import KeyValueStore
from app.utils.time_parser import display_time, minutes_since_midnight


def goal_is_due(goal: Goal, day: date) -> bool:
    """Whether an active goal has an occurrence on the given day."""
    return goal.is_active and weekday_index(day) in goal.selected_days


def build_day_schedule(
    goals: list[Goal],
    tasks: list[ScheduleTask],
    day: date,
) -> list[ScheduleItem]:
    """
    Merge goals due on `day` with tasks dated `day`, ordered by time of day.

    Items without a parseable time sort last; ties keep goals-then-tasks
    input order.
    """
    items = [
        ScheduleItem(
            id=f"goal-{goal.id}",
            title=goal.title,
            description=goal.description,
            scheduled_time=goal.scheduled_time,
            display_time=display_time(goal.scheduled_time) or None,
            type=ScheduleItemType.GOAL,
            is_completed=is_completed_on(goal, day),
            source_id=goal.id,
        )
        for goal in goals
        if goal_is_due(goal, day)
    ]
    items.extend(
        ScheduleItem(
            id=f"task-{task.id}",
            title=task.title,
            description=task.description,
            scheduled_time=task.scheduled_time,
            display_time=display_time(task.scheduled_time) or None,
            type=ScheduleItemType.TASK,
            is_completed=task.is_completed,
            source_id=task.id,
            is_recurring=task.recurrence not in (None, Recurrence.NONE),
        )
        for task in tasks
        if task.day == day
    )

    def sort_key(item: ScheduleItem):
        minutes = minutes_since_midnight(item.scheduled_time)
        return (minutes is None, minutes or 0)

    return sorted(items, key=sort_key)


def busy_dates(
    goals: list[Goal],
    tasks: list[ScheduleTask],
    start: date,
    days: int,
) -> list[date]:
    """Dates in [start, start + days) with a task or a due goal."""
    end = start + timedelta(days=days)
    dates = {task.day for task in tasks if start <= task.day < end}
    for offset in range(days):
        day = start + timedelta(days=offset)
        if any(goal_is_due(goal, day) for goal in goals):
            dates.add(day)
    return sorted(dates)


class ScheduleService:
    """Service producing read-only schedule projections."""

    def __init__(self, store: KeyValueStore):
        """Initialize service with the key-value store."""
        self.goal_service = GoalService(store)
        self.task_service = TaskService(store)

    async def get_day(self, day: date, now: Optional[datetime] = None) -> DaySchedule:
        """Get the merged schedule for one calendar day."""
        if now is None:
            now = datetime.now()

        goals = await self.goal_service.list_goals(now=now)
        tasks = await self.task_service.list_tasks(day=day, now=now)
        return DaySchedule(day=day, items=build_day_schedule(goals, tasks, day))

    async def get_busy_dates(
        self,
        start: date,
        days: int,
        now: Optional[datetime] = None,
    ) -> BusyDates:
        """Get calendar dates that have something scheduled."""
        if now is None:
            now = datetime.now()

        goals = await self.goal_service.list_goals(now=now)
        tasks = await self.task_service.list_tasks(now=now)
        return BusyDates(start=start, days=days, dates=busy_dates(goals, tasks, start, days))

"""Schedule task service - business logic for schedule task management."""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from app.config import settings
from app.models.schedule_task import (
    ScheduleTask,
    ScheduleTaskCreate,
    ScheduleTaskUpdate,
    TaskBatch,
)
from app.services.recurrence import expand_recurrence
from app.store.base import TASKS_KEY, KeyValueStore, StoreError

logger = logging.getLogger(__name__)


class TaskService:
    """Service for handling schedule task operations."""

    def __init__(self, store: KeyValueStore, retention_days: Optional[int] = None):
        """Initialize service with the key-value store."""
        self.store = store
        self.retention_days = (
            settings.task_retention_days if retention_days is None else retention_days
        )

    async def _load_tasks(self, today: date) -> list[ScheduleTask]:
        """
        Load and validate all stored tasks.

        Tasks dated further back than the retention window are pruned and the
        pruned list is written back.
        """
        try:
            raw = await self.store.get(TASKS_KEY)
        except StoreError as e:
            logger.error("Could not read tasks, treating as empty: %s", e)
            return []

        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Stored tasks are not a list, treating as empty")
            return []

        tasks = []
        for record in raw:
            try:
                tasks.append(ScheduleTask.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping invalid task record: %s", e.errors()[:1])

        cutoff = today - timedelta(days=self.retention_days)
        kept = [task for task in tasks if task.day >= cutoff]
        if len(kept) != len(tasks):
            logger.info("Pruned %d tasks dated before %s", len(tasks) - len(kept), cutoff)
            try:
                await self._save_tasks(kept)
            except StoreError as e:
                logger.error("Could not persist pruned tasks: %s", e)
        return kept

    async def _save_tasks(self, tasks: list[ScheduleTask]) -> None:
        await self.store.set(
            TASKS_KEY,
            [task.model_dump(mode="json", by_alias=True) for task in tasks],
        )

    def _find(self, tasks: list[ScheduleTask], task_id: str) -> int:
        for index, task in enumerate(tasks):
            if task.id == task_id:
                return index
        raise ValueError("Task not found")

    async def list_tasks(
        self,
        day: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> list[ScheduleTask]:
        """
        List tasks with optional filtering by date.

        Args:
            day: Optional calendar date filter
            now: Current time (defaults to now)

        Returns:
            List of tasks in stored order
        """
        if now is None:
            now = datetime.now()

        tasks = await self._load_tasks(now.date())
        if day is not None:
            tasks = [task for task in tasks if task.day == day]
        return tasks

    async def get_task(self, task_id: str) -> ScheduleTask:
        """
        Get a single task by id.

        Raises:
            ValueError: If task not found
        """
        tasks = await self._load_tasks(date.today())
        return tasks[self._find(tasks, task_id)]

    async def create_tasks(
        self,
        task_create: ScheduleTaskCreate,
        now: Optional[datetime] = None,
    ) -> TaskBatch:
        """
        Create one task, or one task per occurrence of a recurring series.

        Occurrences before today are dropped. A batch with no surviving
        occurrences is returned as-is and nothing is written.

        Args:
            task_create: Task creation data
            now: Current time (defaults to now)

        Returns:
            TaskBatch describing what was added
        """
        if now is None:
            now = datetime.now()

        batch = expand_recurrence(task_create, now=now)
        if not batch.tasks:
            logger.info("No future occurrences for task %r", task_create.title)
            return batch

        tasks = await self._load_tasks(now.date())
        await self._save_tasks([*tasks, *batch.tasks])
        logger.info(
            "Added %d task(s) for %r (%d past occurrence(s) skipped)",
            len(batch.tasks),
            task_create.title,
            batch.skipped_past,
        )
        return batch

    async def update_task(
        self,
        task_id: str,
        task_update: ScheduleTaskUpdate,
    ) -> ScheduleTask:
        """
        Update a single task instance. Other instances of its series are
        not affected.

        Raises:
            ValueError: If task not found
        """
        tasks = await self._load_tasks(date.today())
        index = self._find(tasks, task_id)

        changes = task_update.model_dump(exclude_unset=True)
        changes = {
            key: value
            for key, value in changes.items()
            if value is not None or key in ("description", "reminder_minutes")
        }

        updated = tasks[index].model_copy(update=changes)
        tasks[index] = updated

        await self._save_tasks(tasks)
        return updated

    async def toggle_task(self, task_id: str) -> ScheduleTask:
        """
        Flip the completed flag of a task.

        Raises:
            ValueError: If task not found
        """
        tasks = await self._load_tasks(date.today())
        index = self._find(tasks, task_id)

        updated = tasks[index].model_copy(update={"is_completed": not tasks[index].is_completed})
        tasks[index] = updated

        await self._save_tasks(tasks)
        return updated

    async def delete_task(self, task_id: str) -> dict:
        """
        Delete a single task instance.

        Raises:
            ValueError: If task not found
        """
        tasks = await self._load_tasks(date.today())
        index = self._find(tasks, task_id)
        del tasks[index]

        await self._save_tasks(tasks)
        return {"deleted_count": 1}

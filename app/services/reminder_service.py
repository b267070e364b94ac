"""Reminder service - decides which goal and task notifications are due."""
import asyncio
import contextlib
import logging
from datetime import date, datetime, timedelta
from typing import Callable, NamedTuple, Optional

from app.config import settings
from app.models.goal import Goal
from app.models.notification import EntityKind, FireKind, Notification, ScheduledAlarm
from app.models.schedule_task import ScheduleTask
from app.services.dispatch import AlarmScheduler, DispatchSink
from app.services.goal_service import GoalService
from app.services.goal_state import is_completed_on, weekday_index
from app.services.task_service import TaskService
from app.store.base import MARKER_PREFIX, KeyValueStore, StoreError
from app.utils.time_parser import display_time, parse_time

logger = logging.getLogger(__name__)


class Occurrence(NamedTuple):
    """Today's occurrence of a goal or task that has a reminder time."""

    entity_kind: EntityKind
    entity_id: str
    at_time: datetime
    lead_minutes: int
    scheduled_time: str
    reminder_title: str
    reminder_body: str
    at_time_title: str
    at_time_body: str

    @property
    def reminder_time(self) -> datetime:
        return self.at_time - timedelta(minutes=self.lead_minutes)

    def fire_time(self, fire_kind: FireKind) -> datetime:
        if fire_kind == FireKind.REMINDER:
            return self.reminder_time
        return self.at_time

    def notification(self, fire_kind: FireKind) -> Notification:
        if fire_kind == FireKind.REMINDER:
            title, body = self.reminder_title, self.reminder_body
        else:
            title, body = self.at_time_title, self.at_time_body
        return Notification(
            title=title,
            body=body,
            fire_at=self.fire_time(fire_kind),
            entity_kind=self.entity_kind,
            entity_id=self.entity_id,
            fire_kind=fire_kind,
        )


def lead_time_text(minutes: int) -> str:
    """
    Describe a reminder lead time.

    Examples:
        >>> lead_time_text(60)
        '1 hour'
        >>> lead_time_text(90)
        '1.5 hours'
        >>> lead_time_text(15)
        '15 minutes'
    """
    if minutes >= 60:
        return f"{minutes / 60:g} hour{'s' if minutes > 60 else ''}"
    return f"{minutes} minute{'s' if minutes > 1 else ''}"


def _at(now: datetime, scheduled_time: str) -> Optional[datetime]:
    parsed = parse_time(scheduled_time)
    if parsed is None:
        return None
    return now.replace(hour=parsed.hour, minute=parsed.minute, second=0, microsecond=0)


def goal_occurrence(goal: Goal, now: datetime, lead_minutes: int) -> Optional[Occurrence]:
    """Today's occurrence of a goal, or None if it has nothing to remind today."""
    if not goal.is_active or not goal.scheduled_time:
        return None
    if weekday_index(now.date()) not in goal.selected_days:
        return None
    if is_completed_on(goal, now.date()):
        return None

    at_time = _at(now, goal.scheduled_time)
    if at_time is None:
        return None

    when = display_time(goal.scheduled_time)
    return Occurrence(
        entity_kind=EntityKind.GOAL,
        entity_id=goal.id,
        at_time=at_time,
        lead_minutes=lead_minutes,
        scheduled_time=goal.scheduled_time,
        reminder_title=f"🔔 Goal Reminder: {goal.title}",
        reminder_body=(
            f"Starting in {lead_time_text(lead_minutes)} at {when}. "
            f"{goal.description or 'Get ready!'}"
        ),
        at_time_title=f"⏰ It's time: {goal.title}",
        at_time_body=f'Your goal "{goal.title}" is starting now!',
    )


def task_occurrence(
    task: ScheduleTask,
    now: datetime,
    default_lead_minutes: int,
) -> Optional[Occurrence]:
    """Today's occurrence of a task, or None if it has nothing to remind today."""
    if task.is_completed or not task.is_reminder or task.day != now.date():
        return None

    at_time = _at(now, task.scheduled_time)
    if at_time is None:
        return None

    lead_minutes = task.reminder_minutes or default_lead_minutes
    when = display_time(task.scheduled_time)
    return Occurrence(
        entity_kind=EntityKind.TASK,
        entity_id=task.id,
        at_time=at_time,
        lead_minutes=lead_minutes,
        scheduled_time=task.scheduled_time,
        reminder_title=f"🔔 Task Reminder: {task.title}",
        reminder_body=(
            f"Starting in {lead_time_text(lead_minutes)} at {when}. "
            f"{task.description or ''}"
        ).strip(),
        at_time_title=f"⏰ Task Now: {task.title}",
        at_time_body=f'Your scheduled task "{task.title}" is starting now!',
    )


def todays_occurrences(
    goals: list[Goal],
    tasks: list[ScheduleTask],
    now: datetime,
    goal_lead_minutes: int,
    task_lead_minutes: int,
) -> list[Occurrence]:
    """Collect today's reminder occurrences for goals then tasks."""
    occurrences = [goal_occurrence(goal, now, goal_lead_minutes) for goal in goals]
    occurrences += [task_occurrence(task, now, task_lead_minutes) for task in tasks]
    return [occurrence for occurrence in occurrences if occurrence is not None]


def marker_key(occurrence: Occurrence, fire_kind: FireKind) -> str:
    """
    Dedup marker key for one firing of one occurrence.

    Goal keys also carry the scheduled time so that editing the time
    produces fresh markers.
    """
    key = (
        f"{MARKER_PREFIX}{occurrence.at_time.date().isoformat()}:{fire_kind.value}:"
        f"{occurrence.entity_kind.value}:{occurrence.entity_id}"
    )
    if occurrence.entity_kind == EntityKind.GOAL:
        key += f":{occurrence.scheduled_time}"
    return key


def marker_day(key: str) -> Optional[date]:
    """Calendar day encoded in a marker key, or None if the key is malformed."""
    if not key.startswith(MARKER_PREFIX):
        return None
    day_text = key[len(MARKER_PREFIX):].split(":", 1)[0]
    try:
        return date.fromisoformat(day_text)
    except ValueError:
        return None


def due_firings(
    occurrences: list[Occurrence],
    now: datetime,
    tolerance: timedelta,
) -> list[tuple[str, Notification]]:
    """
    Firings whose time falls within `tolerance` of now.

    Occurrences whose at-time has already passed are skipped entirely.
    """
    firings = []
    for occurrence in occurrences:
        if occurrence.at_time < now:
            continue
        for fire_kind in (FireKind.REMINDER, FireKind.AT_TIME):
            if abs(now - occurrence.fire_time(fire_kind)) <= tolerance:
                firings.append((marker_key(occurrence, fire_kind), occurrence.notification(fire_kind)))
    return firings


def plan_alarm_batch(occurrences: list[Occurrence], now: datetime) -> list[ScheduledAlarm]:
    """
    Pre-compute today's future firings for a native alarm subsystem.

    The reminder firing is included only while it is still in the future;
    ids are assigned sequentially from 1.
    """
    alarms = []
    for occurrence in occurrences:
        if occurrence.at_time <= now:
            continue
        for fire_kind in (FireKind.REMINDER, FireKind.AT_TIME):
            fire_at = occurrence.fire_time(fire_kind)
            if fire_at <= now:
                continue
            notification = occurrence.notification(fire_kind)
            alarms.append(
                ScheduledAlarm(
                    id=len(alarms) + 1,
                    title=notification.title,
                    body=notification.body,
                    fire_at=fire_at,
                )
            )
    return alarms


class ReminderService:
    """Service for deciding and dispatching reminders."""

    def __init__(
        self,
        store: KeyValueStore,
        sink: DispatchSink,
        tolerance_seconds: Optional[int] = None,
        goal_reminder_minutes: Optional[int] = None,
        task_reminder_minutes: Optional[int] = None,
        marker_retention_days: Optional[int] = None,
    ):
        """Initialize service with the key-value store and dispatch sink."""
        self.store = store
        self.sink = sink
        self.goal_service = GoalService(store)
        self.task_service = TaskService(store)
        self.tolerance = timedelta(
            seconds=settings.reminder_tolerance_seconds
            if tolerance_seconds is None
            else tolerance_seconds
        )
        self.goal_reminder_minutes = (
            settings.goal_reminder_minutes
            if goal_reminder_minutes is None
            else goal_reminder_minutes
        )
        self.task_reminder_minutes = (
            settings.default_task_reminder_minutes
            if task_reminder_minutes is None
            else task_reminder_minutes
        )
        self.marker_retention_days = (
            settings.marker_retention_days
            if marker_retention_days is None
            else marker_retention_days
        )

    async def _occurrences(self, now: datetime) -> list[Occurrence]:
        """Read one snapshot of goals and tasks and derive today's occurrences."""
        goals = await self.goal_service.list_goals(now=now)
        tasks = await self.task_service.list_tasks(day=now.date(), now=now)
        return todays_occurrences(
            goals,
            tasks,
            now,
            self.goal_reminder_minutes,
            self.task_reminder_minutes,
        )

    async def _marker_exists(self, key: str) -> bool:
        try:
            return bool(await self.store.get(key))
        except StoreError as e:
            logger.warning("Could not read reminder marker %s: %s", key, e)
            return False

    async def _write_marker(self, key: str) -> None:
        try:
            await self.store.set(key, True)
        except StoreError as e:
            logger.error("Could not write reminder marker %s: %s", key, e)

    async def tick(self, now: Optional[datetime] = None) -> list[Notification]:
        """
        Run one scheduler pass.

        Each (entity, day, fire kind) is dispatched at most once: the dedup
        marker is checked and written before the notification goes out.
        Firings missed while no tick ran are not delivered later.

        Args:
            now: Current time (defaults to now)

        Returns:
            Notifications dispatched during this pass
        """
        if now is None:
            now = datetime.now()

        occurrences = await self._occurrences(now)

        dispatched = []
        for key, notification in due_firings(occurrences, now, self.tolerance):
            if await self._marker_exists(key):
                continue
            await self._write_marker(key)
            await self.sink.show(notification)
            dispatched.append(notification)

        await self.evict_stale_markers(now)
        return dispatched

    async def evict_stale_markers(self, now: Optional[datetime] = None) -> int:
        """
        Delete dedup markers older than the retention window.

        Returns:
            Number of markers deleted
        """
        if now is None:
            now = datetime.now()

        try:
            keys = await self.store.keys(MARKER_PREFIX)
        except StoreError as e:
            logger.warning("Could not list reminder markers: %s", e)
            return 0

        evicted = 0
        for key in keys:
            day = marker_day(key)
            if day is None or (now.date() - day).days <= self.marker_retention_days:
                continue
            try:
                await self.store.delete(key)
            except StoreError as e:
                logger.warning("Could not evict reminder marker %s: %s", key, e)
                continue
            evicted += 1

        if evicted:
            logger.debug("Evicted %d stale reminder markers", evicted)
        return evicted

    async def plan_batch(self, now: Optional[datetime] = None) -> list[ScheduledAlarm]:
        """Compute today's remaining firings as a native alarm batch."""
        if now is None:
            now = datetime.now()

        return plan_alarm_batch(await self._occurrences(now), now)

    async def reschedule(
        self,
        alarms: AlarmScheduler,
        now: Optional[datetime] = None,
    ) -> list[ScheduledAlarm]:
        """
        Replace every pending native alarm with a freshly computed batch.

        All previously scheduled alarms are cancelled before the new batch is
        submitted, so edits never leave stale firings behind.
        """
        await alarms.cancel_all()

        batch = await self.plan_batch(now)
        if batch:
            await alarms.schedule(batch)
            logger.info("Scheduled %d native alarms", len(batch))
        else:
            logger.info("No native alarms to schedule")
        return batch


class ReminderLoop:
    """Runs reminder ticks on a fixed cadence, one at a time."""

    def __init__(self, interval_seconds: Optional[int] = None):
        self.interval_seconds = (
            settings.reminder_interval_seconds
            if interval_seconds is None
            else interval_seconds
        )
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(
        self,
        service: ReminderService,
        now: Optional[datetime] = None,
    ) -> list[Notification]:
        """Run a single tick, waiting for any tick already in progress."""
        async with self._lock:
            return await service.tick(now=now)

    def start(self, service_factory: Callable[[], ReminderService]) -> None:
        """Start ticking in the background."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(service_factory))

    async def stop(self) -> None:
        """Stop the background loop."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self, service_factory: Callable[[], ReminderService]) -> None:
        logger.info("Reminder loop started (every %ss)", self.interval_seconds)
        while True:
            try:
                await self.run_once(service_factory())
            except Exception:
                logger.exception("Reminder tick failed")
            await asyncio.sleep(self.interval_seconds)


# Global reminder loop
reminder_loop = ReminderLoop()

"""Notification dispatch adapters."""
import logging
from abc import ABC, abstractmethod
from collections import deque

from app.models.notification import Notification, ScheduledAlarm

logger = logging.getLogger(__name__)


class DispatchSink(ABC):
    """Shows a notification immediately."""

    @abstractmethod
    async def show(self, notification: Notification) -> None:
        """Display the notification."""


class AlarmScheduler(ABC):
    """Native alarm subsystem that fires pre-computed notifications."""

    @abstractmethod
    async def get_pending(self) -> list[ScheduledAlarm]:
        """List alarms that have not fired yet."""

    @abstractmethod
    async def cancel(self, alarm_ids: list[int]) -> None:
        """Cancel pending alarms by id."""

    @abstractmethod
    async def schedule(self, alarms: list[ScheduledAlarm]) -> None:
        """Submit a batch of alarms."""

    async def cancel_all(self) -> int:
        """Cancel every pending alarm and return how many were cancelled."""
        pending = await self.get_pending()
        if pending:
            await self.cancel([alarm.id for alarm in pending])
            logger.info("Cancelled %d pending alarms", len(pending))
        return len(pending)


class LoggingDispatchSink(DispatchSink):
    """Logs notifications and keeps the most recent ones for inspection."""

    def __init__(self, history_size: int = 100):
        self.recent: deque[Notification] = deque(maxlen=history_size)

    async def show(self, notification: Notification) -> None:
        logger.info("Notification: %s | %s", notification.title, notification.body)
        self.recent.append(notification)


class InMemoryAlarmScheduler(AlarmScheduler):
    """Alarm scheduler holding pending alarms in memory, keyed by id."""

    def __init__(self):
        self.pending: dict[int, ScheduledAlarm] = {}

    async def get_pending(self) -> list[ScheduledAlarm]:
        return sorted(self.pending.values(), key=lambda alarm: alarm.fire_at)

    async def cancel(self, alarm_ids: list[int]) -> None:
        for alarm_id in alarm_ids:
            self.pending.pop(alarm_id, None)

    async def schedule(self, alarms: list[ScheduledAlarm]) -> None:
        for alarm in alarms:
            self.pending[alarm.id] = alarm


# Global adapter instances
dispatch_sink = LoggingDispatchSink()
alarm_scheduler = InMemoryAlarmScheduler()


async def get_dispatch_sink() -> DispatchSink:
    """Dependency to get the dispatch sink."""
    return dispatch_sink


async def get_alarm_scheduler() -> AlarmScheduler:
    """Dependency to get the native alarm scheduler."""
    return alarm_scheduler

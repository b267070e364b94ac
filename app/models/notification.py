"""Notification model definitions."""
from datetime import datetime
from enum import Enum

from app.models.base import CamelModel


class EntityKind(str, Enum):
    """Kinds of entities that produce reminders."""

    GOAL = "goal"
    TASK = "task"


class FireKind(str, Enum):
    """Which firing of an occurrence a notification represents."""

    REMINDER = "reminder"
    AT_TIME = "at-time"


class Notification(CamelModel):
    """A notification handed to the dispatch sink."""

    title: str
    body: str
    fire_at: datetime
    entity_kind: EntityKind
    entity_id: str
    fire_kind: FireKind


class ScheduledAlarm(CamelModel):
    """An entry in a native alarm batch."""

    id: int
    title: str
    body: str
    fire_at: datetime
    sound: str = "default"
    small_icon: str = "ic_stat_icon"
    large_icon: str = "ic_launcher"

"""Shared model configuration."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with the camelCase keys used by stored records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware timestamp to naive local wall-clock time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def validate_weekdays(value: list[int]) -> list[int]:
    """Validate weekday indices (0 = Sunday) and normalize to a sorted set."""
    if not value:
        raise ValueError("At least one weekday is required")
    for day in value:
        if not 0 <= day <= 6:
            raise ValueError(f"Weekday must be between 0 (Sunday) and 6, got {day}")
    return sorted(set(value))

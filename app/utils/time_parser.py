"""Time-of-day parsing and formatting utilities."""
import logging
import re
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})$")
_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)


class TimeOfDay(NamedTuple):
    """Canonical wall-clock time of day."""

    hour: int
    minute: int


def parse_time(text: Optional[str]) -> Optional[TimeOfDay]:
    """
    Parse a 24-hour or 12-hour time string.

    Accepts "H:MM"/"HH:MM" and "H:MM AM"/"HH:MM PM" (case-insensitive).
    Never raises: anything unrecognized returns None.

    Args:
        text: Time string as entered or stored

    Returns:
        TimeOfDay with hour 0..23 and minute 0..59, or None

    Examples:
        >>> parse_time("14:30")
        TimeOfDay(hour=14, minute=30)
        >>> parse_time("12:05 am")
        TimeOfDay(hour=0, minute=5)
        >>> parse_time("noon") is None
        True
    """
    if not isinstance(text, str) or not text.strip():
        return None

    value = text.strip()

    match = _TWENTY_FOUR_HOUR.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            logger.debug("Time out of range: %r", text)
            return None
        return TimeOfDay(hour, minute)

    match = _TWELVE_HOUR.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        period = match.group(3).upper()
        # "0:MM AM" is accepted as just after midnight
        if not (1 <= hour <= 12 or (hour == 0 and period == "AM")) or minute > 59:
            logger.debug("Time out of range: %r", text)
            return None
        if period == "PM" and hour != 12:
            hour += 12
        elif period == "AM" and hour == 12:
            hour = 0
        return TimeOfDay(hour, minute)

    logger.debug("Could not parse time: %r", text)
    return None


def format_time(hour: int, minute: int) -> str:
    """
    Format an hour/minute pair as "H:MM AM|PM".

    Examples:
        >>> format_time(14, 30)
        '2:30 PM'
        >>> format_time(0, 5)
        '12:05 AM'
    """
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def display_time(text: Optional[str]) -> str:
    """Format a stored time string for display, falling back to the raw text."""
    parsed = parse_time(text)
    if parsed is None:
        return text or ""
    return format_time(*parsed)


def minutes_since_midnight(text: Optional[str]) -> Optional[int]:
    """Return minutes since midnight for a stored time string, or None."""
    parsed = parse_time(text)
    if parsed is None:
        return None
    return parsed.hour * 60 + parsed.minute

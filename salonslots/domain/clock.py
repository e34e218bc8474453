"""
Wall-clock helpers.

All time arithmetic in the engine happens on integer minutes since midnight.
Strings only appear at the edges, and always pass through these functions.
"""

import re

from .exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60

# H:MM or HH:MM, optionally followed by :SS (Postgres "time" columns)
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def time_to_minutes(value: str) -> int:
    """
    Convert an ``HH:MM`` wall-clock string to minutes since midnight.

    Raises:
        ValidationError: If the value is not a well-formed 24-hour time
    """
    if not isinstance(value, str):
        raise ValidationError(f"Time must be a string in HH:MM format, got {value!r}")

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid time '{value}'. Use HH:MM format")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = match.group(3)

    if not 0 <= hours <= 23:
        raise ValidationError(f"Hour must be between 0 and 23, got {hours} in '{value}'")
    if not 0 <= minutes <= 59:
        raise ValidationError(f"Minute must be between 0 and 59, got {minutes} in '{value}'")
    if seconds is not None and int(seconds) != 0:
        raise ValidationError(f"Seconds are not supported, got '{value}'")

    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """
    Convert minutes since midnight back to a zero-padded ``HH:MM`` string.

    Raises:
        ValidationError: If minutes is not an integer in [0, 1440)
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValidationError(f"Minutes must be an integer, got {minutes!r}")
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValidationError(
            f"Minutes must be between 0 and {MINUTES_PER_DAY - 1}, got {minutes}"
        )

    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def add_minutes(value: str, minutes: int) -> str:
    """Return the wall-clock time ``minutes`` after ``value`` on the same day."""
    total = time_to_minutes(value) + minutes
    if total >= MINUTES_PER_DAY:
        raise ValidationError(f"{value} plus {minutes} minutes runs past midnight")
    return minutes_to_time(total)

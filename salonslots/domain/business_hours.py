"""
Normalization of stored business hours.

Salons have saved their hours in several shapes over time:

    {"monday": "09:00-18:00"}
    {"monday": {"open": "09:00", "close": "18:00"}}
    {"monday": {"opening": "09:00", "closing": "18:00", "closed": false}}
    {"sunday": "closed"}  /  {"sunday": null}  /  {"sunday": {"closed": true}}

This module is the single adapter from those shapes to ``BusinessHours``.
Nothing downstream of it inspects raw business-hours data.
"""

from typing import Any, Dict, Mapping, Optional

from .exceptions import ValidationError
from .models import WEEKDAYS, BusinessHours, DayHours

_CLOSED_MARKERS = {"closed"}


def normalize_business_hours(raw: Optional[Mapping[str, Any]]) -> BusinessHours:
    """
    Convert any supported business-hours shape into ``BusinessHours``.

    Days that are not mentioned are closed.

    Raises:
        ValidationError: On unknown day names or unparseable entries
    """
    if raw is None:
        return BusinessHours()

    if not isinstance(raw, Mapping):
        raise ValidationError(
            f"Business hours must be a mapping of weekday to hours, got {type(raw).__name__}"
        )

    days: Dict[str, Optional[DayHours]] = {}

    for key, value in raw.items():
        day = str(key).strip().lower()
        if day not in WEEKDAYS:
            raise ValidationError(f"Invalid day: {key}")
        if day in days:
            raise ValidationError(f"Duplicate entry for {day}")

        days[day] = normalize_day(day, value)

    return BusinessHours(days=days)


def normalize_day(day: str, value: Any) -> Optional[DayHours]:
    """Normalize a single day's entry; ``None`` means closed."""
    if value is None:
        return None

    if isinstance(value, str):
        return _parse_range_string(day, value)

    if isinstance(value, Mapping):
        return _parse_mapping(day, value)

    raise ValidationError(f"Invalid hours format for {day}: {value!r}")


def _parse_range_string(day: str, value: str) -> Optional[DayHours]:
    text = value.strip()

    if text.lower() in _CLOSED_MARKERS:
        return None

    opening, separator, closing = text.partition("-")
    if not separator:
        raise ValidationError(f"Invalid hours format for {day}: '{value}'")

    return DayHours.from_strings(opening.strip(), closing.strip())


def _parse_mapping(day: str, value: Mapping[str, Any]) -> Optional[DayHours]:
    if _is_closed_flag(value.get("closed")):
        return None

    opening = value.get("opening") or value.get("open")
    closing = value.get("closing") or value.get("close")

    if not opening or not closing:
        raise ValidationError(
            f"Invalid hours format for {day}: both opening and closing are required"
        )

    return DayHours.from_strings(opening, closing)


def _is_closed_flag(flag: Any) -> bool:
    if isinstance(flag, str):
        return flag.strip().lower() == "true"
    return flag is True

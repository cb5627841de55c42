# Rev 0.1.0

"""Parsing helpers for raw form values.

Callers convert user input with these before reaching the engine; each raises
InvalidInputError naming the offending field.
"""
from __future__ import annotations
import math
from datetime import datetime, timezone
from typing import Optional

from compass.models.errors import InvalidInputError
from compass.services.completion import check_completion

CUSTOM_TIME_FORMAT = "%Y-%m-%dT%H:%M"


def parse_completion(raw: str | int, *, field: str = "completion") -> int:
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise InvalidInputError(f"invalid {field} value: {raw!r}", field=field) from None
    return check_completion(value, field=field)


def check_hours(value: float, *, field: str = "hours_worked") -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{field} must be a number, got {value!r}", field=field)
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidInputError(f"{field} must be a non-negative number, got {value}", field=field)
    return float(value)


def parse_hours(raw: str | float, *, field: str = "hours_worked") -> float:
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise InvalidInputError(f"invalid {field} value: {raw!r}", field=field) from None
    return check_hours(value, field=field)


def parse_timestamp(raw: Optional[str], *, field: str = "custom_time") -> Optional[datetime]:
    """Parse a back-dated entry time.

    Accepts the ``YYYY-MM-DDTHH:MM`` datetime-local form (interpreted in local
    time) or any ISO 8601 string. Empty input means "now" and returns None.
    """
    if raw is None or not str(raw).strip():
        return None
    text = str(raw).strip()
    try:
        parsed = datetime.strptime(text, CUSTOM_TIME_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidInputError(f"invalid {field} value: {raw!r}", field=field) from None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()  # naive → local
    return parsed.astimezone(timezone.utc)

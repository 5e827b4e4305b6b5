"""Request parsing helpers shared by the blueprints."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from flask import request

from .constants import WEEKDAYS, canonical_day
from .errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
INT_RE = re.compile(r"^-?[0-9]+$")
HHMM_RE = re.compile(r"^[0-9]{2}:[0-9]{2}$")
STRICT_TIME_RE = re.compile(r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$")
LOOSE_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

OWNER_FIELDS = ("userId", "user_id")


def json_body() -> dict[str, Any]:
    """Return the JSON object body; anything else is rejected.

    Payloads naming an owner are refused: ownership always comes from the token.
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("INVALID_JSON", "Request body must be a JSON object")
    if any(k in data for k in OWNER_FIELDS):
        raise ValidationError("USER_ID_NOT_ALLOWED", "User ID cannot be provided in request body")
    return data


def parse_id(raw: Any, code: str = "INVALID_ID", message: str = "Valid ID is required") -> int:
    if is_int(raw):
        return int(raw)
    if isinstance(raw, str) and INT_RE.match(raw.strip()):
        return int(raw.strip())
    raise ValidationError(code, message)


def parse_optional_id(raw: Any, code: str, message: str) -> int | None:
    if raw is None or raw == "":
        return None
    return parse_id(raw, code, message)


def is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_nonempty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))


def is_valid_date(value: Any) -> bool:
    """``YYYY-MM-DD`` that is also a real calendar date."""
    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def parse_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def is_string_list(value: Any, *, allow_empty: bool = False) -> bool:
    if not isinstance(value, list):
        return False
    if not value and not allow_empty:
        return False
    return all(isinstance(v, str) and v.strip() for v in value)


def optional_text(value: Any) -> str | None:
    """Trimmed string, or ``None`` for anything blank or not a string."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_day_list(value: Any, code: str, message: str) -> list[str]:
    """Non-empty list of weekday names, returned capitalized."""
    if not isinstance(value, list) or not value:
        raise ValidationError(code, message)
    days: list[str] = []
    for raw in value:
        day = canonical_day(raw)
        if day is None:
            raise ValidationError(
                "INVALID_DAY_NAME", f"Invalid day: {raw}. Must be one of: {', '.join(WEEKDAYS)}"
            )
        if day not in days:
            days.append(day)
    return days


def parse_time_list(value: Any, code: str, message: str, pattern: re.Pattern[str] = STRICT_TIME_RE) -> list[str]:
    """Non-empty list of ``HH:MM`` strings; a bad entry raises ``INVALID_TIME_FORMAT``."""
    if not isinstance(value, list) or not value:
        raise ValidationError(code, message)
    for raw in value:
        if not isinstance(raw, str) or not pattern.match(raw):
            raise ValidationError("INVALID_TIME_FORMAT", f"Invalid time format: {raw}. Must be HH:MM format")
    return list(value)


def to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def optional_arg_date(name: str, code: str, message: str | None = None) -> str | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    if not is_valid_date(raw):
        raise ValidationError(code, message or f"{name} must be in YYYY-MM-DD format")
    return raw


__all__ = [
    "EMAIL_RE",
    "INT_RE",
    "DATE_RE",
    "HHMM_RE",
    "STRICT_TIME_RE",
    "LOOSE_TIME_RE",
    "json_body",
    "parse_id",
    "parse_optional_id",
    "is_int",
    "is_nonempty_str",
    "is_valid_email",
    "is_valid_date",
    "parse_date",
    "is_string_list",
    "optional_text",
    "parse_day_list",
    "parse_time_list",
    "to_minutes",
    "optional_arg_date",
]

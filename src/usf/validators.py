"""Primitive format checks shared by the models, the validator and the builder."""

import re
from typing import Any, Literal, get_args

# 24-hour, zero-padded ASCII digits, no timezone or sub-second part
TIME_PATTERN = r"^(?:[01][0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9]$"
TIME_RE = re.compile(TIME_PATTERN)

WeekType = Literal["all", "even", "odd"]
WEEK_TYPES: tuple[str, ...] = get_args(WeekType)

CURRENT_VERSION = 1
SUPPORTED_VERSIONS: tuple[int, ...] = (CURRENT_VERSION,)

# 1=Monday, 7=Sunday
MIN_DAY = 1
MAX_DAY = 7


def is_strict_int(value: Any) -> bool:
    """True for ints, but not for bools."""
    return isinstance(value, int) and not isinstance(value, bool)


def validate_time(value: Any) -> bool:
    """Return True if ``value`` is an ``HH:MM:SS`` time string."""
    return isinstance(value, str) and TIME_RE.fullmatch(value) is not None


def validate_week_type(value: Any) -> bool:
    """Return True if ``value`` is one of ``all``, ``even``, ``odd``."""
    return isinstance(value, str) and value in WEEK_TYPES


def validate_day(value: Any) -> bool:
    """Return True if ``value`` is an integer day of week in [1, 7]."""
    return is_strict_int(value) and MIN_DAY <= value <= MAX_DAY


def validate_version(value: Any) -> bool:
    return is_strict_int(value) and value in SUPPORTED_VERSIONS


def time_to_seconds(value: str) -> int:
    """Convert a validated ``HH:MM:SS`` string to seconds from midnight.

    Raises:
        ValueError: If the string is not a valid time.
    """
    if not validate_time(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM:SS")
    hours, minutes, seconds = (int(part) for part in value.split(":"))
    return hours * 3600 + minutes * 60 + seconds


def period_moves_forward(start: str, end: str) -> bool:
    """True if ``start`` is strictly before ``end`` on the same day."""
    return time_to_seconds(start) < time_to_seconds(end)

# tsexport/units.py
"""Time helpers: sample counts, unit strings and file naming."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .exceptions import InvalidRequest

FILE_EXTENSION = ".h5"

_UNITS = ("us", "ms", "s", "min")
_SCALES = (1000, 1000, 60)


def _microseconds(value: timedelta) -> int:
    return (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds


def to_unit_string(period: timedelta, separator: str = " ") -> str:
    """Render ``period`` in the largest unit that divides it evenly.

    >>> to_unit_string(timedelta(seconds=1))
    '1 s'
    >>> to_unit_string(timedelta(milliseconds=100), "_")
    '100_ms'
    """
    value = _microseconds(period)
    if value <= 0:
        raise ValueError(f"Sample period must be positive, got {period}")

    unit = _UNITS[0]
    for next_unit, scale in zip(_UNITS[1:], _SCALES):
        if value % scale != 0:
            break
        value //= scale
        unit = next_unit

    return f"{value}{separator}{unit}"


def to_utc(dt: datetime) -> datetime:
    # naive datetimes are taken as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_file_begin(file_begin: datetime) -> str:
    return to_utc(file_begin).strftime("%Y-%m-%dT%H-%M-%S") + "Z"


def file_name(file_begin: datetime, sample_period: timedelta) -> str:
    return f"{format_file_begin(file_begin)}_{to_unit_string(sample_period)}{FILE_EXTENSION}"


def to_sample_count(offset: timedelta, sample_period: timedelta, exact: bool = True) -> int:
    """Number of whole sample periods in ``offset``.

    With ``exact`` the offset must be a non-negative multiple of the sample
    period; otherwise the remainder is dropped.
    """
    period_us = _microseconds(sample_period)
    if period_us <= 0:
        raise ValueError(f"Sample period must be positive, got {sample_period}")

    offset_us = _microseconds(offset)
    if exact:
        if offset_us < 0:
            raise InvalidRequest(f"Offset {offset} must not be negative")
        if offset_us % period_us != 0:
            raise InvalidRequest(
                f"Offset {offset} is not a multiple of the sample period {sample_period}"
            )
    return offset_us // period_us

# lounge/utils/timefmt.py
"""Timestamp helpers. The lounge works in naive local time throughout."""

from datetime import datetime

CLOCK_FORMAT = "%H:%M:%S"
STAMP_FORMAT = "%H:%M:%S (%b %d)"


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def format_clock(value: datetime) -> str:
    return value.strftime(CLOCK_FORMAT)


def format_stamp(value: datetime) -> str:
    return value.strftime(STAMP_FORMAT)

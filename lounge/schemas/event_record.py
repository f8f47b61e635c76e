"""Log table rows: one column per (title, binding function) pair."""

from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel

from lounge.utils.timefmt import format_stamp


class EventRecordOut(BaseModel):
    occupant_name: str
    occupant_id: str
    station_id: int
    checkin_time: datetime
    checkout_time: Optional[datetime]
    usage_duration: Optional[str]

    class Config:
        from_attributes = True


def bind_occupant_name(row: EventRecordOut) -> str:
    return row.occupant_name


def bind_occupant_id(row: EventRecordOut) -> str:
    return row.occupant_id


def bind_station(row: EventRecordOut) -> str:
    return str(row.station_id)


def bind_checked_in(row: EventRecordOut) -> str:
    return format_stamp(row.checkin_time)


def bind_checked_out(row: EventRecordOut) -> str:
    return format_stamp(row.checkout_time) if row.checkout_time else "-"


def bind_usage(row: EventRecordOut) -> str:
    return row.usage_duration or ""


LOG_COLUMNS: tuple[tuple[str, Callable[[EventRecordOut], str]], ...] = (
    ("User Name", bind_occupant_name),
    ("User ID", bind_occupant_id),
    ("Device ID", bind_station),
    ("Checked In", bind_checked_in),
    ("Checked Out", bind_checked_out),
    ("Usage Time", bind_usage),
)


def log_cells(row: EventRecordOut) -> list[str]:
    return [bind(row) for _, bind in LOG_COLUMNS]

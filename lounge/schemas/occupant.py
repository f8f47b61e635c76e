"""
Active-occupant card rows.
Each card line has its own named binding function; OCCUPANT_CARD_LINES lists
them in display order so the presentation layer never indexes by position.
"""

from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel

from lounge.models.occupant import Occupant
from lounge.models.station import Station
from lounge.services.event_log import format_duration
from lounge.utils.timefmt import format_clock


class OccupantRow(BaseModel):
    id: str
    name: str
    station_id: int
    station_label: str
    category: Optional[str] = None
    checkin_time: datetime
    usage: str = "0s"

    @property
    def is_queued(self) -> bool:
        return self.station_id == 0


def build_occupant_row(occupant: Occupant, station: Optional[Station], now: datetime) -> OccupantRow:
    if occupant.is_queued:
        label = "Queue"
    elif station is not None:
        label = station.label or str(station.id)
    else:
        label = str(occupant.station_id)
    return OccupantRow(
        id=occupant.id,
        name=occupant.name,
        station_id=occupant.station_id,
        station_label=label,
        category=station.category.value if station is not None else None,
        checkin_time=occupant.checkin_time,
        usage=format_duration(now - occupant.checkin_time),
    )


def bind_station_line(row: OccupantRow) -> str:
    return f"PC: {row.station_label}"


def bind_name_line(row: OccupantRow) -> str:
    return row.name


def bind_id_line(row: OccupantRow) -> str:
    return f"ID: {row.id}"


def bind_checkin_line(row: OccupantRow) -> str:
    return f"In: {format_clock(row.checkin_time)}"


def bind_usage_line(row: OccupantRow) -> str:
    return f"Up: {row.usage}"


OCCUPANT_CARD_LINES: tuple[Callable[[OccupantRow], str], ...] = (
    bind_station_line,
    bind_name_line,
    bind_id_line,
    bind_checkin_line,
    bind_usage_line,
)


def card_lines(row: OccupantRow) -> list[str]:
    return [bind(row) for bind in OCCUPANT_CARD_LINES]

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lounge.models.occupant import Occupant
from lounge.models.station import Station
from lounge.services.event_log import format_duration
from lounge.utils.timefmt import format_stamp


class StationOccupantOut(BaseModel):
    id: str
    name: str
    checkin_time: datetime


class StationView(BaseModel):
    id: int
    category: str
    status: str
    label: str
    slot: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    occupants: list[StationOccupantOut] = []

    @property
    def is_free(self) -> bool:
        return self.status == "free"


def build_station_view(
    station: Station,
    occupants: list[Occupant],
    slot: Optional[int] = None,
    position: Optional[tuple[float, float]] = None,
) -> StationView:
    return StationView(
        id=station.id,
        category=station.category.value,
        status=station.status.value,
        label=station.label or str(station.id),
        slot=slot,
        x=position[0] if position else None,
        y=position[1] if position else None,
        occupants=[
            StationOccupantOut(id=o.id, name=o.name, checkin_time=o.checkin_time)
            for o in occupants
            if o.station_id == station.id
        ],
    )


def station_detail_text(view: StationView, now: datetime) -> str:
    """Hover text for a station icon; empty while the station is free."""
    if view.is_free or not view.occupants:
        return ""
    lines = [
        f"{o.name} (ID: {o.id}) In: {format_stamp(o.checkin_time)}  |  Usage: {format_duration(now - o.checkin_time)}"
        for o in view.occupants
    ]
    return f"{view.label}:\n" + "\n".join(lines)

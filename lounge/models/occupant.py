"""
Active occupant record.
The whole active list is persisted as one JSON array (active_users.json)
and rewritten on every ledger mutation. station_id 0 means queued.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from lounge.utils.timefmt import to_local_naive

QUEUED = 0


class Occupant(BaseModel):
    id: str
    name: str
    checkin_time: datetime
    station_id: int = Field(default=QUEUED, alias="pc_id", ge=0)

    class Config:
        populate_by_name = True

    @field_validator("checkin_time")
    @classmethod
    def _local_time(cls, value: datetime) -> datetime:
        return to_local_naive(value)

    @property
    def is_queued(self) -> bool:
        return self.station_id == QUEUED

    def __repr__(self):
        return f"<Occupant {self.id} name={self.name!r} station={self.station_id}>"

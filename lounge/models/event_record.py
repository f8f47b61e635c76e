"""
Daily event bucket record (check-in / check-out).
One record per check-in; the matching check-out fills checkout_time and
usage_duration in place. Records are never deleted.
The check-in identity fields are frozen: assigning to them raises.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from lounge.utils.timefmt import to_local_naive


class EventRecord(BaseModel):
    occupant_name: str = Field(alias="user_name", frozen=True)
    occupant_id: str = Field(alias="user_id", frozen=True)
    station_id: int = Field(alias="pc_id")      # 0 → real id once, on queued assignment
    checkin_time: datetime = Field(alias="check_in_time", frozen=True)
    checkout_time: Optional[datetime] = Field(default=None, alias="check_out_time")
    usage_duration: Optional[str] = Field(default=None, alias="usage_time")

    class Config:
        populate_by_name = True

    @field_validator("checkout_time", mode="before")
    @classmethod
    def _zero_time_is_open(cls, value: Any) -> Any:
        # Older buckets store an open check-out as the zero timestamp
        if isinstance(value, str) and value.startswith("0001-01-01"):
            return None
        return value

    @field_validator("checkin_time", "checkout_time")
    @classmethod
    def _local_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value) if value is not None else None

    @property
    def is_open(self) -> bool:
        return self.checkout_time is None

    def __repr__(self):
        state = "open" if self.is_open else f"closed usage={self.usage_duration}"
        return f"<EventRecord {self.occupant_id} station={self.station_id} {state}>"

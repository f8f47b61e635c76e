"""
Station → grid slot pairs (device_layout.json).
The file is a JSON list of {"DeviceID", "Slot"} objects, rewritten on every swap.
"""

from pydantic import BaseModel, Field


class SlotEntry(BaseModel):
    station_id: int = Field(alias="DeviceID", gt=0)
    slot: int = Field(alias="Slot", ge=0)

    class Config:
        populate_by_name = True

    def __repr__(self):
        return f"<SlotEntry station={self.station_id} slot={self.slot}>"

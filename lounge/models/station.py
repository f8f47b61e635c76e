"""
Station records (PCs and consoles).
The pool is rebuilt from Settings at every start; it is never written to disk.
Occupancy status is re-derived from the active occupant ledger on load.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class StationCategory(str, Enum):
    PRIMARY = "primary"       # exclusive, one occupant (PC)
    AUXILIARY = "auxiliary"   # shared, any number of occupants (console)


class StationStatus(str, Enum):
    FREE = "free"
    OCCUPIED = "occupied"


class Station(BaseModel):
    id: int = Field(gt=0)
    category: StationCategory
    status: StationStatus = StationStatus.FREE
    occupant_id: Optional[str] = None   # holder, primary stations only
    label: str = ""

    @property
    def is_primary(self) -> bool:
        return self.category == StationCategory.PRIMARY

    @property
    def is_free(self) -> bool:
        return self.status == StationStatus.FREE

    def __repr__(self):
        return f"<Station {self.id} {self.category.value} status={self.status.value}>"

# Lounge data models
# Import all models here so callers can use `from lounge.models import ...`

from lounge.models.station import Station, StationCategory, StationStatus   # noqa
from lounge.models.occupant import Occupant, QUEUED                         # noqa
from lounge.models.event_record import EventRecord                          # noqa
from lounge.models.slot_mapping import SlotEntry                            # noqa
from lounge.models.member import Member                                     # noqa

# lounge/exceptions.py
"""
Errors reported back to the operator.
Every one of these is raised before any state is touched, so catching it
leaves the ledger, the log and the layout exactly as they were.
"""


class LoungeError(Exception):
    """Base class for all rejected operations."""


class InvalidInput(LoungeError):
    """Missing name/id, or a station id that is not a number."""


class DuplicateOccupant(LoungeError):
    pass


class StationBusy(LoungeError):
    pass


class NotFound(LoungeError):
    pass


class UnknownStation(LoungeError):
    pass


class AlreadyAssigned(LoungeError):
    """Occupant already holds a concrete station."""

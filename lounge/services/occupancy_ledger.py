# lounge/services/occupancy_ledger.py
"""
Station pool + active occupant ledger.
Stations: PCs (primary, one occupant) and consoles (auxiliary, shared).
Operations: check_in, check_out, assign_queued, remove_queued.

Every operation validates first and raises a LoungeError before touching
anything. Once validation passes the in-memory mutation is applied, the
ledger file is rewritten, the event log is updated (optionally on the log
worker) and a change notification is emitted. Persistence and log failures
are logged; they never undo the in-memory change.
"""

from concurrent.futures import Executor, Future
from datetime import datetime
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from lounge.exceptions import (
    AlreadyAssigned,
    DuplicateOccupant,
    InvalidInput,
    NotFound,
    StationBusy,
    UnknownStation,
)
from lounge.models.member import Member
from lounge.models.occupant import QUEUED, Occupant
from lounge.models.station import Station, StationCategory, StationStatus
from lounge.services.event_log import EventLog
from lounge.services.notifications import ChangeNotifier
from lounge.services.roster_service import MemberRoster
from lounge.utils import json_store
from lounge.utils.logger import get_logger

logger = get_logger(__name__)

_ledger_adapter = TypeAdapter(list[Occupant])


def build_station_pool(primary_count: int, auxiliary: dict[int, str]) -> list[Station]:
    """PCs 1..primary_count, then the shared consoles in id order."""
    stations = [
        Station(id=i, category=StationCategory.PRIMARY, label=str(i))
        for i in range(1, primary_count + 1)
    ]
    for station_id in sorted(auxiliary):
        if station_id <= primary_count:
            raise ValueError(f"Auxiliary station id {station_id} collides with the PC range 1..{primary_count}")
        stations.append(Station(
            id=station_id,
            category=StationCategory.AUXILIARY,
            label=f"{auxiliary[station_id]} {station_id}",
        ))
    return stations


def parse_station_id(text: str) -> int:
    """Parse operator input for a station field."""
    text = (text or "").strip()
    if not text:
        raise InvalidInput("station ID is required")
    try:
        return int(text)
    except ValueError:
        raise InvalidInput(f"invalid station ID {text!r}: must be a number") from None


def _log_worker_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error(f"[Ledger] Event log task failed: {exc}", exc_info=exc)


class OccupancyLedger:
    def __init__(
        self,
        stations: list[Station],
        ledger_path: str,
        event_log: EventLog,
        notifier: Optional[ChangeNotifier] = None,
        roster: Optional[MemberRoster] = None,
        clock: Callable[[], datetime] = datetime.now,
        log_executor: Optional[Executor] = None,
    ):
        self._stations = stations
        self._by_id = {s.id: s for s in stations}
        self._occupants: list[Occupant] = []
        self.ledger_path = ledger_path
        self.event_log = event_log
        self.notifier = notifier
        self.roster = roster
        self.clock = clock
        self.log_executor = log_executor

    # ── Lookups & views ───────────────────────────────────────────────────
    def get_station(self, station_id: int) -> Optional[Station]:
        return self._by_id.get(station_id)

    def get_occupant(self, occupant_id: str) -> Optional[Occupant]:
        for o in self._occupants:
            if o.id == occupant_id:
                return o
        return None

    def occupants_on_station(self, station_id: int) -> list[Occupant]:
        return [o for o in self._occupants if o.station_id == station_id]

    def list_stations(self) -> list[Station]:
        return [s.model_copy() for s in self._stations]

    def list_active_occupants(self) -> list[Occupant]:
        """Active occupants in arrival order."""
        return [o.model_copy() for o in self._occupants]

    def pending_occupants(self) -> list[Occupant]:
        return [o.model_copy() for o in self._occupants if o.is_queued]

    # ── Persistence ───────────────────────────────────────────────────────
    def load(self) -> int:
        """Restore the active list from disk and re-derive station status."""
        occupants: list[Occupant] = []
        try:
            raw = json_store.read_bytes(self.ledger_path)
        except OSError as e:
            logger.warning(f"[Ledger] Cannot read {self.ledger_path}: {e} — starting empty")
            raw = None
        if raw is not None and raw.strip():
            try:
                occupants = _ledger_adapter.validate_json(raw)
            except ValidationError as e:
                logger.warning(f"[Ledger] Corrupt ledger {self.ledger_path} ({e.error_count()} errors) — starting empty")

        for s in self._stations:
            s.status = StationStatus.FREE
            s.occupant_id = None

        self._occupants = []
        for o in occupants:
            if self.get_occupant(o.id) is not None:
                logger.warning(f"[Ledger] Duplicate entry for ID {o.id} in ledger file — dropped")
                continue
            if not o.is_queued:
                station = self.get_station(o.station_id)
                if station is None:
                    logger.warning(f"[Ledger] {o.name} ({o.id}) is on unknown station {o.station_id}")
                elif station.is_primary and not station.is_free:
                    logger.warning(
                        f"[Ledger] Station {station.id} already held by {station.occupant_id}; "
                        f"{o.name} ({o.id}) moved to the queue"
                    )
                    o.station_id = QUEUED
                else:
                    station.status = StationStatus.OCCUPIED
                    if station.is_primary:
                        station.occupant_id = o.id
            self._occupants.append(o)
        logger.info(f"[Ledger] Loaded {len(self._occupants)} active occupants")
        return len(self._occupants)

    def save(self) -> None:
        try:
            json_store.write_json(
                self.ledger_path,
                _ledger_adapter.dump_python(self._occupants, mode="json", by_alias=True),
            )
        except OSError as e:
            logger.error(f"[Ledger] Failed to write {self.ledger_path}: {e}", exc_info=True)

    def _record(self, fn: Callable, *args) -> None:
        if self.log_executor is None:
            fn(*args)
            return
        self.log_executor.submit(fn, *args).add_done_callback(_log_worker_failure)

    def _notify(self) -> None:
        if self.notifier is not None:
            self.notifier.notify()

    def _occupy(self, station: Station, occupant_id: str) -> None:
        station.status = StationStatus.OCCUPIED
        if station.is_primary:
            station.occupant_id = occupant_id

    def _release(self, station_id: int) -> None:
        station = self.get_station(station_id)
        if station is None:
            return
        if station.is_primary:
            station.status = StationStatus.FREE
            station.occupant_id = None
        elif self.occupants_on_station(station_id):
            station.status = StationStatus.OCCUPIED
        else:
            station.status = StationStatus.FREE

    def _remove(self, occupant: Occupant) -> None:
        self._occupants = [o for o in self._occupants if o is not occupant]

    # ── Operations ────────────────────────────────────────────────────────
    def check_in(self, name: str, occupant_id: str, station_id: int) -> Occupant:
        name = (name or "").strip()
        occupant_id = (occupant_id or "").strip()
        if not name or not occupant_id:
            raise InvalidInput("name and ID are required")

        existing = self.get_occupant(occupant_id)
        if existing is not None:
            raise DuplicateOccupant(
                f"user ID {occupant_id} ({existing.name}) already checked in on station {existing.station_id}"
            )

        station = None
        if station_id != QUEUED:
            station = self.get_station(station_id)
            if station is None:
                raise UnknownStation(f"station {station_id} does not exist")
            if station.is_primary and not station.is_free:
                raise StationBusy(f"station {station_id} is busy (occupied by ID {station.occupant_id})")

        if station is not None:
            self._occupy(station, occupant_id)
        occupant = Occupant(id=occupant_id, name=name, checkin_time=self.clock(), station_id=station_id)
        self._occupants.append(occupant)

        if self.roster is not None and self.roster.by_id(occupant_id) is None:
            self.roster.append(Member(name=name, id=occupant_id))

        self.save()
        self._record(self.event_log.append_checkin, occupant.model_copy(), station_id)
        self._notify()
        where = f"station {station_id}" if station is not None else "the queue"
        logger.info(f"[Ledger] {name} ({occupant_id}) checked in to {where}")
        return occupant.model_copy()

    def check_out(self, occupant_id: str) -> None:
        occupant = self.get_occupant(occupant_id)
        if occupant is None:
            raise NotFound(f"user ID {occupant_id} not found")

        self._remove(occupant)
        self._release(occupant.station_id)

        self.save()
        self._record(self.event_log.close_checkin, occupant.id, occupant.station_id, occupant.checkin_time)
        self._notify()
        logger.info(f"[Ledger] {occupant.name} ({occupant.id}) checked out of station {occupant.station_id}")

    def assign_queued(self, occupant_id: str, station_id: int) -> None:
        occupant = self.get_occupant(occupant_id)
        if occupant is None:
            raise NotFound(f"user ID {occupant_id} not found")
        if not occupant.is_queued:
            raise AlreadyAssigned(f"user {occupant_id} already on station {occupant.station_id}")
        station = self.get_station(station_id)
        if station is None:
            raise UnknownStation(f"station {station_id} does not exist")
        if station.is_primary and not station.is_free:
            raise StationBusy(f"station {station_id} is busy (occupied by ID {station.occupant_id})")

        self._occupy(station, occupant_id)
        occupant.station_id = station_id

        self.save()
        self._record(self.event_log.reassign_station, occupant.id, occupant.checkin_time, station_id)
        self._notify()
        logger.info(f"[Ledger] Queued {occupant.name} ({occupant.id}) assigned to station {station_id}")

    def remove_queued(self, occupant_id: str) -> None:
        occupant = self.get_occupant(occupant_id)
        if occupant is None:
            raise NotFound(f"user ID {occupant_id} not found")
        if not occupant.is_queued:
            raise AlreadyAssigned(f"user {occupant_id} already on station {occupant.station_id}")

        self._remove(occupant)

        self.save()
        self._record(self.event_log.close_checkin, occupant.id, QUEUED, occupant.checkin_time)
        self._notify()
        logger.info(f"[Ledger] Queued {occupant.name} ({occupant.id}) removed")

# lounge/services/event_log.py
"""
Daily check-in / check-out log.

How it works:
  - One bucket file per local calendar date: <LOG_DIR>/<prefix>-YYYY-MM-DD.json
  - Check-in  → append_checkin appends an open record to today's bucket
  - Check-out → close_checkin finds the most recent open record for the same
    occupant + station (+ original check-in time when given) and fills in the
    check-out time and the usage text
  - Every event reads the whole bucket, mutates it in memory and rewrites it,
    all under one lock, so calls from the log worker and the UI thread
    serialise cleanly

A check-out only ever looks at the bucket of the day it happens on. A session
that crosses midnight leaves its record open in the previous day's bucket and
the miss is logged.
"""

import os
import threading
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from lounge.models.event_record import EventRecord
from lounge.models.occupant import Occupant
from lounge.utils import json_store
from lounge.utils.logger import get_logger

logger = get_logger(__name__)

_bucket_adapter = TypeAdapter(list[EventRecord])


def format_duration(delta: timedelta) -> str:
    """Compact usage text: 1h02m03s, 2m03s or 3s."""
    total = max(0, int(delta.total_seconds() + 0.5))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h{minutes:02d}m{seconds:02d}s"
    if minutes > 0:
        return f"{minutes}m{seconds:02d}s"
    return f"{seconds}s"


class EventLog:
    def __init__(
        self,
        log_dir: str,
        prefix: str = "lounge",
        clock: Callable[[], datetime] = datetime.now,
        on_written: Optional[Callable[[list[EventRecord]], None]] = None,
    ):
        self.log_dir = log_dir
        self.prefix = prefix
        self.clock = clock
        self.on_written = on_written
        self._lock = threading.Lock()
        self._active_day: date = clock().date()
        self._cache: list[EventRecord] = []

    # ── Buckets ───────────────────────────────────────────────────────────
    def bucket_path(self, day: Optional[date] = None) -> str:
        day = day or self.clock().date()
        return os.path.join(self.log_dir, f"{self.prefix}-{day.isoformat()}.json")

    def read_bucket(self, day: Optional[date] = None) -> list[EventRecord]:
        """Load one bucket. Missing → empty; unreadable or corrupt → empty + warning."""
        path = self.bucket_path(day)
        try:
            raw = json_store.read_bytes(path)
        except OSError as e:
            logger.warning(f"[EventLog] Cannot read {path}: {e} — treating as empty")
            return []
        if raw is None or not raw.strip():
            return []
        try:
            return _bucket_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[EventLog] Corrupt bucket {path} ({e.error_count()} errors) — treating as empty")
            return []

    def _write_bucket(self, entries: list[EventRecord], day: date) -> None:
        path = self.bucket_path(day)
        try:
            json_store.write_json(path, _bucket_adapter.dump_python(entries, mode="json", by_alias=True))
        except OSError as e:
            logger.error(f"[EventLog] Failed to write {path}: {e}", exc_info=True)
        if day == self._active_day:
            self._cache = list(entries)
        if self.on_written is not None:
            self.on_written(list(entries))

    # ── Events ────────────────────────────────────────────────────────────
    def append_checkin(self, occupant: Occupant, station_id: int) -> EventRecord:
        record = EventRecord(
            occupant_name=occupant.name,
            occupant_id=occupant.id,
            station_id=station_id,
            checkin_time=occupant.checkin_time,
        )
        with self._lock:
            day = self.clock().date()
            entries = self.read_bucket(day)
            entries.append(record)
            self._write_bucket(entries, day)
        logger.info(f"[EventLog] Check-in {occupant.name} ({occupant.id}) station={station_id}")
        return record

    def close_checkin(
        self,
        occupant_id: str,
        station_id: int,
        original_checkin_time: Optional[datetime] = None,
    ) -> Optional[EventRecord]:
        """Close the most recent matching open record in today's bucket.

        Returns the closed record, or None when no open check-in matches (the
        bucket is still rewritten so the on-disk state is normalised).
        """
        with self._lock:
            now = self.clock()
            day = now.date()
            entries = self.read_bucket(day)
            closed = None
            for record in reversed(entries):
                if record.occupant_id != occupant_id or record.station_id != station_id or not record.is_open:
                    continue
                if original_checkin_time is not None and record.checkin_time != original_checkin_time:
                    continue
                record.checkout_time = now
                record.usage_duration = format_duration(now - record.checkin_time)
                closed = record
                break
            if closed is None:
                logger.warning(
                    f"[EventLog] No matching check-in for ID {occupant_id} station {station_id} "
                    f"in bucket {day.isoformat()}"
                )
            self._write_bucket(entries, day)
        if closed is not None:
            logger.info(f"[EventLog] Check-out {occupant_id} station={station_id} usage={closed.usage_duration}")
        return closed

    def reassign_station(self, occupant_id: str, checkin_time: datetime, station_id: int) -> Optional[EventRecord]:
        """Move a queued occupant's open record from station 0 to `station_id`."""
        with self._lock:
            day = self.clock().date()
            entries = self.read_bucket(day)
            moved = None
            for record in reversed(entries):
                if (
                    record.occupant_id == occupant_id
                    and record.is_open
                    and record.station_id == 0
                    and record.checkin_time == checkin_time
                ):
                    record.station_id = station_id
                    moved = record
                    break
            if moved is None:
                logger.warning(f"[EventLog] No queued check-in for ID {occupant_id} to move to station {station_id}")
                return None
            self._write_bucket(entries, day)
        return moved

    # ── Log view ──────────────────────────────────────────────────────────
    def current_entries(self) -> list[EventRecord]:
        return list(self._cache)

    def refresh_cache(self) -> list[EventRecord]:
        with self._lock:
            self._cache = self.read_bucket(self._active_day)
        return list(self._cache)

    @property
    def active_day(self) -> date:
        return self._active_day

    def rotate_if_needed(self, now: Optional[datetime] = None) -> bool:
        """Switch the active bucket when the calendar date has changed."""
        today = (now or self.clock()).date()
        if today == self._active_day:
            return False
        logger.info(f"[EventLog] Date rollover {self._active_day.isoformat()} → {today.isoformat()}")
        self._active_day = today
        self.refresh_cache()
        return True

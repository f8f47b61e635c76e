# lounge/main.py
"""
Lounge core entry point.
Wires the ledger, event log, slot layout, radial placer and roster together
and exposes the operations and read-only views a presentation layer uses.

Threading: everything here runs on the UI thread except event log writes,
which go to a single worker. Worker completions come back through the
UiDispatcher; state changes are coalesced by the ChangeNotifier and handed
to subscribers in tick().
"""

import argparse
import os
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime
from random import Random
from typing import Callable, Optional

from lounge.config import Settings, settings
from lounge.exceptions import UnknownStation
from lounge.models.event_record import EventRecord
from lounge.models.member import Member
from lounge.models.occupant import Occupant
from lounge.models.station import Station
from lounge.schemas.event_record import EventRecordOut
from lounge.schemas.occupant import OccupantRow, build_occupant_row
from lounge.schemas.station import StationView, build_station_view
from lounge.services.event_log import EventLog
from lounge.services.notifications import ChangeNotifier, UiDispatcher
from lounge.services.occupancy_ledger import OccupancyLedger, build_station_pool
from lounge.services.radial_placer import RadialPlacer
from lounge.services.roster_service import MemberRoster
from lounge.services.slot_layout import SlotLayoutStore
from lounge.utils.geometry import Point
from lounge.utils.logger import get_logger

logger = get_logger(__name__)


class LoungeApp:
    def __init__(
        self,
        config: Settings = settings,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[Random] = None,
        log_executor: Optional[Executor] = None,
    ):
        self.config = config
        self.clock = clock
        self.log_view_stale = False

        os.makedirs(config.DATA_DIR, exist_ok=True)
        self.notifier = ChangeNotifier()
        self.dispatcher = UiDispatcher()
        self.event_log = EventLog(
            config.LOG_DIR,
            prefix=config.LOG_BUCKET_PREFIX,
            clock=clock,
            on_written=self._on_log_written,
        )
        self.roster = MemberRoster(config.MEMBER_FILE)
        self.ledger = OccupancyLedger(
            build_station_pool(config.PRIMARY_STATION_COUNT, config.AUXILIARY_STATIONS),
            config.ACTIVE_USERS_FILE,
            self.event_log,
            notifier=self.notifier,
            roster=self.roster,
            clock=clock,
            log_executor=log_executor,
        )
        self.layout = SlotLayoutStore(
            config.LAYOUT_FILE,
            config.PREFERRED_SLOT_ORDER,
            [s.id for s in self.ledger.list_stations()],
            row_lengths=config.SLOT_ROW_LENGTHS,
            spacing=(config.SLOT_SPACING_X, config.SLOT_SPACING_Y),
            margin=config.SLOT_MARGIN,
            icon_size=config.STATION_ICON_SIZE,
            grid_width_ratio=config.GRID_WIDTH_RATIO,
            canvas=(config.STATION_CANVAS_WIDTH, config.STATION_CANVAS_HEIGHT),
        )
        self.placer = RadialPlacer(
            config.OCCUPANT_CANVAS_WIDTH,
            config.OCCUPANT_CANVAS_HEIGHT,
            marker_size=config.MARKER_SIZE,
            card_width=config.CARD_WIDTH,
            card_height=config.CARD_HEIGHT,
            card_gap=config.CARD_GAP,
            margin=config.PLACEMENT_MARGIN,
            base_radius=config.RING_BASE_RADIUS,
            ring_step=config.RING_STEP,
            pack_factor=config.RING_PACK_FACTOR,
            overlap_factor=config.OVERLAP_FACTOR,
            max_attempts=config.PLACEMENT_MAX_ATTEMPTS,
            angle_nudge=config.ANGLE_NUDGE_FRACTION,
            radius_nudge=config.RADIUS_NUDGE,
            resize_threshold=config.RESIZE_THRESHOLD,
            rng=rng,
        )
        self._elapsed_handlers: list[Callable[[datetime], None]] = []
        self._last_ui_tick: Optional[datetime] = None
        self._last_rollover_check: Optional[datetime] = None

        # Placement must be current before any presentation subscriber runs
        self.notifier.subscribe(self._sync_placer)

    # ── Lifecycle ─────────────────────────────────────────────────────────
    def start(self) -> None:
        self.roster.load()
        self.ledger.load()
        self.layout.load()
        self.layout.ensure_complete([s.id for s in self.ledger.list_stations()])
        self.event_log.refresh_cache()
        self._sync_placer()
        now = self.clock()
        self._last_ui_tick = now
        self._last_rollover_check = now
        logger.info(
            f"Lounge ready: {len(self.ledger.list_stations())} stations, "
            f"{len(self.ledger.list_active_occupants())} active, "
            f"{len(self.roster.members)} members"
        )

    def _sync_placer(self) -> None:
        self.placer.sync([o.id for o in self.ledger.list_active_occupants()])

    def _on_log_written(self, entries: list[EventRecord]) -> None:
        # Runs on the log writer thread
        self.dispatcher.call_soon(self._mark_log_stale)

    def _mark_log_stale(self) -> None:
        self.log_view_stale = True
        self.notifier.notify()

    def tick(self, now: Optional[datetime] = None) -> None:
        """One pass of the UI loop: dispatched calls, refresh, timers."""
        now = now or self.clock()
        self.dispatcher.run_pending()
        self.notifier.flush()

        if self._last_ui_tick is None or (now - self._last_ui_tick).total_seconds() >= self.config.UI_REFRESH_SECONDS:
            self._last_ui_tick = now
            for handler in list(self._elapsed_handlers):
                try:
                    handler(now)
                except Exception as e:
                    logger.error(f"Error in elapsed-time handler: {e}", exc_info=True)

        if (
            self._last_rollover_check is None
            or (now - self._last_rollover_check).total_seconds() >= self.config.ROLLOVER_CHECK_SECONDS
        ):
            self._last_rollover_check = now
            if self.event_log.rotate_if_needed(now):
                self._mark_log_stale()

    # ── Core → presentation ───────────────────────────────────────────────
    def list_stations(self) -> list[Station]:
        return self.ledger.list_stations()

    def list_active_occupants(self) -> list[Occupant]:
        return self.ledger.list_active_occupants()

    def station_position(self, station_id: int) -> Optional[Point]:
        return self.layout.station_position(station_id)

    def occupant_position(self, occupant_id: str) -> Optional[Point]:
        return self.placer.position(occupant_id)

    def subscribe(self, on_change: Callable[[], None]) -> Callable[[], None]:
        return self.notifier.subscribe(on_change)

    def subscribe_elapsed(self, on_tick: Callable[[datetime], None]) -> Callable[[], None]:
        """Called once per UI_REFRESH_SECONDS with the current time."""
        self._elapsed_handlers.append(on_tick)

        def unsubscribe() -> None:
            self._elapsed_handlers = [h for h in self._elapsed_handlers if h is not on_tick]

        return unsubscribe

    def station_views(self) -> list[StationView]:
        occupants = self.ledger.list_active_occupants()
        views = []
        for station in self.ledger.list_stations():
            pos = self.layout.station_position(station.id)
            views.append(build_station_view(station, occupants, self.layout.slot_of(station.id), pos))
        return views

    def occupant_rows(self, now: Optional[datetime] = None) -> list[OccupantRow]:
        now = now or self.clock()
        return [
            build_occupant_row(o, self.ledger.get_station(o.station_id), now)
            for o in self.ledger.list_active_occupants()
        ]

    def log_rows(self) -> list[EventRecordOut]:
        if self.log_view_stale:
            self.event_log.refresh_cache()
            self.log_view_stale = False
        return [EventRecordOut.model_validate(e) for e in self.event_log.current_entries()]

    def search_members(self, query: str) -> list[Member]:
        return self.roster.search(query)

    # ── Presentation → core ───────────────────────────────────────────────
    def check_in(self, name: str, occupant_id: str, station_id: int) -> Occupant:
        return self.ledger.check_in(name, occupant_id, station_id)

    def check_out(self, occupant_id: str) -> None:
        self.ledger.check_out(occupant_id)

    def assign_queued(self, occupant_id: str, station_id: int) -> None:
        self.ledger.assign_queued(occupant_id, station_id)

    def remove_queued(self, occupant_id: str) -> None:
        self.ledger.remove_queued(occupant_id)

    def swap_slot(self, station_id: int, target_point: Point) -> bool:
        if self.ledger.get_station(station_id) is None:
            raise UnknownStation(f"station {station_id} does not exist")
        target = self.layout.nearest_slot(target_point)
        if target is None:
            return False
        changed = self.layout.swap(station_id, target)
        if changed:
            self.notifier.notify()
        return changed

    def drag_station(self, station_id: int, point: Point) -> Point:
        return self.layout.drag_station(station_id, point)

    def release_station(self) -> bool:
        changed = self.layout.release_station()
        if changed:
            self.notifier.notify()
        return changed

    def drag_occupant(self, occupant_id: str, point: Point) -> Point:
        return self.placer.drag(occupant_id, point)

    def release_occupant(self, occupant_id: str, point: Point) -> Point:
        placement = self.placer.release(occupant_id, point)
        self.notifier.notify()
        return placement.point

    def resize_station_canvas(self, width: float, height: float) -> None:
        self.layout.compute_slot_positions(width, height)

    def resize_occupant_canvas(self, width: float, height: float) -> bool:
        changed = self.placer.resize(width, height)
        if changed:
            self.notifier.notify()
        return changed

    def reset_occupant_layout(self) -> None:
        self.placer.reset()
        self._sync_placer()
        self.notifier.notify()


def main():
    parser = argparse.ArgumentParser(description="Run the lounge core without a window (headless host loop)")
    parser.add_argument("--data-dir", default=settings.DATA_DIR)
    args = parser.parse_args()

    config = settings.model_copy(update={"DATA_DIR": args.data_dir})
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lounge-log")
    app = LoungeApp(config, log_executor=executor)
    logger.info("🚀 Lounge core starting up...")
    app.start()
    try:
        while True:
            app.tick()
            time.sleep(config.HOST_LOOP_INTERVAL)
    except KeyboardInterrupt:
        logger.info("🛑 Lounge core shutting down...")
    finally:
        executor.shutdown(wait=True)
        app.dispatcher.run_pending()


if __name__ == "__main__":
    main()

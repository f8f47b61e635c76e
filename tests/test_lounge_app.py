"""
Tests for the LoungeApp facade: wiring, refresh coalescing, timers and
the presentation-facing views.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import random
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from lounge.config import Settings
from lounge.exceptions import UnknownStation
from lounge.main import LoungeApp
from lounge.schemas.event_record import log_cells
from lounge.schemas.occupant import card_lines
from lounge.schemas.station import station_detail_text
from lounge.utils.geometry import Point


@pytest.fixture
def config(tmp_path):
    return Settings(DATA_DIR=str(tmp_path / "data"), MEMBER_FILE=str(tmp_path / "membership.csv"))


@pytest.fixture
def app(config, clock):
    lounge = LoungeApp(config, clock=clock, rng=random.Random(3))
    lounge.start()
    return lounge


class TestLoungeApp:
    def test_start_builds_pool_and_layout(self, app, config):
        assert len(app.list_stations()) == 18
        assert app.list_active_occupants() == []
        assert os.path.exists(config.LAYOUT_FILE)
        assert app.station_position(16) == app.layout.slot_positions[0]

    def test_burst_of_changes_refreshes_once(self, app):
        handler = MagicMock()
        app.subscribe(handler)

        app.check_in("Alice", "1001", 5)
        app.check_in("Bob", "1002", 6)
        app.check_in("Carl", "2001", 0)
        app.tick()

        handler.assert_called_once_with()
        assert app.log_view_stale

    def test_markers_are_placed_before_subscribers_run(self, app):
        seen = []
        app.subscribe(lambda: seen.append(app.occupant_position("1001")))

        app.check_in("Alice", "1001", 5)
        app.tick()

        assert seen == [Point(450, 350)]

    def test_checkout_flow_and_log_rows(self, app, clock):
        app.check_in("Alice", "1001", 5)
        clock.advance(minutes=5, seconds=3)
        app.check_out("1001")
        app.tick()

        rows = app.log_rows()
        assert not app.log_view_stale
        assert len(rows) == 1
        cells = log_cells(rows[0])
        assert cells[:3] == ["Alice", "1001", "5"]
        assert cells[5] == "5m03s"
        assert app.occupant_position("1001") is None

    def test_queue_flow(self, app):
        app.check_in("Carl", "2001", 0)
        app.assign_queued("2001", 7)
        assert app.ledger.get_station(7).occupant_id == "2001"

        app.check_in("Dana", "2002", 0)
        app.remove_queued("2002")
        assert [o.id for o in app.list_active_occupants()] == ["2001"]

    def test_new_member_is_searchable(self, app):
        app.check_in("Alice Smith", "1001", 5)
        assert [m.id for m in app.search_members("alice")] == ["1001"]

    def test_views(self, app, clock):
        app.check_in("Alice", "1001", 17)
        clock.advance(seconds=65)

        view = next(v for v in app.station_views() if v.id == 17)
        assert view.status == "occupied"
        assert [o.id for o in view.occupants] == ["1001"]
        assert "Alice (ID: 1001)" in station_detail_text(view, clock())

        row = app.occupant_rows()[0]
        assert card_lines(row) == ["PC: Xbox 17", "Alice", "ID: 1001", "In: 10:00:00", "Up: 1m05s"]

    def test_elapsed_handlers_follow_refresh_interval(self, app, clock):
        handler = MagicMock()
        app.subscribe_elapsed(handler)

        app.tick(clock() + timedelta(milliseconds=500))
        handler.assert_not_called()

        later = clock() + timedelta(seconds=1)
        app.tick(later)
        handler.assert_called_once_with(later)

    def test_rollover_switches_log_view(self, config, clock):
        clock.now = datetime(2026, 3, 14, 23, 58, 0)
        app = LoungeApp(config, clock=clock, rng=random.Random(3))
        app.start()
        app.check_in("Alice", "1001", 5)
        app.tick()
        assert len(app.log_rows()) == 1

        clock.advance(minutes=6)
        app.tick()

        assert app.event_log.active_day == clock().date()
        assert app.log_rows() == []

    def test_checkout_after_midnight_leaves_yesterday_open(self, config, clock):
        clock.now = datetime(2026, 3, 14, 23, 59, 0)
        app = LoungeApp(config, clock=clock, rng=random.Random(3))
        app.start()
        app.check_in("Alice", "1001", 5)
        clock.advance(minutes=2)

        app.check_out("1001")

        assert app.ledger.get_station(5).is_free
        yesterday = app.event_log.read_bucket(datetime(2026, 3, 14).date())
        assert yesterday[0].is_open

    def test_restart_restores_state(self, app, config, clock):
        app.check_in("Alice", "1001", 5)
        app.check_in("Bob", "1002", 18)
        app.swap_slot(16, Point(290, 30))

        restarted = LoungeApp(config, clock=clock, rng=random.Random(3))
        restarted.start()

        assert restarted.list_stations() == app.list_stations()
        assert restarted.list_active_occupants() == app.list_active_occupants()
        assert restarted.layout.mapping == app.layout.mapping


class TestStationLayoutCommands:
    def test_swap_slot_uses_nearest_slot(self, app):
        handler = MagicMock()
        app.subscribe(handler)

        assert app.swap_slot(16, Point(290, 30)) is True
        assert app.layout.slot_of(16) == 1
        assert app.layout.slot_of(15) == 0
        app.tick()
        handler.assert_called_once_with()

    def test_swap_slot_unknown_station(self, app):
        with pytest.raises(UnknownStation):
            app.swap_slot(99, Point(0, 0))

    def test_drag_and_release_station(self, app):
        app.drag_station(16, Point(5000, 5000))
        assert app.station_position(16) == Point(644, 364)
        assert app.release_station() is True
        assert app.layout.slot_of(16) == 17

    def test_release_station_without_change_does_not_refresh(self, app):
        handler = MagicMock()
        app.subscribe(handler)

        assert app.release_station() is False
        app.drag_station(16, app.layout.slot_positions[0])
        assert app.release_station() is False
        app.tick()

        handler.assert_not_called()
        assert app.layout.slot_of(16) == 0


class TestOccupantLayoutCommands:
    def test_release_occupant_keeps_dropped_point(self, app):
        app.check_in("Alice", "1001", 5)
        app.tick()

        app.drag_occupant("1001", Point(100, 100))
        assert app.occupant_position("1001") == Point(100, 100)
        assert app.release_occupant("1001", Point(200, 220)) == Point(200, 220)

    def test_resize_recentres(self, app):
        app.check_in("Alice", "1001", 5)
        app.tick()

        assert app.resize_occupant_canvas(903, 702) is False
        assert app.resize_occupant_canvas(1400, 1000) is True
        assert app.occupant_position("1001") == Point(700, 500)

    def test_reset_occupant_layout(self, app):
        app.check_in("Alice", "1001", 5)
        app.tick()
        app.release_occupant("1001", Point(200, 220))

        app.reset_occupant_layout()
        assert app.occupant_position("1001") == Point(450, 350)

"""Unit tests for the station slot layout."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json

import pytest

from lounge.exceptions import InvalidInput, UnknownStation
from lounge.services.slot_layout import SlotLayoutStore
from lounge.utils.geometry import Point

PREFERRED = [16, 15, 14, 11, 12, 13, 10, 9, 8, 7, 6, 5, 1, 2, 3, 4, 17, 18]
STATIONS = list(range(1, 19))


def make_store(tmp_path, station_ids=STATIONS):
    return SlotLayoutStore(str(tmp_path / "device_layout.json"), PREFERRED, station_ids)


class TestLoad:
    def test_missing_file_uses_preferred_order(self, tmp_path):
        store = make_store(tmp_path)
        store.load()

        assert store.slot_of(16) == 0
        assert store.slot_of(15) == 1
        assert store.slot_of(4) == 15
        assert store.slot_of(18) == 17
        assert sorted(store.mapping.values()) == list(range(18))
        assert os.path.exists(store.path)

    def test_file_uses_device_keys(self, tmp_path):
        store = make_store(tmp_path)
        store.load()

        with open(store.path) as f:
            data = json.load(f)
        assert {"DeviceID": 16, "Slot": 0} in data

    def test_corrupt_file_is_rebuilt(self, tmp_path):
        (tmp_path / "device_layout.json").write_text("not json at all")
        store = make_store(tmp_path)
        store.load()

        assert store.slot_of(16) == 0
        assert len(store.mapping) == 18

    def test_slot_collision_is_rebuilt(self, tmp_path):
        (tmp_path / "device_layout.json").write_text(json.dumps([
            {"DeviceID": 1, "Slot": 0},
            {"DeviceID": 2, "Slot": 0},
        ]))
        store = make_store(tmp_path)
        store.load()

        assert store.slot_of(16) == 0
        assert len(set(store.mapping.values())) == 18

    def test_saved_layout_is_kept_and_completed(self, tmp_path):
        (tmp_path / "device_layout.json").write_text(json.dumps([
            {"DeviceID": 1, "Slot": 0},
            {"DeviceID": 16, "Slot": 12},
            {"DeviceID": 99, "Slot": 3},
        ]))
        store = make_store(tmp_path)
        store.load()

        assert store.slot_of(1) == 0
        assert store.slot_of(16) == 12
        assert store.slot_of(99) is None
        assert store.slot_of(15) == 1
        assert sorted(store.mapping.values()) == list(range(18))

    def test_out_of_range_slots_are_rebuilt(self, tmp_path):
        (tmp_path / "device_layout.json").write_text(json.dumps([
            {"DeviceID": sid, "Slot": 30 + i} for i, sid in enumerate(STATIONS)
        ]))
        store = make_store(tmp_path)
        store.load()

        assert sorted(store.mapping.values()) == list(range(18))
        assert store.slot_of(16) == 0
        assert store.station_in_slot(store.nearest_slot(Point(0, 0))) is not None
        with open(store.path) as f:
            assert max(entry["Slot"] for entry in json.load(f)) == 17

    def test_ensure_complete_takes_lowest_free_slots(self, tmp_path):
        store = make_store(tmp_path)
        store.load()

        added = store.ensure_complete(STATIONS + [19, 20])

        assert added == [19, 20]
        assert store.slot_of(19) == 18
        assert store.slot_of(20) == 19
        assert len(store.slot_positions) == 20


class TestSwap:
    def test_swap_exchanges_owners(self, tmp_path):
        store = make_store(tmp_path)
        store.load()

        assert store.swap(16, 1) is True
        assert store.slot_of(16) == 1
        assert store.slot_of(15) == 0

        reloaded = make_store(tmp_path)
        reloaded.load()
        assert reloaded.mapping == store.mapping

    def test_swap_back_restores_mapping(self, tmp_path):
        store = make_store(tmp_path)
        store.load()
        original = store.mapping

        store.swap(16, original[15])
        store.swap(15, original[15])
        assert store.mapping == original

        store.swap(16, original[15])
        store.swap(16, original[16])
        assert store.mapping == original

    def test_swap_to_own_slot_is_noop(self, tmp_path):
        store = make_store(tmp_path)
        store.load()
        mtime = os.path.getmtime(store.path)

        assert store.swap(16, 0) is False
        assert os.path.getmtime(store.path) == mtime

    @pytest.mark.parametrize("target", [-1, 18, 22])
    def test_swap_rejects_slot_outside_layout(self, tmp_path, target):
        store = make_store(tmp_path)
        store.load()
        original = store.mapping

        with pytest.raises(InvalidInput):
            store.swap(16, target)

        assert store.mapping == original
        assert store.station_position(16) == store.slot_positions[0]

    def test_swap_unknown_station(self, tmp_path):
        store = make_store(tmp_path)
        store.load()
        with pytest.raises(UnknownStation):
            store.swap(42, 0)


class TestGeometry:
    def test_rows_are_centred_in_grid_area(self, tmp_path):
        store = make_store(tmp_path)
        store.load()
        positions = store.compute_slot_positions(700, 420)

        assert len(positions) == 18
        assert positions[0] == Point(176.5, 24)
        assert positions[2] == Point(396.5, 24)
        assert positions[12] == Point(121.5, 464)

    def test_overflow_goes_to_right_column(self, tmp_path):
        store = make_store(tmp_path)
        store.load()
        positions = store.compute_slot_positions(700, 420)

        assert positions[16] == Point(573, 134)
        assert positions[17] == Point(573, 354)

    def test_nearest_slot(self, tmp_path):
        store = make_store(tmp_path)
        store.load()

        assert store.nearest_slot(Point(290, 30)) == 1
        assert store.station_in_slot(1) == 15

    def test_nearest_slot_empty_layout(self, tmp_path):
        store = make_store(tmp_path, station_ids=[])
        assert store.nearest_slot(Point(10, 10)) is None


class TestDrag:
    def test_drag_is_clamped_and_release_swaps(self, tmp_path):
        store = make_store(tmp_path)
        store.load()

        assert store.drag_station(16, Point(5000, 5000)) == Point(644, 364)
        assert store.station_position(16) == Point(644, 364)

        assert store.release_station() is True
        assert store.slot_of(16) == 17
        assert store.slot_of(18) == 0
        assert store.station_position(16) == store.slot_positions[17]

    def test_release_without_drag(self, tmp_path):
        store = make_store(tmp_path)
        store.load()
        assert store.release_station() is False

    def test_drag_unknown_station(self, tmp_path):
        store = make_store(tmp_path)
        store.load()
        with pytest.raises(UnknownStation):
            store.drag_station(42, Point(0, 0))

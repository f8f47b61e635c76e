# lounge/services/slot_layout.py
"""
Station grid layout: a persisted bijection station id → slot index.

Slots are screen positions computed from the canvas size:
  - the left GRID_WIDTH_RATIO of the canvas holds rows of SLOT_ROW_LENGTHS
    (3,3,3,3,4 → 16 slots), each row centred horizontally
  - stations beyond that capacity go into a right-hand column on rows 1, 3, 5...

Dragging a station icon moves it freely (clamped to the canvas); releasing it
swaps it with whichever station owns the nearest slot. The mapping file is
rewritten after every change.
"""

from typing import Iterable, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from lounge.exceptions import InvalidInput, UnknownStation
from lounge.models.slot_mapping import SlotEntry
from lounge.utils import json_store
from lounge.utils.geometry import Point, clamp, dist2
from lounge.utils.logger import get_logger

logger = get_logger(__name__)

_layout_adapter = TypeAdapter(list[SlotEntry])


class SlotLayoutStore:
    def __init__(
        self,
        path: str,
        preferred_order: Sequence[int],
        station_ids: Iterable[int],
        row_lengths: Sequence[int] = (3, 3, 3, 3, 4),
        spacing: tuple[float, float] = (110, 110),
        margin: float = 24,
        icon_size: float = 64,
        grid_width_ratio: float = 0.75,
        canvas: tuple[float, float] = (700, 420),
    ):
        self.path = path
        self.preferred_order = list(preferred_order)
        self.station_ids = list(station_ids)
        self.row_lengths = list(row_lengths)
        self.spacing_x, self.spacing_y = spacing
        self.margin = margin
        self.icon_size = icon_size
        self.grid_width_ratio = grid_width_ratio
        self.width, self.height = canvas

        self._slots: dict[int, int] = {}
        self._positions: list[Point] = []
        self._dragging: Optional[int] = None
        self._drag_pos: Optional[Point] = None
        self.compute_slot_positions(self.width, self.height)

    # ── Mapping ───────────────────────────────────────────────────────────
    @property
    def mapping(self) -> dict[int, int]:
        return dict(self._slots)

    def slot_of(self, station_id: int) -> Optional[int]:
        return self._slots.get(station_id)

    def station_in_slot(self, slot: int) -> Optional[int]:
        for station_id, s in self._slots.items():
            if s == slot:
                return station_id
        return None

    def _fill_order(self, station_ids: Iterable[int]) -> list[int]:
        """Preferred order first, then any other ids in the order given."""
        wanted = list(dict.fromkeys(station_ids))
        known = set(wanted)
        preferred = [sid for sid in self.preferred_order if sid in known]
        seen = set(preferred)
        return preferred + [sid for sid in wanted if sid not in seen]

    def ensure_complete(self, known_station_ids: Optional[Iterable[int]] = None) -> list[int]:
        """Give every unmapped known station the lowest free slot. Returns the ids added."""
        ids = self.station_ids if known_station_ids is None else list(known_station_ids)
        for sid in ids:
            if sid not in self.station_ids:
                self.station_ids.append(sid)
        taken = set(self._slots.values())
        added = []
        slot = 0
        for sid in self._fill_order(ids):
            if sid in self._slots:
                continue
            while slot in taken:
                slot += 1
            self._slots[sid] = slot
            taken.add(slot)
            added.append(sid)
        if added:
            logger.info(f"[Layout] Assigned slots to new stations {added}")
            self.compute_slot_positions(self.width, self.height)
        return added

    def _synthesize(self) -> None:
        self._slots = {}
        self.ensure_complete(self.station_ids)
        self.save()

    def load(self) -> None:
        """Read the mapping; synthesize and persist a fresh one if missing or corrupt."""
        try:
            raw = json_store.read_bytes(self.path)
        except OSError as e:
            logger.warning(f"[Layout] Cannot read {self.path}: {e} — rebuilding default layout")
            raw = None
        if raw is None or not raw.strip():
            self._synthesize()
            return
        try:
            entries = _layout_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[Layout] Corrupt layout {self.path} ({e.error_count()} errors) — rebuilding")
            self._synthesize()
            return

        slots: dict[int, int] = {}
        used: set[int] = set()
        for entry in entries:
            if entry.station_id not in self.station_ids:
                logger.info(f"[Layout] Dropping slot for station {entry.station_id} (no longer exists)")
                continue
            if entry.slot >= len(self.station_ids):
                logger.warning(f"[Layout] Slot {entry.slot} out of range in {self.path} — rebuilding")
                self._synthesize()
                return
            if entry.slot in used or entry.station_id in slots:
                logger.warning(f"[Layout] Slot collision in {self.path} — rebuilding")
                self._synthesize()
                return
            slots[entry.station_id] = entry.slot
            used.add(entry.slot)
        self._slots = slots
        if self.ensure_complete(self.station_ids):
            self.save()
        self.compute_slot_positions(self.width, self.height)

    def save(self) -> None:
        entries = [SlotEntry(station_id=sid, slot=s) for sid, s in sorted(self._slots.items())]
        try:
            json_store.write_json(self.path, _layout_adapter.dump_python(entries, mode="json", by_alias=True))
        except OSError as e:
            logger.error(f"[Layout] Failed to write {self.path}: {e}", exc_info=True)

    def swap(self, station_id: int, target_slot: int) -> bool:
        """Move `station_id` to `target_slot`, swapping with the current owner."""
        current = self._slots.get(station_id)
        if current is None:
            raise UnknownStation(f"station {station_id} has no slot")
        if not 0 <= target_slot < len(self.station_ids):
            raise InvalidInput(f"slot {target_slot} out of range 0..{len(self.station_ids) - 1}")
        if current == target_slot:
            return False
        other = self.station_in_slot(target_slot)
        self._slots[station_id] = target_slot
        if other is not None:
            self._slots[other] = current
        self.save()
        logger.info(f"[Layout] Station {station_id} → slot {target_slot}"
                    + (f", station {other} → slot {current}" if other is not None else ""))
        return True

    # ── Geometry ──────────────────────────────────────────────────────────
    def compute_slot_positions(self, width: float, height: float) -> list[Point]:
        self.width, self.height = width, height
        total = max(len(self.station_ids), max(self._slots.values(), default=-1) + 1)
        grid_capacity = sum(self.row_lengths)
        left_width = width * self.grid_width_ratio
        positions: list[Point] = []

        for r, cols in enumerate(self.row_lengths):
            row_y = self.margin + r * self.spacing_y
            row_width = (cols - 1) * self.spacing_x
            start_x = self.margin + (left_width - row_width) / 2
            for c in range(cols):
                if len(positions) >= min(total, grid_capacity):
                    break
                positions.append(Point(start_x + c * self.spacing_x, row_y))

        right_x = left_width + self.margin * 2
        extra = 0
        while len(positions) < total:
            positions.append(Point(right_x, self.margin + (1 + 2 * extra) * self.spacing_y))
            extra += 1

        self._positions = positions
        return list(positions)

    @property
    def slot_positions(self) -> list[Point]:
        return list(self._positions)

    def nearest_slot(self, point: Point) -> Optional[int]:
        """Slot whose position is closest to `point`; None only if nothing is mapped."""
        if not self._slots or not self._positions:
            return None
        return min(range(len(self._positions)), key=lambda i: dist2(self._positions[i], point))

    def station_position(self, station_id: int) -> Optional[Point]:
        if self._dragging == station_id and self._drag_pos is not None:
            return self._drag_pos
        slot = self._slots.get(station_id)
        if slot is None or slot >= len(self._positions):
            return None
        return self._positions[slot]

    # ── Drag ──────────────────────────────────────────────────────────────
    def _clamp(self, point: Point) -> Point:
        half = self.icon_size / 2
        return Point(
            clamp(point.x, self.margin + half, self.width - self.margin - half),
            clamp(point.y, self.margin + half, self.height - self.margin - half),
        )

    def drag_station(self, station_id: int, point: Point) -> Point:
        if station_id not in self._slots:
            raise UnknownStation(f"station {station_id} has no slot")
        self._dragging = station_id
        self._drag_pos = self._clamp(point)
        return self._drag_pos

    def release_station(self) -> bool:
        """Drop the dragged station into the nearest slot. Returns True if the layout changed."""
        station_id, pos = self._dragging, self._drag_pos
        self._dragging = None
        self._drag_pos = None
        if station_id is None or pos is None:
            return False
        target = self.nearest_slot(pos)
        if target is None:
            return False
        return self.swap(station_id, target)

# lounge/services/radial_placer.py
"""
Radial placement of active-occupant markers.

Each marker carries a detail card beside it (right by default, flipped left
when it would run off the canvas). Placement rules:
  1. The first occupant in arrival order sits at the canvas centre.
  2. Everyone else takes the lowest free (ring, index) slot. Ring r has radius
     RING_BASE_RADIUS + r * RING_STEP and holds
     max(1, floor(circumference / (footprint_width * pack_factor))) markers.
  3. Each ring starts at a random angle within one slot width, so sessions
     don't all look alike.
  4. A candidate whose marker + card box (placed on its card side) lands
     within overlap_factor of another marker's box is retried, alternately
     nudging the angle and growing the radius, up to max_attempts; after
     that the last candidate is kept.

Placements are sticky. Removing an occupant frees its ring slot but does not
move anybody else, and sync() only computes positions for ids it has not
seen. A resize beyond resize_threshold re-places everyone around the new
centre.
"""

import math
import random
from dataclasses import dataclass
from typing import Iterable, Optional

from lounge.exceptions import NotFound
from lounge.utils.geometry import Point, clamp
from lounge.utils.logger import get_logger

logger = get_logger(__name__)

CARD_RIGHT = "right"
CARD_LEFT = "left"


@dataclass
class Placement:
    x: float
    y: float
    card_side: str = CARD_RIGHT
    ring: Optional[int] = None     # None for the centre anchor
    index: Optional[int] = None

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


class RadialPlacer:
    def __init__(
        self,
        width: float,
        height: float,
        marker_size: float = 48,
        card_width: float = 150,
        card_height: float = 64,
        card_gap: float = 8,
        margin: float = 12,
        base_radius: float = 170,
        ring_step: float = 160,
        pack_factor: float = 0.95,
        overlap_factor: float = 0.70,
        max_attempts: int = 24,
        angle_nudge: float = 0.35,
        radius_nudge: float = 12,
        resize_threshold: float = 8,
        rng: Optional[random.Random] = None,
    ):
        self.width = width
        self.height = height
        self.marker_size = marker_size
        self.card_width = card_width
        self.card_height = card_height
        self.card_gap = card_gap
        self.margin = margin
        self.base_radius = base_radius
        self.ring_step = ring_step
        self.pack_factor = pack_factor
        self.overlap_factor = overlap_factor
        self.max_attempts = max_attempts
        self.angle_nudge = angle_nudge
        self.radius_nudge = radius_nudge
        self.resize_threshold = resize_threshold
        self.rng = rng or random.Random()

        self._placements: dict[str, Placement] = {}
        self._ring_slots: dict[tuple[int, int], str] = {}
        self._ring_offsets: dict[int, float] = {}
        self._center_owner: Optional[str] = None
        self._order: list[str] = []
        self._dragging: Optional[str] = None
        self._drag_pos: Optional[Point] = None

    # ── Geometry ──────────────────────────────────────────────────────────
    @property
    def footprint_width(self) -> float:
        return self.marker_size + self.card_gap + self.card_width

    @property
    def footprint_height(self) -> float:
        return max(self.marker_size, self.card_height)

    @property
    def center(self) -> Point:
        return Point(self.width / 2, self.height / 2)

    def ring_radius(self, ring: int) -> float:
        return self.base_radius + ring * self.ring_step

    def ring_capacity(self, radius: float) -> int:
        circumference = 2 * math.pi * radius
        return max(1, math.floor(circumference / (self.footprint_width * self.pack_factor)))

    def footprint_center(self, point: Point, side: str = CARD_RIGHT) -> Point:
        """Centre of the marker + card box drawn for a marker at `point`."""
        shift = (self.card_gap + self.card_width) / 2
        return Point(point.x + shift if side == CARD_RIGHT else point.x - shift, point.y)

    def overlaps(self, a: Point, b: Point, side_a: str = CARD_RIGHT, side_b: str = CARD_RIGHT) -> bool:
        ca = self.footprint_center(a, side_a)
        cb = self.footprint_center(b, side_b)
        return (
            abs(ca.x - cb.x) < self.footprint_width * self.overlap_factor
            and abs(ca.y - cb.y) < self.footprint_height * self.overlap_factor
        )

    def _collides(self, point: Point, side: str, others: list[tuple[Point, str]]) -> bool:
        return any(self.overlaps(point, other, side, other_side) for other, other_side in others)

    def clamp_to_canvas(self, point: Point) -> tuple[Point, str]:
        """Keep marker + card on the canvas, flipping the card left if needed."""
        half = self.marker_size / 2
        card_extent = half + self.card_gap + self.card_width
        side = CARD_RIGHT
        if point.x + card_extent > self.width - self.margin:
            side = CARD_LEFT
        if side == CARD_RIGHT:
            low_x, high_x = self.margin + half, self.width - self.margin - card_extent
        else:
            low_x, high_x = self.margin + card_extent, self.width - self.margin - half
        half_h = self.footprint_height / 2
        clamped = Point(
            clamp(point.x, low_x, high_x),
            clamp(point.y, self.margin + half_h, self.height - self.margin - half_h),
        )
        return clamped, side

    def _candidate(self, radius: float, theta: float) -> tuple[Point, str]:
        c = self.center
        return self.clamp_to_canvas(Point(c.x + radius * math.cos(theta), c.y + radius * math.sin(theta)))

    # ── Ring slots ────────────────────────────────────────────────────────
    def _next_free_slot(self) -> tuple[int, int]:
        ring = 0
        while True:
            for index in range(self.ring_capacity(self.ring_radius(ring))):
                if (ring, index) not in self._ring_slots:
                    return ring, index
            ring += 1

    def _ring_offset(self, ring: int, step: float) -> float:
        if ring not in self._ring_offsets:
            self._ring_offsets[ring] = self.rng.uniform(0, step)
        return self._ring_offsets[ring]

    def _place_on_ring(self, occupant_id: str) -> Placement:
        ring, index = self._next_free_slot()
        self._ring_slots[(ring, index)] = occupant_id
        radius = self.ring_radius(ring)
        step = 2 * math.pi / self.ring_capacity(radius)
        theta = self._ring_offset(ring, step) + index * step
        others = [(p.point, p.card_side) for p in self._placements.values()]

        candidate, side = self._candidate(radius, theta)
        attempt = 0
        while attempt < self.max_attempts and self._collides(candidate, side, others):
            attempt += 1
            if attempt % 2:
                theta += self.angle_nudge * step
            else:
                radius += self.radius_nudge
            candidate, side = self._candidate(radius, theta)
        if attempt >= self.max_attempts and self._collides(candidate, side, others):
            logger.debug(f"[Placer] {occupant_id} kept an overlapping spot after {attempt} attempts")
        return Placement(candidate.x, candidate.y, side, ring, index)

    # ── Sync with the active set ──────────────────────────────────────────
    def sync(self, occupant_ids: Iterable[str]) -> list[str]:
        """Bring placements in line with the active set. Returns newly placed ids."""
        ids = list(dict.fromkeys(occupant_ids))
        current = set(ids)
        for gone in [oid for oid in self._placements if oid not in current]:
            self.forget(gone)
        self._order = ids

        placed = []
        if ids and ids[0] not in self._placements and self._center_owner is None:
            point, side = self.clamp_to_canvas(self.center)
            self._placements[ids[0]] = Placement(point.x, point.y, side)
            self._center_owner = ids[0]
            placed.append(ids[0])
        for oid in ids:
            if oid not in self._placements:
                self._placements[oid] = self._place_on_ring(oid)
                placed.append(oid)
        if placed:
            logger.debug(f"[Placer] Placed {placed}")
        return placed

    def forget(self, occupant_id: str) -> None:
        placement = self._placements.pop(occupant_id, None)
        if placement is None:
            return
        if placement.ring is not None:
            self._ring_slots.pop((placement.ring, placement.index), None)
        if self._center_owner == occupant_id:
            self._center_owner = None
        if self._dragging == occupant_id:
            self._dragging = None
            self._drag_pos = None

    def reset(self) -> None:
        """Forget every placement; the next sync lays everyone out afresh."""
        self._placements.clear()
        self._ring_slots.clear()
        self._ring_offsets.clear()
        self._center_owner = None
        self._dragging = None
        self._drag_pos = None

    def resize(self, width: float, height: float) -> bool:
        if abs(width - self.width) <= self.resize_threshold and abs(height - self.height) <= self.resize_threshold:
            return False
        self.width, self.height = width, height
        self.reset()
        self.sync(self._order)
        return True

    # ── Lookups ───────────────────────────────────────────────────────────
    def placement(self, occupant_id: str) -> Optional[Placement]:
        return self._placements.get(occupant_id)

    def position(self, occupant_id: str) -> Optional[Point]:
        if self._dragging == occupant_id and self._drag_pos is not None:
            return self._drag_pos
        placement = self._placements.get(occupant_id)
        return placement.point if placement else None

    def placements(self) -> dict[str, Placement]:
        return dict(self._placements)

    # ── Drag ──────────────────────────────────────────────────────────────
    def drag(self, occupant_id: str, point: Point) -> Point:
        if occupant_id not in self._placements:
            raise NotFound(f"no marker for user ID {occupant_id}")
        self._dragging = occupant_id
        self._drag_pos, _ = self.clamp_to_canvas(point)
        return self._drag_pos

    def release(self, occupant_id: str, point: Point) -> Placement:
        placement = self._placements.get(occupant_id)
        if placement is None:
            raise NotFound(f"no marker for user ID {occupant_id}")
        final, side = self.clamp_to_canvas(point)
        placement.x, placement.y, placement.card_side = final.x, final.y, side
        self._dragging = None
        self._drag_pos = None
        return placement

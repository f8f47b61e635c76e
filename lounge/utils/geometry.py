# lounge/utils/geometry.py
"""2D helpers shared by the slot grid and the radial placer."""

from typing import NamedTuple


class Point(NamedTuple):
    x: float
    y: float


def clamp(value: float, low: float, high: float) -> float:
    """Clamp into [low, high]; a collapsed range (low > high) yields its midpoint."""
    if low > high:
        return (low + high) / 2
    return min(max(value, low), high)


def dist2(a: Point, b: Point) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy

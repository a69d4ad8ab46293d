"""
Point-to-point distance measurement.

A MeasureSession accumulates an ordered path of points and the running
length of that path. Releasing the measure modifier keeps the path; only
reset() clears it.
"""

import math
from enum import Enum
from typing import List, Optional, Sequence, Tuple


Point = Tuple[float, float, float]


class MeasureState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


def snap_point(point: Sequence[float], step: float = 1.0) -> Point:
    """Round each coordinate to the nearest multiple of ``step``."""
    if step <= 0.0:
        raise ValueError("snap step must be positive")
    return tuple(round(float(c) / step) * step for c in point)


class MeasureSession:
    """Ordered points plus the total length of the path through them."""

    def __init__(self, snap_step: float = 1.0):
        self.snap_step = snap_step
        self.modifier_held = False
        self._points: List[Point] = []
        self._total = 0.0

    @property
    def state(self) -> MeasureState:
        return MeasureState.ACCUMULATING if self._points else MeasureState.IDLE

    @property
    def points(self) -> Tuple[Point, ...]:
        return tuple(self._points)

    @property
    def total_distance(self) -> float:
        return self._total

    def press_modifier(self) -> None:
        self.modifier_held = True

    def release_modifier(self) -> None:
        # The path stays visible after the key is released
        self.modifier_held = False

    def add_point(self, point: Sequence[float], snap: bool = False) -> Point:
        """Append a point, snapped if requested, and return what was stored."""
        if len(point) != 3:
            raise ValueError(f"expected a 3D point, got {len(point)} components")
        stored = snap_point(point, self.snap_step) if snap else tuple(float(c) for c in point)
        if self._points:
            self._total += math.dist(self._points[-1], stored)
        else:
            self._total = 0.0
        self._points.append(stored)
        return stored

    def reset(self) -> None:
        self._points.clear()
        self._total = 0.0

    def segments(self) -> List[Tuple[Point, Point, float]]:
        """(start, end, length) for each consecutive pair of points."""
        return [
            (a, b, math.dist(a, b))
            for a, b in zip(self._points, self._points[1:])
        ]

    def preview_distance(self, point: Sequence[float], snap: bool = False) -> Optional[float]:
        """Distance from the last point to a candidate point, if any point exists."""
        if not self._points:
            return None
        candidate = snap_point(point, self.snap_step) if snap else tuple(point)
        return math.dist(self._points[-1], candidate)

    def summary(self) -> str:
        if not self._points:
            return "Measure: click to place a point"
        return f"Measure: {len(self._points)} points, total {self._total:.2f}"

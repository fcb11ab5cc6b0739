"""Closed curve value type and initial curve factories."""

import math
from dataclasses import dataclass
from typing import List, Sequence, Union

import numpy as np

from .geometry import Point
from .spatial_index import Segment, curve_segments


@dataclass(frozen=True, eq=False)
class Curve:
    """
    Cyclic ordered sequence of 2D points.

    Index 0 follows the last index. The backing array is read-only; a step
    always produces a new Curve instead of editing this one.
    """
    points: np.ndarray

    def __post_init__(self):
        pts = np.array(self.points, dtype=np.float64)
        if pts.size == 0:
            pts = np.empty((0, 2), dtype=np.float64)
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise ValueError(f"Curve points must have shape (n, 2), got {pts.shape}")
        pts.setflags(write=False)
        object.__setattr__(self, "points", pts)

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> "Curve":
        return cls(np.array([(p.x, p.y) for p in points], dtype=np.float64).reshape(-1, 2))

    def __len__(self) -> int:
        return len(self.points)

    def as_points(self) -> List[Point]:
        return [Point(x, y) for x, y in self.points.tolist()]

    def segments(self) -> List[Segment]:
        return curve_segments(self.as_points())

    def segment_lengths(self) -> np.ndarray:
        """Length of segment (i-1, i) for every i, closing edge first."""
        if len(self.points) == 0:
            return np.empty(0, dtype=np.float64)
        diffs = self.points - np.roll(self.points, 1, axis=0)
        return np.hypot(diffs[:, 0], diffs[:, 1])

    def to_list(self) -> List[List[float]]:
        return self.points.tolist()


CurveLike = Union[Curve, Sequence[Point], Sequence[Sequence[float]], np.ndarray]


def as_curve(points: CurveLike) -> Curve:
    if isinstance(points, Curve):
        return points
    return Curve(np.asarray(points, dtype=np.float64))


def points_circle(radius: float, num_points: int) -> Curve:
    """``num_points`` evenly spaced on a circle of ``radius`` about the origin."""
    if num_points < 1:
        raise ValueError("num_points must be at least 1")
    t = 2 * math.pi * np.arange(num_points) / num_points
    return Curve(np.column_stack((radius * np.cos(t), radius * np.sin(t))))


def points_rectangle(width: float, height: float, num_points: int) -> Curve:
    """
    ``num_points`` evenly spaced along the perimeter of a rectangle.

    The rectangle is centred on the origin; sampling starts at the
    (-width/2, -height/2) corner and runs along the x axis first.
    """
    if num_points < 1:
        raise ValueError("num_points must be at least 1")
    corners = [
        (-width / 2, -height / 2),
        (width / 2, -height / 2),
        (width / 2, height / 2),
        (-width / 2, height / 2),
    ]
    edge_lengths = [width, height, width, height]
    perimeter = 2 * (width + height)

    points = []
    for i in range(num_points):
        s = perimeter * i / num_points
        edge = 0
        while edge < 3 and s > edge_lengths[edge]:
            s -= edge_lengths[edge]
            edge += 1
        (ax, ay), (bx, by) = corners[edge], corners[(edge + 1) % 4]
        t = s / edge_lengths[edge] if edge_lengths[edge] else 0.0
        points.append((ax + t * (bx - ax), ay + t * (by - ay)))
    return Curve(np.array(points, dtype=np.float64))

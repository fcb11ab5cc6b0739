"""2D point arithmetic and segment projection."""

import math
from typing import NamedTuple


class Point(NamedTuple):
    """An (x, y) coordinate in the curve's working plane."""
    x: float
    y: float


ORIGIN = Point(0.0, 0.0)


def add(a: Point, b: Point) -> Point:
    return Point(a.x + b.x, a.y + b.y)


def sub(a: Point, b: Point) -> Point:
    return Point(a.x - b.x, a.y - b.y)


def mul(v: Point, k: float) -> Point:
    return Point(v.x * k, v.y * k)


def dot(a: Point, b: Point) -> float:
    return a.x * b.x + a.y * b.y


def length(v: Point) -> float:
    return math.hypot(v.x, v.y)


def normalize(v: Point) -> Point:
    """Unit vector along ``v``; the zero vector stays zero."""
    norm = length(v)
    if norm == 0:
        return ORIGIN
    return Point(v.x / norm, v.y / norm)


def dist_sq(a: Point, b: Point) -> float:
    return (a.x - b.x) ** 2 + (a.y - b.y) ** 2


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def midpoint(a: Point, b: Point) -> Point:
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)


def closest_point_on_segment(p: Point, a: Point, b: Point) -> Point:
    """
    Point on segment [a, b] nearest to ``p``.

    The projection parameter is clamped to [0, 1]. A zero-length segment
    returns ``a``.
    """
    l2 = dist_sq(a, b)
    if l2 == 0:
        return a
    ab = sub(b, a)
    t = dot(sub(p, a), ab) / l2
    t = max(0.0, min(1.0, t))
    return add(a, mul(ab, t))

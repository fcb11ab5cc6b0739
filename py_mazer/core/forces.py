"""
Force field for the maze simulation.

Every point is pushed by three terms, all evaluated against the pre-step
curve:

- Brownian: a random unit offset scaled by fB(p) · δ(p) · D.
- Fairing: a Laplacian pull toward the scale-weighted midpoint of the two
  cyclic neighbours.
- Attract-repel: a Lennard-Jones style force from every segment within the
  interaction radius that is not a near neighbour along the curve.

Reference: Pedersen & Singh, "Organic Labyrinths and Mazes" (NPAR 2006).
"""

from typing import List, Optional, Sequence

from .alea_prng import AleaPRNG
from .geometry import (
    ORIGIN, Point, add, closest_point_on_segment, distance, mul, normalize, sub,
)
from .parameters import ScaleFunction, SimulationParameters
from .spatial_index import SegmentQuadtree


def cyclic_distance(i: int, j: int, num_points: int) -> int:
    """Index distance along the closed curve, whichever way round is shorter."""
    direct = abs(i - j) % num_points
    return min(direct, num_points - direct)


def segment_separation(i: int, index_a: int, index_b: int, num_points: int) -> int:
    """
    Index distance between point ``i`` and the nearer endpoint of a segment.

    Measured both directly and across the closing edge, so a segment near the
    end of the list is still a neighbour of point 0.
    """
    return min(cyclic_distance(i, index_a, num_points), cyclic_distance(i, index_b, num_points))


def lennard_jones(r: float, sigma: float) -> float:
    """(σ/r)^12 − (σ/r)^6: strong repulsion close in, mild attraction further out."""
    t6 = (sigma / r) ** 6
    return t6 * t6 - t6


class ForceField:
    """Per-point displacement calculator for one parameter set."""

    def __init__(self, params: SimulationParameters, scale: Optional[ScaleFunction] = None):
        self.params = params
        self.scale = scale if scale is not None else params.scale_function()

    def brownian(self, pt: Point, rng: AleaPRNG) -> Point:
        offset = normalize(Point(rng.next_normal(), rng.next_normal()))
        return mul(offset, self.params.brownian_amplitude * self.scale(pt) * self.params.sampling_rate)

    def fairing(self, pt: Point, left: Point, right: Point) -> Point:
        scale_left = self.scale(left)
        scale_right = self.scale(right)
        weight = scale_left + scale_right
        mid = Point(
            (left.x * scale_right + right.x * scale_left) / weight,
            (left.y * scale_right + right.y * scale_left) / weight,
        )
        return mul(sub(mid, pt), self.params.fairing_amplitude)

    def force_from_segment(self, pt: Point, closest: Point) -> Point:
        diff = sub(pt, closest)
        dist = distance(pt, closest)
        if dist == 0:
            return ORIGIN
        r = dist / (self.params.sampling_rate * self.scale(pt))
        return mul(normalize(diff), lennard_jones(r, self.params.sigma))

    def attract_repel(self, i: int, points: Sequence[Point], index: SegmentQuadtree) -> Point:
        pt = points[i]
        params = self.params
        num_points = len(points)
        fx = fy = 0.0

        for segment in index.range_query(pt, params.r1):
            if segment_separation(i, segment.index_a, segment.index_b, num_points) <= params.n_min:
                continue
            closest = closest_point_on_segment(pt, points[segment.index_a], points[segment.index_b])
            if distance(pt, closest) >= params.r1 * min(self.scale(pt), self.scale(closest)):
                continue
            force = self.force_from_segment(pt, closest)
            fx += force.x
            fy += force.y

        return Point(fx * params.attract_repel_amplitude, fy * params.attract_repel_amplitude)

    def displacement(self, i: int, points: Sequence[Point], index: SegmentQuadtree,
                     rng: AleaPRNG) -> Point:
        pt = points[i]
        left = points[i - 1]
        right = points[(i + 1) % len(points)]
        total = self.brownian(pt, rng)
        total = add(total, self.fairing(pt, left, right))
        return add(total, self.attract_repel(i, points, index))

    def displacements(self, points: Sequence[Point], rng: AleaPRNG,
                      index: Optional[SegmentQuadtree] = None) -> List[Point]:
        """
        Displacement of every point, computed from ``points`` as given.

        Nothing is applied here, so every term sees the untouched pre-step
        curve.
        """
        if index is None:
            index = SegmentQuadtree.build(points)
        return [self.displacement(i, points, index, rng) for i in range(len(points))]

"""
Debug output for an evolving curve.

Provides the point-count string shown next to the viewport, the disc overlay
that draws every segment's local interaction width, and summary statistics.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, NamedTuple, Optional

import numpy as np
from shapely.geometry import LinearRing, Polygon

from .curve import Curve
from .geometry import Point
from .parameters import ScaleFunction, SimulationParameters


class Disc(NamedTuple):
    center: Point
    radius: float


@dataclass
class CurveStats:
    """Summary numbers for a closed curve."""
    num_points: int
    perimeter: float
    area: float
    min_segment: float
    mean_segment: float
    max_segment: float
    is_simple: bool

    def to_dict(self) -> Dict:
        return asdict(self)


def debug_text(curve: Curve) -> str:
    return f"numPoints:{len(curve)}"


def segment_discs(curve: Curve, params: SimulationParameters,
                  scale: Optional[ScaleFunction] = None) -> List[Disc]:
    """One disc per segment: centred on its midpoint, radius r1 · δ(midpoint)."""
    if scale is None:
        scale = params.scale_function()
    discs = []
    for segment in curve.segments():
        center = segment.midpoint
        discs.append(Disc(center, params.r1 * scale(center)))
    return discs


def curve_stats(curve: Curve) -> CurveStats:
    """
    Perimeter, enclosed area, segment length spread and self-avoidance.

    Rings with fewer than three points have no area and count as simple.
    """
    lengths = curve.segment_lengths()
    if len(lengths) == 0:
        return CurveStats(0, 0.0, 0.0, 0.0, 0.0, 0.0, True)

    area = 0.0
    is_simple = True
    if len(curve) >= 3:
        coords = curve.to_list()
        area = float(Polygon(coords).area)
        is_simple = bool(LinearRing(coords).is_simple)

    return CurveStats(
        num_points=len(curve),
        perimeter=float(np.sum(lengths)),
        area=area,
        min_segment=float(np.min(lengths)),
        mean_segment=float(np.mean(lengths)),
        max_segment=float(np.max(lengths)),
        is_simple=is_simple,
    )

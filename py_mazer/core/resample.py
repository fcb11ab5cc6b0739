"""Adaptive split/merge pass keeping segment lengths near the local scale."""

from typing import List, Optional, Sequence

from .geometry import Point, distance, midpoint
from .parameters import ScaleFunction, SimulationParameters


def resample(points: Sequence[Point], params: SimulationParameters,
             scale: Optional[ScaleFunction] = None) -> List[Point]:
    """
    One left-to-right resampling pass over ``points``.

    For each pair (i-1, i), starting at i = 1: a segment longer than d_max is
    split at its midpoint, a segment shorter than d_min loses point i, and
    only an in-range segment advances i. The first point is never removed.

    A pass makes at most one split per input segment, so it at most doubles
    the point count however far a point was pushed. Once that budget is
    spent, long segments are left for later steps.

    With ``params.resample_closing_pair`` the pass continues onto the pair
    (last, first): it is split the same way, and when too short the last
    point is removed instead of the first (down to two points).

    A single pass is not guaranteed to reach a fixed point; density drifts
    toward equilibrium over successive steps.
    """
    if scale is None:
        scale = params.scale_function()
    pts = list(points)
    if len(pts) <= 1:
        return pts

    closing = 1 if params.resample_closing_pair else 0
    splits_left = len(pts)
    i = 1
    while i < len(pts) + closing:
        at_closing = i == len(pts)
        p1 = pts[0] if at_closing else pts[i]
        p2 = pts[i - 1]
        seg_len = distance(p1, p2)
        s1, s2 = scale(p1), scale(p2)

        if seg_len > params.d_max(s1, s2) and splits_left > 0:
            pts.insert(i, midpoint(p1, p2))
            splits_left -= 1
        elif seg_len < params.d_min(s1, s2):
            if not at_closing:
                del pts[i]
            elif len(pts) > 2:
                del pts[i - 1]
                i -= 1
            else:
                break
        else:
            i += 1
    return pts

"""
Quadtree over curve segments.

The tree is keyed by segment midpoints and every node carries the tight
bounding box of all segments below it, so a range query can prune whole
subtrees. It is rebuilt from scratch for every simulation step and never
outlives that step.
"""

from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from .geometry import Point, midpoint

# Below this depth midpoints that are still inseparable share a leaf
MAX_DEPTH = 32


class BoundingBox(NamedTuple):
    """Axis-aligned box, min corner (x0, y0) and max corner (x1, y1)."""
    x0: float
    y0: float
    x1: float
    y1: float

    @classmethod
    def around(cls, point: Point, pad: float) -> "BoundingBox":
        return cls(point.x - pad, point.y - pad, point.x + pad, point.y + pad)

    @classmethod
    def of_points(cls, a: Point, b: Point) -> "BoundingBox":
        return cls(min(a.x, b.x), min(a.y, b.y), max(a.x, b.x), max(a.y, b.y))

    def overlaps(self, other: "BoundingBox") -> bool:
        return (self.x1 >= other.x0 and self.x0 <= other.x1
                and self.y1 >= other.y0 and self.y0 <= other.y1)

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            min(self.x0, other.x0), min(self.y0, other.y0),
            max(self.x1, other.x1), max(self.y1, other.y1),
        )


class Segment(NamedTuple):
    """Edge between cyclic indices ``index_a`` = i-1 and ``index_b`` = i."""
    index_a: int
    index_b: int
    a: Point
    b: Point

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox.of_points(self.a, self.b)

    @property
    def midpoint(self) -> Point:
        return midpoint(self.a, self.b)


def curve_segments(points: Sequence[Point]) -> List[Segment]:
    """Every cyclic adjacent pair of ``points``, closing edge first."""
    n = len(points)
    segments = []
    for index_b in range(n):
        index_a = n - 1 if index_b == 0 else index_b - 1
        segments.append(Segment(index_a, index_b, points[index_a], points[index_b]))
    return segments


def _union_all(boxes: Iterable[BoundingBox]) -> BoundingBox:
    boxes = iter(boxes)
    total = next(boxes)
    for box in boxes:
        total = total.union(box)
    return total


@dataclass(frozen=True)
class Leaf:
    """Terminal cell: one segment, or a chain of segments sharing the cell."""
    segments: Tuple[Segment, ...]
    bbox: BoundingBox

    def collect(self, window: BoundingBox, found: List[Segment]) -> None:
        for segment in self.segments:
            if segment.bbox.overlaps(window):
                found.append(segment)

    def depth(self) -> int:
        return 1


@dataclass(frozen=True)
class Internal:
    """Quadrant split; child k covers the upper x half if k & 1, upper y half if k & 2."""
    children: Tuple[Optional["Node"], Optional["Node"], Optional["Node"], Optional["Node"]]
    bbox: BoundingBox

    def collect(self, window: BoundingBox, found: List[Segment]) -> None:
        if not self.bbox.overlaps(window):
            return
        for child in self.children:
            if child is not None:
                child.collect(window, found)

    def depth(self) -> int:
        return 1 + max(child.depth() for child in self.children if child is not None)


Node = Union[Leaf, Internal]


def _build_node(items: List[Tuple[Point, Segment]], x0: float, y0: float,
                size: float, depth: int) -> Node:
    first = items[0][0]
    if (len(items) == 1 or depth >= MAX_DEPTH
            or all(mid == first for mid, _ in items)):
        segments = tuple(segment for _, segment in items)
        return Leaf(segments, _union_all(s.bbox for s in segments))

    half = size / 2
    xm = x0 + half
    ym = y0 + half
    quadrants: Tuple[list, list, list, list] = ([], [], [], [])
    for mid, segment in items:
        quadrant = (mid.x >= xm) | ((mid.y >= ym) << 1)
        quadrants[quadrant].append((mid, segment))

    children = tuple(
        _build_node(quadrant_items, x0 + half * (k & 1), y0 + half * (k >> 1), half, depth + 1)
        if quadrant_items else None
        for k, quadrant_items in enumerate(quadrants)
    )
    bbox = _union_all(child.bbox for child in children if child is not None)
    return Internal(children, bbox)


class SegmentQuadtree:
    """Spatial index answering padded bounding-box queries over segments."""

    def __init__(self, root: Optional[Node], size: int):
        self.root = root
        self.size = size

    @classmethod
    def build(cls, points: Sequence[Point]) -> "SegmentQuadtree":
        """Index every segment of the closed curve through ``points``."""
        segments = curve_segments(points)
        if not segments:
            return cls(None, 0)

        keyed = [(segment.midpoint, segment) for segment in segments]
        xs = [mid.x for mid, _ in keyed]
        ys = [mid.y for mid, _ in keyed]
        x0, y0 = min(xs), min(ys)
        # Square cell so quadrants stay square all the way down
        side = max(max(xs) - x0, max(ys) - y0) or 1.0

        root = _build_node(keyed, x0, y0, side, 0)
        return cls(root, len(segments))

    def __len__(self) -> int:
        return self.size

    def depth(self) -> int:
        return 0 if self.root is None else self.root.depth()

    def range_query(self, point: Point, pad: float) -> List[Segment]:
        """
        Segments whose bounding box overlaps the window ``point ± pad``.

        The result is a superset of the segments within ``pad`` of ``point``;
        callers filter by exact distance.
        """
        found: List[Segment] = []
        if self.root is not None:
            self.root.collect(BoundingBox.around(point, pad), found)
        return found

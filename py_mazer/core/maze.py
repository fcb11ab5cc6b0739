"""
Maze stepping: one step and a whole batch of steps.

``run_batch`` is the body of a background job. It only sees the
``StepRequest`` it is handed and answers with a fresh ``StepResponse``, so it
can run inline, in a thread or in another process with the same result.
"""

import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import structlog

from .alea_prng import AleaPRNG, AleaState
from .forces import ForceField
from .geometry import Point, add
from .parameters import ScaleFunction, SimulationParameters
from .resample import resample
from .spatial_index import SegmentQuadtree

logger = structlog.get_logger()


@dataclass(frozen=True)
class StepRequest:
    """Value snapshot sent to the background context."""
    points: np.ndarray
    params: SimulationParameters
    num_steps: int
    rng_state: AleaState
    scale: Optional[ScaleFunction] = None


@dataclass(frozen=True)
class StepResponse:
    """Evolved curve plus the random stream position after the batch."""
    points: np.ndarray
    rng_state: AleaState
    num_steps: int
    elapsed_seconds: float


def step_points(points: Sequence[Point], field: ForceField, rng: AleaPRNG) -> List[Point]:
    """
    Advance the curve by one step.

    Build the segment index, compute every displacement from the pre-step
    points, apply them together, then resample. Curves with fewer than two
    points are returned unchanged.
    """
    if len(points) <= 1:
        return list(points)
    index = SegmentQuadtree.build(points)
    moves = field.displacements(points, rng, index)
    moved = [add(pt, move) for pt, move in zip(points, moves)]
    return resample(moved, field.params, field.scale)


def run_batch(request: StepRequest) -> StepResponse:
    """Run ``request.num_steps`` sequential steps on a copy of the request's curve."""
    start = time.perf_counter()
    rng = AleaPRNG.from_state(request.rng_state)
    field = ForceField(request.params, request.scale)
    points = [Point(x, y) for x, y in np.asarray(request.points, dtype=np.float64).tolist()]

    logger.debug("Batch started", num_steps=request.num_steps, num_points=len(points))
    for _ in range(request.num_steps):
        points = step_points(points, field, rng)

    elapsed = time.perf_counter() - start
    logger.debug("Batch finished", num_steps=request.num_steps,
                 num_points=len(points), elapsed_seconds=round(elapsed, 4))

    result = np.array(points, dtype=np.float64).reshape(-1, 2)
    return StepResponse(
        points=result,
        rng_state=rng.get_state(),
        num_steps=request.num_steps,
        elapsed_seconds=elapsed,
    )

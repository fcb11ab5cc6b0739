"""
Simulation orchestrator.

``MazeSimulation`` owns the authoritative curve, the parameters, the scale
strategy and the random stream. A batch of steps either runs on the caller's
thread (``run_steps``) or is handed to an executor as an immutable
``StepRequest`` (``request_steps``). At most one batch is in flight; requests
made while one is pending are dropped and counted.
"""

import threading
import uuid
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from enum import Enum
from typing import Optional

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .curve import Curve, CurveLike, as_curve
from .maze import StepRequest, StepResponse, run_batch
from .parameters import ScaleFunction, SimulationParameters

logger = structlog.get_logger()

EXECUTOR_KINDS = ("process", "thread", "inline")


class SimulationState(str, Enum):
    IDLE = "idle"
    STEPPING = "stepping"


class SimulationBusyError(RuntimeError):
    """Raised when the curve or parameters are touched while a batch is in flight."""


class InlineExecutor(Executor):
    """Runs submitted work immediately on the submitting thread."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


def create_executor(kind: str = "process", max_workers: int = 1) -> Executor:
    """Executor for background batches: ``process``, ``thread`` or ``inline``."""
    if kind == "process":
        return ProcessPoolExecutor(max_workers=max_workers)
    if kind == "thread":
        return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="maze-step")
    if kind == "inline":
        return InlineExecutor()
    raise ValueError(f"Unknown executor kind {kind!r}, expected one of {EXECUTOR_KINDS}")


class MazeSimulation:
    """
    Owner of one evolving closed curve.

    States:
        IDLE: no batch in flight; the curve and parameters may be replaced.
        STEPPING: a batch was dispatched by ``request_steps``; its result is
            merged by ``poll`` or ``wait``.
    """

    def __init__(
        self,
        points: CurveLike,
        params: Optional[SimulationParameters] = None,
        seed: Optional[str] = None,
        scale: Optional[ScaleFunction] = None,
        executor: Optional[Executor] = None,
        executor_kind: str = "process",
    ):
        """
        Args:
            points: Initial closed curve (at least one point)
            params: Simulation parameters, defaults when omitted
            seed: Seed for the random stream; a random one is drawn when omitted
            scale: Local scale strategy, ``ConstantScale(params.delta)`` when omitted
            executor: Executor for ``request_steps``; shared executors are not shut down
            executor_kind: Kind of executor created on first use when none is given
        """
        self._curve = self._checked_curve(points)
        self._params = params or SimulationParameters()
        self._scale = scale
        self.seed = seed if seed is not None else uuid.uuid4().hex[:8]
        self._rng = AleaPRNG(self.seed)

        if executor is None and executor_kind not in EXECUTOR_KINDS:
            raise ValueError(f"Unknown executor kind {executor_kind!r}")
        self._executor = executor
        self._owns_executor = executor is None
        self._executor_kind = executor_kind

        self._lock = threading.Lock()
        self._pending: Optional[Future] = None
        self._pending_steps = 0

        self.steps_completed = 0
        self.batches_completed = 0
        self.dropped_requests = 0
        self.last_batch_seconds: Optional[float] = None
        self.last_error: Optional[str] = None

    @staticmethod
    def _checked_curve(points: CurveLike) -> Curve:
        curve = as_curve(points)
        if len(curve) == 0:
            raise ValueError("Initial curve must contain at least one point")
        return curve

    @property
    def curve(self) -> Curve:
        return self._curve

    @property
    def params(self) -> SimulationParameters:
        return self._params

    @property
    def state(self) -> SimulationState:
        return SimulationState.STEPPING if self._pending is not None else SimulationState.IDLE

    def _ensure_idle(self, action: str) -> None:
        if self._pending is not None:
            raise SimulationBusyError(f"Cannot {action} while a batch is in flight")

    def _snapshot(self, num_steps: int) -> StepRequest:
        return StepRequest(
            points=np.array(self._curve.points, copy=True),
            params=self._params,
            num_steps=num_steps,
            rng_state=self._rng.get_state(),
            scale=self._scale,
        )

    def _apply(self, response: StepResponse) -> None:
        self._curve = Curve(response.points)
        self._rng = AleaPRNG.from_state(response.rng_state, seed=self.seed)
        self.steps_completed += response.num_steps
        self.batches_completed += 1
        self.last_batch_seconds = response.elapsed_seconds
        self.last_error = None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = create_executor(self._executor_kind)
        return self._executor

    def run_steps(self, num_steps: int = 1) -> Curve:
        """Run a batch on the calling thread and return the new curve."""
        if num_steps < 0:
            raise ValueError("num_steps must be non-negative")
        with self._lock:
            self._ensure_idle("run steps")
            response = run_batch(self._snapshot(num_steps))
            self._apply(response)
        logger.info("Steps completed", steps=num_steps, num_points=len(self._curve),
                    elapsed_seconds=round(response.elapsed_seconds, 4))
        return self._curve

    def request_steps(self, num_steps: int = 1) -> bool:
        """
        Dispatch a batch to the executor.

        Returns:
            True when the batch was dispatched, False when it was dropped
            because another batch is still in flight.
        """
        if num_steps < 1:
            raise ValueError("num_steps must be at least 1")
        with self._lock:
            if self._pending is not None:
                self.dropped_requests += 1
                logger.debug("Step request dropped, batch in flight",
                             steps=num_steps, dropped=self.dropped_requests)
                return False
            request = self._snapshot(num_steps)
            self._pending = self._get_executor().submit(run_batch, request)
            self._pending_steps = num_steps
        logger.debug("Step batch dispatched", steps=num_steps, num_points=len(request.points))
        return True

    def _merge(self, future: Future) -> None:
        self._pending = None
        self._pending_steps = 0
        error = future.exception()
        if error is not None:
            self.last_error = str(error)
            logger.error("Step batch failed", error=str(error))
            raise error
        response = future.result()
        self._apply(response)
        logger.info("Step batch merged", steps=response.num_steps, num_points=len(self._curve),
                    elapsed_seconds=round(response.elapsed_seconds, 4))

    def poll(self) -> bool:
        """Merge the in-flight batch if it has finished. Returns True when merged."""
        with self._lock:
            future = self._pending
            if future is None or not future.done():
                return False
            self._merge(future)
            return True

    def wait(self, timeout: Optional[float] = None) -> Curve:
        """Block until the in-flight batch (if any) is merged and return the curve."""
        future = self._pending
        if future is not None:
            # Raises concurrent.futures.TimeoutError if the batch is still running
            future.exception(timeout=timeout)
            with self._lock:
                if self._pending is future:
                    self._merge(future)
        return self._curve

    def reset(self, points: CurveLike, seed: Optional[str] = None) -> None:
        """Replace the curve wholesale, optionally reseeding the random stream."""
        curve = self._checked_curve(points)
        with self._lock:
            self._ensure_idle("reset the curve")
            self._curve = curve
            if seed is not None:
                self.seed = seed
                self._rng = AleaPRNG(seed)
            self.steps_completed = 0
            self.batches_completed = 0
        logger.info("Simulation reset", num_points=len(curve), seed=self.seed)

    def set_parameters(self, params: SimulationParameters) -> None:
        """Swap parameters; they take effect on the next batch."""
        with self._lock:
            self._ensure_idle("change parameters")
            self._params = params
        logger.info("Parameters updated", **params.model_dump())

    def update_parameters(self, **changes) -> SimulationParameters:
        params = self._params.with_updates(**changes)
        self.set_parameters(params)
        return params

    def close(self) -> None:
        """Shut down an executor this simulation created itself."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

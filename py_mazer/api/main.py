"""FastAPI main application."""

import asyncio
import logging
import uuid
from concurrent.futures import Executor
from typing import Dict, List, Literal, Optional, Tuple

import structlog
from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..config import settings
from ..core.curve import Curve, points_circle, points_rectangle
from ..core.diagnostics import curve_stats, debug_text, segment_discs
from ..core.parameters import SimulationParameters
from ..core.simulation import MazeSimulation, SimulationBusyError, create_executor

# Configure logging
logging.basicConfig(level=settings.log_level.upper(), format="%(message)s")
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Maze Growth API",
    description="Organic maze growth on closed planar curves",
    version="0.1.0",
    debug=settings.debug,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory simulation sessions and the executor their batches share
simulations: Dict[str, MazeSimulation] = {}
_executor: Optional[Executor] = None


def get_executor() -> Executor:
    global _executor
    if _executor is None:
        _executor = create_executor(settings.executor_kind, settings.max_workers)
    return _executor


# Request/Response models
class SimulationCreateRequest(BaseModel):
    """Request to start a new simulation."""

    shape: Literal["circle", "rectangle"] = Field("circle", description="Initial curve shape")
    radius: float = Field(settings.default_radius, gt=0, le=10000, description="Circle radius")
    width: Optional[float] = Field(None, gt=0, le=20000, description="Rectangle width (defaults to 2 * radius)")
    height: Optional[float] = Field(None, gt=0, le=20000, description="Rectangle height (defaults to 2 * radius)")
    num_points: int = Field(
        settings.default_num_points, ge=1, le=settings.max_initial_points,
        description="Number of points in the initial curve",
    )
    seed: Optional[str] = Field(None, description="Random seed for reproducible growth")
    parameters: Optional[SimulationParameters] = Field(None, description="Simulation parameters")


class StepsRequest(BaseModel):
    """Request to advance a simulation."""

    steps: int = Field(1, ge=1, le=settings.max_steps_per_request, description="Number of steps in the batch")
    wait: bool = Field(False, description="Block until the batch is merged")


class ResetRequest(BaseModel):
    """Request to re-initialise a simulation's curve."""

    shape: Literal["circle", "rectangle"] = "circle"
    radius: float = Field(settings.default_radius, gt=0, le=10000)
    width: Optional[float] = Field(None, gt=0, le=20000)
    height: Optional[float] = Field(None, gt=0, le=20000)
    num_points: int = Field(settings.default_num_points, ge=1, le=settings.max_initial_points)
    seed: Optional[str] = None


class SimulationSummary(BaseModel):
    """Current state of a simulation."""

    id: str
    state: str
    seed: str
    num_points: int
    steps_completed: int
    batches_completed: int
    dropped_requests: int
    last_batch_seconds: Optional[float] = None
    last_error: Optional[str] = None
    debug_text: str
    parameters: SimulationParameters


class CurveStatsModel(BaseModel):
    num_points: int
    perimeter: float
    area: float
    min_segment: float
    mean_segment: float
    max_segment: float
    is_simple: bool


class DiscModel(BaseModel):
    center: Tuple[float, float]
    radius: float


class CurveResponse(BaseModel):
    """Points of the current curve."""

    id: str
    points: List[Tuple[float, float]]
    stats: CurveStatsModel
    discs: Optional[List[DiscModel]] = None


def _initial_curve(request) -> Curve:
    if request.shape == "rectangle":
        width = request.width or 2 * request.radius
        height = request.height or 2 * request.radius
        return points_rectangle(width, height, request.num_points)
    return points_circle(request.radius, request.num_points)


def _get_simulation(simulation_id: str) -> MazeSimulation:
    simulation = simulations.get(simulation_id)
    if simulation is None:
        raise HTTPException(status_code=404, detail="Simulation not found")
    return simulation


def _merge_finished(simulation_id: str, simulation: MazeSimulation) -> None:
    """Fold in a finished batch; failures are kept on the simulation as last_error."""
    try:
        simulation.poll()
    except Exception as e:
        logger.error("Step batch failed", simulation_id=simulation_id, error=str(e))


def _summary(simulation_id: str, simulation: MazeSimulation) -> SimulationSummary:
    return SimulationSummary(
        id=simulation_id,
        state=simulation.state.value,
        seed=simulation.seed,
        num_points=len(simulation.curve),
        steps_completed=simulation.steps_completed,
        batches_completed=simulation.batches_completed,
        dropped_requests=simulation.dropped_requests,
        last_batch_seconds=simulation.last_batch_seconds,
        last_error=simulation.last_error,
        debug_text=debug_text(simulation.curve),
        parameters=simulation.params,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    logger.info("Starting Maze Growth API", executor_kind=settings.executor_kind)


@app.on_event("shutdown")
async def shutdown_event():
    """Drop sessions and stop the batch executor."""
    global _executor
    logger.info("Shutting down Maze Growth API", simulations=len(simulations))
    simulations.clear()
    if _executor is not None:
        _executor.shutdown(wait=False)
        _executor = None


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Maze Growth API",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "simulations": len(simulations)}


@app.post("/simulations", response_model=SimulationSummary, status_code=201)
async def create_simulation(request: SimulationCreateRequest):
    """Create a simulation from an initial circle or rectangle."""
    if len(simulations) >= settings.max_simulations:
        raise HTTPException(status_code=429, detail="Too many simulations")

    simulation_id = str(uuid.uuid4())
    seed = request.seed or settings.default_seed or str(uuid.uuid4())[:8]
    simulation = MazeSimulation(
        _initial_curve(request),
        params=request.parameters or SimulationParameters(),
        seed=seed,
        executor=get_executor(),
    )
    simulations[simulation_id] = simulation
    logger.info("Simulation created", simulation_id=simulation_id, seed=seed,
                shape=request.shape, num_points=request.num_points)
    return _summary(simulation_id, simulation)


@app.get("/simulations", response_model=List[SimulationSummary])
async def list_simulations():
    """List all simulations."""
    summaries = []
    for simulation_id, simulation in simulations.items():
        _merge_finished(simulation_id, simulation)
        summaries.append(_summary(simulation_id, simulation))
    return summaries


@app.get("/simulations/{simulation_id}", response_model=SimulationSummary)
async def get_simulation(simulation_id: str):
    """Get simulation state, merging a finished batch first."""
    simulation = _get_simulation(simulation_id)
    _merge_finished(simulation_id, simulation)
    return _summary(simulation_id, simulation)


@app.get("/simulations/{simulation_id}/curve", response_model=CurveResponse)
async def get_curve(simulation_id: str, discs: bool = False):
    """Get the current curve, its statistics and optionally the width discs."""
    simulation = _get_simulation(simulation_id)
    _merge_finished(simulation_id, simulation)
    curve = simulation.curve

    overlay = None
    if discs:
        overlay = [
            DiscModel(center=(disc.center.x, disc.center.y), radius=disc.radius)
            for disc in segment_discs(curve, simulation.params)
        ]

    return CurveResponse(
        id=simulation_id,
        points=[tuple(p) for p in curve.to_list()],
        stats=CurveStatsModel(**curve_stats(curve).to_dict()),
        discs=overlay,
    )


@app.post("/simulations/{simulation_id}/steps", response_model=SimulationSummary, status_code=202)
async def run_steps(simulation_id: str, request: StepsRequest, response: Response):
    """
    Dispatch a batch of steps.

    Returns 202 once dispatched (200 when ``wait`` is set and the batch has
    been merged) and 409 when a batch is already in flight.
    """
    simulation = _get_simulation(simulation_id)
    _merge_finished(simulation_id, simulation)

    if not simulation.request_steps(request.steps):
        raise HTTPException(status_code=409, detail="A step batch is already in flight")
    logger.info("Steps requested", simulation_id=simulation_id, steps=request.steps)

    if request.wait:
        try:
            await asyncio.to_thread(simulation.wait)
        except Exception as e:
            logger.error("Step batch failed", simulation_id=simulation_id, error=str(e))
            raise HTTPException(status_code=500, detail=f"Step batch failed: {e}")
        response.status_code = 200
    else:
        _merge_finished(simulation_id, simulation)

    return _summary(simulation_id, simulation)


@app.put("/simulations/{simulation_id}/parameters", response_model=SimulationSummary)
async def update_parameters(simulation_id: str, parameters: SimulationParameters):
    """Replace parameters; the curve is kept and the change applies to the next batch."""
    simulation = _get_simulation(simulation_id)
    _merge_finished(simulation_id, simulation)
    try:
        simulation.set_parameters(parameters)
    except SimulationBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _summary(simulation_id, simulation)


@app.post("/simulations/{simulation_id}/reset", response_model=SimulationSummary)
async def reset_simulation(simulation_id: str, request: ResetRequest):
    """Re-initialise the curve (needed when size or point count changes)."""
    simulation = _get_simulation(simulation_id)
    _merge_finished(simulation_id, simulation)
    try:
        simulation.reset(_initial_curve(request), seed=request.seed)
    except SimulationBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _summary(simulation_id, simulation)


@app.delete("/simulations/{simulation_id}", status_code=204)
async def delete_simulation(simulation_id: str):
    """Forget a simulation. A batch still in flight finishes and is discarded."""
    _get_simulation(simulation_id)
    del simulations[simulation_id]
    logger.info("Simulation deleted", simulation_id=simulation_id)
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)

"""Simulation parameter record and the local scale strategy."""

from dataclasses import dataclass
from typing import Any, Dict, Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .geometry import Point


class ScaleFunction(Protocol):
    """Local pattern scale δ(p); controls density and self-similarity."""

    def __call__(self, point: Point) -> float:
        ...


@dataclass(frozen=True)
class ConstantScale:
    """δ(p) = value everywhere. Picklable, so it can ride along with a batch."""
    value: float = 1.0

    def __call__(self, point: Point) -> float:
        return self.value


class SimulationParameters(BaseModel):
    """Numeric knobs of the maze simulation, constant across a batch."""

    n_min: int = Field(
        default=3, ge=0,
        description="Minimum index separation for non-local interaction",
    )
    r1: float = Field(default=100.0, gt=0, description="Interaction radius")
    sigma: float = Field(default=1.1, gt=0, description="Repulsion steepness of the potential")
    delta: float = Field(default=1.0, gt=0, description="Constant local scale factor")
    brownian_amplitude: float = Field(default=5.0, ge=0, description="Brownian offset amplitude")
    sampling_rate: float = Field(default=1.0, gt=0, description="Global sampling rate D")
    fairing_amplitude: float = Field(default=0.35, ge=0, description="Laplacian smoothing amplitude")
    attract_repel_amplitude: float = Field(default=2.5, ge=0, description="Attract-repel amplitude")
    k_max: float = Field(default=50.0, gt=0, description="Split multiplier for resampling")
    k_min: float = Field(default=5.0, ge=0, description="Merge multiplier for resampling")
    resample_closing_pair: bool = Field(
        default=True,
        description="Also split/merge the segment joining the last and first points",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def check_resample_bounds(self) -> "SimulationParameters":
        if self.k_min >= self.k_max:
            raise ValueError(f"k_min ({self.k_min}) must be smaller than k_max ({self.k_max})")
        return self

    def scale_function(self) -> ConstantScale:
        return ConstantScale(self.delta)

    def with_updates(self, **changes: Any) -> "SimulationParameters":
        """Validated copy with some fields replaced."""
        values: Dict[str, Any] = self.model_dump()
        values.update(changes)
        return SimulationParameters(**values)

    def d_max(self, scale_a: float, scale_b: float) -> float:
        """Longest allowed segment between points of local scale a and b."""
        return self.k_max * self.sampling_rate * (scale_a + scale_b) / 2

    def d_min(self, scale_a: float, scale_b: float) -> float:
        """Shortest allowed segment between points of local scale a and b."""
        return self.k_min * self.sampling_rate * (scale_a + scale_b) / 2

"""
Core maze growth functionality.
"""

from .alea_prng import AleaPRNG
from .curve import Curve, points_circle, points_rectangle
from .forces import ForceField
from .geometry import Point, closest_point_on_segment
from .maze import StepRequest, StepResponse, run_batch, step_points
from .parameters import ConstantScale, SimulationParameters
from .resample import resample
from .simulation import MazeSimulation, SimulationBusyError, SimulationState
from .spatial_index import BoundingBox, Segment, SegmentQuadtree

__all__ = ['AleaPRNG', 'Curve', 'points_circle', 'points_rectangle',
           'ForceField', 'Point', 'closest_point_on_segment',
           'StepRequest', 'StepResponse', 'run_batch', 'step_points',
           'ConstantScale', 'SimulationParameters', 'resample',
           'MazeSimulation', 'SimulationBusyError', 'SimulationState',
           'BoundingBox', 'Segment', 'SegmentQuadtree']

"""Layout generators: pipes, underground pipes, beacons and power poles."""

from .tile_grid import GridIndexer
from .pipe_router import PipeRouter, generate_pipes
from .underground import UndergroundPipeOptimizer
from .beacon_planner import BeaconPlanner, generate_beacons
from .pole_planner import PolePlanner, generate_poles
from .planner import OutpostPlanner, generate_outpost
from .layout_plan import (
    BeaconPlacement,
    BeaconResult,
    FacilityRotation,
    OutpostPlan,
    PipePlacement,
    PipeRoutingInfo,
    PipeRoutingResult,
    PolePlacement,
    PoleResult,
    Visualization,
)

__all__ = [
    "GridIndexer",
    "PipeRouter",
    "generate_pipes",
    "UndergroundPipeOptimizer",
    "BeaconPlanner",
    "generate_beacons",
    "PolePlanner",
    "generate_poles",
    "OutpostPlanner",
    "generate_outpost",
    "BeaconPlacement",
    "BeaconResult",
    "FacilityRotation",
    "OutpostPlan",
    "PipePlacement",
    "PipeRoutingInfo",
    "PipeRoutingResult",
    "PolePlacement",
    "PoleResult",
    "Visualization",
]

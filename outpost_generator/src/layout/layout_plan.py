from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from outpost_generator.src.common.constants import (
    BEACON,
    MEDIUM_POLE,
    PIPE,
    UNDERGROUND_PIPE,
)
from outpost_generator.src.common.geometry import Point

"""Data structures for generator results."""


def _point_dict(point) -> Dict[str, float]:
    return {"x": point.x, "y": point.y}


@dataclass
class Visualization:
    """Abstract path record for an external debug renderer."""

    path: List[Point]
    size: int = 32
    alpha: float = 1.0
    color: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": [_point_dict(p) for p in self.path],
            "size": self.size,
            "alpha": self.alpha,
        }
        if self.color is not None:
            data["color"] = self.color
        return data


@dataclass(frozen=True)
class FacilityRotation:
    """Final orientation of a pumpjack (the side of its output plug)."""

    id: int
    direction: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "direction": self.direction}


@dataclass(frozen=True)
class PipePlacement:
    """A plain or underground pipe at a world tile centre."""

    kind: str  # "plain" or "underground"
    position: Point
    direction: int = 0

    @property
    def name(self) -> str:
        return UNDERGROUND_PIPE if self.kind == "underground" else PIPE

    @property
    def is_underground(self) -> bool:
        return self.kind == "underground"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "position": _point_dict(self.position),
            "direction": self.direction,
        }


@dataclass
class PipeRoutingInfo:
    pipe_count: int = 0
    underground_count: int = 0
    pipes_replaced_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "pipeCount": self.pipe_count,
            "undergroundCount": self.underground_count,
            "pipesReplacedCount": self.pipes_replaced_count,
        }


@dataclass
class PipeRoutingResult:
    """Complete output of the pipe generator."""

    facilities_to_rotate: List[FacilityRotation] = field(default_factory=list)
    pipes: List[PipePlacement] = field(default_factory=list)
    info: PipeRoutingInfo = field(default_factory=PipeRoutingInfo)
    visualizations: List[Visualization] = field(default_factory=list)
    fully_connected: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "facilitiesToRotate": [r.to_dict() for r in self.facilities_to_rotate],
            "pipes": [p.to_dict() for p in self.pipes],
            "info": self.info.to_dict(),
            "visualizations": [v.to_dict() for v in self.visualizations],
            "fullyConnected": self.fully_connected,
        }


@dataclass(frozen=True)
class BeaconPlacement:
    position: Point
    effects_given: int = 0
    name: str = BEACON

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "position": _point_dict(self.position)}


@dataclass
class BeaconResult:
    beacons: List[BeaconPlacement] = field(default_factory=list)
    visualizations: List[Visualization] = field(default_factory=list)

    @property
    def total_beacons(self) -> int:
        return len(self.beacons)

    @property
    def total_effects_given(self) -> int:
        return sum(b.effects_given for b in self.beacons)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beacons": [b.to_dict() for b in self.beacons],
            "info": {
                "totalBeacons": self.total_beacons,
                "totalEffectsGiven": self.total_effects_given,
            },
            "visualizations": [v.to_dict() for v in self.visualizations],
        }


@dataclass(frozen=True)
class PolePlacement:
    position: Point
    name: str = MEDIUM_POLE

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "position": _point_dict(self.position)}


@dataclass
class PoleResult:
    poles: List[PolePlacement] = field(default_factory=list)
    visualizations: List[Visualization] = field(default_factory=list)

    @property
    def total_poles(self) -> int:
        return len(self.poles)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "poles": [p.to_dict() for p in self.poles],
            "info": {"totalPoles": self.total_poles},
            "visualizations": [v.to_dict() for v in self.visualizations],
        }


@dataclass
class OutpostPlan:
    """Everything generated for one outpost, ready for blueprint emission."""

    pipes: PipeRoutingResult = field(default_factory=PipeRoutingResult)
    beacons: Optional[BeaconResult] = None
    poles: Optional[PoleResult] = None

    @property
    def visualizations(self) -> List[Visualization]:
        result = list(self.pipes.visualizations)
        if self.beacons is not None:
            result.extend(self.beacons.visualizations)
        if self.poles is not None:
            result.extend(self.poles.visualizations)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pipes": self.pipes.to_dict(),
            "beacons": self.beacons.to_dict() if self.beacons is not None else None,
            "poles": self.poles.to_dict() if self.poles is not None else None,
        }

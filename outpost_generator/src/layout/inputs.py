"""Validation of the plain-data inputs accepted by the generators."""

from __future__ import annotations
from dataclasses import dataclass
import math
from numbers import Real
from typing import Any, Iterable, List, Mapping

from outpost_generator.src.common.exceptions import ConfigurationError
from outpost_generator.src.common.geometry import Point


@dataclass(frozen=True)
class PumpjackInput:
    """A pumpjack to connect: blueprint entity number and world centre."""

    id: int
    position: Point


@dataclass(frozen=True)
class FootprintInput:
    """A square entity footprint for beacon and pole placement."""

    position: Point
    size: int
    provides_effect: bool = False
    powered: bool = False


def _get(item: Any, *names: str) -> Any:
    for name in names:
        if isinstance(item, Mapping):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def parse_position(value: Any, entity: Any = None) -> Point:
    """Accept ``{"x", "y"}`` mappings, objects with ``x``/``y`` or 2-sequences."""
    if isinstance(value, Mapping):
        x, y = value.get("x"), value.get("y")
    elif hasattr(value, "x") and hasattr(value, "y"):
        x, y = value.x, value.y
    elif isinstance(value, (tuple, list)) and len(value) == 2:
        x, y = value
    else:
        raise ConfigurationError(f"Malformed position {value!r}", entity)

    for coord in (x, y):
        if isinstance(coord, bool) or not isinstance(coord, Real):
            raise ConfigurationError(f"Non-numeric coordinate in position {value!r}", entity)
        if not math.isfinite(coord):
            raise ConfigurationError(f"Non-finite coordinate in position {value!r}", entity)
    return Point(x, y)


def parse_pumpjacks(pumpjacks: Iterable[Any]) -> List[PumpjackInput]:
    result = []
    for index, item in enumerate(pumpjacks):
        if isinstance(item, PumpjackInput):
            result.append(item)
            continue
        position = _get(item, "position")
        if position is None:
            raise ConfigurationError("Pumpjack without a position", item)
        entity_id = _get(item, "id", "entity_number")
        result.append(
            PumpjackInput(
                id=index + 1 if entity_id is None else entity_id,
                position=parse_position(position, item),
            )
        )
    return result


def parse_footprints(entities: Iterable[Any]) -> List[FootprintInput]:
    """Parse footprint inputs for the beacon and pole generators.

    Both snake_case and camelCase spellings of the flags are accepted, as well
    as the short ``effect``/``power`` keys.
    """
    result = []
    for item in entities:
        if isinstance(item, FootprintInput):
            result.append(item)
            continue
        position = _get(item, "position")
        if position is None:
            raise ConfigurationError("Entity without a position", item)
        size = _get(item, "size")
        if size is None:
            size = 1
        if isinstance(size, bool) or not isinstance(size, int) or size < 1:
            raise ConfigurationError(f"Invalid entity size {size!r}", item)
        result.append(
            FootprintInput(
                position=parse_position(position, item),
                size=size,
                provides_effect=bool(_get(item, "provides_effect", "providesEffect", "effect")),
                powered=bool(_get(item, "powered", "power")),
            )
        )
    return result

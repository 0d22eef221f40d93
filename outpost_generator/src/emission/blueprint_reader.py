"""Reading pumpjacks out of a blueprint string."""

from __future__ import annotations
from typing import List

from draftsman.blueprintable import Blueprint, get_blueprintable_from_string

from outpost_generator.src.common.constants import PUMPJACK
from outpost_generator.src.common.exceptions import ConfigurationError
from outpost_generator.src.layout.inputs import PumpjackInput, parse_position


def load_blueprint(blueprint_string: str) -> Blueprint:
    """Decode a blueprint string; books, planners and garbage are rejected."""
    try:
        blueprintable = get_blueprintable_from_string(blueprint_string.strip())
    except Exception as exc:
        raise ConfigurationError(f"Could not decode blueprint string: {exc}") from exc

    if not isinstance(blueprintable, Blueprint):
        raise ConfigurationError(
            f"Expected a blueprint, got {type(blueprintable).__name__}"
        )
    return blueprintable


def read_pumpjacks(blueprint_string: str) -> List[PumpjackInput]:
    """Pumpjacks of a blueprint, numbered by their position in the entity list.

    Raises:
        ConfigurationError: if the string cannot be decoded or the blueprint
            holds anything other than pumpjacks.
    """
    blueprint = load_blueprint(blueprint_string)

    pumpjacks = []
    for index, entity in enumerate(blueprint.entities):
        if entity.name != PUMPJACK:
            raise ConfigurationError(
                f"Blueprint may only contain pumpjacks, found '{entity.name}'"
            )
        pumpjacks.append(
            PumpjackInput(id=index + 1, position=parse_position(entity.position, entity.name))
        )
    return pumpjacks

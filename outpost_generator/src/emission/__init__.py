"""Blueprint input and output through factorio-draftsman."""

from .blueprint_reader import load_blueprint, read_pumpjacks
from .emitter import BlueprintEmitter

__all__ = ["BlueprintEmitter", "load_blueprint", "read_pumpjacks"]

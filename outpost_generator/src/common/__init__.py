"""Common utilities shared across generator stages."""

from .diagnostics import ProgramDiagnostics, DiagnosticSeverity
from .exceptions import ConfigurationError, GenerationError
from .geometry import Point, manhattan_distance, points_to_lines, uniq_points
from .constants import *

__all__ = [
    "ProgramDiagnostics",
    "DiagnosticSeverity",
    "ConfigurationError",
    "GenerationError",
    "Point",
    "manhattan_distance",
    "points_to_lines",
    "uniq_points",
    # Constants
    "GeneratorConfig",
    "DEFAULT_CONFIG",
    "MAX_GAP_BETWEEN_UNDERGROUNDS",
    "MIN_GAP_BETWEEN_UNDERGROUNDS",
]

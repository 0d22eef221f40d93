"""Shared constants across the generator."""

from dataclasses import dataclass

# Pumpjack output fluid box connections, indexed by direction // 2 (N, E, S, W)
PUMPJACK_PLUGS = ((1, -2), (2, -1), (-1, 2), (-2, 1))
PUMPJACK_SIZE = 3

# Routing grid
GRID_MARGIN = 2
GRID_STRIDE = 1 << 16  # larger than any grid extent, used for integer cell keys

# If groups couldn't get connected, try this many more times, each time with one more allowed turn
MAX_TRIES = 3
BASE_MAX_TURNS = 2

# Group connection search limits
MAX_PATHFINDER_LINES = 5
MAX_NEAREST_CELLS = 20

# Underground pipes
MIN_GAP_BETWEEN_UNDERGROUNDS = 1
MAX_GAP_BETWEEN_UNDERGROUNDS = 9

# Beacons
BEACON_SIZE = 3
BEACON_EFFECT_RADIUS = 3
MIN_AFFECTED_ENTITIES = 1

# Medium electric pole
POLE_SIZE = 1
POLE_EFFECT_RADIUS = 3
POLE_TO_POLE_RADIUS = 9

# Compass directions (8-way encoding)
NORTH, EAST, SOUTH, WEST = 0, 2, 4, 6

# Entity prototypes
PUMPJACK = "pumpjack"
PIPE = "pipe"
UNDERGROUND_PIPE = "pipe-to-ground"
BEACON = "beacon"
MEDIUM_POLE = "medium-electric-pole"

# Outposts outside this range are still generated, only with a warning
MIN_PUMPJACKS = 2
MAX_PUMPJACKS = 200

# Debug visualisation colours
BEACON_COLOR = 0x800000
POLE_COLOR = 0x00BFFF
CONNECTION_POLE_COLOR = 0x8A2BE2


@dataclass(frozen=True)
class GeneratorConfig:
    """Tunable settings for one outpost generation run."""

    min_gap_between_undergrounds: int = MIN_GAP_BETWEEN_UNDERGROUNDS
    max_gap_between_undergrounds: int = MAX_GAP_BETWEEN_UNDERGROUNDS
    max_tries: int = MAX_TRIES
    max_pumpjacks: int = MAX_PUMPJACKS
    min_affected_entities: int = MIN_AFFECTED_ENTITIES
    beacons: bool = True
    poles: bool = True
    pumpjack_module: str | None = "productivity-module-3"
    beacon_module: str | None = "speed-module-3"
    modules_per_entity: int = 2
    show_progress: bool = False
    blueprint_label: str = "Oil Outpost"

    @property
    def beacons_enabled(self) -> bool:
        """Beacons without a module are pointless, so both must be set."""
        return self.beacons and self.beacon_module is not None


DEFAULT_CONFIG = GeneratorConfig()

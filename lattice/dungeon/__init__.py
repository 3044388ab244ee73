"""Public dungeon package interface."""

from .config import DungeonConfig  # noqa: F401
from .connectivity import reachable_room_ids, unreachable_room_ids  # noqa: F401
from .generator import DEFAULT_MAX_FLOOR, generate_dungeon  # noqa: F401
from .rng import SeededRandom, lcg_next  # noqa: F401
from .rooms import (  # noqa: F401
    DIRECTION_ALIASES,
    DIRECTIONS,
    EAST,
    NORTH,
    OPPOSITE,
    SOUTH,
    WEST,
    Dungeon,
    Enemy,
    Npc,
    Room,
)

__all__ = [
    "Dungeon",
    "DungeonConfig",
    "Enemy",
    "Npc",
    "Room",
    "SeededRandom",
    "lcg_next",
    "generate_dungeon",
    "reachable_room_ids",
    "unreachable_room_ids",
    "DEFAULT_MAX_FLOOR",
    "DIRECTIONS",
    "DIRECTION_ALIASES",
    "OPPOSITE",
    "NORTH",
    "SOUTH",
    "EAST",
    "WEST",
]

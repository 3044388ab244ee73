from dataclasses import dataclass


@dataclass(frozen=True)
class DungeonConfig:
    min_rooms: int = 8
    room_count_spread: int = 5  # room count = min_rooms + below(spread)
    max_difficulty: int = 5
    rooms_per_difficulty_step: int = 3
    enemy_base_chance: float = 0.3
    enemy_floor_bonus: float = 0.1
    enemy_index_bonus: float = 0.03
    enemy_max_chance: float = 0.7
    enemy_hp_allowance_base: int = 20
    enemy_hp_allowance_per_difficulty: int = 10
    npc_chance: float = 0.2
    npc_talks: int = 3
    item_floor_bonus: float = 0.1
    shortcut_chance: float = 0.3


DEFAULT_CONFIG = DungeonConfig()

__all__ = ["DungeonConfig", "DEFAULT_CONFIG"]

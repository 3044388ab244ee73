"""Procedural floor generation.

``generate_dungeon(seed, floor_number)`` is a pure function of its arguments:
all randomness comes from a :class:`SeededRandom` built from ``seed`` and
``floor_number``, and the draw order below is part of the contract (moving a
draw reshuffles every dungeon for every seed).

Per room, in index order: template, description variant, enemy roll (+ enemy
pick), NPC roll (+ NPC pick), one trial per catalog item. Then the backbone,
then shortcuts.
"""

from __future__ import annotations

from typing import List, Optional

from . import catalog
from .config import DEFAULT_CONFIG, DungeonConfig
from .connectivity import wire_backbone, wire_shortcuts
from .rng import SeededRandom
from .rooms import Dungeon, Enemy, Npc, Room

DEFAULT_MAX_FLOOR = 5

# Keeps consecutive floors of one seed from replaying the same stream
FLOOR_SEED_STRIDE = 7919


def floor_seed(seed: int, floor_number: int) -> int:
    return seed + (floor_number - 1) * FLOOR_SEED_STRIDE


def scale_enemy(template: catalog.EnemyTemplate, floor_number: int) -> Enemy:
    """Copy ``template`` into a live instance scaled for ``floor_number``."""
    depth = max(0, floor_number - 1)
    hp = int(template.hp * (1 + 0.3 * depth))
    return Enemy(
        name=template.name,
        hp=hp,
        max_hp=hp,
        attack=int(template.attack * (1 + 0.2 * depth)),
        defense=int(template.defense * (1 + 0.15 * depth)),
        xp_reward=int(template.xp * (1 + 0.25 * depth)),
        alive=True,
        description=template.description,
    )


def eligible_enemies(difficulty: int, cfg: DungeonConfig = DEFAULT_CONFIG) -> List[catalog.EnemyTemplate]:
    limit = cfg.enemy_hp_allowance_base + cfg.enemy_hp_allowance_per_difficulty * difficulty
    return [t for t in catalog.ENEMY_TEMPLATES if t.hp <= limit]


def enemy_chance(floor_number: int, index: int, cfg: DungeonConfig = DEFAULT_CONFIG) -> float:
    return min(
        cfg.enemy_max_chance,
        cfg.enemy_base_chance + cfg.enemy_floor_bonus * floor_number + cfg.enemy_index_bonus * index,
    )


def _place_enemy(rng: SeededRandom, difficulty: int, floor_number: int, cfg: DungeonConfig) -> Optional[Enemy]:
    pool = eligible_enemies(difficulty, cfg)
    if not pool:
        return None
    return scale_enemy(pool[rng.below(len(pool))], floor_number)


def _place_items(rng: SeededRandom, floor_number: int, cfg: DungeonConfig) -> List[str]:
    multiplier = 1 + cfg.item_floor_bonus * floor_number
    return [item.id for item in catalog.ITEM_DEFS if rng.random() < item.base_drop_chance * multiplier]


def generate_dungeon(
    seed: int,
    floor_number: int = 1,
    max_floor: int = DEFAULT_MAX_FLOOR,
    cfg: DungeonConfig = DEFAULT_CONFIG,
) -> Dungeon:
    """Build one floor's room graph.

    Args:
        seed: Base dungeon seed; shared by every floor of one session.
        floor_number: 1-based floor; drives difficulty, enemy odds and scaling.
        max_floor: Deepest floor; only changes the exit room's text.
        cfg: Generation constants.

    Returns:
        A fully wired :class:`Dungeon` with the entrance first and the exit last.
    """
    rng = SeededRandom(floor_seed(seed, floor_number))
    count = cfg.min_rooms + rng.below(cfg.room_count_spread)
    rooms: List[Room] = []
    for i in range(count):
        template = catalog.ROOM_TEMPLATES[rng.below(len(catalog.ROOM_TEMPLATES))]
        description = template.descriptions[rng.below(len(template.descriptions))]
        room = Room(
            id=f"room_{i}",
            name=template.name,
            description=description,
            difficulty=min(cfg.max_difficulty, floor_number + i // cfg.rooms_per_difficulty_step),
            is_entrance=(i == 0),
            is_exit=(i == count - 1),
        )
        if not room.is_entrance:
            if rng.random() < enemy_chance(floor_number, i, cfg):
                room.enemy = _place_enemy(rng, room.difficulty, floor_number, cfg)
            if room.enemy is None and rng.random() < cfg.npc_chance:
                tpl = catalog.NPC_TEMPLATES[rng.below(len(catalog.NPC_TEMPLATES))]
                room.npc = Npc(name=tpl.name, personality=tpl.personality, talks_remaining=cfg.npc_talks)
            room.items = _place_items(rng, floor_number, cfg)
        else:
            room.items = [catalog.ENTRANCE_ITEM_ID]
        rooms.append(room)

    wire_backbone(rooms, rng)
    wire_shortcuts(rooms, rng, cfg.shortcut_chance)

    entrance, exit_room = rooms[0], rooms[-1]
    entrance.description = catalog.ENTRANCE_DESCRIPTION
    entrance.visited = True
    if floor_number < max_floor:
        exit_room.description = catalog.EXIT_DESCRIPTION_DESCENT
    else:
        exit_room.description = catalog.EXIT_DESCRIPTION_FINAL
    return Dungeon(rooms=rooms, floor_number=floor_number, seed=seed)


__all__ = ["generate_dungeon", "scale_enemy", "eligible_enemies", "enemy_chance", "floor_seed", "DEFAULT_MAX_FLOOR"]

"""Combat resolution.

Responsibilities:
    * Player attack: damage roll, kill bookkeeping (XP, kills, level-up, loot).
    * Enemy counterattack whenever the enemy survives an exchange.
    * Flee attempts (60% escape to a random adjacent room).
    * The death penalty, applied whenever health reaches zero.

Design notes:
    - Works purely on typed records (`Character`, `Room`, `Dungeon`); the
      caller decides when to persist.
    - Every function takes an optional ``rng`` (defaults to the ``random``
      module) so tests can script jitter, flee and loot rolls.
    - Results are plain dicts with a ``log`` list of human-readable lines; the
      dispatcher joins them into the response message.
"""

from __future__ import annotations

import random
from typing import Any, Dict, List, Optional

from lattice.dungeon import Dungeon, Enemy, Room, catalog
from lattice.logging_utils import get_logger
from lattice.models.state import Character
from lattice.models.xp import grant_experience, halve_experience

from .loot_service import roll_loot

log = get_logger("lattice.combat")

ATTACK_JITTER = (-2, 2)
COUNTER_JITTER = (0, 2)
FLEE_CHANCE = 0.6


def best_weapon_power(inventory: List[str]) -> int:
    best = 0
    for item_id in inventory:
        item = catalog.item(item_id)
        if item is not None and item.type == catalog.WEAPON:
            best = max(best, item.power)
    return best


def player_damage(character: Character, enemy: Enemy, rng=None) -> int:
    rng = rng or random
    jitter = rng.randint(*ATTACK_JITTER)
    return max(1, character.attack + best_weapon_power(character.inventory) - enemy.defense + jitter)


def enemy_damage(enemy: Enemy, rng=None) -> int:
    rng = rng or random
    return max(1, enemy.attack - rng.randint(*COUNTER_JITTER))


def apply_death_penalty(character: Character, dungeon: Dungeon) -> None:
    character.current_location = dungeon.entrance.id
    character.health = character.max_health // 2
    halve_experience(character)


def counterattack(character: Character, enemy: Enemy, dungeon: Dungeon, rng=None) -> Dict[str, Any]:
    """One enemy strike; applies the death penalty if it drops the player."""
    dmg = enemy_damage(enemy, rng)
    character.health = max(0, character.health - dmg)
    lines = [f"The {enemy.name} strikes back for {dmg} damage!"]
    died = character.health <= 0
    if died:
        apply_death_penalty(character, dungeon)
        lines.append(
            "PROCESS TERMINATED. You respawn at the entry node with "
            f"{character.health}/{character.max_health} HP. Half your experience is lost."
        )
        log.info(event="player_death", username=character.username, enemy=enemy.name, floor=dungeon.floor_number)
    return {"damage": dmg, "died": died, "log": lines}


def attack(character: Character, room: Room, dungeon: Dungeon, rng=None) -> Dict[str, Any]:
    """Resolve one player attack against the live enemy in ``room``.

    Returns a dict with keys: damage, killed, died, xp, levels, loot, log.
    """
    rng = rng or random
    enemy = room.enemy
    if enemy is None or not enemy.alive:
        raise ValueError("attack() requires a live enemy")
    dmg = player_damage(character, enemy, rng)
    enemy.hp -= dmg
    lines = [f"You strike the {enemy.name} for {dmg} damage!"]
    result: Dict[str, Any] = {
        "damage": dmg,
        "killed": False,
        "died": False,
        "xp": 0,
        "levels": 0,
        "loot": None,
        "log": lines,
    }
    if enemy.hp <= 0:
        enemy.hp = 0
        enemy.alive = False
        character.kills += 1
        levels = grant_experience(character, enemy.xp_reward)
        result.update(killed=True, xp=enemy.xp_reward, levels=levels)
        lines.append(f"The {enemy.name} is destroyed! +{enemy.xp_reward} XP.")
        if levels:
            lines.append(
                f"LEVEL UP! You are now level {character.level}. "
                f"Max HP {character.max_health}, attack {character.attack}."
            )
            log.info(event="level_up", username=character.username, level=character.level)
        drop = roll_loot(rng)
        if drop:
            room.items.append(drop)
            result["loot"] = drop
            lines.append(f"The {enemy.name} dropped: {catalog.item_name(drop)}")
        log.info(event="enemy_defeated", username=character.username, enemy=enemy.name, loot=drop)
        return result
    strike = counterattack(character, enemy, dungeon, rng)
    result["died"] = strike["died"]
    lines.extend(strike["log"])
    return result


def flee(character: Character, room: Room, dungeon: Dungeon, rng=None) -> Dict[str, Any]:
    """Attempt to escape the live enemy in ``room``.

    Returns a dict with keys: fled, destination, died, log.
    """
    rng = rng or random
    enemy = room.enemy
    if enemy is None or not enemy.alive:
        raise ValueError("flee() requires a live enemy")
    result: Dict[str, Any] = {"fled": False, "destination": None, "died": False, "log": []}
    exits = sorted(room.connections.values())
    if exits and rng.random() < FLEE_CHANCE:
        destination: Optional[str] = rng.choice(exits)
        character.current_location = destination
        result.update(fled=True, destination=destination)
        result["log"].append(f"You break away from the {enemy.name} and escape!")
        return result
    result["log"].append(f"You fail to escape the {enemy.name}!")
    strike = counterattack(character, enemy, dungeon, rng)
    result["died"] = strike["died"]
    result["log"].extend(strike["log"])
    return result


__all__ = [
    "attack",
    "flee",
    "counterattack",
    "apply_death_penalty",
    "best_weapon_power",
    "player_damage",
    "enemy_damage",
]

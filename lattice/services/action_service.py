"""Action dispatcher: one player command against one loaded session.

`dispatch` routes a command to its handler and returns an `ActionOutcome`:
the response payload plus a ``dirty`` flag telling the caller whether the
session/player records changed and must be written back. Handlers mutate the
in-memory `AdventureSession` / `Character` only; they never touch the store.

Rule violations are raised as `GameError` subclasses before any mutation, so a
rejected command always leaves room and player state untouched. Harmless
"nothing happens" answers (no enemy to fight, no exit that way) are plain
``info`` payloads with ``dirty=False``.

Payload ``type`` values: look, move, combat, take, use, dialogue, descend,
victory, inventory, status, map, help, info.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from lattice.dungeon import DEFAULT_MAX_FLOOR, DIRECTION_ALIASES, DIRECTIONS, Room, catalog, generate_dungeon
from lattice.errors import BlockedByEnemyError, InvalidCommandError, ItemNotFoundError
from lattice.logging_utils import get_logger
from lattice.models.state import AdventureSession, Character
from lattice.models.xp import grant_experience

from . import combat_service
from .narrative_service import Narrator

log = get_logger("lattice.actions")

HELP_COMMANDS = [
    "look                 - Describe the current node",
    "north/south/east/west (n/s/e/w) - Move",
    "fight (attack)       - Attack the hostile process here",
    "flee (run)           - Try to escape a fight",
    "take <item>          - Pick up an item",
    "use <item>           - Use a consumable",
    "talk [message]       - Speak to someone here",
    "descend              - Go down from the exit node",
    "inventory (inv, i)   - List what you carry",
    "status               - Show your stats",
    "map                  - Show explored nodes",
    "help                 - This list",
]

COMMAND_ALIASES = {
    "attack": "fight",
    "run": "flee",
    "get": "take",
    "inv": "inventory",
    "i": "inventory",
    "l": "look",
    "go": "move",
}


class ActionOutcome(NamedTuple):
    payload: Dict[str, Any]
    dirty: bool


@dataclass
class _Turn:
    session: AdventureSession
    character: Character
    room: Room
    target: str
    narrator: Narrator
    rng: Any
    max_floor: int


# --- views -----------------------------------------------------------------


def room_view(room: Room, session: Optional[AdventureSession] = None) -> Dict[str, Any]:
    """Client-facing snapshot of ``room`` (item names, live enemy, NPC)."""
    view: Dict[str, Any] = {
        "id": room.id,
        "name": room.name,
        "description": room.description,
        "difficulty": room.difficulty,
        "exits": [d for d in DIRECTIONS if d in room.connections],
        "connections": dict(room.connections),
        "items": [catalog.item_name(i) for i in room.items],
        "itemIds": list(room.items),
        "enemy": room.enemy.view() if room.enemy else None,
        "npc": None,
        "isEntrance": room.is_entrance,
        "isExit": room.is_exit,
    }
    if room.npc is not None and not room.has_live_enemy:
        view["npc"] = {"name": room.npc.name, "talksRemaining": room.npc.talks_remaining}
    if session is not None:
        view["floor"] = session.floor_number
    return view


def _match_item(item_ids: List[str], target: str) -> Optional[str]:
    wanted = target.strip().lower()
    if not wanted:
        return None
    for item_id in item_ids:
        if item_id.lower() == wanted or item_id.lower() == wanted.replace(" ", "_"):
            return item_id
    for item_id in item_ids:
        if catalog.item_name(item_id).lower() == wanted:
            return item_id
    return None


def _require_clear(room: Room) -> None:
    if room.has_live_enemy:
        raise BlockedByEnemyError(room.enemy.name)


def _info(message: str) -> ActionOutcome:
    return ActionOutcome({"type": "info", "message": message}, False)


def _arrive(turn: _Turn, destination: Room) -> None:
    """Move the character into ``destination``; enrich the text on a first visit."""
    first_visit = not destination.visited
    turn.character.current_location = destination.id
    turn.session.mark_visited(destination.id)
    if first_visit and not destination.is_entrance and not destination.is_exit:
        destination.description = turn.narrator.room_description(destination)


# --- handlers --------------------------------------------------------------


def _look(turn: _Turn) -> ActionOutcome:
    view = room_view(turn.room, turn.session)
    payload = {
        "type": "look",
        "message": turn.room.description,
        "name": turn.room.name,
        "description": turn.room.description,
        "exits": view["exits"],
        "items": view["items"],
        "enemy": view["enemy"] if turn.room.has_live_enemy else None,
        "npc": view["npc"],
    }
    return ActionOutcome(payload, False)


def _move(turn: _Turn, direction: str) -> ActionOutcome:
    direction = DIRECTION_ALIASES.get(direction, direction)
    if direction not in DIRECTIONS:
        raise InvalidCommandError(f"move {direction}".strip())
    _require_clear(turn.room)
    dest_id = turn.room.connections.get(direction)
    destination = turn.session.dungeon.room(dest_id) if dest_id else None
    if destination is None:
        return _info(f"You cannot go {direction} from here.")
    _arrive(turn, destination)
    message = f"You move {direction} into {destination.name}."
    if destination.has_live_enemy:
        message += f" A {destination.enemy.name} is here!"
    payload = {
        "type": "move",
        "moved": True,
        "message": message,
        "location": room_view(destination, turn.session),
    }
    return ActionOutcome(payload, True)


def _fight(turn: _Turn) -> ActionOutcome:
    if not turn.room.has_live_enemy:
        return _info("There is nothing to fight here.")
    enemy = turn.room.enemy
    result = combat_service.attack(turn.character, turn.room, turn.session.dungeon, turn.rng)
    payload: Dict[str, Any] = {
        "type": "combat",
        "message": " ".join(result["log"]),
        "damage": result["damage"],
        "killed": result["killed"],
        "died": result["died"],
        "enemy": enemy.view(),
        "loot": catalog.item_name(result["loot"]) if result["loot"] else None,
    }
    if result["died"]:
        entrance = turn.session.dungeon.entrance
        payload["location"] = room_view(entrance, turn.session)
    return ActionOutcome(payload, True)


def _flee(turn: _Turn) -> ActionOutcome:
    if not turn.room.has_live_enemy:
        return _info("There is nothing to flee from.")
    result = combat_service.flee(turn.character, turn.room, turn.session.dungeon, turn.rng)
    payload: Dict[str, Any] = {
        "type": "combat",
        "message": " ".join(result["log"]),
        "fled": result["fled"],
        "died": result["died"],
    }
    if result["fled"]:
        destination = turn.session.dungeon.room(result["destination"])
        _arrive(turn, destination)
        payload["location"] = room_view(destination, turn.session)
    elif result["died"]:
        payload["location"] = room_view(turn.session.dungeon.entrance, turn.session)
    return ActionOutcome(payload, True)


def _take(turn: _Turn) -> ActionOutcome:
    _require_clear(turn.room)
    if not turn.target.strip():
        raise ItemNotFoundError("Take what? Name an item in this room.")
    item_id = _match_item(turn.room.items, turn.target)
    if item_id is None:
        raise ItemNotFoundError(f'There is no "{turn.target.strip()}" here.', item=turn.target.strip())
    turn.room.items.remove(item_id)
    turn.character.inventory.append(item_id)
    payload = {
        "type": "take",
        "message": f"You pick up the {catalog.item_name(item_id)}.",
        "inventory": list(turn.character.inventory),
    }
    return ActionOutcome(payload, True)


def _use(turn: _Turn) -> ActionOutcome:
    # Inventory may not change while a hostile process holds the room
    _require_clear(turn.room)
    char = turn.character
    if not turn.target.strip():
        raise ItemNotFoundError("Use what? Name an item you carry.")
    item_id = _match_item(char.inventory, turn.target)
    if item_id is None:
        raise ItemNotFoundError(f'You are not carrying "{turn.target.strip()}".', item=turn.target.strip())
    item = catalog.item(item_id)
    if item is None or item.type != catalog.CONSUMABLE:
        return _info(f"The {catalog.item_name(item_id)} cannot be used.")

    char.inventory.remove(item_id)
    if item.effect == catalog.EFFECT_XP:
        levels = grant_experience(char, item.power)
        message = f"You absorb the {item.name}. +{item.power} XP."
        if levels:
            message += f" LEVEL UP! You are now level {char.level}."
            log.info(event="level_up", username=char.username, level=char.level)
    else:
        healed = min(item.power, char.max_health - char.health)
        char.health += healed
        if item.effect == catalog.EFFECT_SHIELD:
            message = f"The {item.name} rebuilds your defenses. +{healed} HP."
        else:
            message = f"You apply the {item.name}. +{healed} HP."
    payload = {
        "type": "use",
        "message": message,
        "inventory": list(char.inventory),
    }
    return ActionOutcome(payload, True)


def _talk(turn: _Turn) -> ActionOutcome:
    _require_clear(turn.room)
    npc = turn.room.npc
    if npc is None:
        return _info("There is no one here to talk to.")
    if npc.talks_remaining <= 0:
        return _info(f"{npc.name} has nothing more to say.")
    npc.talks_remaining -= 1
    reply = turn.narrator.npc_reply(npc, turn.target, turn.room)
    payload = {
        "type": "dialogue",
        "npcName": npc.name,
        "message": reply,
        "talksRemaining": npc.talks_remaining,
    }
    return ActionOutcome(payload, True)


def _descend(turn: _Turn) -> ActionOutcome:
    _require_clear(turn.room)
    if not turn.room.is_exit:
        return _info("There is no way down from here. Find the exit node.")
    session, char = turn.session, turn.character
    floor = session.floor_number
    if floor >= turn.max_floor:
        session.active = False
        log.info(event="victory", username=char.username, floor=floor, level=char.level)
        payload = {
            "type": "victory",
            "message": (
                f"You breach the core of the Lattice on floor {floor}. The network falls silent. "
                f"Level {char.level}, {char.kills} processes terminated."
            ),
            "floor": floor,
        }
        return ActionOutcome(payload, True)

    dungeon = generate_dungeon(session.seed, floor + 1, turn.max_floor)
    session.dungeon = dungeon
    session.visited_room_ids = []
    char.current_location = dungeon.entrance.id
    session.mark_visited(dungeon.entrance.id)
    log.info(event="descend", username=char.username, floor=dungeon.floor_number, rooms=len(dungeon))
    payload = {
        "type": "descend",
        "moved": True,
        "message": f"You descend deeper into the Lattice. Floor {dungeon.floor_number}.",
        "floor": dungeon.floor_number,
        "location": room_view(dungeon.entrance, session),
    }
    return ActionOutcome(payload, True)


def _inventory(turn: _Turn) -> ActionOutcome:
    inv = turn.character.inventory
    if inv:
        message = "You carry: " + ", ".join(catalog.item_name(i) for i in inv)
    else:
        message = "Your inventory is empty."
    payload = {
        "type": "inventory",
        "message": message,
        "inventory": list(inv),
        "items": [catalog.item(i).to_dict() for i in inv if catalog.item(i) is not None],
    }
    return ActionOutcome(payload, False)


def _status(turn: _Turn) -> ActionOutcome:
    char = turn.character
    status = {
        "username": char.username,
        "health": char.health,
        "max_health": char.max_health,
        "attack": char.attack,
        "level": char.level,
        "experience": char.experience,
        "floor": turn.session.floor_number,
        "kills": char.kills,
        "location": turn.room.name,
    }
    message = (
        f"{char.username}: HP {char.health}/{char.max_health}, ATK {char.attack}, "
        f"level {char.level} ({char.experience} XP), floor {status['floor']}, {char.kills} kills."
    )
    return ActionOutcome({"type": "status", "message": message, "status": status}, False)


def _map(turn: _Turn) -> ActionOutcome:
    lines = []
    rooms = []
    current = turn.character.current_location
    for room in turn.session.dungeon:
        here = room.id == current
        marker = ">" if here else " "
        if room.visited:
            exits = ", ".join(d for d in DIRECTIONS if d in room.connections)
            tags = "".join((" [entry]" if room.is_entrance else "", " [exit]" if room.is_exit else ""))
            lines.append(f"{marker} {room.name}{tags}: {exits}")
            rooms.append(
                {
                    "id": room.id,
                    "name": room.name,
                    "visited": True,
                    "current": here,
                    "connections": dict(room.connections),
                }
            )
        else:
            lines.append(f"{marker} unknown")
            rooms.append({"id": room.id, "name": "unknown", "visited": False, "current": here, "connections": None})
    payload = {"type": "map", "message": "\n".join(lines), "rooms": rooms, "floor": turn.session.floor_number}
    return ActionOutcome(payload, False)


def _help(turn: _Turn) -> ActionOutcome:
    return ActionOutcome({"type": "help", "message": "Available commands", "commands": list(HELP_COMMANDS)}, False)


_HANDLERS: Dict[str, Callable[[_Turn], ActionOutcome]] = {
    "look": _look,
    "fight": _fight,
    "flee": _flee,
    "take": _take,
    "use": _use,
    "talk": _talk,
    "descend": _descend,
    "inventory": _inventory,
    "status": _status,
    "map": _map,
    "help": _help,
}


def parse_command(command: str, target: str = "") -> tuple[str, str]:
    """Split ``"take patch kit"`` style input when no separate target was sent."""
    command = (command or "").strip()
    target = (target or "").strip()
    if " " in command and not target:
        command, target = command.split(" ", 1)
        target = target.strip()
    return command.lower(), target


def dispatch(
    session: AdventureSession,
    character: Character,
    command: str,
    target: str = "",
    narrator: Optional[Narrator] = None,
    rng=None,
    max_floor: int = DEFAULT_MAX_FLOOR,
) -> ActionOutcome:
    """Apply one command; raises a `GameError` subclass on rule violations."""
    verb, target = parse_command(command, target)
    dungeon = session.dungeon
    room = dungeon.room(character.current_location) if character.current_location else None
    relocated = False
    if room is None:
        # Stale location (older floor or never set): fall back to the entry node
        room = dungeon.entrance
        character.current_location = room.id
        relocated = True

    turn = _Turn(
        session=session,
        character=character,
        room=room,
        target=target,
        narrator=narrator or Narrator(),
        rng=rng,
        max_floor=max_floor,
    )
    verb = COMMAND_ALIASES.get(verb, verb)
    if verb in DIRECTIONS or verb in DIRECTION_ALIASES:
        outcome = _move(turn, verb)
    elif verb == "move":
        outcome = _move(turn, target.lower())
    elif verb in _HANDLERS:
        outcome = _HANDLERS[verb](turn)
    else:
        raise InvalidCommandError(verb)
    if relocated and not outcome.dirty:
        outcome = ActionOutcome(outcome.payload, True)
    return outcome


__all__ = ["ActionOutcome", "dispatch", "parse_command", "room_view", "HELP_COMMANDS"]

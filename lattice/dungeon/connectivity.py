"""Room graph wiring and reachability checks.

The backbone links room i to room i+1 going north or east, so every room is
reachable from the entrance before any shortcut is considered. Shortcuts only
ever add edges into free direction slots; nothing here removes a connection.
"""

from __future__ import annotations

from collections import deque
from typing import List, Set

from .rooms import DIRECTIONS, EAST, NORTH, OPPOSITE, Dungeon, Room


def link(a: Room, b: Room, direction: str) -> bool:
    """Connect ``a --direction--> b`` and the opposite edge back.

    Returns False (and changes nothing) if either slot is taken.
    """
    back = OPPOSITE[direction]
    if direction in a.connections or back in b.connections:
        return False
    a.connections[direction] = b.id
    b.connections[back] = a.id
    return True


def wire_backbone(rooms: List[Room], rng) -> None:
    for i in range(len(rooms) - 1):
        direction = NORTH if rng.random() < 0.5 else EAST
        link(rooms[i], rooms[i + 1], direction)


def wire_shortcuts(rooms: List[Room], rng, chance: float) -> int:
    added = 0
    for i in range(len(rooms) - 2):
        if rng.random() >= chance:
            continue
        direction = DIRECTIONS[rng.below(len(DIRECTIONS))]
        if link(rooms[i], rooms[i + 2], direction):
            added += 1
    return added


def reachable_room_ids(dungeon: Dungeon) -> Set[str]:
    """Breadth-first flood from the entrance over directional connections."""
    start = dungeon.entrance.id
    seen = {start}
    queue = deque([start])
    while queue:
        room = dungeon.room(queue.popleft())
        if room is None:
            continue
        for target in room.connections.values():
            if target not in seen:
                seen.add(target)
                queue.append(target)
    return seen


def unreachable_room_ids(dungeon: Dungeon) -> List[str]:
    reach = reachable_room_ids(dungeon)
    return [r.id for r in dungeon.rooms if r.id not in reach]


__all__ = ["link", "wire_backbone", "wire_shortcuts", "reachable_room_ids", "unreachable_room_ids"]

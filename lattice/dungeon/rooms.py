"""Typed records for one dungeon floor.

A :class:`Dungeon` owns its rooms; rooms own their enemy, NPC and item list.
Instances are mutated in place for the life of a floor and serialized to plain
dicts only when the session document is written.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional

NORTH, SOUTH, EAST, WEST = "north", "south", "east", "west"
DIRECTIONS = (NORTH, SOUTH, EAST, WEST)
OPPOSITE = {NORTH: SOUTH, SOUTH: NORTH, EAST: WEST, WEST: EAST}
DIRECTION_ALIASES = {"n": NORTH, "s": SOUTH, "e": EAST, "w": WEST}


@dataclass
class Enemy:
    name: str
    hp: int
    max_hp: int
    attack: int
    defense: int
    xp_reward: int
    alive: bool = True
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Enemy":
        return cls(
            name=data["name"],
            hp=int(data["hp"]),
            max_hp=int(data.get("max_hp", data["hp"])),
            attack=int(data["attack"]),
            defense=int(data.get("defense", 0)),
            xp_reward=int(data.get("xp_reward", 0)),
            alive=bool(data.get("alive", True)),
            description=data.get("description", ""),
        )

    def view(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "hp": self.hp,
            "maxHp": self.max_hp,
            "attack": self.attack,
            "alive": self.alive,
            "desc": self.description,
        }


@dataclass
class Npc:
    name: str
    personality: str
    talks_remaining: int = 3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Npc":
        return cls(
            name=data["name"],
            personality=data.get("personality", ""),
            talks_remaining=int(data.get("talks_remaining", 0)),
        )


@dataclass
class Room:
    id: str
    name: str
    description: str
    difficulty: int
    connections: Dict[str, str] = field(default_factory=dict)
    items: List[str] = field(default_factory=list)
    enemy: Optional[Enemy] = None
    npc: Optional[Npc] = None
    is_entrance: bool = False
    is_exit: bool = False
    visited: bool = False

    @property
    def has_live_enemy(self) -> bool:
        return self.enemy is not None and self.enemy.alive

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "difficulty": self.difficulty,
            "connections": dict(self.connections),
            "items": list(self.items),
            "enemy": self.enemy.to_dict() if self.enemy else None,
            "npc": self.npc.to_dict() if self.npc else None,
            "is_entrance": self.is_entrance,
            "is_exit": self.is_exit,
            "visited": self.visited,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Room":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            difficulty=int(data.get("difficulty", 1)),
            connections=dict(data.get("connections") or {}),
            items=list(data.get("items") or []),
            enemy=Enemy.from_dict(data["enemy"]) if data.get("enemy") else None,
            npc=Npc.from_dict(data["npc"]) if data.get("npc") else None,
            is_entrance=bool(data.get("is_entrance", False)),
            is_exit=bool(data.get("is_exit", False)),
            visited=bool(data.get("visited", False)),
        )


@dataclass
class Dungeon:
    rooms: List[Room]
    floor_number: int
    seed: int

    def __iter__(self) -> Iterator[Room]:
        return iter(self.rooms)

    def __len__(self) -> int:
        return len(self.rooms)

    def room(self, room_id: str) -> Optional[Room]:
        for room in self.rooms:
            if room.id == room_id:
                return room
        return None

    @property
    def entrance(self) -> Room:
        for room in self.rooms:
            if room.is_entrance:
                return room
        return self.rooms[0]

    @property
    def exit(self) -> Room:
        for room in self.rooms:
            if room.is_exit:
                return room
        return self.rooms[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "floor_number": self.floor_number,
            "rooms": [r.to_dict() for r in self.rooms],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dungeon":
        return cls(
            rooms=[Room.from_dict(r) for r in data.get("rooms", [])],
            floor_number=int(data.get("floor_number", 1)),
            seed=int(data.get("seed", 0)),
        )


__all__ = [
    "NORTH",
    "SOUTH",
    "EAST",
    "WEST",
    "DIRECTIONS",
    "OPPOSITE",
    "DIRECTION_ALIASES",
    "Enemy",
    "Npc",
    "Room",
    "Dungeon",
]

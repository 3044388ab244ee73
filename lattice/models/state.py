"""In-memory records the game engine works on.

`Character` and `AdventureSession` mirror the `Player` / `GameSession` rows
but are plain dataclasses so the rules can run (and be tested) without a
database. Conversion happens in `lattice.services.persistence`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lattice.dungeon import Dungeon

DEFAULT_HEALTH = 100
DEFAULT_ATTACK = 10


@dataclass
class Character:
    username: str
    current_location: Optional[str] = None
    health: int = DEFAULT_HEALTH
    max_health: int = DEFAULT_HEALTH
    attack: int = DEFAULT_ATTACK
    level: int = 1
    experience: int = 0
    kills: int = 0
    inventory: List[str] = field(default_factory=list)
    active_session_id: Optional[str] = None
    owner_ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "current_location": self.current_location,
            "health": self.health,
            "max_health": self.max_health,
            "attack": self.attack,
            "level": self.level,
            "experience": self.experience,
            "kills": self.kills,
            "inventory": list(self.inventory),
            "active_session_id": self.active_session_id,
        }


@dataclass
class AdventureSession:
    id: str
    username: str
    dungeon: Dungeon
    visited_room_ids: List[str] = field(default_factory=list)
    active: bool = True

    @property
    def floor_number(self) -> int:
        return self.dungeon.floor_number

    @property
    def seed(self) -> int:
        return self.dungeon.seed

    def mark_visited(self, room_id: str) -> None:
        room = self.dungeon.room(room_id)
        if room is not None:
            room.visited = True
        if room_id not in self.visited_room_ids:
            self.visited_room_ids.append(room_id)


__all__ = ["Character", "AdventureSession", "DEFAULT_HEALTH", "DEFAULT_ATTACK"]

"""Adventure error taxonomy.

Every error raised by the adventure core derives from :class:`GameError` and
carries a stable ``code`` plus a player-facing ``message``. The service layer
turns them into structured responses via :meth:`GameError.to_response`; none
of them is allowed to escape to the hosting process.
"""

from __future__ import annotations

from typing import Any, Dict


class GameError(Exception):
    code = "game_error"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_response(self) -> Dict[str, Any]:
        payload = {"error": True, "code": self.code, "message": self.message}
        payload.update(self.extra)
        return payload


class ValidationError(GameError):
    """Unknown player, or no active session: the caller must start a new game."""

    code = "validation_error"


class InvalidCommandError(GameError):
    code = "invalid_command"

    def __init__(self, command: str):
        super().__init__(
            f'Unknown command "{command}". Type "help" for available commands.',
            hint="help",
        )
        self.command = command


class BlockedByEnemyError(GameError):
    code = "blocked_by_enemy"

    def __init__(self, enemy_name: str):
        super().__init__(f"The {enemy_name} blocks your way! Fight or flee.", enemy=enemy_name)


class ItemNotFoundError(GameError):
    code = "item_not_found"


class PersistenceError(GameError):
    """Write to the store failed; the action was applied in memory but not committed."""

    code = "persistence_error"

    def __init__(self, message: str = "The lattice failed to save your progress. Try again."):
        super().__init__(message, retry=True)


__all__ = [
    "GameError",
    "ValidationError",
    "InvalidCommandError",
    "BlockedByEnemyError",
    "ItemNotFoundError",
    "PersistenceError",
]

# Model package init
from .models import GameConfig, GameSession, Player  # noqa: F401 re-export
from .state import AdventureSession, Character  # noqa: F401 re-export

__all__ = [
    "AdventureSession",
    "Character",
    "GameConfig",
    "GameSession",
    "Player",
]

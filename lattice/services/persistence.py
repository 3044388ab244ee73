"""Keyed store for players and game sessions.

`GameStore` is the only code that reads or writes `Player` / `GameSession`
rows. It converts between ORM rows and the in-memory records the engine works
on (`Character`, `AdventureSession`), serializing inventory and the dungeon as
JSON documents.

Write semantics:
    - A failed commit is rolled back and re-raised as `PersistenceError`; the
      caller's in-memory objects are left as they were.
    - Writing an action for a session whose row has been deleted or
      deactivated in the meantime is dropped silently (logged as
      ``session_dropped``); last writer wins for a single-player game.
"""

from __future__ import annotations

import json
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from lattice import db
from lattice.dungeon import Dungeon
from lattice.errors import PersistenceError
from lattice.logging_utils import get_logger
from lattice.models.models import GameSession, Player
from lattice.models.state import AdventureSession, Character

log = get_logger("lattice.store")


def new_session_id() -> str:
    return uuid.uuid4().hex


def _load_list(raw) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []


def character_from_row(row: Player) -> Character:
    return Character(
        username=row.username,
        current_location=row.current_location,
        health=row.health,
        max_health=row.max_health,
        attack=row.attack,
        level=row.level,
        experience=row.experience,
        kills=row.kills,
        inventory=[str(i) for i in _load_list(row.inventory)],
        active_session_id=row.active_session_id,
        owner_ref=row.owner_ref,
    )


def session_from_row(row: GameSession) -> AdventureSession:
    dungeon = Dungeon.from_dict(json.loads(row.dungeon_json))
    return AdventureSession(
        id=row.id,
        username=row.username,
        dungeon=dungeon,
        visited_room_ids=[str(i) for i in _load_list(row.visited_json)],
        active=bool(row.active),
    )


def _apply_character(row: Player, character: Character) -> None:
    row.current_location = character.current_location
    row.health = character.health
    row.max_health = character.max_health
    row.attack = character.attack
    row.level = character.level
    row.experience = character.experience
    row.kills = character.kills
    row.inventory = json.dumps(list(character.inventory))
    row.active_session_id = character.active_session_id
    if character.owner_ref is not None:
        row.owner_ref = character.owner_ref


def _apply_session(row: GameSession, session: AdventureSession) -> None:
    row.seed = session.seed
    row.floor_number = session.floor_number
    row.dungeon_json = json.dumps(session.dungeon.to_dict(), separators=(",", ":"))
    row.visited_json = json.dumps(list(session.visited_room_ids))
    row.active = bool(session.active)


class GameStore:
    """Read/write-by-key access to the player and session documents."""

    def load_character(self, username: str) -> Optional[Character]:
        row = Player.query.filter_by(username=username).first()
        return character_from_row(row) if row else None

    def load_session(self, session_id: Optional[str]) -> Optional[AdventureSession]:
        if not session_id:
            return None
        row = db.session.get(GameSession, session_id, populate_existing=True)
        return session_from_row(row) if row else None

    def begin_game(self, character: Character, session: AdventureSession) -> None:
        """Write a brand-new session and point the player at it.

        Any other active session of the same player is deactivated in the
        same commit.
        """
        try:
            stale = GameSession.query.filter_by(username=character.username, active=True).all()
            for old in stale:
                if old.id != session.id:
                    old.active = False
            row = GameSession(id=session.id, username=session.username, dungeon_json="{}")
            _apply_session(row, session)
            db.session.add(row)
            player = Player.query.filter_by(username=character.username).first()
            if player is None:
                player = Player(username=character.username, owner_ref=character.owner_ref)
                db.session.add(player)
            _apply_character(player, character)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            log.error(event="persist_failed", op="begin_game", username=character.username, error=type(exc).__name__)
            raise PersistenceError() from exc
        log.debug(event="session_written", session=session.id, username=character.username)

    def commit_action(self, character: Character, session: AdventureSession) -> bool:
        """Write back the result of one action.

        Returns False (and writes nothing) when the session row vanished or
        was deactivated since it was loaded.
        """
        try:
            row = db.session.get(GameSession, session.id, populate_existing=True)
            if row is None or not row.active:
                db.session.rollback()
                log.info(event="session_dropped", session=session.id, username=character.username)
                return False
            player = Player.query.filter_by(username=character.username).first()
            if player is None:
                db.session.rollback()
                log.info(event="session_dropped", session=session.id, username=character.username, reason="no_player")
                return False
            _apply_session(row, session)
            _apply_character(player, character)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            log.error(event="persist_failed", op="commit_action", username=character.username, error=type(exc).__name__)
            raise PersistenceError() from exc
        return True


__all__ = ["GameStore", "character_from_row", "session_from_row", "new_session_id"]

"""Game orchestration: the two operations the rest of the system calls.

    start_game(username, owner_ref=None) -> {"player", "room", "message"}
    perform_action(username, command, target="") -> ActionResult(response, player)

Both run a read-modify-write cycle against `GameStore` under a per-player
lock, so two concurrent commands from one player can never interleave (no
double damage, no double loot). Different players never contend.

`perform_action` never raises for game-rule problems: every `GameError`
becomes a structured ``{"error": true, ...}`` response. `start_game` raises
`GameError` subclasses and leaves the conversion to the transport layer.
Failed or undecodable store reads are reported the same way, as
``persistence_error`` or ``validation_error``.
"""

from __future__ import annotations

import random
import threading
import weakref
from typing import Any, Dict, NamedTuple, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from lattice import db
from lattice.dungeon import generate_dungeon
from lattice.errors import GameError, PersistenceError, ValidationError
from lattice.logging_utils import get_logger
from lattice.models.models import GameConfig
from lattice.models.state import AdventureSession, Character

from .action_service import dispatch, parse_command, room_view
from .narrative_service import Narrator, build_provider
from .persistence import GameStore, new_session_id

log = get_logger("lattice.game")

SEED_MAX = 2**31 - 2
MAX_USERNAME = 80

# Per-player locks, created lazily and dropped once no caller holds a reference.
# The registry itself is guarded.
_player_locks = weakref.WeakValueDictionary()
_player_locks_guard = threading.Lock()


class ActionResult(NamedTuple):
    response: Dict[str, Any]
    player: Optional[Dict[str, Any]]


def player_lock(username: str) -> threading.Lock:
    with _player_locks_guard:
        lock = _player_locks.get(username)
        if lock is None:
            lock = threading.Lock()
            _player_locks[username] = lock
        return lock


def _config_value(key: str, app_key: str, cast):
    try:
        raw = GameConfig.get(key)
    except SQLAlchemyError:  # table missing on a fresh database
        db.session.rollback()
        raw = None
    if raw is not None:
        try:
            return cast(raw)
        except (TypeError, ValueError):
            log.warn(event="bad_config", key=key, value=raw)
    return cast(current_app.config[app_key])


def max_floor() -> int:
    return max(1, _config_value("max_floor", "LATTICE_MAX_FLOOR", int))


def default_narrator() -> Narrator:
    timeout = _config_value("narrative_timeout", "NARRATIVE_TIMEOUT", float)
    return Narrator(build_provider(current_app.config), timeout=timeout)


def _clean_username(username) -> str:
    name = (username or "").strip() if isinstance(username, str) else ""
    if not name:
        raise ValidationError("A username is required.")
    if len(name) > MAX_USERNAME:
        raise ValidationError(f"Usernames are limited to {MAX_USERNAME} characters.")
    return name


def _read(load, key, username: str):
    """Run one store read; storage and decode failures become `GameError`s."""
    try:
        return load(key)
    except SQLAlchemyError as exc:
        db.session.rollback()
        log.error(event="persist_failed", op=getattr(load, "__name__", "load"), username=username, error=type(exc).__name__)
        raise PersistenceError() from exc
    except (ValueError, KeyError, TypeError) as exc:
        log.warn(event="game_unreadable", username=username, error=type(exc).__name__)
        raise ValidationError("Your saved game could not be read. Start a new game to continue.") from exc


def start_game(username: str, owner_ref: Optional[str] = None, rng=None, store: Optional[GameStore] = None):
    """Start a fresh game for ``username`` on a new random seed.

    Creates the player on first use. Level, experience, kills and inventory
    carry over; location and health are reset. Any previous active session is
    deactivated.
    """
    username = _clean_username(username)
    rng = rng or random
    store = store or GameStore()
    with player_lock(username):
        character = _read(store.load_character, username, username)
        created = character is None
        if created:
            character = Character(username=username, owner_ref=owner_ref)
        elif owner_ref:
            character.owner_ref = owner_ref

        seed = rng.randint(1, SEED_MAX)
        floors = max_floor()
        dungeon = generate_dungeon(seed, 1, floors)
        session = AdventureSession(id=new_session_id(), username=username, dungeon=dungeon)
        entrance = dungeon.entrance
        session.mark_visited(entrance.id)

        character.current_location = entrance.id
        character.health = character.max_health
        character.active_session_id = session.id
        store.begin_game(character, session)

    log.info(
        event="game_start",
        username=username,
        session=session.id,
        seed=seed,
        rooms=len(dungeon),
        new_player=created,
    )
    welcome = "Welcome to THE LATTICE." if created else f"Welcome back, {username}. A new lattice has been generated."
    return {
        "player": character.to_dict(),
        "room": room_view(entrance, session),
        "message": welcome,
    }


def perform_action(
    username: str,
    command: str,
    target: str = "",
    rng=None,
    narrator: Optional[Narrator] = None,
    store: Optional[GameStore] = None,
) -> ActionResult:
    """Run one command for ``username`` and persist the result when it changed state."""
    store = store or GameStore()
    try:
        username = _clean_username(username)
    except ValidationError as exc:
        return ActionResult(exc.to_response(), None)

    with player_lock(username):
        try:
            character = _read(store.load_character, username, username)
        except GameError as exc:
            return ActionResult(exc.to_response(), None)
        if character is None:
            err = ValidationError(f'No player named "{username}". Start a new game first.')
            return ActionResult(err.to_response(), None)
        try:
            session = _read(store.load_session, character.active_session_id, username)
        except GameError as exc:
            return ActionResult(exc.to_response(), character.to_dict())
        if session is None or not session.active:
            err = ValidationError("No active game. Start a new game to continue.")
            return ActionResult(err.to_response(), character.to_dict())

        before = character.to_dict()
        verb, _ = parse_command(command, target)
        try:
            outcome = dispatch(
                session,
                character,
                command,
                target,
                narrator=narrator or default_narrator(),
                rng=rng,
                max_floor=max_floor(),
            )
        except GameError as exc:
            log.debug(event="action_rejected", username=username, command=verb, code=exc.code)
            return ActionResult(exc.to_response(), before)

        if outcome.dirty:
            try:
                store.commit_action(character, session)
            except PersistenceError as exc:
                return ActionResult(exc.to_response(), before)

    log.info(
        event="action",
        username=username,
        command=verb,
        type=outcome.payload.get("type"),
        dirty=outcome.dirty,
    )
    return ActionResult(outcome.payload, character.to_dict())


def get_player(username: str, store: Optional[GameStore] = None) -> Optional[Dict[str, Any]]:
    store = store or GameStore()
    character = store.load_character((username or "").strip())
    return character.to_dict() if character else None


__all__ = ["ActionResult", "start_game", "perform_action", "get_player", "player_lock", "max_floor"]

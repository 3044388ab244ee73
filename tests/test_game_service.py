"""start_game / perform_action against the real store."""

import gc

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from lattice import db
from lattice.dungeon import catalog
from lattice.errors import PersistenceError, ValidationError
from lattice.models.models import GameConfig, GameSession, Player
from lattice.services import game_service
from lattice.services.persistence import GameStore
from tests.factories import edit_game, make_enemy, unique_name


def _neighbour_with_enemy(hp=20, attack=5, xp=10, experience=None):
    def fn(hero, session):
        entrance = session.dungeon.entrance
        target = session.dungeon.room(sorted(entrance.connections.values())[0])
        target.enemy = make_enemy(hp=hp, attack=attack, defense=0, xp=xp)
        target.npc = None
        session.mark_visited(target.id)
        hero.current_location = target.id
        if experience is not None:
            hero.experience = experience
            hero.level = experience // 100 + 1

    return fn


@pytest.mark.db_isolation
def test_alice_end_to_end(scripted_rng):
    started = game_service.start_game("alice", None)
    room = started["room"]
    assert room["isEntrance"]
    assert room["enemy"] is None
    assert any(catalog.item(i).type == catalog.CONSUMABLE for i in room["itemIds"])
    player = started["player"]
    assert (player["health"], player["max_health"], player["attack"], player["level"]) == (100, 100, 10, 1)
    assert player["experience"] == 0 and player["inventory"] == []

    result = game_service.perform_action("alice", "fight")
    assert result.response["message"] == "There is nothing to fight here."
    assert result.player == player

    edit_game("alice", _neighbour_with_enemy(hp=20, xp=10, experience=95))
    rng = scripted_rng()
    first = game_service.perform_action("alice", "fight", rng=rng)
    assert not first.response["killed"]
    assert first.response["enemy"]["hp"] == 10
    second = game_service.perform_action("alice", "fight", rng=rng)
    assert second.response["killed"]
    assert second.player["experience"] == 105
    assert second.player["level"] == 2
    assert second.player["max_health"] == 110
    assert second.player["attack"] == 12

    store = GameStore()
    hero = store.load_character("alice")
    session = store.load_session(hero.active_session_id)
    assert session.dungeon.room(hero.current_location).enemy.alive is False
    assert hero.kills == 1


def test_restart_keeps_progress_and_resets_position():
    name = unique_name("carry")
    first = game_service.start_game(name)

    def veteran(hero, session):
        hero.experience, hero.level, hero.health = 250, 3, 7
        hero.inventory.append("stim_pack")

    edit_game(name, veteran)
    second = game_service.start_game(name, owner_ref="agent-7")
    player = second["player"]
    assert player["experience"] == 250 and player["level"] == 3
    assert player["inventory"] == ["stim_pack"]
    assert player["health"] == player["max_health"]
    assert player["current_location"] == second["room"]["id"]
    assert player["active_session_id"] != first["player"]["active_session_id"]

    old = db.session.get(GameSession, first["player"]["active_session_id"])
    assert old.active is False
    assert GameSession.query.filter_by(username=name, active=True).count() == 1
    assert Player.query.filter_by(username=name).first().owner_ref == "agent-7"


def test_fresh_seed_per_start(scripted_rng):
    name = unique_name("seed")
    game_service.start_game(name, rng=scripted_rng(ints=[111]))
    game_service.start_game(name, rng=scripted_rng(ints=[222]))
    seeds = sorted(s.seed for s in GameSession.query.filter_by(username=name).all())
    assert seeds == [111, 222]


def test_start_requires_username():
    with pytest.raises(ValidationError):
        game_service.start_game("   ")


def test_unknown_player_and_bad_command():
    missing = game_service.perform_action(unique_name("ghost"), "look")
    assert missing.response["code"] == "validation_error"
    assert missing.player is None

    name = unique_name("typo")
    started = game_service.start_game(name)
    bad = game_service.perform_action(name, "xyzzy")
    assert bad.response["error"] is True
    assert bad.response["code"] == "invalid_command"
    assert bad.player == started["player"]


def test_blocked_action_is_a_structured_response():
    name = unique_name("blocked")
    game_service.start_game(name)
    edit_game(name, _neighbour_with_enemy())
    before = GameStore().load_character(name).to_dict()
    result = game_service.perform_action(name, "talk")
    assert result.response["code"] == "blocked_by_enemy"
    assert result.player == before


def test_take_is_persisted():
    name = unique_name("loot")
    game_service.start_game(name)
    result = game_service.perform_action(name, "take", "patch kit")
    assert result.player["inventory"] == ["patch_kit"]
    assert GameStore().load_character(name).inventory == ["patch_kit"]


def test_commit_failure_returns_retry_and_keeps_store(monkeypatch):
    name = unique_name("flaky")
    started = game_service.start_game(name)

    def boom():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db.session(), "commit", boom)
    result = game_service.perform_action(name, "take", "patch_kit")
    monkeypatch.undo()
    assert result.response["code"] == "persistence_error"
    assert result.response["retry"] is True
    assert result.player == started["player"]
    assert GameStore().load_character(name).inventory == []


class _VanishingStore(GameStore):
    """Deletes the session row right after loading it."""

    def load_session(self, session_id):
        session = super().load_session(session_id)
        db.session.delete(db.session.get(GameSession, session_id))
        db.session.commit()
        return session


def test_vanished_session_write_is_dropped():
    name = unique_name("vanish")
    game_service.start_game(name)
    result = game_service.perform_action(name, "take", "patch_kit", store=_VanishingStore())
    assert result.response["type"] == "take"
    assert GameStore().load_character(name).inventory == []
    follow_up = game_service.perform_action(name, "look")
    assert follow_up.response["code"] == "validation_error"


def test_action_runs_under_player_lock(monkeypatch):
    name = unique_name("locked")
    game_service.start_game(name)
    seen = {}
    real_dispatch = game_service.dispatch

    def spy(*args, **kwargs):
        seen["locked"] = game_service.player_lock(name).locked()
        return real_dispatch(*args, **kwargs)

    monkeypatch.setattr(game_service, "dispatch", spy)
    game_service.perform_action(name, "look")
    assert seen["locked"] is True
    assert not game_service.player_lock(name).locked()
    assert game_service.player_lock(name) is game_service.player_lock(name)
    assert game_service.player_lock(name) is not game_service.player_lock(name + "_other")


def test_max_floor_override_ends_game_in_victory():
    name = unique_name("victor")
    game_service.start_game(name)
    GameConfig.set("max_floor", "1")
    try:

        def to_exit(hero, session):
            exit_room = session.dungeon.exit
            exit_room.enemy = None
            hero.current_location = exit_room.id

        edit_game(name, to_exit)
        result = game_service.perform_action(name, "descend")
        assert result.response["type"] == "victory"
        after = game_service.perform_action(name, "look")
        assert after.response["code"] == "validation_error"
    finally:
        row = GameConfig.query.filter_by(key="max_floor").first()
        db.session.delete(row)
        db.session.commit()


def test_descend_persists_new_floor():
    name = unique_name("diver")
    game_service.start_game(name)

    def to_exit(hero, session):
        exit_room = session.dungeon.exit
        exit_room.enemy = None
        hero.current_location = exit_room.id

    edit_game(name, to_exit)
    result = game_service.perform_action(name, "descend")
    assert result.response["floor"] == 2
    hero = GameStore().load_character(name)
    session = GameStore().load_session(hero.active_session_id)
    assert session.floor_number == 2
    assert hero.current_location == session.dungeon.entrance.id


def test_persistence_error_type_is_reported_directly(monkeypatch):
    name = unique_name("direct")
    game_service.start_game(name)

    def fail(self, character, session):
        raise PersistenceError()

    monkeypatch.setattr(GameStore, "commit_action", fail)
    result = game_service.perform_action(name, "take", "patch_kit")
    assert result.response["retry"] is True


class _LockedReadStore(GameStore):
    """Session reads fail the way SQLite does under write contention."""

    def load_session(self, session_id):
        raise OperationalError("SELECT game_session", {}, Exception("database is locked"))


def test_failed_session_read_is_a_retryable_response():
    name = unique_name("reader")
    started = game_service.start_game(name)
    result = game_service.perform_action(name, "look", store=_LockedReadStore())
    assert result.response["code"] == "persistence_error"
    assert result.response["retry"] is True
    assert result.player == started["player"]
    assert game_service.perform_action(name, "look").response["type"] == "look"


class _LockedPlayerStore(GameStore):
    def load_character(self, username):
        raise OperationalError("SELECT player", {}, Exception("database is locked"))


def test_failed_player_read_in_start_and_action():
    name = unique_name("reader")
    result = game_service.perform_action(name, "look", store=_LockedPlayerStore())
    assert result.response["code"] == "persistence_error"
    assert result.player is None
    with pytest.raises(PersistenceError):
        game_service.start_game(name, store=_LockedPlayerStore())


def test_damaged_session_document_asks_for_a_new_game():
    name = unique_name("damaged")
    started = game_service.start_game(name)
    row = db.session.get(GameSession, started["player"]["active_session_id"])
    row.dungeon_json = "{not json"
    db.session.commit()

    result = game_service.perform_action(name, "look")
    assert result.response["code"] == "validation_error"
    assert "new game" in result.response["message"]
    assert result.player["username"] == name

    game_service.start_game(name)
    assert game_service.perform_action(name, "look").response["type"] == "look"


def test_idle_player_locks_are_released():
    name = unique_name("idle")
    lock = game_service.player_lock(name)
    assert game_service._player_locks.get(name) is lock
    del lock
    gc.collect()
    assert name not in game_service._player_locks
    game_service.perform_action(name, "look")
    gc.collect()
    assert name not in game_service._player_locks

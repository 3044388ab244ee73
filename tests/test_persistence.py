import pytest
from sqlalchemy.exc import SQLAlchemyError

from lattice import db
from lattice.errors import PersistenceError
from lattice.models.models import GameSession, Player
from lattice.services.persistence import GameStore, new_session_id
from tests.factories import make_character, make_dungeon, make_enemy, make_session, unique_name


def _begin(name, **overrides):
    store = GameStore()
    hero = make_character(name, **overrides)
    session = make_session(make_dungeon(), name, session_id=new_session_id())
    hero.active_session_id = session.id
    store.begin_game(hero, session)
    return store, hero, session


def test_begin_game_round_trip():
    name = unique_name("store")
    store, hero, session = _begin(name, inventory=["stim_pack"], owner_ref="agent-1")
    session.dungeon.room("room_1").enemy = make_enemy(hp=7)
    session.mark_visited("room_1")
    assert store.commit_action(hero, session)

    loaded_hero = store.load_character(name)
    assert loaded_hero.to_dict() == hero.to_dict()
    loaded = store.load_session(session.id)
    assert loaded.visited_room_ids == ["room_0", "room_1"]
    assert loaded.dungeon.room("room_1").enemy.hp == 7
    assert loaded.dungeon.to_dict() == session.dungeon.to_dict()
    assert Player.query.filter_by(username=name).first().owner_ref == "agent-1"


def test_missing_keys_load_as_none():
    store = GameStore()
    assert store.load_character(unique_name("nobody")) is None
    assert store.load_session(None) is None
    assert store.load_session("0" * 32) is None


def test_begin_game_deactivates_previous_session():
    name = unique_name("store")
    _, _, first = _begin(name)
    _, _, second = _begin(name)
    assert db.session.get(GameSession, first.id).active is False
    assert db.session.get(GameSession, second.id).active is True


@pytest.mark.parametrize("how", ["deleted", "inactive"])
def test_commit_for_gone_session_is_dropped(how):
    name = unique_name("store")
    store, hero, session = _begin(name)
    row = db.session.get(GameSession, session.id)
    if how == "deleted":
        db.session.delete(row)
    else:
        row.active = False
    db.session.commit()

    hero.experience = 999
    assert store.commit_action(hero, session) is False
    assert store.load_character(name).experience == 0


def test_commit_error_rolls_back(monkeypatch):
    name = unique_name("store")
    store, hero, session = _begin(name)

    def boom():
        raise SQLAlchemyError("locked")

    monkeypatch.setattr(db.session(), "commit", boom)
    hero.kills = 3
    with pytest.raises(PersistenceError) as exc:
        store.commit_action(hero, session)
    monkeypatch.undo()
    assert exc.value.to_response()["retry"] is True
    assert store.load_character(name).kills == 0

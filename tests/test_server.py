import logging

from lattice import app
from lattice.server import _configure_logging, _render, describe_dungeon, play_shell
from tests.factories import unique_name


def test_configure_logging_is_idempotent(tmp_path, monkeypatch):
    monkeypatch.setattr(app, "instance_path", str(tmp_path))
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        _configure_logging()
        path = _configure_logging()
        assert path == str(tmp_path / "app.log")
        assert len(root.handlers) == 2
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
    assert (tmp_path / "app.log").exists()


def test_describe_dungeon_reports_structure():
    summary = describe_dungeon(12345, 1, 5)
    assert summary["ok"] is True
    assert summary["unreachable_rooms"] == []
    entrances = [r for r in summary["rooms"] if r["entrance"]]
    exits = [r for r in summary["rooms"] if r["exit"]]
    assert len(entrances) == 1 and len(exits) == 1
    assert entrances[0]["enemy"] is None
    assert describe_dungeon(12345, 1, 5) == summary


def test_render_room_payload():
    text = _render(
        {
            "message": "You move north.",
            "location": {
                "name": "Cache Ruins",
                "description": "Broken sectors.",
                "enemy": {"name": "Glitch", "hp": 4, "maxHp": 9, "attack": 3, "alive": True},
                "npc": None,
                "exits": ["south"],
                "items": ["Patch Kit"],
            },
        }
    )
    lines = text.splitlines()
    assert lines[0] == "You move north."
    assert "[Cache Ruins] Broken sectors." in lines
    assert "  ! Glitch HP 4/9 ATK 3" in lines
    assert "  Exits: south" in lines
    assert "  Items: Patch Kit" in lines


def test_play_shell_scripted():
    script = iter(["", "look", "take patch kit", "quit", "never reached"])
    out = []
    code = play_shell(unique_name("shell"), input_fn=lambda prompt: next(script), output_fn=out.append)
    assert code == 0
    assert "Exits:" in out[0]
    assert len(out) == 3
    assert "Patch Kit" in out[2]
    assert next(script) == "never reached"


def test_play_shell_stops_on_eof():
    def eof(prompt):
        raise EOFError

    out = []
    assert play_shell(unique_name("shell"), input_fn=eof, output_fn=out.append) == 0
    assert len(out) == 1

"""
project: The Lattice
module: server.py
License: MIT

Server bootstrap and local operator utilities.

Exposes helpers to start the Socket.IO server, a local play shell that drives
the game service directly (no network), and a floor diagnostic that prints a
generated dungeon for a given seed.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from lattice import app, db, socketio
from lattice.dungeon import DIRECTIONS, generate_dungeon, unreachable_room_ids
from lattice.dungeon import catalog


def start_server(host="0.0.0.0", port=5000, debug: bool = False):  # pragma: no cover (integration / runtime only)
    """Start the Socket.IO server and ensure DB tables exist.

    When debug=True, Flask's debugger and reloader provide verbose tracebacks.
    Also configures application logging to a rotating file and console.
    """
    from lattice.models import models as _models  # noqa: F401 - register tables

    with app.app_context():
        db.create_all()
        _configure_logging()
    try:
        print(f"[INFO] Starting Socket.IO server on {host}:{port} (async_mode={socketio.async_mode})")
        # Let Flask-SocketIO choose appropriate server (eventlet/gevent/werkzeug)
        socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
        sys.exit(0)


def _configure_logging():
    """Configure logging to both console and a rotating file in instance/.

    The file path will be instance/app.log. Retains a few backups to avoid growth.
    """
    log_dir = app.instance_path
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError:
        pass
    log_path = os.path.join(log_dir, "app.log")

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    # Avoid duplicate handlers if reconfigured
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(file_handler)
    root.addHandler(console)
    return log_path


def describe_dungeon(seed: int, floor_number: int = 1, max_floor: int = 5) -> dict:
    """Structural summary of one generated floor (used by `run.py dungeon`)."""
    dungeon = generate_dungeon(seed, floor_number, max_floor)
    rooms = []
    for room in dungeon:
        rooms.append(
            {
                "id": room.id,
                "name": room.name,
                "difficulty": room.difficulty,
                "connections": {d: room.connections[d] for d in DIRECTIONS if d in room.connections},
                "enemy": room.enemy.name if room.enemy else None,
                "npc": room.npc.name if room.npc else None,
                "items": [catalog.item_name(i) for i in room.items],
                "entrance": room.is_entrance,
                "exit": room.is_exit,
            }
        )
    unreachable = unreachable_room_ids(dungeon)
    return {
        "seed": seed,
        "floor": floor_number,
        "room_count": len(dungeon),
        "rooms": rooms,
        "unreachable_rooms": unreachable,
        "ok": not unreachable,
    }


def _render(payload: dict) -> str:
    lines = []
    if payload.get("message"):
        lines.append(payload["message"])
    for cmd in payload.get("commands") or []:
        lines.append(f"  {cmd}")
    room = payload.get("location") or payload.get("room")
    if room:
        lines.append(f"[{room['name']}] {room['description']}")
        if room.get("enemy") and room["enemy"].get("alive"):
            e = room["enemy"]
            lines.append(f"  ! {e['name']} HP {e['hp']}/{e['maxHp']} ATK {e['attack']}")
        if room.get("npc"):
            lines.append(f"  * {room['npc']['name']} is here.")
        if room.get("exits"):
            lines.append("  Exits: " + ", ".join(room["exits"]))
        if room.get("items"):
            lines.append("  Items: " + ", ".join(room["items"]))
    return "\n".join(lines)


def play_shell(username: str, input_fn=input, output_fn=print) -> int:
    """Local text loop against the game service. Type 'quit' to leave.

    ``input_fn`` / ``output_fn`` are injectable so the loop can be scripted.
    """
    from lattice.errors import GameError
    from lattice.services import game_service

    try:
        started = game_service.start_game(username)
    except GameError as exc:
        output_fn(f"[ERROR] {exc.message}")
        return 1
    output_fn(_render(started))
    while True:
        try:
            raw = input_fn("> ")
        except EOFError:
            break
        raw = (raw or "").strip()
        if not raw:
            continue
        if raw.lower() in ("quit", "exit"):
            break
        result = game_service.perform_action(username, raw)
        output_fn(_render(result.response))
        if result.response.get("type") == "victory":
            break
    return 0


def start_play_shell(username: str) -> int:  # pragma: no cover (interactive)
    """Initialize application context and start the play loop."""
    from lattice import create_app

    application = create_app()
    with application.app_context():
        return play_shell(username)

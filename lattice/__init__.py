"""
project: The Lattice
module: __init__.py
License: MIT

Flask application factory and core extensions setup.

This module wires together the Flask app, SQLAlchemy and Flask-SocketIO.
Configuration is sourced from environment variables with reasonable defaults
for development. A local `instance/` directory is used for SQLite and other
runtime data.
"""

import logging
import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

# Load .env if present so `SECRET_KEY`, `DATABASE_URL`, `OPENAI_API_KEY`, etc.
# can be supplied without exporting shell variables during development.
load_dotenv()

app = Flask(__name__, instance_relative_config=True)

try:
    os.makedirs(app.instance_path, exist_ok=True)
except OSError:
    # Read-only deployments supply DATABASE_URL explicitly
    pass

secret_key = os.getenv("SECRET_KEY", "dev-secret-change-me")
database_url = os.getenv("DATABASE_URL")

if not database_url:
    is_pytest = bool(os.getenv("PYTEST_CURRENT_TEST"))
    db_filename = "lattice_test.db" if is_pytest else "lattice.db"
    db_path = Path(app.instance_path) / db_filename
    database_url = f"sqlite:///{db_path.as_posix()}"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default) in ("1", "true", "TRUE", "yes", "on")


app.config.update(
    SECRET_KEY=secret_key,
    SQLALCHEMY_DATABASE_URI=database_url,
    SQLALCHEMY_TRACK_MODIFICATIONS=False,
    # Adventure tunables (GameConfig rows override at runtime)
    LATTICE_MAX_FLOOR=int(os.getenv("LATTICE_MAX_FLOOR", "5")),
    # Text-completion collaborator used for room/NPC flavour text
    NARRATIVE_ENABLED=_env_flag("NARRATIVE_ENABLED", "1"),
    OPENAI_API_KEY=os.getenv("OPENAI_API_KEY"),
    NARRATIVE_MODEL=os.getenv("NARRATIVE_MODEL", "gpt-4o-mini"),
    NARRATIVE_API_URL=os.getenv("NARRATIVE_API_URL", "https://api.openai.com/v1/chat/completions"),
    NARRATIVE_TIMEOUT=float(os.getenv("NARRATIVE_TIMEOUT", "4")),
)

engine_opts = {}
if database_url.startswith("sqlite:///"):
    engine_opts["connect_args"] = {
        "timeout": 10,  # busy timeout (seconds) for sqlite
        "check_same_thread": False,  # socketio handlers and the test harness share the engine
    }
db = SQLAlchemy(app, session_options={"expire_on_commit": False}, engine_options=engine_opts)

# Let Flask-SocketIO select best async_mode based on installed deps (eventlet/gevent/threading)
socketio = SocketIO(
    app,
    async_mode=os.getenv("SOCKETIO_ASYNC_MODE") or None,
    cors_allowed_origins=os.getenv("CORS_ALLOWED_ORIGINS", "*"),
    engineio_logger=_env_flag("ENGINEIO_LOGGER", "0"),
    ping_interval=20,
    ping_timeout=10,
)

# Apply SQLite pragmatic tuning (WAL + busy timeout) once the engine is created.
try:  # pragma: no cover - lightweight
    from sqlalchemy import event
    from sqlalchemy.engine import Engine

    @event.listens_for(Engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: D401
        if not database_url.startswith("sqlite"):
            return
        try:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=10000")  # 10 seconds
            cursor.close()
        except Exception:
            pass

except ImportError:
    pass


# Register HTTP blueprints (import after app/db created)
from lattice.routes.game_api import bp_game  # noqa: E402

app.register_blueprint(bp_game)

# Import websocket handlers so their event decorators register with Socket.IO (side-effect)
from lattice.websockets import game as _ws_game  # noqa: F401,E402


def create_app():
    """Return the Flask app instance, ensuring tables exist.

    Safe to call repeatedly; `create_all` only creates missing tables.
    """
    from lattice.models import models as _models  # noqa: F401 - register tables

    with app.app_context():
        db.create_all()
    return app


@app.errorhandler(500)
def internal_error(e):
    error_id = uuid.uuid4().hex[:8]
    logging.exception("Unhandled exception (id=%s)", error_id)
    return jsonify({"error": True, "code": "internal", "error_id": error_id}), 500

"""
project: The Lattice
module: models.py
License: MIT

Database models used by the adventure service.

Notes:
- The store is keyed: one `Player` row per username, one `GameSession` row
  per session id. Each row is written as a whole document; no cross-row
  transactions are relied upon.
- Inventory and the dungeon snapshot are stored as JSON text. Game code never
  touches these columns directly; it goes through `lattice.services.persistence`.
"""

import datetime

from lattice import db


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class Player(db.Model):
    """Persistent character, carried across games.

    Attributes:
        username: Unique handle; the store key.
        owner_ref: Optional reference to the owning agent/account.
        current_location: Room id inside the active session's dungeon.
        inventory: JSON string list of item ids.
        active_session_id: Id of the `GameSession` currently being played.
    """

    __tablename__ = "player"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    owner_ref = db.Column(db.String(80), nullable=True)
    current_location = db.Column(db.String(40), nullable=True)
    health = db.Column(db.Integer, nullable=False, default=100)
    max_health = db.Column(db.Integer, nullable=False, default=100)
    attack = db.Column(db.Integer, nullable=False, default=10)
    level = db.Column(db.Integer, nullable=False, default=1)
    experience = db.Column(db.Integer, nullable=False, default=0)
    kills = db.Column(db.Integer, nullable=False, default=0)
    inventory = db.Column(db.Text, nullable=False, default="[]")
    active_session_id = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<Player {self.username} lvl={self.level}>"


class GameSession(db.Model):
    """One game's live floor traversal.

    `dungeon_json` holds the full serialized room list (mutable fields
    included) so a floor survives process restarts exactly as it was left.
    """

    __tablename__ = "game_session"

    id = db.Column(db.String(32), primary_key=True)
    username = db.Column(db.String(80), nullable=False, index=True)
    seed = db.Column(db.BigInteger, nullable=False)
    floor_number = db.Column(db.Integer, nullable=False, default=1)
    dungeon_json = db.Column(db.Text, nullable=False)
    visited_json = db.Column(db.Text, nullable=False, default="[]")
    active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<GameSession {self.id} user={self.username} floor={self.floor_number}>"


class GameConfig(db.Model):
    """Key/value style game configuration storage.

    Stores tunables that operators may adjust without a redeploy. Values are
    raw strings; callers coerce them.

    Example rows:
        key='max_floor', value='7'
        key='narrative_timeout', value='2.5'
    """

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(80), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=False)

    @staticmethod
    def get(key: str):
        row = GameConfig.query.filter_by(key=key).first()
        return row.value if row else None

    @staticmethod
    def set(key: str, value: str):
        row = GameConfig.query.filter_by(key=key).first()
        if not row:
            row = GameConfig(key=key, value=value)
            db.session.add(row)
        else:
            row.value = value
        db.session.commit()

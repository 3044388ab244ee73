"""Minimal structured logging helper.

Emits key=value pairs (or one JSON object per line) with a timestamp, level
and logger name. Game code logs *events* rather than sentences so the output
can be grepped or shipped to a collector without a parser.

Usage:
    from lattice.logging_utils import get_logger
    log = get_logger("lattice.combat")
    log.info(event="enemy_defeated", username="alice", enemy="Glitch Sprite")

Values that are None are dropped. Reserved keys: level, ts, logger.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("LATTICE_LOG_LEVEL", "info"), 20)
JSON_MODE = os.getenv("LATTICE_LOG_JSON", "0") in ("1", "true", "TRUE", "yes", "on")


def _format(level: str, **fields) -> str:
    if JSON_MODE:
        rec = {k: v for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = int(time.time())
        try:
            return json.dumps(rec, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            return json.dumps({"level": level, "ts": int(time.time()), "error": "json_encode_failed"})
    parts = [f"level={level}", f"ts={int(time.time())}"]
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, (int, float)):
            parts.append(f"{k}={v}")
        else:
            parts.append(f"{k}={str(v).replace(' ', '_')}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None):
        self.name = name or "lattice"

    def _log(self, lvl: str, **fields):
        if LEVELS[lvl] < CURRENT_LEVEL:
            return
        fields.setdefault("logger", self.name)
        stream = sys.stderr if lvl in ("warn", "error") else sys.stdout
        print(_format(lvl, **fields), file=stream)

    def debug(self, **fields):
        self._log("debug", **fields)

    def info(self, **fields):
        self._log("info", **fields)

    def warn(self, **fields):
        self._log("warn", **fields)

    def error(self, **fields):
        self._log("error", **fields)


_LOGGER_CACHE: dict[str, _Logger] = {}


def get_logger(name: str) -> _Logger:
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("lattice")

"""Narrative enhancement (room flavour text and NPC dialogue).

The text-completion service is a collaborator, never an authority: it only
rewrites prose. Every call is bounded by a hard timeout and every failure
(missing key, HTTP error, malformed body, timeout) falls back to fixed text,
so game-state changes never wait on or fail because of it.

Providers implement two methods and may raise anything on failure:

    enhance_room(name, description, difficulty) -> str
    npc_dialogue(npc_name, personality, message, room_name) -> str

`Narrator` wraps a provider with the timeout and the fallbacks; the dispatcher
only talks to a `Narrator`.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Optional

import requests

from lattice.dungeon import Npc, Room, catalog
from lattice.logging_utils import get_logger

log = get_logger("lattice.narrative")

DEFAULT_TIMEOUT = 4.0
MAX_REPLY_CHARS = 600

SYSTEM_PROMPT = (
    "You are the narrator of THE LATTICE, a text adventure inside a decaying 1990s "
    "bulletin-board network. Write terse, atmospheric, second-person prose. Never "
    "mention game mechanics, numbers or commands."
)

# Shared pool so a slow provider cannot hold the request thread past the timeout
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="narrative")


class NarrativeUnavailable(Exception):
    pass


class NarrativeProvider:
    """Base provider: always unavailable, which selects the fallback text."""

    name = "none"
    available = False

    def enhance_room(self, name: str, description: str, difficulty: int) -> str:
        raise NarrativeUnavailable("no narrative provider configured")

    def npc_dialogue(self, npc_name: str, personality: str, message: str, room_name: str) -> str:
        raise NarrativeUnavailable("no narrative provider configured")


class OpenAINarrator(NarrativeProvider):
    """Chat-completions client over plain HTTP."""

    name = "openai"
    available = True

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", url: str | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.api_key = api_key
        self.model = model
        self.url = url or "https://api.openai.com/v1/chat/completions"
        self.timeout = timeout

    def _complete(self, prompt: str, max_tokens: int) -> str:
        response = requests.post(
            self.url,
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            json={
                "model": self.model,
                "max_tokens": max_tokens,
                "temperature": 0.9,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        text = response.json()["choices"][0]["message"]["content"]
        text = (text or "").strip().strip('"')
        if not text:
            raise NarrativeUnavailable("empty completion")
        return text[:MAX_REPLY_CHARS]

    def enhance_room(self, name: str, description: str, difficulty: int) -> str:
        prompt = (
            f'Rewrite this description of the network node "{name}" (danger level {difficulty} of 5) '
            f"in two or three vivid sentences, keeping its meaning:\n\n{description}"
        )
        return self._complete(prompt, max_tokens=120)

    def npc_dialogue(self, npc_name: str, personality: str, message: str, room_name: str) -> str:
        said = message.strip() or "(says nothing)"
        prompt = (
            f"You are {npc_name}, {personality}. You are in {room_name}. "
            f'A visitor says: "{said}". Reply in character in at most two sentences.'
        )
        return self._complete(prompt, max_tokens=90)


def build_provider(config) -> NarrativeProvider:
    """Pick a provider from a Flask-style config mapping."""
    if not config.get("NARRATIVE_ENABLED", True):
        return NarrativeProvider()
    api_key = config.get("OPENAI_API_KEY")
    if not api_key:
        return NarrativeProvider()
    return OpenAINarrator(
        api_key=api_key,
        model=config.get("NARRATIVE_MODEL", "gpt-4o-mini"),
        url=config.get("NARRATIVE_API_URL"),
        timeout=float(config.get("NARRATIVE_TIMEOUT", DEFAULT_TIMEOUT)),
    )


def npc_fallback_line(npc: Npc) -> str:
    tpl = catalog.npc_template(npc.name)
    if tpl is None or not tpl.lines:
        return f"{npc.name} regards you silently."
    spoken = max(0, 3 - npc.talks_remaining - 1)
    return tpl.lines[min(spoken, len(tpl.lines) - 1)]


class Narrator:
    def __init__(self, provider: Optional[NarrativeProvider] = None, timeout: float = DEFAULT_TIMEOUT):
        self.provider = provider or NarrativeProvider()
        self.timeout = timeout

    def _bounded(self, kind: str, fn: Callable[[], str]) -> Optional[str]:
        if not self.provider.available:
            return None
        future = _executor.submit(fn)
        try:
            text = future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            log.warn(event="narrative_fallback", kind=kind, provider=self.provider.name, reason="timeout")
            return None
        except Exception as exc:  # provider failures never reach the player
            log.warn(event="narrative_fallback", kind=kind, provider=self.provider.name, reason=type(exc).__name__)
            return None
        if not isinstance(text, str) or not text.strip():
            log.warn(event="narrative_fallback", kind=kind, provider=self.provider.name, reason="empty")
            return None
        return text.strip()

    def room_description(self, room: Room) -> str:
        """Enhanced description for ``room``, or its template text unchanged."""
        text = self._bounded(
            "room",
            lambda: self.provider.enhance_room(room.name, room.description, room.difficulty),
        )
        return text if text is not None else room.description

    def npc_reply(self, npc: Npc, message: str, room: Room) -> str:
        """Dialogue line for ``npc``; call after ``talks_remaining`` was decremented."""
        text = self._bounded(
            "dialogue",
            lambda: self.provider.npc_dialogue(npc.name, npc.personality, message, room.name),
        )
        return text if text is not None else npc_fallback_line(npc)


__all__ = [
    "Narrator",
    "NarrativeProvider",
    "NarrativeUnavailable",
    "OpenAINarrator",
    "build_provider",
    "npc_fallback_line",
]

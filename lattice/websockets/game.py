"""Socket.IO game handlers.

Events:
    - game_start: Start a fresh game; payload { username, agentId? }
    - game_action: Submit a command; payload { username, action, target? }
    - watch_game: Spectate a player's game; payload { username }
    - unwatch_game: Stop spectating; payload { username }
    - disconnect: Drop the client from every game it was watching

Emits:
    - game_update: Result of a start/action, to the caller and to spectators
    - game_activity: Broadcast when any player starts a game (GAME_START)
    - status: Spectator join/leave notices
    - error: Validation failures and game errors
"""

import time

from flask import request
from flask_socketio import emit, join_room, leave_room

from lattice import socketio
from lattice.errors import GameError
from lattice.logging_utils import log as _log
from lattice.services import game_service

from .validation import GAME_ACTION, GAME_START, UNWATCH_GAME, WATCH_GAME, validate

# Spectated games with membership for admin diagnostics
# Structure: { room_name: { 'members': set([sid,...]), 'created': timestamp } }
active_games = {}


def spectator_room(username: str) -> str:
    return f"game:{username}"


def _invalid(event: str, result: dict):
    emit('error', {'message': f"Invalid {event}: {result['error']}", 'field': result['field'], 'code': result['code']})


def _publish(username: str, payload: dict):
    emit('game_update', payload)
    emit('game_update', payload, to=spectator_room(username), include_self=False)


def _drop_watcher(room: str, sid: str) -> int:
    """Remove ``sid`` from a spectated game; returns the remaining watcher count."""
    info = active_games.get(room)
    if not info:
        return 0
    info['members'].discard(sid)
    if not info['members']:
        active_games.pop(room, None)
        return 0
    return len(info['members'])


@socketio.on('game_start')
def handle_game_start(data):
    ok, result = validate(data or {}, GAME_START)
    if not ok:
        _invalid('game_start', result)
        return
    username = result['username']
    try:
        started = game_service.start_game(username, owner_ref=result.get('agentId'))
    except GameError as exc:
        emit('error', exc.to_response())
        return
    started['location'] = started['room']
    _publish(username, started)
    emit(
        'game_activity',
        {'type': 'GAME_START', 'username': username, 'level': started['player']['level'], 'ts': int(time.time())},
        broadcast=True,
    )


@socketio.on('game_action')
def handle_game_action(data):
    ok, result = validate(data or {}, GAME_ACTION)
    if not ok:
        _invalid('game_action', result)
        return
    username = result['username']
    outcome = game_service.perform_action(username, result['action'], result.get('target', ''))
    payload = dict(outcome.response)
    if outcome.player is not None:
        payload['player'] = outcome.player
    if payload.get('error'):
        emit('error', payload)
        return
    _publish(username, payload)


@socketio.on('watch_game')
def handle_watch_game(data):
    ok, result = validate(data or {}, WATCH_GAME)
    if not ok:
        _invalid('watch_game', result)
        return
    room = spectator_room(result['username'])
    join_room(room)
    info = active_games.setdefault(room, {'members': set(), 'created': time.time()})
    info['members'].add(request.sid)
    emit('status', {'msg': f"Watching {result['username']}.", 'watchers': len(info['members'])})
    _log.info(event="watch_game", room=room, watchers=len(info['members']))


@socketio.on('unwatch_game')
def handle_unwatch_game(data):
    ok, result = validate(data or {}, UNWATCH_GAME)
    if not ok:
        _invalid('unwatch_game', result)
        return
    room = spectator_room(result['username'])
    leave_room(room)
    remaining = _drop_watcher(room, request.sid)
    emit('status', {'msg': f"Stopped watching {result['username']}."})
    _log.info(event="unwatch_game", room=room, remaining=remaining)


@socketio.on('disconnect')
def handle_disconnect():
    sid = request.sid
    for room in [r for r, info in active_games.items() if sid in info['members']]:
        _drop_watcher(room, sid)

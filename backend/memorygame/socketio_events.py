from flask_socketio import join_room, leave_room, emit
from flask import current_app
from memorygame import socketio
from memorygame.services.games.registry import get_registry


def _game_code(data):
    """Upper-cased game code from an event payload, or None if missing or not a string."""
    game_code = data.get('game_code') if isinstance(data, dict) else None
    if not isinstance(game_code, str) or not game_code.strip():
        emit('error', {'message': 'game_code is required'})
        return None
    return game_code.strip().upper()


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_game(data):
    game_code = _game_code(data)
    if game_code is None:
        return
    room = f"game:{game_code}"
    join_room(room)
    emit('joined', {'room': room})
    session = get_registry(current_app).get(game_code)
    if session is not None:
        emit('state', dict(session.snapshot(), game_code=game_code))


def handle_leave_game(data):
    game_code = _game_code(data)
    if game_code is None:
        return
    room = f"game:{game_code}"
    leave_room(room)
    emit('left', {'room': room})


def handle_flip_card(data):
    """Flip a card; resulting events reach the whole room via the registry."""
    game_code = _game_code(data)
    if game_code is None:
        return
    session = get_registry(current_app).get(game_code)
    if session is None:
        emit('error', {'message': 'Game not found'})
        return
    index = data.get('index')
    if isinstance(index, bool) or not isinstance(index, int):
        emit('error', {'message': 'index must be an integer'})
        return
    session.flip(index)


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
        socketio.on_event('flip_card', handle_flip_card, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)

from flask import current_app, request
from flask_socketio import emit

from baghchal import get_sessions, socketio
from baghchal.services.sessions import InvalidInput, SessionError


class SocketIONotifier:
    """Pushes session notifications to a single socket via its sid room."""

    def __init__(self, sio, namespace):
        self.sio = sio
        self.namespace = namespace

    def notify(self, connection_id, event, payload):
        # socketio.emit works outside a request context (sweeper, other sockets)
        self.sio.emit(event, payload, to=connection_id, namespace=self.namespace)


def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]


def _payload(data) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput("Event payload must be a JSON object")
    return data


def _emit_error(err: SessionError) -> None:
    current_app.logger.info(f"[ws-rejected] sid={_get_sid()} kind={err.kind}")
    emit('error', {'kind': err.kind, 'message': err.message})


def _still_connected(sid) -> bool:
    """False when the socket dropped while the handler was running.

    Disconnects are handled inline and can land before this handler has
    bound the sid to its room. In that case the seat is released here.
    """
    namespace = request.namespace  # type: ignore[attr-defined]
    if socketio.server.manager.is_connected(sid, namespace):
        return True
    current_app.logger.info(f"[ws-gone] sid={sid} releasing seat")
    get_sessions().disconnect(sid)
    return False


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to Bagh Chal Game Server'})


def handle_disconnect(*_args):
    try:
        get_sessions().disconnect(_get_sid())
    except SessionError as err:
        current_app.logger.warning(f"[disconnect-failed] sid={_get_sid()} kind={err.kind}")


def handle_create_room(data=None):
    sid = _get_sid()
    try:
        data = _payload(data)
        code = get_sessions().create_room(data.get('roomCode'), data.get('playerName'), connection_id=sid)
        if not _still_connected(sid):
            return
    except SessionError as err:
        _emit_error(err)
        return
    emit('room_created', {'success': True, 'roomCode': code, 'slot': 0})


def handle_join_room(data=None):
    sid = _get_sid()
    try:
        data = _payload(data)
        code = data.get('roomCode')
        slot = get_sessions().join_room(code, data.get('playerName'), connection_id=sid)
        if not _still_connected(sid):
            return
    except SessionError as err:
        _emit_error(err)
        return
    emit('room_joined', {'success': True, 'roomCode': code, 'slot': slot})


def handle_room_exists(data=None):
    try:
        code = _payload(data).get('roomCode')
        exists = get_sessions().room_exists(code)
    except SessionError as err:
        _emit_error(err)
        return
    emit('room_exists', {'exists': exists, 'roomCode': code})


def handle_get_state(data=None):
    try:
        room = get_sessions().get_room(_payload(data).get('roomCode'))
    except SessionError as err:
        _emit_error(err)
        return
    emit('game_state', {'success': True, **room.to_dict()})


def handle_make_move(data=None):
    try:
        data = _payload(data)
        code = data.get('roomCode')
        get_sessions().update_state(code, data.get('gameState'), connection_id=_get_sid())
    except SessionError as err:
        _emit_error(err)
        return
    emit('move_accepted', {'success': True, 'roomCode': code})


def handle_leave_room(data=None):
    try:
        code = _payload(data).get('roomCode')
        get_sessions().leave_room(code, connection_id=_get_sid())
    except SessionError as err:
        _emit_error(err)
        return
    emit('left', {'roomCode': code})


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = "/ws") -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'create_room': handle_create_room,
        'join_room': handle_join_room,
        'room_exists': handle_room_exists,
        'get_state': handle_get_state,
        'make_move': handle_make_move,
        'leave_room': handle_leave_room,
        'ping': handle_ping,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace=namespace)

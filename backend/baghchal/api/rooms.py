"""Pull transport: plain JSON endpoints, clients poll /game-state for moves."""
from flask import Blueprint, jsonify, request, current_app

from baghchal import get_sessions
from baghchal.services.sessions import InvalidInput, SessionError

rooms = Blueprint('rooms', __name__)


@rooms.errorhandler(SessionError)
def handle_session_error(err):
    current_app.logger.info(f"[rejected] {request.method} {request.path} kind={err.kind}")
    return jsonify(err.to_dict()), err.status_code


def _body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


@rooms.route('/create-room', methods=['POST'])
def create_room():
    data = _body()
    code = get_sessions().create_room(data.get('roomCode'), data.get('playerName'))
    return jsonify({'success': True, 'roomCode': code})


@rooms.route('/room-exists/<string:room_code>', methods=['GET'])
def room_exists(room_code):
    exists = get_sessions().room_exists(room_code)
    return jsonify({'exists': exists, 'roomCode': room_code})


@rooms.route('/join-room', methods=['POST'])
def join_room():
    data = _body()
    code = data.get('roomCode')
    slot = get_sessions().join_room(code, data.get('playerName'))
    return jsonify({'success': True, 'roomCode': code, 'slot': slot})


@rooms.route('/game-state/<string:room_code>', methods=['GET'])
def get_game_state(room_code):
    room = get_sessions().get_room(room_code)
    return jsonify({'success': True, **room.to_dict()})


@rooms.route('/make-move', methods=['POST'])
def make_move():
    data = _body()
    get_sessions().update_state(data.get('roomCode'), data.get('gameState'), sender_name=data.get('playerName'))
    return jsonify({'success': True})


@rooms.route('/leave-room', methods=['POST'])
def leave_room():
    data = _body()
    get_sessions().leave_room(data.get('roomCode'), name=data.get('playerName'))
    return jsonify({'success': True})

from datetime import datetime, timezone

from flask import Blueprint, jsonify

main = Blueprint('main', __name__)

SERVER_NAME = 'Bagh Chal Game Server'


@main.route('/')
def index():
    return jsonify({
        'status': 'Server is running',
        'message': SERVER_NAME,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })


@main.route('/health')
def health():
    return jsonify({'status': 'healthy', 'server': SERVER_NAME})

from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO

from baghchal.config import Config
from baghchal.services.sessions import SessionManager

EXTENSION_KEY = 'baghchal.sessions'

socketio = SocketIO(async_mode=None)


def get_sessions() -> SessionManager:
    """The SessionManager bound to the current app."""
    return current_app.extensions[EXTENSION_KEY]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    # Core modules log under this logger's hierarchy (baghchal.services.*)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS', '*')
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from baghchal.main import main
    flask_app.register_blueprint(main)

    from baghchal.api.rooms import rooms
    flask_app.register_blueprint(rooms)

    from baghchal.socketio_events import SocketIONotifier, register_socketio_handlers
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    register_socketio_handlers(namespace=namespace)

    sessions = SessionManager.from_config(flask_app.config, notifier=SocketIONotifier(socketio, namespace))
    flask_app.extensions[EXTENSION_KEY] = sessions

    # Expiry sweep runs in the background; tests call sweep() directly
    if not flask_app.config.get('TESTING'):
        sessions.start_sweeper(socketio.start_background_task, socketio.sleep)

    flask_app.logger.info(
        f"[startup] namespace={namespace} ttl={sessions.sweeper.ttl}s sweep_interval={sessions.sweeper.interval}s"
    )
    return flask_app

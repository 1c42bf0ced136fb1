import os
import sys
import pytest

# Ensure the backend root (containing the `baghchal` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from baghchal import create_app, get_sessions, socketio
from baghchal.services.sessions.relay import Notifier

NAMESPACE = '/ws'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SWEEP_INTERVAL_SEC = 60
    ROOM_TTL_SEC = 120
    STORE_SHARDS = 4
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = NAMESPACE
    LOG_LEVEL = 'DEBUG'


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []

    def notify(self, connection_id, event, payload):
        self.sent.append((connection_id, event, payload))

    def events_for(self, connection_id):
        return [(event, payload) for cid, event, payload in self.sent if cid == connection_id]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def sessions(flask_app):
    return get_sessions()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def _connect(flask_app):
    return socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace=NAMESPACE
    )


@pytest.fixture()
def sio_client(flask_app):
    test_client = _connect(flask_app)
    yield test_client
    try:
        test_client.disconnect(namespace=NAMESPACE)
    except Exception:
        pass


@pytest.fixture()
def sio_factory(flask_app):
    """Open extra Socket.IO clients; all are disconnected on teardown."""
    opened = []

    def _open():
        c = _connect(flask_app)
        c.get_received(NAMESPACE)  # flush 'connected'
        opened.append(c)
        return c

    yield _open
    for c in opened:
        try:
            c.disconnect(namespace=NAMESPACE)
        except Exception:
            pass

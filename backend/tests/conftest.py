import os
import sys
import pytest

# Ensure the backend root (containing the `mazechat` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from mazechat import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SESSION_COOKIE_NAME = 'SESSION'
    SOCKETIO_NAMESPACE = '/ws'
    PING_INTERVAL_SEC = 60
    HISTORY_SIZE = 5
    CORS_ORIGINS = ['http://localhost:5173']


class FakeTransport:
    """Records every line sent to it."""

    def __init__(self, name='t', fail=False):
        self.name = name
        self.fail = fail
        self.sent = []
        self.closed = []

    def send(self, text):
        if self.fail:
            raise IOError('broken pipe')
        self.sent.append(text)

    def close(self, reason):
        self.closed.append(reason)

    def __repr__(self):
        return f"FakeTransport({self.name})"


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
        application.extensions['game_server'].shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def game_server(flask_app):
    return flask_app.extensions['game_server']


@pytest.fixture()
def connect(flask_app):
    """Open a socket as a fresh browser session; returns (test_client, identity)."""
    opened = []

    def _connect(http_client=None):
        http_client = http_client or flask_app.test_client()
        identity = http_client.get('/session').get_json()['identity']
        sio = socketio.test_client(
            flask_app,
            flask_test_client=http_client,
            namespace='/ws'
        )
        opened.append(sio)
        return sio, identity

    yield _connect
    for sio in opened:
        try:
            if sio.is_connected('/ws'):
                sio.disconnect(namespace='/ws')
        except Exception:
            pass

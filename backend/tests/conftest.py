import os
import sys
import pytest

# Ensure the backend root (containing the `sushigo` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sushigo import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MIN_PLAYERS = 2
    MAX_PLAYERS = 5
    NUM_ROUNDS = 3
    CARDS_PER_HAND = 0
    DECK_SEED = '1234'
    WIRE_CASE = 'snake'
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = ['http://localhost:5173']


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['sushigo_registry']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def sio_factory(flask_app):
    """Opens extra Socket.IO clients on /ws and closes them after the test."""
    opened = []

    def _open():
        c = socketio.test_client(flask_app, namespace='/ws')
        c.get_received('/ws')
        opened.append(c)
        return c

    yield _open
    for c in opened:
        if c.is_connected('/ws'):
            c.disconnect(namespace='/ws')


import os
import sys
import random
import pytest

# Ensure the backend root (containing the `relay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from relay import create_app, socketio
from relay.services.sessions import ConnectionRegistry, SessionManager


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ALLOWED_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    MIN_PLAYERS = 2
    LOG_LEVEL = 'DEBUG'


class FakeConnections:
    """Mirrors python-socketio's manager.is_connected for the fake server."""

    def __init__(self):
        self.dropped = set()

    def is_connected(self, sid, namespace):
        return sid not in self.dropped


class FakeServer:
    """Records room membership the way python-socketio's manager would."""

    def __init__(self):
        self.rooms = {}
        self.manager = FakeConnections()

    def drop(self, sid):
        """Simulate the transport tearing a connection down."""
        self.manager.dropped.add(sid)

    def enter_room(self, sid, room, namespace=None):
        self.rooms.setdefault(room, set()).add(sid)

    def leave_room(self, sid, room, namespace=None):
        members = self.rooms.get(room)
        if members is not None:
            members.discard(sid)
            if not members:
                del self.rooms[room]


class FakeSocketIO:
    """Stands in for the Flask-SocketIO extension; expands every emit
    into per-sid deliveries so tests can read each connection's inbox."""

    def __init__(self):
        self.server = FakeServer()
        self.sent = []

    def emit(self, event, *args, to=None, skip_sid=None, namespace='/'):
        if to in self.server.rooms:
            targets = sorted(self.server.rooms[to])
        else:
            targets = [to]
        for sid in targets:
            if sid == skip_sid:
                continue
            self.sent.append((sid, event, args[0] if args else None))

    def inbox(self, sid):
        return [(event, data) for target, event, data in self.sent if target == sid]

    def events(self, sid):
        return [event for event, _ in self.inbox(sid)]

    def clear(self):
        self.sent = []


@pytest.fixture()
def fake_sio():
    return FakeSocketIO()


@pytest.fixture()
def registry(fake_sio):
    return ConnectionRegistry(fake_sio)


@pytest.fixture()
def manager(registry):
    return SessionManager(registry, rng=random.Random(1234))


@pytest.fixture()
def make_manager():
    """Build an isolated manager and fake transport, for tests that need many."""

    def _make(seed=1234):
        sio = FakeSocketIO()
        return SessionManager(ConnectionRegistry(sio), rng=random.Random(seed)), sio

    return _make


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass

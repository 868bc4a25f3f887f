import os
import sys
import pytest

# Ensure the backend root (containing the `memorygame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from memorygame import create_app, db, socketio
from memorygame.services.games.registry import get_registry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = ['http://localhost:5173']
    MISMATCH_SETTLE_MS = 1000
    RANKING_GLOBAL_LIMIT = 100
    RANKING_PLAYER_LIMIT = 20
    HISTORY_LIMIT = 20
    PLAYER_NAME_MIN_LEN = 2
    PLAYER_NAME_MAX_LEN = 20
    REQUIRE_LOGIN_FOR_RANKING = False
    SESSION_IDLE_TTL_SEC = 3600
    MAX_LIVE_SESSIONS = 1000


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def pair_positions(session):
    """Map each symbol to the two board indices holding it."""
    positions = {}
    for card in session.cards:
        positions.setdefault(card.value, []).append(card.index)
    return positions


def mismatched_pair(session):
    first = session.cards[0]
    second = next(c for c in session.cards if c.value != first.value)
    return first.index, second.index


@pytest.fixture()
def app_factory():
    """Build an app with TestConfig plus overrides; tables are created."""
    created = []

    def _make(**overrides):
        config = type('OverriddenConfig', (TestConfig,), overrides)
        application = create_app(config)
        ctx = application.app_context()
        ctx.push()
        # Ensure models are imported so tables are created
        import memorygame.models  # noqa: F401
        db.create_all()
        created.append(ctx)
        return application

    yield _make
    for ctx in reversed(created):
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def flask_app(app_factory):
    return app_factory()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return get_registry(flask_app)


@pytest.fixture()
def clock():
    return FakeClock()


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

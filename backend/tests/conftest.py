import os
import sys
import pytest

# Ensure the backend root (containing the `tracker` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)
if CURRENT_DIR not in sys.path:
    sys.path.insert(0, CURRENT_DIR)

from tracker import create_app, db, socketio
from tracker.services.territories import build_territory_tracker
from helpers import FakeWynnApi, RecordingSink


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WYNN_TERRITORY_URL = 'http://wynn.test/territories'
    WYNN_PLAYER_URL = 'http://wynn.test/player/{name}/stats'
    WYNN_TIMEZONE = 'UTC'
    DEFAULT_TIMEZONE = 'UTC'
    DEFAULT_DATE_FORMAT = '%Y/%m/%d %H:%M:%S'
    CORS_ORIGINS = ['http://localhost:5173']


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import tracker.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def wynn():
    return FakeWynnApi()


@pytest.fixture()
def territory_tracker(flask_app, wynn, sink):
    return build_territory_tracker(flask_app, wynn, sink=sink)


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

import os
import sys
import pytest

# Ensure the backend root (containing the `gameofdeath` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gameofdeath import create_app, db, socketio, get_scheduler


LEDGER_ACCOUNT = '0x00000000000000000000000000000000000000aa'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PICKING_DURATION_SEC = 3
    PLACING_DURATION_SEC = 2
    FINAL_SCREEN_DURATION_SEC = 2
    MAX_CYCLES = 1
    SIM_GENERATIONS = 2
    FINAL_SIM_GENERATIONS = 3
    SIM_STEP_DELAY_SEC = 0
    PUSH_EVERY_GENERATION = False
    LEDGER_BACKEND = 'memory'
    LEDGER_ACCOUNT = LEDGER_ACCOUNT
    LEDGER_CONFIRM_TIMEOUT_SEC = 2
    THUMBNAIL_URL_TEMPLATE = '/thumbnails/{game_id}.png'
    TIMER_HEARTBEAT_SEC = 0


@pytest.fixture()
def flask_app(tmp_path):
    config = type('Config', (TestConfig,), {'STATE_FILE': str(tmp_path / 'state.json')})
    application = create_app(config)
    with application.app_context():
        db.create_all()
        yield application
        get_scheduler().pipeline.shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def scheduler(flask_app):
    return get_scheduler()


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

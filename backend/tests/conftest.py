import os
import sys
import pytest
from flask import g

# Ensure the backend root (containing the `scoreboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from scoreboard import create_app, db, socketio
from scoreboard.services.broadcast import NAMESPACE

ADMIN_USERNAME = 'admin'
ADMIN_PASSWORD = 'secret-password'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    CLIENT_URL = '*'
    LOG_LEVEL = 'DEBUG'
    MAX_CONTENT_LENGTH = 1024 * 1024
    TOKEN_MAX_AGE_SEC = 3600
    ADMIN_USERNAME = ADMIN_USERNAME
    ADMIN_PASSWORD = ADMIN_PASSWORD
    LIVE_TICK_SEC = 1
    RETENTION_DAYS = 30
    RETENTION_SWEEP_SEC = 24 * 60 * 60
    SHUTDOWN_TIMEOUT_SEC = 10


class RecordingBroadcaster:
    """Stands in for the Socket.IO broadcaster in service tests."""

    def __init__(self):
        self.published = []

    def publish(self, channel):
        self.published.append(channel)
        return []


@pytest.fixture()
def flask_app(tmp_path):
    class Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    application = create_app(Config)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scoreboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    # Requests reuse the fixture's app context, so drop the user Flask-Login cached in g
    @flask_app.teardown_request
    def forget_login_user(exc):
        g.pop('_login_user', None)

    return flask_app.test_client()


@pytest.fixture()
def broadcaster(flask_app):
    return RecordingBroadcaster()


@pytest.fixture()
def storage(flask_app):
    store = flask_app.extensions['scoreboard']['storage']
    store.ensure_folder()
    return store


@pytest.fixture()
def admin_user(flask_app):
    from scoreboard.models import User
    user = User(username=ADMIN_USERNAME)
    user.set_password(ADMIN_PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def admin_token(admin_user):
    from scoreboard.auth import issue_token
    return issue_token(admin_user)


@pytest.fixture()
def auth_headers(admin_token):
    return {'Authorization': f'Bearer {admin_token}'}


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace=NAMESPACE,
    )
    yield test_client
    if test_client.is_connected(NAMESPACE):
        test_client.disconnect(namespace=NAMESPACE)


@pytest.fixture()
def admin_sio(flask_app, admin_token):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace=NAMESPACE,
        auth={'token': admin_token},
    )
    yield test_client
    if test_client.is_connected(NAMESPACE):
        test_client.disconnect(namespace=NAMESPACE)

import os
import sys
import pytest

# Ensure the backend root (containing the `gamehub` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gamehub import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    BCRYPT_HANDLE_LONG_PASSWORDS = True
    SESSION_TTL_HOURS = 24
    SUPPORTED_GAME_TYPES = ['2048', 'tetris']
    MAX_SCORE = 1_000_000
    LEADERBOARD_DEFAULT_LIMIT = 10
    LEADERBOARD_MAX_LIMIT = 100
    CHECKPOINT_LIST_DEFAULT_LIMIT = 10
    CORS_ORIGINS = ['http://localhost:8080']


def _wallet(n):
    return '0x' + format(n, '040x')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import gamehub.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_user(flask_app):
    """Register a user through the credential store and return it."""
    from gamehub.api.helpers import credential_store

    counter = {'n': 0}

    def _make(name='alice', email=None, password='password'):
        counter['n'] += 1
        result = credential_store().register(
            name, email or f'{name}@example.com', password, _wallet(counter['n'])
        )
        assert result.ok, result.message
        return result.value

    return _make


@pytest.fixture()
def signed_in(client):
    """Sign up and sign in over HTTP; returns (user payload, auth headers)."""
    counter = {'n': 0}

    def _signed_in(name='alice', password='password'):
        counter['n'] += 1
        email = f'{name}@example.com'
        res = client.post('/api/auth/signup', json={
            'name': name,
            'email': email,
            'password': password,
            'evmAddress': _wallet(1000 + counter['n']),
        })
        assert res.status_code == 201, res.get_json()
        res = client.post('/api/auth/signin', json={'email': email, 'password': password})
        assert res.status_code == 200, res.get_json()
        body = res.get_json()
        return body['user'], {'Authorization': f"Bearer {body['sessionToken']}"}

    return _signed_in

"""
Pytest configuration and fixtures for the gatekeeper tests.

This module provides shared fixtures for:
- Flask application with test configuration
- Database setup and teardown
- Player accounts and logged-in clients
- Standalone session stores
"""
import pytest

from gatekeeper import create_app
from gatekeeper.extensions import db as _db
from gatekeeper.services import MemorySessionStore
from gatekeeper.services.flag_service import STATIC_FLAGS


@pytest.fixture(scope='session')
def app():
    """
    Create application for the tests.

    Uses TestingConfig with in-memory SQLite database and the SQL
    progression backend. Scope is 'session' to reuse the same app
    across all tests.
    """
    app = create_app('testing')
    app.config.update({
        'TESTING': True,
        'WTF_CSRF_ENABLED': False,  # Disable CSRF for testing
        'RATELIMIT_ENABLED': False,  # Disable rate limiting for tests
    })

    yield app

    app.extensions['session_store'].stop()


@pytest.fixture(scope='function')
def db(app):
    """
    Create database for the tests.

    Creates all tables before each test function and drops them after.
    The app's session store is emptied as well so tests stay isolated.
    """
    with app.app_context():
        _db.create_all()
        app.extensions['session_store'].clear()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app, db):
    """
    Create a test client for the app.

    The client can be used to make requests to the application.
    """
    with app.test_client() as client:
        yield client


@pytest.fixture(scope='function')
def models(app, db):
    """Models registered by create_app()"""
    from gatekeeper.models import get_models
    return get_models()


@pytest.fixture
def user_factory(app, db):
    """
    Factory for creating player accounts.

    Usage:
        user = user_factory(username='freya', password='falcon-cloak')
    """
    counter = [0]  # Use list to allow mutation in closure

    def _create_user(username=None, password='yggdrasil123'):
        counter[0] += 1
        username = username or f'player{counter[0]}'
        return app.extensions['auth_service'].create_user(username, password)

    return _create_user


@pytest.fixture
def player(user_factory):
    """Default player account"""
    return user_factory(username='weaver', password='yggdrasil123')


@pytest.fixture
def login(client):
    """
    Log the test client in.

    Usage:
        response = login('weaver', 'yggdrasil123')
    """
    def _login(username='weaver', password='yggdrasil123'):
        return client.post('/login', json={'username': username, 'password': password})

    return _login


@pytest.fixture
def auth_client(client, player, login):
    """Test client holding a live session for the default player"""
    response = login()
    assert response.status_code == 200
    return client


@pytest.fixture
def flags():
    """Static flag for each realm, keyed by realm name in lower case"""
    return {realm.lower(): flag for realm, flag in STATIC_FLAGS.items()}


@pytest.fixture
def session_store():
    """
    Standalone session store without the background sweep.

    Tests that exercise the sweep build their own store.
    """
    store = MemorySessionStore(max_sessions=3, ttl_seconds=60, cleanup_interval_seconds=60, start_cleanup=False)
    yield store
    store.stop()

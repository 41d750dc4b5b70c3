"""Fixtures for tests of the HTTP API."""

import pytest

from ..factory import close_app, create_app
from ..services.pictures import PictureStore
from .util import fake_cache, temporary_repository

JWT_SECRET = 'foosecret'


@pytest.fixture
def repository():
    return temporary_repository()


@pytest.fixture
def cache_connection():
    """The in-memory Redis client behind the app's user cache."""
    return fake_cache()


@pytest.fixture
def app_config(tmp_path):
    return {
        'TESTING': True,
        'JWT_SECRET': JWT_SECRET,
        'PASSWORD_HASH_ITERATIONS': 1000,
        'LOG_JSON': False,
        'UPLOAD_FOLDER': str(tmp_path / 'uploads')
    }


@pytest.fixture
def app(app_config, repository, cache_connection):
    user_cache, _ = cache_connection
    app = create_app(app_config, users=repository, cache=user_cache,
                     pictures=PictureStore(app_config['UPLOAD_FOLDER']))
    yield app
    close_app(app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def alice(client):
    """Register a user and log in, returning the user and auth headers."""
    response = client.post('/users', json={
        'full_name': 'Alice Liddell',
        'username': 'alice',
        'password': 'correctpass',
        'status': 'Active',
        'role': 'Operator'
    })
    assert response.status_code == 201
    user = response.get_json()
    response = client.post('/login', json={'username': 'alice',
                                           'password': 'correctpass'})
    assert response.status_code == 200
    token = response.get_json()['token']
    return user, {'Authorization': f'Bearer {token}'}

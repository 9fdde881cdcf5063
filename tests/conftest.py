import json

import pytest
import responses

from app import app as flask_app

API_URL = 'http://api.test'


@pytest.fixture
def static_dir(tmp_path):
    directory = tmp_path / 'static-data'
    directory.mkdir()
    return directory


@pytest.fixture
def write_static(static_dir):
    def write(filename, data):
        (static_dir / filename).write_text(json.dumps(data), encoding='utf-8')
    return write


@pytest.fixture
def app(static_dir):
    flask_app.config.update(
        TESTING=True,
        SECRET_KEY='test-secret',
        API_URL=API_URL,
        API_TIMEOUT=5,
        STATIC_DATA_DIR=str(static_dir),
        DEFAULT_LANGUAGE='en',
        MAX_UPLOAD_SIZE=10 * 1024 * 1024,
    )
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    with client.session_transaction() as sess:
        sess['admin_token'] = 'valid-token'
        sess['admin_profile'] = {'username': 'admin', 'firstName': 'Layla'}
    return client


@pytest.fixture
def mocked():
    """Intercepts every outgoing requests call. Unregistered URLs fail to connect."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def envelope(**data):
    return {'success': True, 'data': data}


def flashes(client):
    with client.session_transaction() as sess:
        return list(sess.get('_flashes', []))

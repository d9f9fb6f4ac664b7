"""Shared test fixtures for the board test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_board: default To Do / Doing / Done columns with one task each
- flask_api: an ApiClient whose HTTP calls go through the Flask test client
"""

import pytest

from kanban_board import create_app
from kanban_board.client.api import ApiClient
from kanban_board.extensions import db as _db
from kanban_board.services import board_service

TEST_BASE_URL = "http://board.test"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def seed_board(app, db_session):
    """Seed the three default columns with one task each.

    Returns plain ids so tests can use them after objects expire.
    """
    todo, doing, done = board_service.ensure_default_columns()
    setup = board_service.create_task("Set up project", todo.id)
    build = board_service.create_task("Build components", doing.id)
    ship = board_service.create_task("Test the app", done.id)
    _db.session.commit()

    return {
        "todo_id": todo.id,
        "doing_id": doing.id,
        "done_id": done.id,
        "setup_id": setup.id,
        "build_id": build.id,
        "ship_id": ship.id,
    }


class _FlaskResponse:
    """Just enough of requests.Response for ApiClient."""

    def __init__(self, resp):
        self._resp = resp
        self.status_code = resp.status_code
        self.ok = resp.status_code < 400

    def json(self):
        data = self._resp.get_json(silent=True)
        if data is None:
            raise ValueError("Response body is not JSON")
        return data


class _FlaskTransport:
    """Routes requests.Session.request() calls into the Flask test client."""

    def __init__(self, client):
        self.client = client
        self.calls = []

    def request(self, method, url, json=None, timeout=None):
        path = url[len(TEST_BASE_URL):]
        self.calls.append((method, path, json))
        return _FlaskResponse(self.client.open(path, method=method, json=json))


@pytest.fixture
def flask_api(client):
    transport = _FlaskTransport(client)
    api = ApiClient(TEST_BASE_URL, session=transport)
    return api

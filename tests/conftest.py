"""
Shared pytest fixtures for the learning engine test suite.
Every test gets a fresh in-memory SQLite store inside an app context.
Factory helpers live in tests/factories.py so test modules can import
them directly.
"""
import pytest

from app import create_app
from models import db
from utils.tokens import get_jwt_token


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def _headers(user_id, role="employee", department_id=None):
        token = get_jwt_token({"user_id": user_id, "role": role, "department_id": department_id})
        return {"Authorization": f"Bearer {token}"}
    return _headers

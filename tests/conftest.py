import pytest
from fastapi.testclient import TestClient

from projecthub.api import create_app
from projecthub.config import Settings
from projecthub.database import create_db_engine, create_session_factory, init_db, seed_templates
from projecthub.security import PasswordHasher, TokenService

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"


@pytest.fixture
def settings(tmp_path):
    """Settings for an isolated SQLite file per test."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        rate_limit_enabled=False,
    )


@pytest.fixture
def session_local(settings):
    engine = create_db_engine(settings)
    init_db(engine)
    TestingSessionLocal = create_session_factory(engine)
    session = TestingSessionLocal()
    seed_templates(session)
    session.close()
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service(settings):
    return TokenService(settings)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def register_and_login(client):
    """Return a helper that registers a user and returns ``(user_id, token)``."""

    def _register_and_login(email="alice@example.com", password="secret123", username="alice"):
        resp = client.post(
            "/api/users/register",
            json={"username": username, "email": email, "password": password},
        )
        assert resp.status_code == 201
        resp = client.post("/api/users/login", json={"email": email, "password": password})
        assert resp.status_code == 200
        data = resp.json()
        return data["user"]["userId"], data["token"]

    return _register_and_login

import logging
import uuid

from fastapi.testclient import TestClient

from projecthub.api import create_app


def test_register_and_login(client, token_service):
    email = f"user_{uuid.uuid4().hex}@example.com"
    resp = client.post(
        "/api/users/register",
        json={"username": "user", "email": email, "password": "secret"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["message"] == "User registered successfully"
    assert data["user"]["email"] == email
    assert "password" not in str(data).lower()

    resp = client.post("/api/users/login", json={"email": email, "password": "secret"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["username"] == "user"
    assert token_service.validate(data["token"]) == data["user"]["userId"]


def test_register_duplicate_email(client):
    body = {"username": "alice", "email": "alice@example.com", "password": "secret123"}
    assert client.post("/api/users/register", json=body).status_code == 201
    resp = client.post("/api/users/register", json={**body, "username": "alice2"})
    assert resp.status_code == 409
    assert resp.json() == {"message": "User already exists"}


def test_register_email_is_case_insensitive(client):
    body = {"username": "alice", "email": "alice@example.com", "password": "secret123"}
    assert client.post("/api/users/register", json=body).status_code == 201
    resp = client.post("/api/users/register", json={**body, "email": "Alice@Example.com"})
    assert resp.status_code == 409


def test_register_invalid_body(client):
    resp = client.post("/api/users/register", json={"username": "alice", "email": "nope"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid data"}


def test_login_wrong_password(client, register_and_login):
    register_and_login()
    resp = client.post(
        "/api/users/login", json={"email": "alice@example.com", "password": "wrong"}
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid credentials"}
    assert "token" not in resp.json()


def test_login_unknown_email(client):
    resp = client.post(
        "/api/users/login", json={"email": "ghost@example.com", "password": "secret123"}
    )
    assert resp.status_code == 400


def test_current_user(client, register_and_login):
    user_id, token = register_and_login()
    resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json() == {
        "user": {"userId": user_id, "username": "alice", "email": "alice@example.com"}
    }


def test_current_user_requires_token(client):
    assert client.get("/api/users/me").status_code == 401


def _login_statuses(client, attempts):
    return [
        client.post(
            "/api/users/login",
            json={"email": "ghost@example.com", "password": "secret123"},
        ).status_code
        for _ in range(attempts)
    ]


def test_login_rate_limited_per_app(settings):
    limited = create_app(
        settings.model_copy(update={"rate_limit_enabled": True, "auth_rate_limit": "3/minute"})
    )
    # building a second, unlimited app must not switch off the first one
    unlimited = create_app(settings)

    with TestClient(limited) as limited_client, TestClient(unlimited) as unlimited_client:
        assert _login_statuses(limited_client, 4) == [400, 400, 400, 429]
        assert _login_statuses(unlimited_client, 5) == [400] * 5


def test_long_multibyte_password_prefix_does_not_log_in(client):
    password = "é" * 72
    resp = client.post(
        "/api/users/register",
        json={"username": "carol", "email": "carol@example.com", "password": password},
    )
    assert resp.status_code == 201

    resp = client.post(
        "/api/users/login",
        json={"email": "carol@example.com", "password": "é" * 36 + "WRONG"},
    )
    assert resp.status_code == 400

    resp = client.post(
        "/api/users/login", json={"email": "carol@example.com", "password": password}
    )
    assert resp.status_code == 200


def test_login_failure_log_masks_email(client, caplog):
    caplog.set_level(logging.INFO, logger="projecthub.services")
    client.post(
        "/api/users/register",
        json={"username": "dave", "email": "dave@example.com", "password": "secret123"},
    )
    client.post("/api/users/login", json={"email": "dave@example.com", "password": "nope"})
    assert "d***@example.com" in caplog.text
    assert "dave@example.com" not in caplog.text

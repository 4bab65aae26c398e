"""
End-to-end tests for the HTTP surface (register, login, /users/me).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from auth.directory import InMemoryUserDirectory
from auth.errors import DirectoryUnavailable
from config.settings import Settings
from main import create_app

_USER = {"name": "Test User", "email": "test@example.com", "password": "StrongPass123"}
_LOGIN = {"email": "test@example.com", "password": "StrongPass123"}


def _settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret="test-secret",
        password_work_factor=4,
        hash_workers=2,
    )


@pytest.fixture
def directory():
    return InMemoryUserDirectory()


@pytest.fixture
def client(directory):
    with TestClient(create_app(_settings(), directory=directory)) as c:
        yield c


def _login_token(client: TestClient) -> str:
    client.post("/api/auth/register", json=_USER)
    response = client.post("/api/auth/login", json=_LOGIN)
    assert response.status_code == 200
    return response.json()["token"]


class TestRegisterEndpoint:
    def test_register_returns_ok(self, client):
        response = client.post("/api/auth/register", json=_USER)
        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "test@example.com"
        assert "password" not in str(body).lower()

    def test_duplicate_email_returns_conflict(self, client, directory):
        client.post("/api/auth/register", json=_USER)
        response = client.post("/api/auth/register", json=_USER)
        assert response.status_code == 409
        assert len(directory) == 1

    def test_short_password_returns_bad_request(self, client):
        response = client.post("/api/auth/register", json={**_USER, "password": "short"})
        assert response.status_code == 400

    def test_malformed_body_returns_bad_request(self, client):
        response = client.post("/api/auth/register", json={"name": ["not", "a", "string"]})
        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid request"}

    @pytest.mark.parametrize(
        "body",
        [
            b'{"name": "Test User", "email": "test@example.com", "password": "abcdefgh\\udcff"}',
            b'{"name": "Test User", "email": "a\\udcff@b.c", "password": "StrongPass123"}',
            b'{"name": "A\\udcff", "email": "test@example.com", "password": "StrongPass123"}',
        ],
    )
    def test_lone_surrogate_returns_bad_request(self, client, directory, body):
        response = client.post(
            "/api/auth/register",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert len(directory) == 0


class TestLoginEndpoint:
    def test_login_returns_token(self, client):
        token = _login_token(client)
        assert token

    def test_wrong_password_returns_unauthorized(self, client):
        client.post("/api/auth/register", json=_USER)
        response = client.post("/api/auth/login", json={**_LOGIN, "password": "WrongPass123"})
        assert response.status_code == 401

    def test_unknown_email_matches_wrong_password(self, client):
        client.post("/api/auth/register", json=_USER)
        wrong_password = client.post("/api/auth/login", json={**_LOGIN, "password": "WrongPass123"})
        unknown_email = client.post("/api/auth/login", json={**_LOGIN, "email": "nobody@example.com"})
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()

    @pytest.mark.parametrize(
        "body",
        [
            b'{"email": "a\\udcff@b.c", "password": "StrongPass123"}',
            b'{"email": "test@example.com", "password": "abcdefgh\\udcff"}',
        ],
    )
    def test_lone_surrogate_returns_unauthorized(self, client, body):
        client.post("/api/auth/register", json=_USER)
        response = client.post(
            "/api/auth/login",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid email or password"}


class TestCurrentUserEndpoint:
    def test_me_with_token(self, client):
        token = _login_token(client)
        response = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Test User"
        assert body["email"] == "test@example.com"
        assert set(body) == {"id", "name", "email"}

    def test_me_without_token(self, client):
        response = client.get("/api/users/me")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_scheme_is_case_insensitive(self, client):
        token = _login_token(client)
        response = client.get("/api/users/me", headers={"Authorization": f"bearer {token}"})
        assert response.status_code == 200

    @pytest.mark.parametrize("header", ["Basic dXNlcjpwYXNz", "Bearer", "Token abc"])
    def test_non_bearer_header_is_unauthorized(self, client, header):
        response = client.get("/api/users/me", headers={"Authorization": header})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_bad_tokens_are_indistinguishable(self, client):
        token = _login_token(client)
        flipped = "0" if token[-1] != "0" else "1"
        tampered = client.get("/api/users/me", headers={"Authorization": f"Bearer {token[:-1]}{flipped}"})
        garbage = client.get("/api/users/me", headers={"Authorization": "Bearer garbage"})
        missing = client.get("/api/users/me")
        assert tampered.status_code == garbage.status_code == missing.status_code == 401
        assert tampered.json() == garbage.json() == missing.json()


class TestFullScenario:
    def test_register_login_me(self, client):
        assert client.post("/api/auth/register", json=_USER).status_code == 200
        assert client.post("/api/auth/register", json=_USER).status_code == 409

        login = client.post("/api/auth/login", json=_LOGIN)
        assert login.status_code == 200
        token = login.json()["token"]
        assert token

        me = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "test@example.com"

        assert client.get("/api/users/me").status_code == 401
        assert client.post("/api/auth/login", json={**_LOGIN, "password": "WrongPass123"}).status_code == 401


class TestInfrastructure:
    def test_directory_outage_returns_service_unavailable(self):
        directory = MagicMock()
        directory.find_by_email = AsyncMock(side_effect=DirectoryUnavailable("down"))
        with TestClient(create_app(_settings(), directory=directory)) as client:
            response = client.post("/api/auth/login", json=_LOGIN)
        assert response.status_code == 503
        assert response.json() == {"detail": "Service unavailable"}

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert "X-Process-Time" in response.headers

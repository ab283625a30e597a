import pytest
from fastapi.testclient import TestClient

from todo_app import passwords
from todo_app.main import create_app
from todo_app.settings import Settings

DEFAULT_PASSWORD = "password"


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    # Minimum bcrypt cost keeps the suite quick
    monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def settings():
    return Settings(persistence_backend="memory", log_level="WARNING")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_client(app):
    """Factory for independent clients (separate cookie jars) on the same app."""

    def _make() -> TestClient:
        return TestClient(app)

    return _make


def login(client: TestClient, username: str, password: str = DEFAULT_PASSWORD):
    res = client.post("/api/auth/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return res.json()


def register(client: TestClient, username: str, password: str = "secret-pass"):
    res = client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "confirmPassword": password,
        },
    )
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def admin_client(make_client):
    c = make_client()
    login(c, "admin")
    return c


@pytest.fixture
def alice_client(make_client):
    c = make_client()
    register(c, "alice")
    return c


@pytest.fixture
def bob_client(make_client):
    c = make_client()
    register(c, "bob")
    return c

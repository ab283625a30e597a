from datetime import datetime, timedelta, timezone

import pytest

from todo_app.sessions import InMemorySessionStore, SQLiteSessionStore, get_session_store
from todo_app.settings import Settings


class FakeClock:
    def __init__(self):
        self.now = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path, clock):
    if request.param == "sqlite":
        return SQLiteSessionStore(str(tmp_path / "sessions.db"), ttl_seconds=100, clock=clock)
    return InMemorySessionStore(ttl_seconds=100, clock=clock)


class TestSessionStore:
    def test_create_and_get(self, store, clock):
        session = store.create(7)
        assert session["user_id"] == 7
        assert session["expires_at"] - session["created_at"] == timedelta(seconds=100)
        assert len(session["token"]) >= 32

        fetched = store.get(session["token"])
        assert fetched["user_id"] == 7
        assert fetched["expires_at"] == session["expires_at"]

    def test_tokens_are_unique(self, store):
        tokens = {store.create(1)["token"] for _ in range(20)}
        assert len(tokens) == 20

    def test_unknown_token(self, store):
        assert store.get("nope") is None

    def test_expiry_is_fixed_from_creation(self, store, clock):
        token = store.create(1)["token"]
        clock.advance(99)
        assert store.get(token) is not None
        clock.advance(1)
        assert store.get(token) is None
        # Removed on lookup, stays gone
        clock.now -= timedelta(seconds=50)
        assert store.get(token) is None

    def test_delete(self, store):
        token = store.create(1)["token"]
        store.delete(token)
        assert store.get(token) is None
        store.delete(token)

    def test_purge_expired(self, store, clock):
        old = store.create(1)["token"]
        clock.advance(60)
        fresh = store.create(2)["token"]
        clock.advance(50)

        assert store.purge_expired() == 1
        assert store.get(fresh) is not None
        assert store.get(old) is None


def test_factory_follows_persistence_backend(tmp_path):
    assert isinstance(get_session_store(Settings(persistence_backend="memory")), InMemorySessionStore)
    store = get_session_store(Settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "s.db")))
    assert isinstance(store, SQLiteSessionStore)

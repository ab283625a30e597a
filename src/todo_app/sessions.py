"""
Server-side session storage.

A session maps an opaque, server-generated token (delivered to the browser as a
cookie) to a user id. Sessions have a fixed lifetime counted from creation and
are never extended.
"""
from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Callable, Dict, Optional

from .db import connect, ensure_parent_dir
from .models import SessionEntity
from .settings import Settings

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_token() -> str:
    return secrets.token_urlsafe(32)


# PUBLIC_INTERFACE
class SessionStore(ABC):
    """Abstract session store keyed by session token."""

    def __init__(self, ttl_seconds: int, clock: Clock = _utcnow) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def _new_session(self, user_id: int) -> SessionEntity:
        now = self._clock()
        return {
            "token": new_token(),
            "user_id": user_id,
            "created_at": now,
            "expires_at": now + self._ttl,
        }

    def _is_expired(self, session: SessionEntity) -> bool:
        return session["expires_at"] <= self._clock()

    @abstractmethod
    def create(self, user_id: int) -> SessionEntity:
        """Start a new session for ``user_id`` and return it."""

    @abstractmethod
    def get(self, token: str) -> Optional[SessionEntity]:
        """Return the live session for ``token``; expired sessions are removed and yield None."""

    @abstractmethod
    def delete(self, token: str) -> None:
        """Destroy a session. Unknown tokens are ignored."""

    @abstractmethod
    def purge_expired(self) -> int:
        """Remove all expired sessions and return how many were removed."""


class InMemorySessionStore(SessionStore):
    def __init__(self, ttl_seconds: int, clock: Clock = _utcnow) -> None:
        super().__init__(ttl_seconds, clock)
        self._lock = RLock()
        self._sessions: Dict[str, SessionEntity] = {}

    def create(self, user_id: int) -> SessionEntity:
        session = self._new_session(user_id)
        with self._lock:
            self._sessions[session["token"]] = session
        return session.copy()

    def get(self, token: str) -> Optional[SessionEntity]:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if self._is_expired(session):
                del self._sessions[token]
                return None
            return session.copy()

    def delete(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        with self._lock:
            expired = [t for t, s in self._sessions.items() if self._is_expired(s)]
            for token in expired:
                del self._sessions[token]
            return len(expired)


class SQLiteSessionStore(SessionStore):
    """Sessions persisted in a ``sessions`` table next to users and todos."""

    def __init__(self, db_path: str, ttl_seconds: int, clock: Clock = _utcnow) -> None:
        super().__init__(ttl_seconds, clock)
        ensure_parent_dir(db_path)
        self._db_path = db_path
        with connect(self._db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    token TEXT PRIMARY KEY,
                    user_id INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_expires_at ON sessions(expires_at)")

    def create(self, user_id: int) -> SessionEntity:
        session = self._new_session(user_id)
        with connect(self._db_path) as conn:
            conn.execute(
                "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (
                    session["token"],
                    user_id,
                    session["created_at"].isoformat(),
                    session["expires_at"].isoformat(),
                ),
            )
        return session

    def get(self, token: str) -> Optional[SessionEntity]:
        with connect(self._db_path) as conn:
            row = conn.execute("SELECT * FROM sessions WHERE token = ?", (token,)).fetchone()
            if row is None:
                return None
            session: SessionEntity = {
                "token": str(row["token"]),
                "user_id": int(row["user_id"]),
                "created_at": datetime.fromisoformat(row["created_at"]),
                "expires_at": datetime.fromisoformat(row["expires_at"]),
            }
            if self._is_expired(session):
                conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
                return None
            return session

    def delete(self, token: str) -> None:
        with connect(self._db_path) as conn:
            conn.execute("DELETE FROM sessions WHERE token = ?", (token,))

    def purge_expired(self) -> int:
        # ISO strings with the same UTC offset sort chronologically
        now = self._clock().isoformat()
        with connect(self._db_path) as conn:
            cur = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (now,))
            return cur.rowcount


# PUBLIC_INTERFACE
def get_session_store(settings: Settings) -> SessionStore:
    """Session store matching the configured persistence backend."""
    if settings.persistence_backend == "sqlite":
        return SQLiteSessionStore(settings.sqlite_db_path, settings.session_ttl_seconds)
    return InMemorySessionStore(settings.session_ttl_seconds)

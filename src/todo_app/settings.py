from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SESSION_COOKIE_NAME: name of the session cookie (default: 'todo_session')
    - SESSION_TTL_SECONDS: fixed session lifetime from login (default: 86400)
    - SESSION_COOKIE_SECURE: 'true' to mark the session cookie Secure (default: false)
    - SEED_DEFAULT_USERS: 'false' to skip creating the default admin/user accounts
    - LOG_LEVEL: root log level (default: INFO)
    """

    persistence_backend: str = "memory"
    sqlite_db_path: str = "./data/todos.db"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    session_cookie_name: str = "todo_session"
    session_ttl_seconds: int = 24 * 60 * 60
    session_cookie_secure: bool = False
    seed_default_users: bool = True
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        session_cookie_name=_get_env("SESSION_COOKIE_NAME", "todo_session").strip(),
        session_ttl_seconds=_parse_int(_get_env("SESSION_TTL_SECONDS", "86400"), 86400),
        session_cookie_secure=_parse_bool(_get_env("SESSION_COOKIE_SECURE", "false"), False),
        seed_default_users=_parse_bool(_get_env("SEED_DEFAULT_USERS", "true"), True),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )

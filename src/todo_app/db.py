from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, List, Optional

from .errors import Conflict
from .models import Category, Role, TodoEntity, UserEntity
from .repositories import Repository, lookup_key
from .schemas import TodoDraft


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    id: str = "id"
    username: str = "username"
    email: str = "email"
    username_key: str = "username_key"
    email_key: str = "email_key"
    password: str = "password"
    role: str = "role"


@dataclass(frozen=True)
class _TodoCols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    due_date: str = "due_date"
    category: str = "category"
    completed: str = "completed"
    user_id: str = "user_id"
    username: str = "username"


_U = _UserCols()
_T = _TodoCols()


# PUBLIC_INTERFACE
@contextmanager
def connect(db_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Open a connection with Row access, commit on success and always close."""
    conn = sqlite3.connect(db_path, detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def ensure_parent_dir(db_path: str) -> None:
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.

    Ids come from AUTOINCREMENT primary keys and username/email uniqueness is
    enforced by unique indexes on case-folded key columns, so concurrent
    writers stay consistent and non-ASCII names compare case-insensitively.
    """

    def __init__(self, db_path: str) -> None:
        ensure_parent_dir(db_path)
        self._db_path = db_path
        self._init_db()

    def _conn(self):
        return connect(self._db_path)

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_U.table} (
                    {_U.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_U.username} TEXT NOT NULL,
                    {_U.email} TEXT NOT NULL,
                    {_U.username_key} TEXT NOT NULL UNIQUE,
                    {_U.email_key} TEXT NOT NULL UNIQUE,
                    {_U.password} TEXT NOT NULL,
                    {_U.role} TEXT NOT NULL DEFAULT 'user' CHECK ({_U.role} IN ('user', 'admin'))
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_T.title} TEXT NOT NULL,
                    {_T.description} TEXT NULL,
                    {_T.due_date} TEXT NULL,
                    {_T.category} TEXT NOT NULL DEFAULT 'Non-Urgent',
                    {_T.completed} INTEGER NOT NULL DEFAULT 0,
                    {_T.user_id} INTEGER NOT NULL REFERENCES {_U.table}({_U.id}),
                    {_T.username} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_user_id ON {_T.table}({_T.user_id})"
            )

    def _row_to_user(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row[_U.id]),
            "username": str(row[_U.username]),
            "email": str(row[_U.email]),
            "password": str(row[_U.password]),
            "role": str(row[_U.role]),
        }

    def _row_to_todo(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row[_T.id]),
            "title": str(row[_T.title]),
            "description": row[_T.description],
            "due_date": row[_T.due_date],
            "category": str(row[_T.category]),
            "completed": bool(row[_T.completed]),
            "user_id": int(row[_T.user_id]),
            "username": str(row[_T.username]),
        }

    def _fetch_user(self, conn: sqlite3.Connection, user_id: int) -> Optional[UserEntity]:
        row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def _fetch_todo(self, conn: sqlite3.Connection, todo_id: int) -> Optional[TodoEntity]:
        row = conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (todo_id,)).fetchone()
        return self._row_to_todo(row) if row else None

    # Users

    def get_user(self, user_id: int) -> Optional[UserEntity]:
        with self._conn() as conn:
            return self._fetch_user(conn, user_id)

    def get_user_by_username(self, username: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_U.table} WHERE {_U.username_key} = ?", (lookup_key(username),)
            ).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_U.table} WHERE {_U.email_key} = ?", (lookup_key(email),)
            ).fetchone()
            return self._row_to_user(row) if row else None

    def create_user(self, username: str, email: str, password_hash: str, role: Role = Role.USER) -> UserEntity:
        with self._conn() as conn:
            try:
                cur = conn.execute(
                    f"""
                    INSERT INTO {_U.table}
                        ({_U.username}, {_U.email}, {_U.username_key}, {_U.email_key}, {_U.password}, {_U.role})
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (username, email, lookup_key(username), lookup_key(email), password_hash, Role(role).value),
                )
            except sqlite3.IntegrityError as e:
                if f"{_U.table}.{_U.email_key}" in str(e):
                    raise Conflict("Email already exists") from e
                raise Conflict("Username already exists") from e
            user = self._fetch_user(conn, int(cur.lastrowid))
            assert user is not None
            return user

    def list_users(self) -> List[UserEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_U.table} ORDER BY {_U.id}").fetchall()
            return [self._row_to_user(r) for r in rows]

    def update_user_role(self, user_id: int, role: Role) -> Optional[UserEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"UPDATE {_U.table} SET {_U.role} = ? WHERE {_U.id} = ?",
                (Role(role).value, user_id),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_user(conn, user_id)

    # Todos

    def create_todo(self, draft: TodoDraft, user_id: int, username: str) -> TodoEntity:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.title}, {_T.description}, {_T.due_date}, {_T.category},
                    {_T.completed}, {_T.user_id}, {_T.username})
                VALUES (?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    draft.title,
                    draft.description,
                    draft.due_date,
                    Category(draft.category).value,
                    user_id,
                    username,
                ),
            )
            todo = self._fetch_todo(conn, int(cur.lastrowid))
            assert todo is not None
            return todo

    def list_todos(self, user_id: Optional[int] = None) -> List[TodoEntity]:
        with self._conn() as conn:
            if user_id is None:
                rows = conn.execute(f"SELECT * FROM {_T.table} ORDER BY {_T.id}").fetchall()
            else:
                rows = conn.execute(
                    f"SELECT * FROM {_T.table} WHERE {_T.user_id} = ? ORDER BY {_T.id}", (user_id,)
                ).fetchall()
            return [self._row_to_todo(r) for r in rows]

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            return self._fetch_todo(conn, todo_id)

    def update_todo(self, todo_id: int, draft: TodoDraft) -> Optional[TodoEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.title} = ?, {_T.description} = ?, {_T.due_date} = ?, {_T.category} = ?
                WHERE {_T.id} = ?
                """,
                (
                    draft.title,
                    draft.description,
                    draft.due_date,
                    Category(draft.category).value,
                    todo_id,
                ),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_todo(conn, todo_id)

    def delete_todo(self, todo_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.table} WHERE {_T.id} = ?", (todo_id,))
            return cur.rowcount > 0

    def toggle_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"UPDATE {_T.table} SET {_T.completed} = 1 - {_T.completed} WHERE {_T.id} = ?",
                (todo_id,),
            )
            if cur.rowcount == 0:
                return None
            return self._fetch_todo(conn, todo_id)

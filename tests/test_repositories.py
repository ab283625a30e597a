import threading

import pytest

from todo_app.db import SQLiteRepository
from todo_app.errors import Conflict
from todo_app.models import Role
from todo_app.repositories import InMemoryRepository, get_repository
from todo_app.schemas import TodoDraft
from todo_app.settings import Settings


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "nested" / "todos.db"))
    return InMemoryRepository()


def add_user(repo, username="alice", role=Role.USER):
    return repo.create_user(username=username, email=f"{username}@example.com", password_hash="hash", role=role)


class TestUsers:
    def test_create_and_lookup(self, repo):
        user = add_user(repo)
        assert user["id"] == 1
        assert user["role"] == "user"
        assert repo.get_user(user["id"]) == user
        assert repo.get_user(999) is None

    def test_lookups_are_case_insensitive(self, repo):
        user = add_user(repo, "Alice")
        assert repo.get_user_by_username("alice")["id"] == user["id"]
        assert repo.get_user_by_username("ALICE")["id"] == user["id"]
        assert repo.get_user_by_email("ALICE@EXAMPLE.COM")["id"] == user["id"]
        assert repo.get_user_by_username("bob") is None
        assert repo.get_user_by_email("bob@example.com") is None

        emile = repo.create_user(username="émile", email="émile@exämple.com", password_hash="h")
        assert repo.get_user_by_username("ÉMILE")["id"] == emile["id"]
        assert repo.get_user_by_username("Émile")["username"] == "émile"
        assert repo.get_user_by_email("ÉMILE@EXÄMPLE.COM")["id"] == emile["id"]
        # Full case folding, not just lowercasing
        strasse = repo.create_user(username="Straße", email="strasse@example.com", password_hash="h")
        assert repo.get_user_by_username("STRASSE")["id"] == strasse["id"]

    def test_duplicates_conflict(self, repo):
        add_user(repo, "alice")
        with pytest.raises(Conflict, match="Username already exists"):
            repo.create_user(username="ALICE", email="new@example.com", password_hash="h")
        with pytest.raises(Conflict, match="Email already exists"):
            repo.create_user(username="new", email="Alice@Example.com", password_hash="h")

        repo.create_user(username="émile", email="emile@example.com", password_hash="h")
        with pytest.raises(Conflict, match="Username already exists"):
            repo.create_user(username="ÉMILE", email="other@example.com", password_hash="h")
        repo.create_user(username="zoë", email="zoë@example.com", password_hash="h")
        with pytest.raises(Conflict, match="Email already exists"):
            repo.create_user(username="zoe2", email="ZOË@EXAMPLE.COM", password_hash="h")

    def test_list_and_update_role(self, repo):
        a = add_user(repo, "alice")
        b = add_user(repo, "bob")
        assert [u["id"] for u in repo.list_users()] == [a["id"], b["id"]]

        updated = repo.update_user_role(b["id"], Role.ADMIN)
        assert updated["role"] == "admin"
        assert repo.get_user(b["id"])["role"] == "admin"
        assert repo.update_user_role(999, Role.ADMIN) is None


class TestTodos:
    def test_create_defaults(self, repo):
        owner = add_user(repo)
        todo = repo.create_todo(TodoDraft(title="Buy milk"), user_id=owner["id"], username=owner["username"])
        assert todo == {
            "id": 1,
            "title": "Buy milk",
            "description": None,
            "due_date": None,
            "category": "Non-Urgent",
            "completed": False,
            "user_id": owner["id"],
            "username": "alice",
        }

    def test_list_filters_by_owner(self, repo):
        a = add_user(repo, "alice")
        b = add_user(repo, "bob")
        repo.create_todo(TodoDraft(title="a1"), a["id"], a["username"])
        repo.create_todo(TodoDraft(title="b1"), b["id"], b["username"])
        repo.create_todo(TodoDraft(title="a2"), a["id"], a["username"])

        assert [t["title"] for t in repo.list_todos(user_id=a["id"])] == ["a1", "a2"]
        assert [t["title"] for t in repo.list_todos(user_id=b["id"])] == ["b1"]
        assert [t["title"] for t in repo.list_todos()] == ["a1", "b1", "a2"]

    def test_update_keeps_owner_and_completion(self, repo):
        owner = add_user(repo)
        todo = repo.create_todo(TodoDraft(title="old", category="Urgent"), owner["id"], owner["username"])
        repo.toggle_todo(todo["id"])

        draft = TodoDraft(title="new", description="desc", dueDate="2030-05-01", category="Non-Urgent")
        updated = repo.update_todo(todo["id"], draft)
        assert updated["title"] == "new"
        assert updated["description"] == "desc"
        assert updated["due_date"] == "2030-05-01"
        assert updated["category"] == "Non-Urgent"
        assert updated["completed"] is True
        assert updated["user_id"] == owner["id"]
        assert repo.update_todo(999, draft) is None

    def test_toggle(self, repo):
        owner = add_user(repo)
        todo = repo.create_todo(TodoDraft(title="t"), owner["id"], owner["username"])
        assert repo.toggle_todo(todo["id"])["completed"] is True
        assert repo.toggle_todo(todo["id"])["completed"] is False
        assert repo.toggle_todo(999) is None

    def test_delete_is_idempotent(self, repo):
        owner = add_user(repo)
        todo = repo.create_todo(TodoDraft(title="t"), owner["id"], owner["username"])
        assert repo.delete_todo(todo["id"]) is True
        assert repo.delete_todo(todo["id"]) is False
        assert repo.get_todo(todo["id"]) is None

    def test_returned_records_are_copies(self):
        repo = InMemoryRepository()
        owner = add_user(repo)
        todo = repo.create_todo(TodoDraft(title="t"), owner["id"], owner["username"])
        todo["title"] = "mutated"
        assert repo.get_todo(todo["id"])["title"] == "t"


class TestConcurrentIds:
    def test_concurrent_creates_get_unique_ids(self, repo):
        owner = add_user(repo)
        ids = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                todo = repo.create_todo(TodoDraft(title="t"), owner["id"], owner["username"])
                with lock:
                    ids.append(todo["id"])

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ids) == 40
        assert len(set(ids)) == 40


class TestFactory:
    def test_memory_backend(self):
        assert isinstance(get_repository(Settings(persistence_backend="memory")), InMemoryRepository)

    def test_sqlite_backend(self, tmp_path):
        repo = get_repository(Settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "x.db")))
        assert isinstance(repo, SQLiteRepository)

    def test_sqlite_data_survives_reopen(self, tmp_path):
        path = str(tmp_path / "todos.db")
        first = SQLiteRepository(path)
        add_user(first, "alice")
        second = SQLiteRepository(path)
        assert second.get_user_by_username("alice") is not None

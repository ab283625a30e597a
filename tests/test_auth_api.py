from datetime import datetime, timedelta, timezone

from conftest import login, register

from todo_app.sessions import InMemorySessionStore


def register_payload(username="carol", email=None, password="secret-pass", confirm=None):
    return {
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
        "confirmPassword": confirm if confirm is not None else password,
    }


class TestRegister:
    def test_register_returns_user_without_password_and_logs_in(self, client):
        res = client.post("/api/auth/register", json=register_payload())
        assert res.status_code == 201
        user = res.json()
        assert user["username"] == "carol"
        assert user["email"] == "carol@example.com"
        assert user["role"] == "user"
        assert isinstance(user["id"], int)
        assert "password" not in user
        assert "todo_session" in res.cookies

        me = client.get("/api/user")
        assert me.status_code == 200
        assert me.json()["id"] == user["id"]

    def test_register_then_login_with_same_credentials(self, client, make_client):
        client.post("/api/auth/register", json=register_payload(password="hunter2-hunter2"))
        other = make_client()
        user = login(other, "carol", "hunter2-hunter2")
        assert user["username"] == "carol"

    def test_role_in_body_is_ignored(self, client):
        payload = register_payload()
        payload["role"] = "admin"
        res = client.post("/api/auth/register", json=payload)
        assert res.status_code == 201
        assert res.json()["role"] == "user"

    def test_duplicate_username_case_insensitive(self, client):
        register(client, "dave")
        res = client.post("/api/auth/register", json=register_payload(username="DAVE", email="other@example.com"))
        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "Conflict"
        assert body["message"] == "Username already exists"

    def test_duplicate_non_ascii_username(self, client, make_client):
        assert client.post("/api/auth/register", json=register_payload(username="émile", email="emile@example.com")).status_code == 201
        res = client.post("/api/auth/register", json=register_payload(username="ÉMILE", email="emile2@example.com"))
        assert res.status_code == 400
        assert res.json()["message"] == "Username already exists"
        assert login(make_client(), "ÉMILE", "secret-pass")["username"] == "émile"

    def test_duplicate_email_case_insensitive(self, client):
        register(client, "erin")
        res = client.post("/api/auth/register", json=register_payload(username="erin2", email="ERIN@example.com"))
        assert res.status_code == 400
        assert res.json()["message"] == "Email already exists"

    def test_seeded_accounts_are_taken(self, client):
        res = client.post("/api/auth/register", json=register_payload(username="admin", email="x@example.com"))
        assert res.status_code == 400
        assert res.json()["error"] == "Conflict"

    def test_password_mismatch(self, client):
        res = client.post("/api/auth/register", json=register_payload(confirm="something-else"))
        assert res.status_code == 400
        assert res.json()["error"] == "ValidationError"

    def test_short_password(self, client):
        res = client.post("/api/auth/register", json=register_payload(password="short"))
        assert res.status_code == 400

    def test_bad_email(self, client):
        res = client.post("/api/auth/register", json=register_payload(email="not-an-email"))
        assert res.status_code == 400

    def test_malformed_email_domains(self, client):
        for email in ["zed@foo..com", "zed@.example.com", "zed@example.com.", "zed@-example.com"]:
            res = client.post("/api/auth/register", json=register_payload(username="zed", email=email))
            assert res.status_code == 400, email
            assert res.json()["error"] == "ValidationError"
        assert client.post("/api/auth/register", json=register_payload(username="zed", email="zed@example.com")).status_code == 201

    def test_email_is_trimmed(self, client):
        res = client.post("/api/auth/register", json=register_payload(email="  carol@example.com "))
        assert res.status_code == 201
        assert res.json()["email"] == "carol@example.com"

    def test_missing_fields(self, client):
        res = client.post("/api/auth/register", json={"username": "frank"})
        assert res.status_code == 400


class TestLogin:
    def test_login_with_username(self, client):
        user = login(client, "admin")
        assert user["role"] == "admin"
        assert "password" not in user
        assert client.get("/api/user").json()["username"] == "admin"

    def test_login_with_email_falls_back(self, client):
        user = login(client, "user@example.com")
        assert user["username"] == "user"

    def test_login_username_is_case_insensitive(self, client):
        assert login(client, "ADMIN")["username"] == "admin"

    def test_wrong_password(self, client):
        res = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
        assert res.status_code == 401
        body = res.json()
        assert body["error"] == "InvalidCredentials"
        assert body["message"] == "Incorrect username/email or password"
        assert "todo_session" not in res.cookies

    def test_unknown_user(self, client):
        res = client.post("/api/auth/login", json={"username": "ghost", "password": "password"})
        assert res.status_code == 401

    def test_empty_fields_are_validation_errors(self, client):
        res = client.post("/api/auth/login", json={"username": "", "password": ""})
        assert res.status_code == 400


class TestSession:
    def test_current_user_requires_session(self, client):
        res = client.get("/api/user")
        assert res.status_code == 401
        assert res.json()["error"] == "Unauthenticated"

    def test_logout_ends_session(self, client):
        login(client, "user")
        res = client.post("/api/auth/logout")
        assert res.status_code == 200
        assert res.json()["message"] == "Logged out successfully"
        assert client.get("/api/user").status_code == 401

    def test_logout_invalidates_token_server_side(self, client, make_client):
        login(client, "user")
        token = client.cookies.get("todo_session")
        client.post("/api/auth/logout")

        replay = make_client()
        res = replay.get("/api/user", headers={"Cookie": f"todo_session={token}"})
        assert res.status_code == 401

    def test_logout_without_session_is_ok(self, client):
        assert client.post("/api/auth/logout").status_code == 200

    def test_session_expires_after_ttl(self, app, client):
        now = [datetime(2030, 1, 1, tzinfo=timezone.utc)]
        app.state.session_store = InMemorySessionStore(ttl_seconds=60, clock=lambda: now[0])

        login(client, "user")
        now[0] += timedelta(seconds=59)
        assert client.get("/api/user").status_code == 200

        # Activity does not extend the session
        now[0] += timedelta(seconds=1)
        assert client.get("/api/user").status_code == 401

    def test_role_change_applies_to_next_request(self, admin_client, alice_client):
        alice = alice_client.get("/api/user").json()
        assert alice_client.get("/api/admin/users").status_code == 403

        admin_client.patch(f"/api/admin/users/{alice['id']}/role", json={"role": "admin"})
        assert alice_client.get("/api/user").json()["role"] == "admin"
        assert alice_client.get("/api/admin/users").status_code == 200

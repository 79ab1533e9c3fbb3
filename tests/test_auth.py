"""Registration, login, token handling and profile routes."""
import json
import time

import jwt as pyjwt

from conftest import PASSWORD, bearer, register
from hackathon_api.core.config import settings
from hackathon_api.repositories import user_repo


class TestRegister:
    def test_returns_user_and_token_without_password(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "Alice@Example.com", "password": PASSWORD},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["token"]
        assert body["user"]["email"] == "alice@example.com"
        assert body["user"]["role"] == "user"
        assert "password" not in body["user"]

    def test_sets_cookie_in_cookie_mode(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": PASSWORD},
        )
        assert resp.cookies.get(settings.auth_cookie_name) == resp.json()["token"]

    def test_no_cookie_in_bearer_mode(self, client, monkeypatch):
        monkeypatch.setattr(settings, "auth_mode", "bearer")
        resp = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": PASSWORD},
        )
        assert resp.status_code == 201
        assert settings.auth_cookie_name not in resp.cookies

    def test_duplicate_email_conflicts(self, client):
        register(client)
        resp = client.post(
            "/api/auth/register",
            json={"username": "other", "email": "ALICE@example.com", "password": PASSWORD},
        )
        assert resp.status_code == 409
        assert resp.json() == {
            "success": False,
            "error": "User already exists with this email",
            "request_id": resp.headers["X-Request-Id"],
        }

    def test_weak_password_rejected(self, client, store):
        resp = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "alllowercase1"},
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert store.get(user_repo.email_key("alice@example.com")) is None

    def test_bad_username_rejected(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"username": "a b", "email": "alice@example.com", "password": PASSWORD},
        )
        assert resp.status_code == 400

    def test_admin_email_gets_admin_role(self, client):
        _, user = register(client, username="boss", email="admin@example.com")
        assert user["role"] == "admin"

    def test_password_is_hashed(self, client, store):
        _, user = register(client)
        stored = user_repo.get_user_by_id(store, user["id"])
        assert stored["password"] != PASSWORD
        assert stored["password"].startswith("$argon2")


class TestLogin:
    def test_valid_credentials(self, client):
        register(client)
        resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert resp.status_code == 200
        token = resp.json()["token"]
        client.cookies.clear()
        me = client.get("/api/auth/me", headers=bearer(token))
        assert me.json()["user"]["email"] == "alice@example.com"

    def test_wrong_password(self, client):
        register(client)
        resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "Wrong1234"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid credentials"

    def test_unknown_email(self, client):
        resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
        assert resp.status_code == 401

    def test_rate_limited_after_max_attempts(self, client):
        register(client)
        bad = {"email": "alice@example.com", "password": "Wrong1234"}
        for _ in range(settings.login_max_attempts):
            assert client.post("/api/auth/login", json=bad).status_code == 401
        resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert resp.status_code == 429

    def test_success_clears_attempts(self, client, store):
        register(client)
        client.post("/api/auth/login", json={"email": "alice@example.com", "password": "Wrong1234"})
        client.post("/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
        assert store.get("rate_limit:login:testclient") is None


class TestTokenExtraction:
    def test_missing_token(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"] == "No token provided"

    def test_placeholder_tokens_rejected(self, client):
        for value in ("null", "undefined"):
            resp = client.get("/api/auth/me", headers=bearer(value))
            assert resp.status_code == 401
            assert resp.json()["error"] == "Invalid token format"

    def test_garbage_token(self, client):
        resp = client.get("/api/auth/me", headers=bearer("not.a.jwt"))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid token"

    def test_cookie_accepted_in_cookie_mode(self, client):
        token, _ = register(client)
        client.cookies.set(settings.auth_cookie_name, token)
        assert client.get("/api/auth/me").status_code == 200

    def test_cookie_ignored_in_bearer_mode(self, client, monkeypatch):
        token, _ = register(client)
        monkeypatch.setattr(settings, "auth_mode", "bearer")
        client.cookies.set(settings.auth_cookie_name, token)
        assert client.get("/api/auth/me").status_code == 401
        client.cookies.clear()
        assert client.get("/api/auth/me", headers=bearer(token)).status_code == 200

    def test_expired_token(self, client):
        _, user = register(client)
        past = int(time.time()) - 7200
        token = pyjwt.encode(
            {"sub": user["id"], "iat": past, "exp": past + 60, "iss": settings.jwt_issuer, "aud": settings.jwt_audience},
            settings.jwt_secret,
            algorithm="HS256",
        )
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Token expired"

    def test_wrong_audience(self, client):
        _, user = register(client)
        now = int(time.time())
        token = pyjwt.encode(
            {"sub": user["id"], "iat": now, "exp": now + 60, "iss": settings.jwt_issuer, "aud": "someone-else"},
            settings.jwt_secret,
            algorithm="HS256",
        )
        assert client.get("/api/auth/me", headers=bearer(token)).status_code == 401

    def test_legacy_user_id_claim(self, client):
        _, user = register(client)
        now = int(time.time())
        token = pyjwt.encode(
            {"userId": user["id"], "email": user["email"], "role": "user", "iat": now, "exp": now + 7 * 24 * 3600},
            settings.jwt_secret,
            algorithm="HS256",
        )
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json()["user"]["id"] == user["id"]

    def test_legacy_token_expired(self, client):
        _, user = register(client)
        past = int(time.time()) - 3600
        token = pyjwt.encode({"userId": user["id"], "iat": past, "exp": past + 60}, settings.jwt_secret, algorithm="HS256")
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Token expired"

    def test_sub_token_without_audience_rejected(self, client):
        _, user = register(client)
        now = int(time.time())
        token = pyjwt.encode({"sub": user["id"], "iat": now, "exp": now + 60}, settings.jwt_secret, algorithm="HS256")
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid token"

    def test_deleted_user(self, client, store):
        token, user = register(client)
        store.delete(user_repo.user_key(user["id"]))
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "User not found"

    def test_role_read_from_store(self, client, store):
        token, user = register(client)
        stored = user_repo.get_user_by_id(store, user["id"])
        stored["role"] = "admin"
        store.set(user_repo.user_key(user["id"]), json.dumps(stored))
        resp = client.get("/api/auth/me", headers=bearer(token))
        assert resp.json()["user"]["role"] == "admin"


class TestLogout:
    def test_revokes_token(self, client, store):
        token, _ = register(client)
        resp = client.delete("/api/auth/logout", headers=bearer(token))
        assert resp.status_code == 200
        payload = pyjwt.decode(token, options={"verify_signature": False})
        assert store.ttl(f"blacklist:{payload['jti']}") > 0

        again = client.get("/api/auth/me", headers=bearer(token))
        assert again.status_code == 401
        assert again.json()["error"] == "Token has been revoked"


class TestProfile:
    def test_update_name_and_preferences(self, client):
        token, user = register(client)
        resp = client.put(
            "/api/auth/profile",
            headers=bearer(token),
            json={"name": "Alice A.", "preferences": {"theme": "dark"}},
        )
        assert resp.status_code == 200
        updated = resp.json()["user"]
        assert updated["name"] == "Alice A."
        assert updated["preferences"] == {"theme": "dark"}
        assert updated["updatedAt"] > user["updatedAt"]
        assert "password" not in updated

    def test_email_change_moves_index(self, client, store):
        token, user = register(client)
        resp = client.put("/api/auth/profile", headers=bearer(token), json={"email": "new@example.com"})
        assert resp.status_code == 200
        assert store.get(user_repo.email_key("alice@example.com")) is None
        assert store.get(user_repo.email_key("new@example.com")) == user["id"]

        login = client.post("/api/auth/login", json={"email": "new@example.com", "password": PASSWORD})
        assert login.status_code == 200

    def test_email_change_to_taken_email(self, client):
        token, _ = register(client)
        register(client, username="bob", email="bob@example.com")
        resp = client.put("/api/auth/profile", headers=bearer(token), json={"email": "bob@example.com"})
        assert resp.status_code == 409

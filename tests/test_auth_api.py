"""
Auth endpoints through the Flask test client: register, login, refresh,
logout, and the login -> authenticate -> refresh -> role change scenario.
"""
from __future__ import annotations

from tests.conftest import PASSWORD, bearer, login


def register(client, email="alice@example.com", username="alice", password=PASSWORD):
    return client.post(
        "/api/v1/auth/register",
        json={"email": email, "username": username, "password": password},
    )


class TestRegister:
    def test_register_creates_user(self, client):
        resp = register(client)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["data"]["username"] == "alice"
        assert body["data"]["role"] == "user"
        assert "password" not in body["data"]

    def test_duplicate_email_or_username_conflicts(self, client):
        register(client)
        assert register(client, username="other").status_code == 409
        assert register(client, email="other@example.com").status_code == 409

    def test_validation(self, client):
        resp = register(client, password="short")
        assert resp.status_code == 422
        assert "password" in resp.get_json()["details"]
        assert register(client, email="not-an-email").status_code == 422
        assert register(client, username="ab").status_code == 422


class TestLogin:
    def test_login_returns_token_pair_and_user(self, client):
        register(client)
        resp = login(client)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["access_token"] and body["refresh_token"]
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 15 * 60
        assert body["user"]["email"] == "alice@example.com"

    def test_login_by_email(self, client):
        register(client)
        assert login(client, "alice@example.com").status_code == 200

    def test_bad_credentials_are_indistinguishable(self, client):
        register(client)
        wrong_pw = login(client, "alice", "wrong-password")
        unknown = login(client, "nobody", PASSWORD)
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.get_json() == unknown.get_json()

    def test_missing_fields(self, client):
        assert client.post("/api/v1/auth/login", json={"login": "alice"}).status_code == 422


class TestRefreshAndLogout:
    def test_refresh_rotates(self, client):
        register(client)
        tokens = login(client).get_json()

        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200
        new_tokens = resp.get_json()
        assert new_tokens["refresh_token"] != tokens["refresh_token"]

        reused = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert reused.status_code == 401
        assert reused.get_json()["error"] == "INVALID_REFRESH_TOKEN"

    def test_garbage_refresh_token(self, client):
        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid refresh token"

    def test_logout_revokes_refresh_token(self, client):
        register(client)
        tokens = login(client).get_json()
        headers = bearer(tokens["access_token"])
        body = {"refresh_token": tokens["refresh_token"]}

        assert client.post("/api/v1/auth/logout", json=body, headers=headers).status_code == 200
        # second logout is not an error
        assert client.post("/api/v1/auth/logout", json=body, headers=headers).status_code == 200
        assert client.post("/api/v1/auth/refresh", json=body).status_code == 401

    def test_logout_requires_access_token(self, client):
        resp = client.post("/api/v1/auth/logout", json={"refresh_token": "x"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "UNAUTHORIZED"

    def test_logout_cannot_end_another_users_session(self, client, api_user):
        api_user(username="alice")
        api_user(username="bob")
        alice = login(client, "alice").get_json()
        bob = login(client, "bob").get_json()

        client.post(
            "/api/v1/auth/logout",
            json={"refresh_token": alice["refresh_token"]},
            headers=bearer(bob["access_token"]),
        )
        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": alice["refresh_token"]})
        assert resp.status_code == 200


def test_end_to_end_session_lifecycle(client, api_user):
    api_user(username="alice", user_id=42)
    api_user(username="root", role="admin")

    tokens = login(client, "alice").get_json()
    assert tokens["user"]["id"] == 42

    profile = client.get("/api/v1/users/profile", headers=bearer(tokens["access_token"]))
    assert profile.status_code == 200
    assert profile.get_json()["user"]["id"] == 42

    # role still "user": admin routes are forbidden, not unauthorized
    assert client.get("/api/v1/admin/users", headers=bearer(tokens["access_token"])).status_code == 403

    admin = login(client, "root").get_json()
    promoted = client.put(
        "/api/v1/admin/users/42/role", json={"role": "admin"}, headers=bearer(admin["access_token"])
    )
    assert promoted.status_code == 200

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).get_json()
    assert refreshed["refresh_token"] != tokens["refresh_token"]

    resp = client.get("/api/v1/admin/users", headers=bearer(refreshed["access_token"]))
    assert resp.status_code == 200

    old = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert old.status_code == 401

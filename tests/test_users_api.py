"""Profile, password change and account deletion endpoints."""
from __future__ import annotations

import pytest

from tests.conftest import PASSWORD, bearer, login


@pytest.fixture
def tokens(client, api_user):
    api_user(username="alice")
    return login(client, "alice").get_json()


def test_profile_requires_token(client):
    assert client.get("/api/v1/users/profile").status_code == 401
    resp = client.get("/api/v1/users/profile", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


def test_empty_profile_for_new_user(client, tokens):
    resp = client.get("/api/v1/users/profile", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"]["username"] == "alice"
    assert body["profile"] == {"firstName": "", "lastName": "", "bio": "", "avatarURL": ""}


def test_update_profile_creates_then_updates(client, tokens):
    headers = bearer(tokens["access_token"])
    resp = client.put(
        "/api/v1/users/profile",
        json={"firstName": "Alice", "lastName": "Liddell", "bio": "Down the hole", "avatarURL": "https://x/a.png"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["firstName"] == "Alice"

    resp = client.put("/api/v1/users/profile", json={"firstName": "Al"}, headers=headers)
    assert resp.status_code == 200

    profile = client.get("/api/v1/users/profile", headers=headers).get_json()["profile"]
    assert profile["firstName"] == "Al"
    assert profile["lastName"] == ""


def test_change_password(client, tokens):
    headers = bearer(tokens["access_token"])
    resp = client.put(
        "/api/v1/users/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "a-brand-new-password"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert login(client, "alice", PASSWORD).status_code == 401
    assert login(client, "alice", "a-brand-new-password").status_code == 200


def test_change_password_wrong_current(client, tokens):
    resp = client.put(
        "/api/v1/users/change-password",
        json={"currentPassword": "not-it-at-all", "newPassword": "a-brand-new-password"},
        headers=bearer(tokens["access_token"]),
    )
    assert resp.status_code == 401


def test_change_password_validates_length(client, tokens):
    resp = client.put(
        "/api/v1/users/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "short"},
        headers=bearer(tokens["access_token"]),
    )
    assert resp.status_code == 422


def test_delete_account(client, tokens):
    headers = bearer(tokens["access_token"])
    client.put("/api/v1/users/profile", json={"firstName": "Alice"}, headers=headers)

    resp = client.delete("/api/v1/users/account", headers=headers)
    assert resp.status_code == 200

    assert login(client).status_code == 401
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 401
    # the access token itself lives until expiry, but the account is gone
    assert client.get("/api/v1/users/profile", headers=headers).status_code == 404

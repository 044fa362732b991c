"""Admin endpoints, role gate over HTTP, and the purge-sessions command."""
from __future__ import annotations

import pytest

from tests.conftest import bearer, login


@pytest.fixture
def admin_headers(client, api_user):
    api_user(username="root", role="admin")
    return bearer(login(client, "root").get_json()["access_token"])


@pytest.fixture
def user_headers(client, api_user):
    api_user(username="alice")
    return bearer(login(client, "alice").get_json()["access_token"])


def test_list_users_requires_token(client):
    resp = client.get("/api/v1/admin/users")
    assert resp.status_code == 401


def test_list_users_forbidden_for_plain_users(client, user_headers):
    resp = client.get("/api/v1/admin/users", headers=user_headers)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "FORBIDDEN"


def test_list_users(client, admin_headers, user_headers):
    client.put("/api/v1/users/profile", json={"firstName": "Alice", "lastName": "L"}, headers=user_headers)

    resp = client.get("/api/v1/admin/users", headers=admin_headers)
    assert resp.status_code == 200
    users = {u["username"]: u for u in resp.get_json()["users"]}
    assert set(users) == {"root", "alice"}
    assert users["alice"]["profile"] == {"firstName": "Alice", "lastName": "L"}
    assert users["root"]["profile"] == {"firstName": "", "lastName": ""}
    assert users["alice"]["verified"] is False
    assert users["alice"]["createdAt"]


def test_change_role(client, api_user, admin_headers):
    target = api_user(username="bob")
    resp = client.put(f"/api/v1/admin/users/{target.id}/role", json={"role": "admin"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["user"]["role"] == "admin"


def test_change_role_validates(client, api_user, admin_headers):
    target = api_user(username="bob")
    resp = client.put(f"/api/v1/admin/users/{target.id}/role", json={"role": "superuser"}, headers=admin_headers)
    assert resp.status_code == 422


def test_change_role_unknown_user(client, admin_headers):
    resp = client.put("/api/v1/admin/users/9999/role", json={"role": "user"}, headers=admin_headers)
    assert resp.status_code == 404


def test_change_role_forbidden_for_plain_users(client, api_user, user_headers):
    target = api_user(username="bob")
    resp = client.put(f"/api/v1/admin/users/{target.id}/role", json={"role": "admin"}, headers=user_headers)
    assert resp.status_code == 403


def test_purge_sessions_command(app, client, user_headers):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["purge-sessions"])
    assert result.exit_code == 0
    assert "Purged 0 expired refresh session(s)." in result.output


def test_health_and_root(client):
    assert client.get("/api/v1/health").get_json()["status"] == "ok"
    assert client.get("/").status_code == 200

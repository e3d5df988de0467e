"""Shared helpers for portal integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.testclient import TestClient

from core.auth.settings import AuthSettings
from portal.server.app import create_app
from portal.server.settings import PortalServerSettings

if TYPE_CHECKING:
    import httpx

ADMIN_PASSWORD = "test-admin-password"  # noqa: S105


def make_client(tmp_path, clock, **settings) -> TestClient:
    app = create_app(
        settings=PortalServerSettings(static_dir=str(tmp_path / "public"), **settings),
        auth_settings=AuthSettings(
            admin_password=ADMIN_PASSWORD,
            password_hasher="simple",
            data_dir=str(tmp_path / "data"),
        ),
        clock=clock,
    )
    return TestClient(app)


def session_headers(login_response: httpx.Response) -> dict[str, str]:
    session = login_response.json()["session"]
    return {"X-Session-User": session["username"], "X-Session-Token": session["token"]}


def login(client: TestClient, username: str, password: str) -> httpx.Response:
    return client.post("/api/auth/login", json={"username": username, "password": password})


def admin_headers(client: TestClient) -> dict[str, str]:
    response = login(client, "admin", ADMIN_PASSWORD)
    assert response.status_code == 200, response.text
    return session_headers(response)


def create_user(client: TestClient, headers: dict[str, str], username: str, days: int) -> str:
    """Create a user through the admin API and return its access code."""
    response = client.post("/api/users/create", json={"username": username, "expirationDays": days}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["user"]["password"]

"""Admin endpoints for provisioning and removing accounts."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from core.auth.errors import NotFoundError
from portal.views.common import account_json, iso, parse_body, success
from portal.views.types import CreateUserRequest

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from core.auth.service import AuthService


async def create_user(request: Request) -> Response:
    """POST /api/users/create {username, expirationDays} - returns the one-time access code."""
    auth_service: AuthService = request.app.state.auth_service
    body = await parse_body(request, CreateUserRequest)

    created = await auth_service.accounts.create_account(body.username, body.expiration_days)
    return success(
        user={
            "username": created.username,
            "password": created.password,
            "expiresAt": iso(created.expires_at),
        },
    )


async def list_users(request: Request) -> Response:
    """GET /api/users"""
    auth_service: AuthService = request.app.state.auth_service
    accounts = await auth_service.accounts.list_accounts()
    return success(users=[account_json(a) for a in accounts])


async def delete_user(request: Request) -> Response:
    """DELETE /api/users/{username} - also closes the user's session if one is open."""
    auth_service: AuthService = request.app.state.auth_service
    username = request.path_params["username"]
    await auth_service.accounts.delete_account(username)
    with contextlib.suppress(NotFoundError):
        await auth_service.force_logout(username)
    return success()

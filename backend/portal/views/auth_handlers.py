"""Login, heartbeat and logout endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from portal.views.common import iso, parse_body, session_json, success
from portal.views.types import LoginRequest, SessionRequest

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from core.auth.service import AuthService
    from core.auth.settings import AuthSettings


async def login(request: Request) -> Response:
    """POST /api/auth/login {username, password}

    401 for bad credentials or an expired account, 423 while another live
    session holds the username.
    """
    auth_service: AuthService = request.app.state.auth_service
    auth_settings: AuthSettings = request.app.state.auth_settings
    body = await parse_body(request, LoginRequest)

    account, session = await auth_service.login(body.username, body.password)
    return success(
        user={"username": account.username, "role": account.role.value, "expiresAt": iso(account.expires_at)},
        session={
            **session_json(session, include_token=True),
            "heartbeatInterval": auth_settings.heartbeat_interval_seconds,
        },
    )


async def heartbeat(request: Request) -> Response:
    """POST /api/auth/heartbeat {username, token}"""
    auth_service: AuthService = request.app.state.auth_service
    body = await parse_body(request, SessionRequest)
    await auth_service.heartbeat(body.username, body.token)
    return success()


async def logout(request: Request) -> Response:
    """POST /api/auth/logout {username, token}"""
    auth_service: AuthService = request.app.state.auth_service
    body = await parse_body(request, SessionRequest)
    await auth_service.logout(body.username, body.token)
    return success()

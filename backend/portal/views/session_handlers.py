"""Admin endpoints for inspecting and evicting sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from portal.views.common import session_json, success

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from core.auth.service import AuthService


async def list_sessions(request: Request) -> Response:
    """GET /api/sessions - live sessions only; stale ones are evicted first."""
    auth_service: AuthService = request.app.state.auth_service
    sessions = await auth_service.sessions.list_active()
    return success(sessions=[session_json(s) for s in sessions])


async def force_logout(request: Request) -> Response:
    """DELETE /api/sessions/{username} - free a stuck session regardless of token."""
    auth_service: AuthService = request.app.state.auth_service
    await auth_service.force_logout(request.path_params["username"])
    return success()

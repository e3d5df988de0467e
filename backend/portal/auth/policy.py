"""Route auth policy helpers for fail-closed authorization.

Each helper wraps a route endpoint and sets the ``AUTH_POLICY_ATTR`` marker
so that startup validation can verify every route has an explicit auth policy.
"""

from __future__ import annotations

import functools
from http import HTTPStatus
from typing import TYPE_CHECKING

from starlette.authentication import has_required_scope
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.routing import BaseRoute

    Endpoint = Callable[..., Awaitable[Response]]

AUTH_POLICY_ATTR = "__auth_policy__"


def _mark(wrapper: Endpoint, policy: str) -> Endpoint:
    setattr(wrapper, AUTH_POLICY_ATTR, policy)
    return wrapper


def public_route(endpoint: Endpoint) -> Endpoint:
    """Mark endpoint as explicitly public.

    Endpoints that take {username, token} in the body (heartbeat, logout,
    search recording, bets) are public here and check the session themselves.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        return await endpoint(request, **kwargs)

    return _mark(wrapper, "public")


def session_api(endpoint: Endpoint) -> Endpoint:
    """Require a live session in the request headers; 401 otherwise."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        if not has_required_scope(request, ["authenticated"]):
            raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Authentication required")
        return await endpoint(request, **kwargs)

    return _mark(wrapper, "session_api")


def admin_api(endpoint: Endpoint) -> Endpoint:
    """Require a live admin session: 401 without a session, 403 for non-admins.

    Skipped entirely when the server runs with admin_api_auth disabled.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request, **kwargs: str) -> Response:
        if request.app.state.settings.admin_api_auth:
            if not has_required_scope(request, ["authenticated"]):
                raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Authentication required")
            if not has_required_scope(request, ["admin"]):
                return JSONResponse(
                    {"success": False, "error": "Admin account required"},
                    status_code=HTTPStatus.FORBIDDEN,
                )
        return await endpoint(request, **kwargs)

    return _mark(wrapper, "admin_api")


def validate_route_auth_policy(routes: list[BaseRoute]) -> None:
    """Verify every Route has an auth policy marker. Mount routes are exempt.

    Raises RuntimeError listing all unclassified routes if any are found.
    """
    unclassified: list[str] = []
    for route in routes:
        if isinstance(route, Mount):
            continue
        if isinstance(route, Route) and not hasattr(route.endpoint, AUTH_POLICY_ATTR):
            name = route.name or getattr(route.endpoint, "__name__", "unknown")
            unclassified.append(f"{route.path} ({name})")

    if unclassified:
        details = ", ".join(unclassified)
        msg = f"Unclassified routes missing auth policy: {details}"
        raise RuntimeError(msg)

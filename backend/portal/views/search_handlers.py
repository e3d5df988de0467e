"""Search-log endpoints: record a query for a live session, list every entry for admins."""

from __future__ import annotations

from typing import TYPE_CHECKING

from portal.views.common import parse_body, search_json, success
from portal.views.types import SearchRequest

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from core.auth.service import AuthService


async def record_search(request: Request) -> Response:
    """POST /api/searches {username, token, query, timestamp?}

    The session is validated but not refreshed.
    """
    auth_service: AuthService = request.app.state.auth_service
    body = await parse_body(request, SearchRequest)
    await auth_service.record_search(body.username, body.token, body.query, body.timestamp)
    return success()


async def list_searches(request: Request) -> Response:
    auth_service: AuthService = request.app.state.auth_service
    entries = await auth_service.searches.list_searches()
    return success(searches=[search_json(e) for e in entries])

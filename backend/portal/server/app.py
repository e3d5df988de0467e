"""Starlette application factory for the portal server."""

from __future__ import annotations

import contextlib
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from core.auth import AccountStore, AuthService, AuthSettings, SearchLog, SessionRegistry, get_hasher
from core.auth.errors import InternalError, PortalError
from core.clock import utc_now
from core.logging import setup_logging
from portal.auth import SessionHeaderBackend, admin_api, public_route, session_api, validate_route_auth_policy
from portal.server.middleware import SecurityHeadersMiddleware, SlashNormalizationMiddleware
from portal.server.rate_limit import RateLimitMiddleware
from portal.server.settings import PortalServerSettings
from portal.views import (
    create_user,
    delete_user,
    force_logout,
    get_credits,
    heartbeat,
    list_searches,
    list_sessions,
    list_users,
    login,
    logout,
    place_bet,
    record_search,
)

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from core.clock import Clock


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


async def _portal_error_handler(_request: Request, exc: Exception) -> Response:
    error = cast("PortalError", exc)
    return _error_response(error.message, error.status_code)


async def _storage_error_handler(request: Request, exc: Exception) -> Response:
    """Log storage failures in full but answer with a generic 500."""
    logger.error("storage failure", path=request.url.path, method=request.method, exc_info=exc)
    error = InternalError()
    return _error_response(error.message, error.status_code)


async def _http_error_handler(_request: Request, exc: Exception) -> Response:
    http_exc = cast("HTTPException", exc)
    if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
        return Response(status_code=http_exc.status_code, headers=http_exc.headers)
    response = _error_response(http_exc.detail or "", http_exc.status_code)
    if http_exc.headers:
        response.headers.update(http_exc.headers)
    return response


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def build_auth_service(auth_settings: AuthSettings, clock: Clock) -> AuthService:
    accounts = AccountStore(
        auth_settings.accounts_file,
        password_hasher=get_hasher(auth_settings.password_hasher),
        clock=clock,
        admin_username=auth_settings.admin_username,
        admin_password=auth_settings.admin_password,
    )
    sessions = SessionRegistry(
        auth_settings.sessions_file,
        clock=clock,
        staleness_seconds=auth_settings.session_staleness_seconds,
    )
    searches = SearchLog(
        auth_settings.searches_file,
        clock=clock,
        max_entries=auth_settings.search_log_max_entries,
    )
    return AuthService(
        accounts,
        sessions,
        searches,
        clock=clock,
        sweep_interval_seconds=auth_settings.sweep_interval_seconds,
    )


def create_app(
    settings: PortalServerSettings | None = None,
    auth_settings: AuthSettings | None = None,  # required in production (via get_app)
    *,
    clock: Clock | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = PortalServerSettings()
    if auth_settings is None:  # pragma: no cover
        auth_settings = AuthSettings()  # type: ignore[call-arg]
    if clock is None:
        clock = utc_now

    routes = [
        # Account administration
        Route("/api/users/create", admin_api(create_user), methods=["POST"], name="create_user"),
        Route("/api/users", admin_api(list_users), methods=["GET"], name="list_users"),
        Route("/api/users/{username}", admin_api(delete_user), methods=["DELETE"], name="delete_user"),
        # Session lifecycle ({username, token} travel in the body)
        Route("/api/auth/login", public_route(login), methods=["POST"], name="login"),
        Route("/api/auth/heartbeat", public_route(heartbeat), methods=["POST"], name="heartbeat"),
        Route("/api/auth/logout", public_route(logout), methods=["POST"], name="logout"),
        # Session administration
        Route("/api/sessions", admin_api(list_sessions), methods=["GET"], name="list_sessions"),
        Route("/api/sessions/{username}", admin_api(force_logout), methods=["DELETE"], name="force_logout"),
        # Search log
        Route("/api/searches", public_route(record_search), methods=["POST"], name="record_search"),
        Route("/api/searches", admin_api(list_searches), methods=["GET"], name="list_searches"),
        # Credits and games
        Route("/api/credits", session_api(get_credits), methods=["GET"], name="get_credits"),
        Route("/api/gambling/bet", public_route(place_bet), methods=["POST"], name="place_bet"),
        Route("/health", public_route(health), methods=["GET"], name="health"),
    ]

    static_dir = Path(settings.static_dir).resolve()
    if static_dir.is_dir():
        routes.append(Mount("/", app=StaticFiles(directory=str(static_dir), html=True), name="static"))
    else:
        logger.warning("static directory not found, pages will not be served", path=str(static_dir))

    validate_route_auth_policy(routes)

    auth_service = build_auth_service(auth_settings, clock)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        # Loads (or bootstraps) the documents and clears whatever expired while we were down.
        removed_accounts, removed_sessions = await auth_service.run_sweeps()
        logger.info("startup sweep finished", accounts=removed_accounts, sessions=removed_sessions)
        auth_service.start_sweeps()
        yield
        await auth_service.stop_sweeps()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={
            PortalError: _portal_error_handler,
            OSError: _storage_error_handler,
            HTTPException: _http_error_handler,
        },
    )
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(AuthenticationMiddleware, backend=SessionHeaderBackend(auth_service))  # type: ignore[arg-type]
    app.add_middleware(
        RateLimitMiddleware,  # type: ignore[arg-type]
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "X-Session-User", "X-Session-Token"],
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]

    app.state.settings = settings
    app.state.auth_settings = auth_settings
    app.state.auth_service = auth_service
    app.state.clock = clock

    logger.info("portal server ready", data_dir=auth_settings.data_dir)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory portal.server.app:get_app."""
    s = PortalServerSettings()
    auth = AuthSettings()  # type: ignore[call-arg]
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, auth_settings=auth)

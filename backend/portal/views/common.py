"""Body parsing and wire serialization shared by the API handlers."""

from __future__ import annotations

import json
from datetime import UTC
from typing import TYPE_CHECKING, TypeVar

import pydantic
from starlette.responses import JSONResponse

from core.auth.errors import ValidationError

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any

    from starlette.requests import Request

    from core.auth.models import AccountSummary, SearchEntry, Session

BodyT = TypeVar("BodyT", bound=pydantic.BaseModel)


def describe_validation_error(exc: pydantic.ValidationError) -> str:
    fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
    if not fields:
        return "Invalid request body"
    return f"Missing or invalid fields: {', '.join(fields)}"


async def parse_body(request: Request, model: type[BodyT]) -> BodyT:
    """Parse and validate a JSON object body. Raises ValidationError (400)."""
    try:
        body = await request.json()
    except (ValueError, json.JSONDecodeError) as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise ValidationError("Expected a JSON object")
    try:
        return model.model_validate(body)
    except pydantic.ValidationError as exc:
        raise ValidationError(describe_validation_error(exc)) from exc


def success(status_code: int = 200, **payload: Any) -> JSONResponse:  # noqa: ANN401
    return JSONResponse({"success": True, **payload}, status_code=status_code)


def iso(value: datetime | None) -> str | None:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    if value is None:
        return None
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def account_json(account: AccountSummary) -> dict[str, Any]:
    return {
        "username": account.username,
        "role": account.role.value,
        "createdAt": iso(account.created_at),
        "expiresAt": iso(account.expires_at),
        "isExpired": account.is_expired,
    }


def session_json(session: Session, *, include_token: bool = False) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "username": session.username,
        "loginTime": iso(session.login_time),
        "lastSeen": iso(session.last_seen),
        "role": session.role.value,
    }
    if include_token:
        payload["token"] = session.token
    return payload


def search_json(entry: SearchEntry) -> dict[str, Any]:
    return {"username": entry.username, "query": entry.query, "timestamp": iso(entry.timestamp)}

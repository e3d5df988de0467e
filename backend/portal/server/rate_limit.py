"""Per-client token-bucket rate limiting for the HTTP API."""

from __future__ import annotations

import time
from http import HTTPStatus
from typing import TYPE_CHECKING

import structlog
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

logger = structlog.get_logger()

# Full buckets hold no state worth keeping; they are dropped every N requests.
_PRUNE_EVERY_REQUESTS = 1_000


class TokenBucket:
    """Rate limiter using the token bucket algorithm.

    Tokens are added at a constant rate up to a maximum burst capacity.
    Each consume() call removes one token; returns False when the bucket
    is empty (caller should throttle).
    """

    def __init__(self, rate: float, burst: int) -> None:
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()

    def _refill(self, now: float) -> None:
        elapsed = now - self._last_refill
        self._tokens = min(self._burst, self._tokens + elapsed * self._rate)
        self._last_refill = now

    def consume(self) -> bool:
        """Try to consume one token. Returns True if allowed, False if rate-limited."""
        self._refill(time.monotonic())
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return True
        return False

    def is_full(self) -> bool:
        self._refill(time.monotonic())
        return self._tokens >= self._burst


class RateLimitMiddleware:
    """Give every client address its own bucket of max_requests per window_seconds.

    Requests over budget get a 429 JSON response in the API's error shape.
    """

    def __init__(self, app: ASGIApp, *, max_requests: int, window_seconds: float) -> None:
        self.app = app
        self._burst = max_requests
        self._rate = max_requests / window_seconds
        self._buckets: dict[str, TokenBucket] = {}
        self._requests_seen = 0

    def _bucket_for(self, client: str) -> TokenBucket:
        bucket = self._buckets.get(client)
        if bucket is None:
            bucket = TokenBucket(self._rate, self._burst)
            self._buckets[client] = bucket
        return bucket

    def _prune(self) -> None:
        self._buckets = {client: b for client, b in self._buckets.items() if not b.is_full()}

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        self._requests_seen += 1
        if self._requests_seen % _PRUNE_EVERY_REQUESTS == 0:
            self._prune()

        client = scope.get("client")
        key = client[0] if client else "unknown"
        if not self._bucket_for(key).consume():
            logger.warning("rate limit exceeded", client=key, path=scope["path"])
            response = JSONResponse(
                {"success": False, "error": "Too many requests"},
                status_code=HTTPStatus.TOO_MANY_REQUESTS,
            )
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)

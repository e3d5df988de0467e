"""Wall-clock source injected into the stores so tests can move time."""

from collections.abc import Callable
from datetime import UTC, datetime

# Returns the current time as an aware UTC datetime.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)

"""structlog setup for the portal process.

LOG_FORMAT picks the renderer ("json" for shipping, "console" or unset for
humans). LOG_LEVEL picks the root level, INFO by default. Credential fields
(password, password_hash, token) are masked before any handler sees them.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

    EventDict = MutableMapping[str, Any]

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = ("json", "console", "")
_LOG_LEVELS = ("CRITICAL", "DEBUG", "ERROR", "INFO", "WARNING")

_SECRET_KEYS = frozenset({"password", "password_hash", "token"})
_REDACTED = "[redacted]"


def _redact_secrets(_logger: object, _method_name: str, event_dict: EventDict) -> EventDict:
    for key in _SECRET_KEYS.intersection(event_dict):
        event_dict[key] = _REDACTED
    return event_dict


def _render_values(_logger: object, _method_name: str, event_dict: EventDict) -> EventDict:
    """Render enums as their value and datetimes as ISO strings."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, datetime):
            event_dict[key] = value.isoformat()
    return event_dict


# Runs at the call site; the renderer lives on each handler's formatter.
_EVENT_PROCESSORS = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    _redact_secrets,
    _render_values,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
)


def _is_test() -> bool:
    return "pytest" in sys.modules


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = os.environ.get(name, default)
    value = value.upper() if name == "LOG_LEVEL" else value.lower()
    if value not in choices:
        allowed = ", ".join(repr(c) for c in choices if c)
        raise ValueError(f"Invalid {name}={value!r}. Must be one of {allowed}.")
    return value


def _formatter(*, json_mode: bool, colors: bool = False) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors),
        ],
    )


def _open_log_file(log_dir: Path | str, *, json_mode: bool) -> logging.FileHandler:
    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(dir_path / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log")
    handler.setFormatter(_formatter(json_mode=json_mode))
    return handler


def setup_logging(log_dir: Path | str | None = None, level: int | None = None) -> Path | None:
    """Send structlog events through the root logger to stdout and, outside tests, a log file.

    Returns the log file path when one was opened.
    """
    json_mode = _env_choice("LOG_FORMAT", "", _LOG_FORMATS) == "json"
    if level is None:
        level = getattr(logging, _env_choice("LOG_LEVEL", "INFO", _LOG_LEVELS))

    structlog.configure(
        processors=list(_EVENT_PROCESSORS),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(json_mode=json_mode, colors=sys.stdout.isatty()))
    root.addHandler(console)

    if log_dir is None or _is_test():
        return None
    file_handler = _open_log_file(log_dir, json_mode=json_mode)
    root.addHandler(file_handler)
    return Path(file_handler.baseFilename)

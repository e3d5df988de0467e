"""Flat-file JSON documents for the portal's persisted state.

Accounts, sessions and the search log each live in their own document and
are rewritten in full on every mutation. Writes go to a temp file in the
same directory and are renamed into place, so a crash leaves either the old
or the new document on disk, never a truncated one. Files are owner-only
(0o600) since the account document holds password hashes.
"""

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_DATA_DIR_MODE = 0o700
_DATA_FILE_MODE = 0o600


class JsonDocument:
    """A single JSON file read once at startup and replaced atomically on save."""

    def __init__(self, file_path: str | Path) -> None:
        self._file_path = Path(file_path)

    @property
    def path(self) -> Path:
        return self._file_path

    def exists(self) -> bool:
        return self._file_path.exists()

    def load(self, expected_type: type[list] | type[dict]) -> Any:  # noqa: ANN401
        """Return the parsed document, or None when the file does not exist yet.

        Raises OSError when an existing file cannot be read, does not parse,
        or has the wrong root type. Callers must not overwrite a file they
        failed to read.
        """
        if not self._file_path.exists():
            return None

        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            msg = f"Failed to load {self._file_path}"
            raise OSError(msg) from exc

        if not isinstance(data, expected_type):
            msg = f"Expected JSON {expected_type.__name__} at root in {self._file_path}"
            raise OSError(msg)
        return data

    def save(self, data: list | dict) -> None:
        """Write the whole document atomically (temp file, fsync, rename)."""
        directory = self._file_path.parent
        directory.mkdir(mode=_DATA_DIR_MODE, parents=True, exist_ok=True)
        content = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{self._file_path.stem}_", suffix=".tmp")
        fd_owned = True
        try:
            with os.fdopen(fd, "wb") as f:
                fd_owned = False  # os.fdopen took ownership; it will close fd
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
                os.fchmod(f.fileno(), _DATA_FILE_MODE)
            Path(tmp_path).replace(self._file_path)
        except BaseException:
            if fd_owned:
                with contextlib.suppress(OSError):
                    os.close(fd)
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            logger.exception("failed to write document", path=str(self._file_path))
            raise

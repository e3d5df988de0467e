"""Append-only search log with FIFO retention."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from core.auth.models import SearchEntry
from core.clock import utc_now
from core.storage import JsonDocument

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from core.clock import Clock

DEFAULT_MAX_ENTRIES = 5000


class SearchLog:
    """Chronological record of user queries, capped at max_entries (oldest dropped first).

    The caller is responsible for checking the session before recording.
    """

    def __init__(
        self,
        file_path: str | Path,
        *,
        clock: Clock = utc_now,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        self._document = JsonDocument(file_path)
        self._clock = clock
        self._max_entries = max_entries
        self._entries: list[SearchEntry] = []
        self._lock = asyncio.Lock()
        self._loaded = False

    async def _ensure_loaded(self) -> None:
        async with self._lock:
            if self._loaded:
                return
            data = self._document.load(list) or []
            try:
                self._entries = [SearchEntry.model_validate(item) for item in data]
            except ValueError as exc:
                msg = f"Failed to parse search log from {self._document.path}"
                raise OSError(msg) from exc
            self._loaded = True

    async def record(self, username: str, query: str, timestamp: datetime | None = None) -> SearchEntry:
        await self._ensure_loaded()
        entry = SearchEntry(username=username, query=query, timestamp=timestamp or self._clock())
        async with self._lock:
            previous = self._entries
            entries = [*previous, entry]
            if len(entries) > self._max_entries:
                entries = entries[-self._max_entries :]
            self._entries = entries
            try:
                self._document.save([e.model_dump(mode="json") for e in entries])
            except OSError:
                self._entries = previous
                raise
        return entry

    async def list_searches(self) -> list[SearchEntry]:
        """Entries in insertion order. Sort client-side for newest-first."""
        await self._ensure_loaded()
        return list(self._entries)

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from core.auth.search_log import SearchLog


@pytest.fixture
def search_log(tmp_path, clock) -> SearchLog:
    return SearchLog(tmp_path / "searches.json", clock=clock)


class TestRecord:
    async def test_defaults_timestamp_to_now(self, search_log, clock):
        entry = await search_log.record("alice", "weather")

        assert entry.timestamp == clock.now
        assert await search_log.list_searches() == [entry]

    async def test_keeps_client_timestamp(self, search_log):
        moment = datetime(2024, 12, 31, 23, 59, tzinfo=UTC)

        entry = await search_log.record("alice", "fireworks", moment)

        assert entry.timestamp == moment

    async def test_entries_in_insertion_order(self, search_log, clock):
        await search_log.record("alice", "first")
        clock.advance(seconds=1)
        await search_log.record("bob", "second")

        assert [e.query for e in await search_log.list_searches()] == ["first", "second"]

    async def test_retention_drops_oldest(self, search_log, clock):
        with patch.object(search_log._document, "save"):
            for i in range(5001):
                await search_log.record("alice", f"q{i}", clock.now + timedelta(seconds=i))

        entries = await search_log.list_searches()

        assert len(entries) == 5000
        assert entries[0].query == "q1"
        assert entries[-1].query == "q5000"

    async def test_custom_cap(self, tmp_path, clock):
        search_log = SearchLog(tmp_path / "searches.json", clock=clock, max_entries=2)
        for query in ("a", "b", "c"):
            await search_log.record("alice", query)

        assert [e.query for e in await search_log.list_searches()] == ["b", "c"]

    async def test_failed_write_is_not_recorded(self, search_log):
        await search_log.record("alice", "kept")

        with patch.object(search_log._document, "save", side_effect=OSError("disk full")), pytest.raises(OSError):
            await search_log.record("alice", "lost")

        assert [e.query for e in await search_log.list_searches()] == ["kept"]


class TestPersistence:
    async def test_reloads_from_disk(self, tmp_path, clock):
        file_path = tmp_path / "searches.json"
        await SearchLog(file_path, clock=clock).record("alice", "persisted")

        entries = await SearchLog(file_path, clock=clock).list_searches()

        assert [(e.username, e.query, e.timestamp) for e in entries] == [("alice", "persisted", clock.now)]

    async def test_missing_file_is_empty(self, search_log):
        assert await search_log.list_searches() == []

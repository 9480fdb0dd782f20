import asyncio
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import AsyncMock

from app.core.config import Settings
from app.models.dto import CellCount
from app.services.cell_store import (
    InMemoryCellCounterStore,
    RedisCellCounterStore,
    build_cell_store,
)


def as_dict(entries):
    return {entry.cell: entry.count for entry in entries}


class TestInMemoryCellCounterStore:

    def test_starts_empty(self):
        store = InMemoryCellCounterStore()
        assert asyncio.run(store.snapshot()) == []

    def test_increment_twice_counts_two(self):
        store = InMemoryCellCounterStore()

        async def scenario():
            await store.increment("51.4,-0.2")
            await store.increment("51.4,-0.2")
            return await store.snapshot()

        assert asyncio.run(scenario()) == [CellCount(cell="51.4,-0.2", count=2)]

    def test_distinct_cells_are_independent(self):
        store = InMemoryCellCounterStore()

        async def scenario():
            await store.increment("51.4,-0.2")
            await store.increment("39.8,-98.6")
            await store.increment("39.8,-98.6")
            return await store.snapshot()

        assert as_dict(asyncio.run(scenario())) == {"51.4,-0.2": 1, "39.8,-98.6": 2}

    def test_concurrent_tasks_do_not_lose_updates(self):
        store = InMemoryCellCounterStore()

        async def scenario():
            await asyncio.gather(*(store.increment("0.0,0.0") for _ in range(500)))
            return await store.snapshot()

        assert as_dict(asyncio.run(scenario())) == {"0.0,0.0": 500}

    def test_concurrent_threads_do_not_lose_updates(self):
        store = InMemoryCellCounterStore()

        async def burst():
            for _ in range(250):
                await store.increment("10.0,20.0")

        with ThreadPoolExecutor(max_workers=8) as pool:
            for future in [pool.submit(asyncio.run, burst()) for _ in range(8)]:
                future.result()

        assert as_dict(asyncio.run(store.snapshot())) == {"10.0,20.0": 2000}

    def test_snapshot_is_a_copy(self):
        store = InMemoryCellCounterStore()
        asyncio.run(store.increment("1.0,1.0"))
        first = asyncio.run(store.snapshot())
        asyncio.run(store.increment("1.0,1.0"))
        assert first == [CellCount(cell="1.0,1.0", count=1)]


class TestRedisCellCounterStore:

    def test_increment_uses_hincrby(self):
        redis_client = AsyncMock()
        store = RedisCellCounterStore(redis_client, key="test:cells")
        asyncio.run(store.increment("51.4,-0.2"))
        redis_client.hincrby.assert_awaited_once_with("test:cells", "51.4,-0.2", 1)

    def test_snapshot_decodes_hash(self):
        redis_client = AsyncMock()
        redis_client.hgetall.return_value = {"51.4,-0.2": "3", b"10.0,20.0": b"2"}
        store = RedisCellCounterStore(redis_client, key="test:cells")
        assert as_dict(asyncio.run(store.snapshot())) == {"51.4,-0.2": 3, "10.0,20.0": 2}

    def test_snapshot_skips_corrupt_entries(self):
        redis_client = AsyncMock()
        redis_client.hgetall.return_value = {"51.4,-0.2": "3", "1.0,1.0": "lots", "2.0,2.0": "-4"}
        store = RedisCellCounterStore(redis_client)
        assert as_dict(asyncio.run(store.snapshot())) == {"51.4,-0.2": 3}

    def test_increment_failure_is_swallowed(self):
        redis_client = AsyncMock()
        redis_client.hincrby.side_effect = ConnectionError("redis down")
        store = RedisCellCounterStore(redis_client)
        assert asyncio.run(store.increment("51.4,-0.2")) is None

    def test_snapshot_failure_returns_empty(self):
        redis_client = AsyncMock()
        redis_client.hgetall.side_effect = ConnectionError("redis down")
        store = RedisCellCounterStore(redis_client)
        assert asyncio.run(store.snapshot()) == []


class TestBuildCellStore:

    def test_default_is_in_memory(self):
        assert isinstance(build_cell_store(Settings(_env_file=None)), InMemoryCellCounterStore)

    def test_redis_without_url_falls_back(self):
        test_settings = Settings(_env_file=None, ENABLE_REDIS=True, REDIS_URL=None)
        assert isinstance(build_cell_store(test_settings), InMemoryCellCounterStore)

    def test_redis_with_client(self):
        test_settings = Settings(_env_file=None, ENABLE_REDIS=True, REDIS_CELLS_KEY="custom:cells")
        store = build_cell_store(test_settings, redis_client=AsyncMock())
        assert isinstance(store, RedisCellCounterStore)
        assert store.key == "custom:cells"

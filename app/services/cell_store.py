# app/services/cell_store.py
"""Counter stores mapping a cell key to the number of submissions seen there.

The in-memory store lives exactly as long as the process that built it:
counts reset on restart, and every worker or instance owns an independent
store, so fleet-wide totals are approximate. The Redis store shares one
hash between instances when that matters more than "nothing leaves the
process".
"""
import threading
from typing import Dict, List, Optional, Protocol

import structlog
from redis.asyncio import Redis

from app.core.config import Settings
from app.models.dto import CellCount

logger = structlog.get_logger(__name__)


class CellCounterStore(Protocol):
    """Abstract interface for counting cells."""
    async def increment(self, cell: str) -> None: ...
    async def snapshot(self) -> List[CellCount]: ...


class InMemoryCellCounterStore:
    """Process-local counters. Safe for concurrent callers; never evicts."""

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    async def increment(self, cell: str) -> None:
        with self._lock:
            self._counts[cell] = self._counts.get(cell, 0) + 1

    async def snapshot(self) -> List[CellCount]:
        with self._lock:
            items = list(self._counts.items())
        return [CellCount(cell=cell, count=count) for cell, count in items]


class RedisCellCounterStore:
    """
    Shared counters in a single Redis hash. Errors are logged and swallowed:
    a lost increment is preferable to a failed submission.
    """

    def __init__(self, redis_client: Redis, key: str = "ether:cells"):
        self.redis_client = redis_client
        self.key = key

    @classmethod
    def from_url(cls, url: str, key: str = "ether:cells") -> "RedisCellCounterStore":
        return cls(Redis.from_url(url, decode_responses=True), key)

    async def increment(self, cell: str) -> None:
        try:
            await self.redis_client.hincrby(self.key, cell, 1)
        except Exception as e:
            logger.error("cell_increment_error", error=str(e), key=self.key)

    async def snapshot(self) -> List[CellCount]:
        try:
            raw = await self.redis_client.hgetall(self.key)
        except Exception as e:
            logger.error("cell_snapshot_error", error=str(e), key=self.key)
            return []
        results: List[CellCount] = []
        for cell, count in raw.items():
            if isinstance(cell, bytes):
                cell = cell.decode("utf-8")
            try:
                results.append(CellCount(cell=cell, count=int(count)))
            except ValueError:
                logger.error("cell_parse_error", key=self.key, cell=cell, raw_value=str(count))
        return results

    async def close(self) -> None:
        await self.redis_client.aclose()


def build_cell_store(settings: Settings, redis_client: Optional[Redis] = None) -> CellCounterStore:
    """Picks the counter backend from configuration."""
    if settings.ENABLE_REDIS:
        if redis_client is not None:
            return RedisCellCounterStore(redis_client, settings.REDIS_CELLS_KEY)
        if settings.REDIS_URL:
            return RedisCellCounterStore.from_url(settings.REDIS_URL, settings.REDIS_CELLS_KEY)
        logger.warning("redis_enabled_without_url", fallback="in_memory")
    return InMemoryCellCounterStore()

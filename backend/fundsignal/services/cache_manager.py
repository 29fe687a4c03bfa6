"""
Process-wide, in-memory caches for SEC data.

DirectoryCache holds the whole ticker -> CIK map and is replaced wholesale
once its TTL has passed. TTLCache holds one entry per key (companyfacts per
CIK), each with its own fetch time; stale entries are overwritten on the next
access, never evicted proactively.

Neither cache takes a lock. Two callers that miss at the same time both fetch
and the later write wins.
"""
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_stale(fetched_at: datetime, ttl_seconds: int, now: datetime) -> bool:
    age = (now - fetched_at).total_seconds()
    return age >= ttl_seconds


class DirectoryCache:
    """Whole-map cache: every entry shares one fetch time."""

    def __init__(self, ttl_seconds: int, clock: Clock = _utcnow):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: dict[str, str] | None = None
        self._fetched_at: datetime | None = None

    def is_fresh(self) -> bool:
        if self._data is None or self._fetched_at is None:
            return False
        return not _is_stale(self._fetched_at, self.ttl_seconds, self._clock())

    async def get_map(self, loader: Callable[[], Awaitable[dict[str, str]]]) -> dict[str, str]:
        if self.is_fresh():
            return self._data

        fresh = await loader()
        # Swap the reference in one step so readers never see a partial map.
        self._data = fresh
        self._fetched_at = self._clock()
        logger.info(f"Ticker directory refreshed ({len(fresh)} entries)")
        return fresh

    def clear(self) -> None:
        self._data = None
        self._fetched_at = None


class TTLCache:
    """Per-key cache with an independent TTL for each entry."""

    def __init__(self, ttl_seconds: int, clock: Clock = _utcnow):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[datetime, Any]] = {}

    def get(self, key: str) -> Any | None:
        hit = self._entries.get(key)
        if hit is None:
            return None
        fetched_at, data = hit
        if _is_stale(fetched_at, self.ttl_seconds, self._clock()):
            return None
        return data

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = (self._clock(), data)

    async def get_or_fetch(self, key: str, loader: Callable[[str], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached

        data = await loader(key)
        self.set(key, data)
        logger.debug(f"Cached {key} for {self.ttl_seconds}s")
        return data

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

"""
TTL query cache with in-flight de-duplication.

Keys are tuples whose first element names the query family, e.g.
``("grants", catalog, catalog_role)``. Invalidation works on key prefixes, so
``invalidate("grants")`` drops every cached grant listing.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Tuple, Union

from .results import QueryResult, QueryStatus

logger = logging.getLogger(__name__)

CacheKey = Tuple[Hashable, ...]


@dataclass
class _Entry:
    result: QueryResult
    stored_at: float


class QueryCache:
    """
    Caches successful query results for ``ttl_seconds``.

    Concurrent requests for the same key share one in-flight load. Only
    fully successful results are stored; partial and failed results are
    returned to their callers but refetched next time.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, _Entry] = {}
        self._inflight: Dict[CacheKey, "asyncio.Future[QueryResult]"] = {}
        # Bumped by every invalidation; loads that straddle one are not stored
        self._epoch = 0

    def _fresh(self, key: CacheKey) -> Union[_Entry, None]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry

    async def get_or_load(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[QueryResult]],
    ) -> QueryResult:
        """
        Return the cached result for ``key`` or load it.

        Args:
            key: Cache key
            loader: Coroutine factory producing the result

        Returns:
            The cached, shared or freshly loaded result
        """
        entry = self._fresh(key)
        if entry is not None:
            return entry.result

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader, self._epoch))
            self._inflight[key] = task
        else:
            logger.debug(f"Joining in-flight query {key}")
        return await asyncio.shield(task)

    async def _load(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[QueryResult]],
        epoch: int,
    ) -> QueryResult:
        task = asyncio.current_task()
        try:
            result = await loader()
            if result.status == QueryStatus.SUCCESS and epoch == self._epoch:
                self._entries[key] = _Entry(result, self._clock())
            return result
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

    def snapshot(self, key: CacheKey) -> QueryResult:
        """Current view of ``key`` without triggering a load."""
        entry = self._fresh(key)
        if entry is not None:
            return entry.result
        if key in self._inflight:
            return QueryResult.loading()
        return QueryResult.idle()

    def invalidate(self, prefix: Union[CacheKey, str]) -> int:
        """
        Drop every entry whose key starts with ``prefix``.

        In-flight loads under the prefix are detached: current waiters still
        get their result, but it is not stored and new callers start over.

        Returns:
            Number of cached entries dropped
        """
        if isinstance(prefix, str):
            prefix = (prefix,)
        self._epoch += 1
        n = len(prefix)
        stale = [k for k in self._entries if k[:n] == prefix]
        for key in stale:
            del self._entries[key]
        for key in [k for k in self._inflight if k[:n] == prefix]:
            del self._inflight[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cached queries under {prefix}")
        return len(stale)

    def clear(self) -> None:
        self._epoch += 1
        self._entries.clear()
        self._inflight.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        return self._fresh(key) is not None

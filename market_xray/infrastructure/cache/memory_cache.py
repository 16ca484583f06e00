"""
In-process result cache with TTL.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from market_xray.domain.models import RESULT_CACHE_TTL_SECONDS, CacheEntry, MaxPainResult, cache_key

logger = logging.getLogger(__name__)


class InMemoryResultCache:
    def __init__(
        self,
        ttl_seconds: float = RESULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    async def get(self, symbol: str) -> Optional[MaxPainResult]:
        entry = self._entries.get(cache_key(symbol))
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            logger.debug(f"Cache expired: {entry.key}")
            return None
        return entry.value

    async def set(self, symbol: str, result: MaxPainResult) -> None:
        key = cache_key(symbol)
        self._entries[key] = CacheEntry(
            key=key,
            value=result,
            stored_at=self._clock(),
            ttl_seconds=self.ttl_seconds,
        )

    def __len__(self) -> int:
        return len(self._entries)

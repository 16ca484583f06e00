"""
Redis-backed result cache.

Values are the result JSON plus ``cached: true``, written with ``SET ... EX``
so Redis handles expiry. Redis failures are logged and read as misses.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from market_xray.domain.models import RESULT_CACHE_TTL_SECONDS, MaxPainResult, cache_key

logger = logging.getLogger(__name__)


class RedisResultCache:
    def __init__(
        self,
        url: Optional[str] = None,
        ttl_seconds: int = RESULT_CACHE_TTL_SECONDS,
        enabled: bool = True,
        client: Any = None,
    ):
        if client is None and url is None:
            raise ValueError("Redis URL or client required")
        self._client = client if client is not None else redis.Redis.from_url(url, decode_responses=True)
        self.ttl_seconds = int(ttl_seconds)
        self._enabled = enabled

    async def get(self, symbol: str) -> Optional[MaxPainResult]:
        if not self._enabled:
            return None
        key = cache_key(symbol)
        try:
            raw = await self._client.get(key)
        except redis.RedisError as exc:
            logger.warning("Redis get failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return MaxPainResult.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", key, exc)
            return None

    async def set(self, symbol: str, result: MaxPainResult) -> None:
        if not self._enabled:
            return
        key = cache_key(symbol)
        payload = {**result.to_dict(), "cached": True}
        try:
            await self._client.set(key, json.dumps(payload), ex=self.ttl_seconds)
        except redis.RedisError as exc:
            logger.warning("Redis set failed for %s: %s", key, exc)

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except redis.RedisError as exc:
            logger.debug("Redis close failed: %s", exc)

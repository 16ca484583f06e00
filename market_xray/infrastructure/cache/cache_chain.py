"""
Cache chain - read from the first tier that has the symbol, write to all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from market_xray.domain.models import MaxPainResult
from market_xray.infrastructure.market_data.types import ResultCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamedCache:
    name: str
    cache: ResultCache


class ChainedResultCache:
    def __init__(self, caches: List[NamedCache]):
        if not caches:
            raise ValueError("At least one cache is required")
        self.caches = caches

    async def get(self, symbol: str) -> Optional[MaxPainResult]:
        for named in self.caches:
            result = await named.cache.get(symbol)
            if result is not None:
                logger.debug(f"Cache hit for {symbol} in {named.name}")
                return result
        return None

    async def set(self, symbol: str, result: MaxPainResult) -> None:
        for named in self.caches:
            await named.cache.set(symbol, result)

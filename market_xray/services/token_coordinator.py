"""
Token Coordinator
Serves a valid crumb from the store, or acquires one by walking the ordered
source list. Concurrent callers that find the store empty share a single
in-flight acquisition.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from market_xray.domain.errors import AcquisitionError
from market_xray.domain.models import Token
from market_xray.infrastructure.market_data.types import TokenAcquirer
from market_xray.infrastructure.token.token_store import TokenStore

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_SOURCE = "AAPL"
DEFAULT_ALTERNATE_SOURCES = ("MSFT", "GOOGL", "AMZN", "TSLA", "NVDA")


def _consume_failure(task: asyncio.Task) -> None:
    # Every waiter may have timed out before the shared acquisition failed
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Shared crumb acquisition failed: {task.exception()}")


class TokenCoordinator:
    def __init__(
        self,
        store: TokenStore,
        acquirer: TokenAcquirer,
        primary_source: str = DEFAULT_PRIMARY_SOURCE,
        alternate_sources: Sequence[str] = DEFAULT_ALTERNATE_SOURCES,
    ):
        self.store = store
        self.acquirer = acquirer
        self.sources: List[str] = [primary_source] + [s for s in alternate_sources if s != primary_source]
        self._inflight: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    async def get_token(self) -> Token:
        token = self.store.get()
        if token is not None:
            return token

        async with self._lock:
            token = self.store.get()
            if token is not None:
                return token
            if self._inflight is None or self._inflight.done():
                self._inflight = asyncio.create_task(self._acquire_from_sources())
                self._inflight.add_done_callback(_consume_failure)
            task = self._inflight

        # Shielded so a caller timing out does not cancel the shared acquisition
        return await asyncio.shield(task)

    async def _acquire_from_sources(self) -> Token:
        failures: List[str] = []
        for source in self.sources:
            try:
                token = await self.acquirer.acquire(source)
            except AcquisitionError as exc:
                logger.warning(f"Crumb source {source} failed: {exc}")
                failures.append(source)
                continue
            self.store.set(token)
            if failures:
                logger.info(f"Crumb obtained from alternate source {source} after {failures}")
            return token

        raise AcquisitionError(f"Failed to obtain crumb from any source: {', '.join(self.sources)}")

    def invalidate(self, token: Token) -> bool:
        """
        Drop ``token`` after an authorization failure.

        Only the stored token is cleared if it is the one that was rejected; a
        newer crumb fetched by another request in the meantime is kept.
        """
        current = self.store.peek()
        if current is None or current.value != token.value:
            return False
        self.store.invalidate()
        return True

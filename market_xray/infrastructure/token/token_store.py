"""
Crumb store with TTL.

Holds at most one token. Expired tokens are reported as absent but kept until
the next ``set`` overwrites them; ``invalidate`` drops the token outright.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple

from market_xray.domain.models import TOKEN_TTL_SECONDS, Token
from market_xray.utils.logging_redaction import mask_token

logger = logging.getLogger(__name__)


class TokenStore:
    def __init__(
        self,
        ttl_seconds: float = TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._token_cache: Tuple[float, Optional[Token]] = (0.0, None)

    def get(self) -> Optional[Token]:
        fetched_at, token = self._token_cache
        if token is None:
            return None
        if self._clock() - fetched_at >= self.ttl_seconds:
            return None
        return token

    def set(self, token: Token) -> None:
        self._token_cache = (token.fetched_at, token)
        logger.debug(f"Stored crumb {mask_token(token.value)} from {token.source}")

    def invalidate(self) -> None:
        _, token = self._token_cache
        if token is not None:
            logger.info(f"Invalidating crumb {mask_token(token.value)}")
        self._token_cache = (0.0, None)

    def peek(self) -> Optional[Token]:
        """Stored token regardless of age."""
        return self._token_cache[1]

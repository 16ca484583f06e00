"""
Max Pain Service
Resolves a symbol to a max-pain estimate through the fallback chain:

    live (crumb -> options fetch -> compute)  ->  cached result  ->  synthetic

Every call returns a result labeled with its source, except when upstream
rate limits us: that is surfaced as RateLimitedError after a single backoff.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from market_xray.domain.errors import (
    AcquisitionError,
    CalculationError,
    FetchError,
    FetchErrorKind,
    RateLimitedError,
)
from market_xray.domain.models import MaxPainResult, OptionsChain, ResultSource
from market_xray.domain.services.max_pain_calculator import MaxPainCalculator
from market_xray.domain.services.synthetic_estimator import SyntheticEstimator
from market_xray.domain.services.ticker_extractor import extract_tickers
from market_xray.infrastructure.market_data.types import OptionsFetcher, RemoteCalculator, ResultCache
from market_xray.services.token_coordinator import TokenCoordinator

logger = logging.getLogger(__name__)

# One retry after an authorization failure, never more
MAX_TOKEN_ATTEMPTS = 2


@dataclass(frozen=True)
class ScanEntry:
    symbol: str
    result: Optional[MaxPainResult] = None
    error: Optional[str] = None
    retry_after: Optional[float] = None


class MaxPainService:
    def __init__(
        self,
        tokens: TokenCoordinator,
        fetcher: OptionsFetcher,
        cache: ResultCache,
        calculator: Optional[MaxPainCalculator] = None,
        synthetic: Optional[SyntheticEstimator] = None,
        remote_calculator: Optional[RemoteCalculator] = None,
        timeout_seconds: float = 8.0,
        rate_limit_backoff_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.tokens = tokens
        self.fetcher = fetcher
        self.cache = cache
        self.calculator = calculator or MaxPainCalculator()
        self.synthetic = synthetic or SyntheticEstimator()
        self.remote_calculator = remote_calculator
        self.timeout_seconds = timeout_seconds
        self.rate_limit_backoff_seconds = rate_limit_backoff_seconds
        self._sleep = sleep

    async def resolve(self, symbol: str) -> MaxPainResult:
        symbol = symbol.strip().upper()
        if not symbol:
            raise ValueError("Symbol cannot be empty")

        logger.info(f"🚀 Resolving max pain for {symbol}")
        try:
            result = await asyncio.wait_for(self._resolve_live(symbol), timeout=self.timeout_seconds)
        except FetchError as exc:
            if exc.kind == FetchErrorKind.RATE_LIMITED:
                logger.warning(f"⚠️ Rate limited on {symbol}, waiting {self.rate_limit_backoff_seconds}s")
                await self._sleep(self.rate_limit_backoff_seconds)
                raise RateLimitedError(symbol, retry_after=self.rate_limit_backoff_seconds) from exc
            logger.warning(f"Live fetch failed for {symbol} ({exc.kind.value}): {exc}")
        except AcquisitionError as exc:
            logger.warning(f"No crumb obtainable for {symbol}: {exc}")
        except CalculationError as exc:
            logger.warning(f"Calculation failed for {symbol}: {exc}")
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Live resolution for {symbol} timed out after {self.timeout_seconds}s")
        except Exception:
            logger.exception(f"❌ Unexpected failure resolving {symbol}")
        else:
            live = result.with_source(ResultSource.LIVE)
            await self.cache.set(symbol, live)
            return live

        return await self._fallback(symbol)

    async def _resolve_live(self, symbol: str) -> MaxPainResult:
        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            token = await self.tokens.get_token()
            try:
                chain = await self.fetcher.fetch(symbol, token.value)
            except FetchError as exc:
                if exc.kind != FetchErrorKind.UNAUTHORIZED:
                    raise
                # Invalidation completes before the next get_token() reads the store
                self.tokens.invalidate(token)
                if attempt == MAX_TOKEN_ATTEMPTS:
                    raise
                logger.info(f"🔄 Crumb rejected for {symbol}, retrying with a fresh one")
                continue
            return await self._compute(symbol, chain)

        raise AssertionError("unreachable")

    async def _compute(self, symbol: str, chain: OptionsChain) -> MaxPainResult:
        if self.remote_calculator is not None and chain.raw is not None:
            return await self.remote_calculator.analyze(symbol, chain.raw)
        return self.calculator.compute(chain)

    async def _fallback(self, symbol: str) -> MaxPainResult:
        cached = await self.cache.get(symbol)
        if cached is not None:
            logger.info(f"📦 Using cached result for {symbol}")
            return cached.with_source(ResultSource.CACHE)

        return self.synthetic.estimate(symbol)

    async def scan(self, text: str) -> List[ScanEntry]:
        """Resolve every cashtag in ``text`` concurrently."""
        symbols = extract_tickers(text)
        if not symbols:
            return []

        async def _one(symbol: str) -> ScanEntry:
            try:
                return ScanEntry(symbol=symbol, result=await self.resolve(symbol))
            except RateLimitedError as exc:
                return ScanEntry(symbol=symbol, error=str(exc), retry_after=exc.retry_after)

        return list(await asyncio.gather(*(_one(s) for s in symbols)))

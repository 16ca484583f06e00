"""
Remote worker client.

The worker is a peer running the same analyze/legacy-cache endpoints. It can
take over computation (POST /api/analyze) and serve previously computed
results (GET /api/max-pain/{symbol}).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from market_xray.domain.errors import FetchError, FetchErrorKind
from market_xray.domain.models import MaxPainResult
from market_xray.utils.time import now_utc, to_utc_iso

logger = logging.getLogger(__name__)


class WorkerCalculator:
    """Offloads max-pain computation to the worker's analyze endpoint."""

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self._client = client
        self.base_url = base_url.rstrip("/")

    async def analyze(self, symbol: str, raw: Dict[str, Any]) -> MaxPainResult:
        symbol = symbol.upper()
        body = {
            "symbol": symbol,
            "rawData": raw,
            "timestamp": to_utc_iso(now_utc()),
        }
        try:
            response = await self._client.post(
                f"{self.base_url}/api/analyze",
                json=body,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise FetchError(FetchErrorKind.UPSTREAM, f"Worker request failed for {symbol}: {exc}") from exc

        # Any non-2xx from the worker is an upstream failure, auth codes included
        if not 200 <= response.status_code < 300:
            raise FetchError(
                FetchErrorKind.UPSTREAM,
                f"Worker calculation failed for {symbol}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            result = MaxPainResult.from_dict(response.json())
        except (json.JSONDecodeError, ValueError, KeyError, TypeError) as exc:
            raise FetchError(FetchErrorKind.MALFORMED, f"Worker response for {symbol} unreadable: {exc}") from exc

        logger.info(f"✅ Worker computed {symbol}: price={result.underlying_price} maxPain={result.max_pain}")
        return result


class WorkerResultCache:
    """Read-only view of the worker's cache; 404 simply means no entry."""

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self._client = client
        self.base_url = base_url.rstrip("/")

    async def get(self, symbol: str) -> Optional[MaxPainResult]:
        symbol = symbol.upper()
        try:
            response = await self._client.get(f"{self.base_url}/api/max-pain/{symbol}")
        except httpx.HTTPError as exc:
            logger.warning(f"Worker cache lookup failed for {symbol}: {exc}")
            return None

        if response.status_code == 404:
            logger.debug(f"Worker has no cached data for {symbol}")
            return None
        if response.status_code != 200:
            logger.warning(f"Worker cache returned HTTP {response.status_code} for {symbol}")
            return None

        try:
            payload = response.json()
            return MaxPainResult.from_dict(payload)
        except (json.JSONDecodeError, ValueError, KeyError, TypeError) as exc:
            logger.warning(f"Worker cache entry for {symbol} unreadable: {exc}")
            return None

    async def set(self, symbol: str, result: MaxPainResult) -> None:
        # The worker populates its own cache when it computes
        return None

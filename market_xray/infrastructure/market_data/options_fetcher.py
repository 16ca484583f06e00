"""
Yahoo Finance options fetcher.

Calls the v7 options endpoint with a crumb and reduces the response to the
nearest-expiration chain. HTTP outcomes are classified into FetchError kinds
so the service can decide between retry, backoff and fallback.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Tuple

import httpx

from market_xray.domain.errors import FetchError, FetchErrorKind
from market_xray.domain.models import OptionContract, OptionsChain

logger = logging.getLogger(__name__)

API_HEADERS = {
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://finance.yahoo.com/",
    "Origin": "https://finance.yahoo.com",
}


def _finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def _parse_contracts(entries: Any) -> Tuple[OptionContract, ...]:
    if not isinstance(entries, list):
        return ()
    contracts: List[OptionContract] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        strike = entry.get("strike")
        if not _finite_number(strike):
            continue
        open_interest = entry.get("openInterest") or 0
        if isinstance(open_interest, float) and not math.isfinite(open_interest):
            raise FetchError(FetchErrorKind.MALFORMED, f"Non-finite open interest at strike {strike}")
        try:
            open_interest = max(int(open_interest), 0)
        except (TypeError, ValueError):
            open_interest = 0
        contracts.append(OptionContract(strike=float(strike), open_interest=open_interest))
    return tuple(contracts)


def parse_options_payload(symbol: str, payload: Any) -> OptionsChain:
    """
    Build an OptionsChain from ``{optionChain: {result: [...]}}`` or the bare
    ``{result: [...]}`` form.

    Raises FetchError(MALFORMED) when the quote or result block is missing or
    carries non-finite numbers. Contracts with a non-finite strike are skipped.
    A missing expiration block yields empty legs; the calculator rejects those.
    """
    if not isinstance(payload, dict):
        raise FetchError(FetchErrorKind.MALFORMED, f"Options payload for {symbol} is not an object")

    container = payload.get("optionChain", payload)
    results = container.get("result") if isinstance(container, dict) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        raise FetchError(FetchErrorKind.MALFORMED, f"No option chain result for {symbol}")

    result = results[0]
    quote = result.get("quote") or {}
    price = quote.get("regularMarketPrice") if isinstance(quote, dict) else None
    if not _finite_number(price):
        raise FetchError(FetchErrorKind.MALFORMED, f"Missing or non-finite regularMarketPrice for {symbol}")

    options = result.get("options") or []
    nearest: Dict[str, Any] = options[0] if isinstance(options, list) and options and isinstance(options[0], dict) else {}
    expiration = nearest.get("expirationDate")

    return OptionsChain(
        symbol=symbol.upper(),
        underlying_price=float(price),
        calls=_parse_contracts(nearest.get("calls")),
        puts=_parse_contracts(nearest.get("puts")),
        expiration=int(expiration) if _finite_number(expiration) else None,
        raw=payload,
    )


class YahooOptionsFetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        options_url_template: str = "https://query1.finance.yahoo.com/v7/finance/options/{symbol}",
    ):
        self._client = client
        self.options_url_template = options_url_template

    async def fetch(self, symbol: str, token: str) -> OptionsChain:
        symbol = symbol.upper()
        url = self.options_url_template.format(symbol=symbol)
        params = {
            "formatted": "false",
            "lang": "en-US",
            "region": "US",
            "crumb": token,
        }
        try:
            response = await self._client.get(url, params=params, headers=API_HEADERS)
        except httpx.HTTPError as exc:
            raise FetchError(FetchErrorKind.UPSTREAM, f"Options request failed for {symbol}: {exc}") from exc

        if not 200 <= response.status_code < 300:
            error = FetchError.from_status(response.status_code)
            logger.warning(f"❌ Options API refused {symbol}: {error} ({error.kind.value})")
            raise error

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise FetchError(FetchErrorKind.MALFORMED, f"Options body for {symbol} is not JSON") from exc

        chain = parse_options_payload(symbol, payload)
        logger.info(
            f"✅ Fetched options chain for {symbol}: "
            f"{len(chain.calls)} calls, {len(chain.puts)} puts @ {chain.underlying_price}"
        )
        return chain

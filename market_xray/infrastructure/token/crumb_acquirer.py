"""
Yahoo Finance crumb acquirer.

Loads a quote page through the shared browser-like session (its cookie jar
carries the upstream consent cookies) and scrapes the crumb out of the
embedded page state. The markup is third-party and changes without notice,
so matching is an ordered list of extraction strategies rather than one
hard-coded pattern.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import httpx

from market_xray.domain.errors import AcquisitionError
from market_xray.domain.models import Token
from market_xray.utils.logging_redaction import mask_token

logger = logging.getLogger(__name__)

# Headers to mimic browser navigation
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.google.com/",
}

_UNICODE_ESCAPE = re.compile(r"\\u([0-9a-fA-F]{4})")


def decode_unicode_escapes(value: str) -> str:
    """Turn ``\\u002F``-style escapes into the characters they name."""
    return _UNICODE_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), value)


@dataclass(frozen=True)
class ExtractionStrategy:
    name: str
    pattern: re.Pattern

    def extract(self, body: str) -> Optional[str]:
        match = self.pattern.search(body)
        if not match or not match.group(1):
            return None
        return decode_unicode_escapes(match.group(1))


DEFAULT_STRATEGIES: Sequence[ExtractionStrategy] = (
    ExtractionStrategy(
        "crumb_field",
        re.compile(r'"crumb":"((?:[A-Za-z0-9.\-_/]|\\u[0-9a-fA-F]{4})+)"'),
    ),
    ExtractionStrategy(
        "crumb_store",
        re.compile(r'"CrumbStore":\s*\{\s*"crumb":\s*"([^"]+)"'),
    ),
)


class PageCrumbAcquirer:
    """Acquires a crumb from ``page_url_template.format(source=...)``."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        page_url_template: str = "https://finance.yahoo.com/quote/{source}",
        strategies: Sequence[ExtractionStrategy] = DEFAULT_STRATEGIES,
        clock: Callable[[], float] = time.time,
    ):
        if not strategies:
            raise ValueError("At least one extraction strategy is required")
        self._client = client
        self.page_url_template = page_url_template
        self.strategies = tuple(strategies)
        self._clock = clock

    def extract(self, body: str) -> Optional[str]:
        for strategy in self.strategies:
            value = strategy.extract(body)
            if value:
                logger.debug(f"Crumb matched via {strategy.name}")
                return value
        return None

    async def acquire(self, source: str) -> Token:
        url = self.page_url_template.format(source=source)
        logger.info(f"🕵️ Visiting {url} to find crumb")
        try:
            response = await self._client.get(url, headers=BROWSER_HEADERS)
        except httpx.HTTPError as exc:
            raise AcquisitionError(f"Crumb page request failed for {source}: {exc}", source=source) from exc

        if response.status_code != 200:
            raise AcquisitionError(
                f"Crumb page for {source} returned HTTP {response.status_code}",
                source=source,
            )

        try:
            body = response.text
        except (UnicodeDecodeError, LookupError) as exc:
            raise AcquisitionError(f"Crumb page for {source} is not decodable: {exc}", source=source) from exc

        value = self.extract(body)
        if not value:
            raise AcquisitionError(f"No crumb found in page for {source}", source=source)

        logger.info(f"✅ Found crumb {mask_token(value)} from {source}")
        return Token(value=value, fetched_at=self._clock(), source=source)

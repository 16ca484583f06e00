"""
Synthetic Estimator
Last-resort fabricated estimate when neither live data nor cache is available.

Results are deterministic per symbol (seeded from a digest of the symbol) so
repeated lookups agree with each other. They are always tagged ``synthetic``.
"""

from __future__ import annotations

import hashlib
import logging
import random
from typing import Dict, Mapping, Optional, Tuple

from market_xray.domain.models import MaxPainResult, ResultSource
from market_xray.domain.services.max_pain_calculator import make_result

logger = logging.getLogger(__name__)

DEFAULT_RANGE_KEY = "DEFAULT"

DEFAULT_PRICE_RANGES: Dict[str, Tuple[float, float]] = {
    "AAPL": (170.0, 220.0),
    "TSLA": (180.0, 250.0),
    "META": (300.0, 400.0),
    "GOOGL": (130.0, 160.0),
    "MSFT": (350.0, 450.0),
    "AMZN": (150.0, 200.0),
    "NVDA": (400.0, 600.0),
    "NFLX": (500.0, 700.0),
    DEFAULT_RANGE_KEY: (50.0, 200.0),
}


def _seed_for(symbol: str) -> int:
    digest = hashlib.sha256(symbol.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


class SyntheticEstimator:
    def __init__(self, price_ranges: Optional[Mapping[str, Tuple[float, float]]] = None):
        ranges = dict(DEFAULT_PRICE_RANGES)
        if price_ranges:
            ranges.update({k.upper(): (float(lo), float(hi)) for k, (lo, hi) in price_ranges.items()})
        for key, (low, high) in ranges.items():
            if low <= 0 or high < low:
                raise ValueError(f"Invalid synthetic price range for {key}: {low}-{high}")
        self.price_ranges = ranges

    def price_range(self, symbol: str) -> Tuple[float, float]:
        return self.price_ranges.get(symbol.upper(), self.price_ranges[DEFAULT_RANGE_KEY])

    def estimate(self, symbol: str) -> MaxPainResult:
        symbol = symbol.upper()
        low, high = self.price_range(symbol)
        rng = random.Random(_seed_for(symbol))

        price = round(low + rng.random() * (high - low), 2)
        max_pain = round(price * (0.95 + rng.random() * 0.1), 2)

        logger.info(f"🎯 Synthetic estimate for {symbol}: price={price} maxPain={max_pain}")
        return make_result(symbol, price, max_pain).with_source(ResultSource.SYNTHETIC)

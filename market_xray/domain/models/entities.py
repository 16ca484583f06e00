"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from market_xray.utils.time import now_utc, parse_iso, to_utc_iso

TOKEN_TTL_SECONDS = 30 * 60
RESULT_CACHE_TTL_SECONDS = 60 * 60
CACHE_KEY_PREFIX = "max-pain:"


def cache_key(symbol: str) -> str:
    """Persistence key for a symbol's result, e.g. ``max-pain:AAPL``."""
    return f"{CACHE_KEY_PREFIX}{symbol.upper()}"


class Sentiment(str, Enum):
    """Directional read of price vs max pain"""
    BEARISH = "bearish"
    SLIGHTLY_BEARISH = "slightly_bearish"
    NEUTRAL = "neutral"
    SLIGHTLY_BULLISH = "slightly_bullish"
    BULLISH = "bullish"


class ResultSource(str, Enum):
    """Which tier of the pipeline produced a result"""
    LIVE = "live"
    CACHE = "cache"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class Token:
    """Upstream authorization crumb - Immutable"""
    value: str
    fetched_at: float
    source: Optional[str] = None

    def __post_init__(self):
        if not self.value:
            raise ValueError("Token value cannot be empty")

    def age(self, now: float) -> float:
        return now - self.fetched_at


@dataclass(frozen=True)
class OptionContract:
    """Single strike on one leg of a chain"""
    strike: float
    open_interest: int = 0

    def __post_init__(self):
        if self.open_interest < 0:
            raise ValueError("Open interest cannot be negative")


@dataclass(frozen=True)
class OptionsChain:
    """Nearest-expiration option chain plus underlying price - Immutable"""
    symbol: str
    underlying_price: float
    calls: Tuple[OptionContract, ...]
    puts: Tuple[OptionContract, ...]
    expiration: Optional[int] = None
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def total_contracts(self) -> int:
        return len(self.calls) + len(self.puts)


@dataclass(frozen=True)
class MaxPainResult:
    """Computed (or fabricated) max-pain estimate for a symbol"""
    symbol: str
    max_pain: float
    underlying_price: float
    percentage_diff: float
    sentiment: Sentiment
    insight: str
    timestamp: datetime = field(default_factory=now_utc)
    source: Optional[ResultSource] = None
    strikes_analyzed: int = 0

    def with_source(self, source: ResultSource) -> "MaxPainResult":
        return replace(self, source=source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "maxPain": self.max_pain,
            "underlyingPrice": self.underlying_price,
            "percentageDiff": self.percentage_diff,
            "sentiment": self.sentiment.value,
            "insight": self.insight,
            "timestamp": to_utc_iso(self.timestamp),
            "source": self.source.value if self.source else None,
            "strikesAnalyzed": self.strikes_analyzed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MaxPainResult":
        """
        Rebuild a result from ``to_dict`` output.

        Also accepts the worker response shape, which uses ``price`` for the
        underlying price and carries no sentiment.
        """
        underlying = data.get("underlyingPrice", data.get("price"))
        if underlying is None or data.get("maxPain") is None:
            raise ValueError("Result payload missing price or maxPain")
        underlying_price = float(underlying)
        max_pain = float(data["maxPain"])
        if not (math.isfinite(underlying_price) and math.isfinite(max_pain)):
            raise ValueError("Result payload carries non-finite price or maxPain")

        sentiment_raw = data.get("sentiment")
        if sentiment_raw:
            sentiment = Sentiment(sentiment_raw)
        else:
            # Deferred import: the calculator depends on this module
            from market_xray.domain.services.max_pain_calculator import classify_sentiment
            sentiment = classify_sentiment(underlying_price, max_pain)

        source_raw = data.get("source")
        timestamp_raw = data.get("timestamp")
        return cls(
            symbol=str(data["symbol"]).upper(),
            max_pain=max_pain,
            underlying_price=underlying_price,
            percentage_diff=abs(float(data.get("percentageDiff") or 0.0)),
            sentiment=sentiment,
            insight=data.get("insight") or "",
            timestamp=parse_iso(timestamp_raw) if timestamp_raw else now_utc(),
            source=ResultSource(source_raw) if source_raw else None,
            strikes_analyzed=int(data.get("strikesAnalyzed") or 0),
        )


@dataclass(frozen=True)
class CacheEntry:
    """Stored result with its write time; replaced whole, never merged"""
    key: str
    value: MaxPainResult
    stored_at: float
    ttl_seconds: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl_seconds

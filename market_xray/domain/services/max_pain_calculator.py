"""
Max Pain Calculator
Pure, synchronous aggregation of an options chain into a price estimate.

Max pain is the strike at which option holders, in aggregate, would collect
the least at settlement:

    pain(K) = sum over calls of max(0, K - strike) * OI
            + sum over puts  of max(0, strike - K) * OI

Only strikes that appear in the chain are candidates, so the answer is never
interpolated. Ties resolve to the lowest strike.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from market_xray.domain.errors import CalculationError, CalculationErrorReason
from market_xray.domain.models import MaxPainResult, OptionContract, OptionsChain, Sentiment

logger = logging.getLogger(__name__)

STRONG_THRESHOLD_PCT = 10.0
MILD_THRESHOLD_PCT = 5.0


def candidate_strikes(calls: Iterable[OptionContract], puts: Iterable[OptionContract]) -> List[float]:
    """Sorted unique strikes from both legs."""
    return sorted({c.strike for c in calls} | {p.strike for p in puts})


def pain_at(strike: float, calls: Sequence[OptionContract], puts: Sequence[OptionContract]) -> float:
    """Aggregate holder payout if the underlying settles at ``strike``."""
    total = 0.0
    for call in calls:
        if strike > call.strike:
            total += (strike - call.strike) * call.open_interest
    for put in puts:
        if strike < put.strike:
            total += (put.strike - strike) * put.open_interest
    return total


def percentage_diff(price: float, max_pain: float) -> float:
    if price <= 0:
        return 0.0
    return abs(price - max_pain) * 100 / price


def classify_sentiment(price: float, max_pain: float) -> Sentiment:
    """
    Map price vs max pain onto a sentiment.

    Thresholds are inclusive on the lower band: exactly 5% is neutral and
    exactly 10% is the "slightly" band.
    """
    if price == max_pain:
        return Sentiment.NEUTRAL

    diff = percentage_diff(price, max_pain)
    above = price > max_pain
    if diff > STRONG_THRESHOLD_PCT:
        return Sentiment.BEARISH if above else Sentiment.BULLISH
    if diff > MILD_THRESHOLD_PCT:
        return Sentiment.SLIGHTLY_BEARISH if above else Sentiment.SLIGHTLY_BULLISH
    return Sentiment.NEUTRAL


def build_insight(sentiment: Sentiment, price: float, max_pain: float) -> str:
    diff = percentage_diff(price, max_pain)
    if sentiment == Sentiment.BEARISH:
        return (
            f"Price ${price:.2f} is significantly above Max Pain ({diff:.1f}%). "
            f"Market makers have strong incentive to push price down toward ${max_pain:.2f} by expiration."
        )
    if sentiment == Sentiment.SLIGHTLY_BEARISH:
        return (
            f"Price ${price:.2f} is moderately above Max Pain ({diff:.1f}%). "
            f"Some downward pressure expected toward ${max_pain:.2f}."
        )
    if sentiment == Sentiment.BULLISH:
        return (
            f"Price ${price:.2f} is significantly below Max Pain ({diff:.1f}%). "
            f"Market makers have incentive to push price up toward ${max_pain:.2f} by expiration."
        )
    if sentiment == Sentiment.SLIGHTLY_BULLISH:
        return (
            f"Price ${price:.2f} is moderately below Max Pain ({diff:.1f}%). "
            f"Some upward pressure expected toward ${max_pain:.2f}."
        )
    if price == max_pain:
        return f"Price is exactly at Max Pain (${max_pain:.2f}). Maximum pain for option holders at current price level."
    return (
        f"Price ${price:.2f} is near Max Pain ${max_pain:.2f}. "
        "Low volatility expected as price is pinned around current levels."
    )


def make_result(symbol: str, price: float, max_pain: float, strikes_analyzed: int = 0) -> MaxPainResult:
    """Assemble an untagged result from a (price, max pain) pair."""
    sentiment = classify_sentiment(price, max_pain)
    return MaxPainResult(
        symbol=symbol.upper(),
        max_pain=max_pain,
        underlying_price=price,
        percentage_diff=round(percentage_diff(price, max_pain), 2),
        sentiment=sentiment,
        insight=build_insight(sentiment, price, max_pain),
        strikes_analyzed=strikes_analyzed,
    )


class MaxPainCalculator:
    """Stateless; kept as a class so the service can take it as a collaborator."""

    def compute(self, chain: OptionsChain) -> MaxPainResult:
        if not chain.calls or not chain.puts:
            raise CalculationError(
                CalculationErrorReason.INSUFFICIENT_DATA,
                f"Insufficient options data for {chain.symbol}: "
                f"{len(chain.calls)} calls, {len(chain.puts)} puts",
            )

        strikes = candidate_strikes(chain.calls, chain.puts)
        best_strike = strikes[0]
        best_pain = pain_at(best_strike, chain.calls, chain.puts)
        for strike in strikes[1:]:
            pain = pain_at(strike, chain.calls, chain.puts)
            # Strict comparison keeps the lowest strike on ties
            if pain < best_pain:
                best_strike, best_pain = strike, pain

        logger.debug(
            f"Max pain for {chain.symbol}: {best_strike} "
            f"(pain={best_pain:.0f}, strikes={len(strikes)}, contracts={chain.total_contracts})"
        )
        return make_result(chain.symbol, chain.underlying_price, best_strike, strikes_analyzed=len(strikes))

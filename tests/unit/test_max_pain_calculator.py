"""
Unit Tests for Max Pain Calculator
"""

import random

import pytest

from market_xray.domain.errors import CalculationError, CalculationErrorReason
from market_xray.domain.models import OptionContract, OptionsChain, Sentiment
from market_xray.domain.services.max_pain_calculator import (
    MaxPainCalculator,
    candidate_strikes,
    classify_sentiment,
    make_result,
    pain_at,
)
from tests.fakes import sample_chain


def _chain(calls, puts, price=100.0, symbol="TEST"):
    return OptionsChain(
        symbol=symbol,
        underlying_price=price,
        calls=tuple(OptionContract(strike=s, open_interest=oi) for s, oi in calls),
        puts=tuple(OptionContract(strike=s, open_interest=oi) for s, oi in puts),
    )


@pytest.fixture
def calculator():
    return MaxPainCalculator()


class TestMaxPainCalculator:

    def test_reference_chain(self, calculator):
        """pain(145)=17000, pain(150)=9000, pain(155)=20000"""
        chain = sample_chain("AAPL")
        assert pain_at(145, chain.calls, chain.puts) == 17000
        assert pain_at(150, chain.calls, chain.puts) == 9000
        assert pain_at(155, chain.calls, chain.puts) == 20000

        result = calculator.compute(chain)
        assert result.max_pain == 150
        assert result.underlying_price == 150.50
        assert result.strikes_analyzed == 3
        assert result.sentiment == Sentiment.NEUTRAL
        assert result.source is None
        assert result.percentage_diff == pytest.approx(0.33, abs=0.01)

    def test_duplicate_strikes_collapse(self):
        calls = [OptionContract(100, 1), OptionContract(100, 2), OptionContract(105, 1)]
        puts = [OptionContract(95, 1), OptionContract(105, 3)]
        assert candidate_strikes(calls, puts) == [95, 100, 105]

    def test_tie_resolves_to_lowest_strike(self, calculator):
        chain = _chain(calls=[(100, 10)], puts=[(110, 10)])
        assert pain_at(100, chain.calls, chain.puts) == pain_at(110, chain.calls, chain.puts)
        assert calculator.compute(chain).max_pain == 100

    def test_missing_open_interest_counts_as_zero(self, calculator):
        chain = _chain(calls=[(150, 0)], puts=[(150, 0)], price=150.5)
        assert calculator.compute(chain).max_pain == 150

    @pytest.mark.parametrize("calls,puts", [([], [(100, 1)]), ([(100, 1)], []), ([], [])])
    def test_empty_leg_is_insufficient_data(self, calculator, calls, puts):
        with pytest.raises(CalculationError) as exc_info:
            calculator.compute(_chain(calls=calls, puts=puts))
        assert exc_info.value.reason == CalculationErrorReason.INSUFFICIENT_DATA

    def test_random_chains_pick_minimal_member_strike(self, calculator):
        rng = random.Random(42)
        for _ in range(200):
            strikes = [float(s) for s in rng.sample(range(50, 150, 5), rng.randint(1, 8))]
            calls = [(rng.choice(strikes), rng.randint(0, 5000)) for _ in range(rng.randint(1, 10))]
            puts = [(rng.choice(strikes), rng.randint(0, 5000)) for _ in range(rng.randint(1, 10))]
            chain = _chain(calls=calls, puts=puts)

            result = calculator.compute(chain)
            candidates = candidate_strikes(chain.calls, chain.puts)
            pains = {k: pain_at(k, chain.calls, chain.puts) for k in candidates}

            assert result.max_pain in candidates
            assert all(pains[result.max_pain] <= p for p in pains.values())
            # No lower strike attains the same minimum
            assert all(pains[k] > pains[result.max_pain] for k in candidates if k < result.max_pain)


class TestSentimentTable:

    @pytest.mark.parametrize(
        "price,max_pain,expected",
        [
            (100, 100, Sentiment.NEUTRAL),
            (100, 97, Sentiment.NEUTRAL),
            (100, 95, Sentiment.NEUTRAL),            # exactly 5% above
            (100, 94, Sentiment.SLIGHTLY_BEARISH),
            (100, 90, Sentiment.SLIGHTLY_BEARISH),   # exactly 10% above
            (100, 89, Sentiment.BEARISH),
            (100, 105, Sentiment.NEUTRAL),           # exactly 5% below
            (100, 106, Sentiment.SLIGHTLY_BULLISH),
            (100, 110, Sentiment.SLIGHTLY_BULLISH),  # exactly 10% below
            (100, 111, Sentiment.BULLISH),
            (200, 150, Sentiment.BEARISH),
            (100, 150, Sentiment.BULLISH),
            (150, 152, Sentiment.NEUTRAL),
        ],
    )
    def test_thresholds(self, price, max_pain, expected):
        assert classify_sentiment(price, max_pain) == expected

    def test_result_round_trips_through_table(self):
        for price, max_pain in [(200, 150), (100, 94), (100, 105), (150.5, 150)]:
            result = make_result("X", price, max_pain)
            assert classify_sentiment(result.underlying_price, result.max_pain) == result.sentiment

    def test_insight_mentions_direction(self):
        assert "significantly above" in make_result("X", 200, 150).insight
        assert "significantly below" in make_result("X", 100, 150).insight
        assert "near Max Pain" in make_result("X", 150, 152).insight
        assert "exactly at Max Pain" in make_result("X", 150, 150).insight

    def test_zero_price_does_not_divide(self):
        result = make_result("X", 0.0, 10.0)
        assert result.percentage_diff == 0.0

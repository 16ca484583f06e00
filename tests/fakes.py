"""Fakes and sample data shared by the test suite."""

import asyncio
import copy
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Union

from market_xray.domain.errors import AcquisitionError
from market_xray.domain.models import OptionsChain, Token
from market_xray.infrastructure.cache.memory_cache import InMemoryResultCache
from market_xray.infrastructure.market_data.options_fetcher import parse_options_payload
from market_xray.infrastructure.token.token_store import TokenStore
from market_xray.services.max_pain_service import MaxPainService
from market_xray.services.token_coordinator import TokenCoordinator


SAMPLE_PAYLOAD = {
    "optionChain": {
        "result": [
            {
                "quote": {"regularMarketPrice": 150.50},
                "options": [
                    {
                        "expirationDate": 1743379200,
                        "calls": [
                            {"strike": 145, "openInterest": 1000},
                            {"strike": 150, "openInterest": 2000},
                            {"strike": 155, "openInterest": 1500},
                        ],
                        "puts": [
                            {"strike": 145, "openInterest": 1200},
                            {"strike": 150, "openInterest": 1800},
                            {"strike": 155, "openInterest": 800},
                        ],
                    }
                ],
            }
        ]
    }
}


def sample_payload() -> dict:
    return copy.deepcopy(SAMPLE_PAYLOAD)


def sample_chain(symbol: str = "AAPL") -> OptionsChain:
    return parse_options_payload(symbol, sample_payload())


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAcquirer:
    """Hands out ``values`` in order; sources in ``failing`` always fail."""

    def __init__(
        self,
        values: Sequence[str] = ("crumb-1", "crumb-2", "crumb-3"),
        failing: Iterable[str] = (),
        delay: float = 0.0,
        clock: Optional[FakeClock] = None,
    ):
        self._values = list(values)
        self.failing = set(failing)
        self.delay = delay
        self.clock = clock or FakeClock()
        self.calls: List[str] = []

    async def acquire(self, source: str) -> Token:
        self.calls.append(source)
        if self.delay:
            await asyncio.sleep(self.delay)
        if source in self.failing or not self._values:
            raise AcquisitionError(f"no crumb on {source}", source=source)
        return Token(value=self._values.pop(0), fetched_at=self.clock(), source=source)


Outcome = Union[OptionsChain, Exception]


class FakeFetcher:
    """Replays ``outcomes`` in order, repeating the last one."""

    def __init__(self, outcomes: Sequence[Outcome], delay: float = 0.0):
        self._outcomes = list(outcomes)
        self.delay = delay
        self.calls: List[tuple] = []

    async def fetch(self, symbol: str, token: str) -> OptionsChain:
        self.calls.append((symbol, token))
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return replace(outcome, symbol=symbol.upper())


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_service(
    fetcher: FakeFetcher,
    acquirer: Optional[FakeAcquirer] = None,
    cache: Optional[InMemoryResultCache] = None,
    **kwargs,
) -> MaxPainService:
    acquirer = acquirer or FakeAcquirer()
    tokens = TokenCoordinator(store=TokenStore(clock=acquirer.clock), acquirer=acquirer)
    kwargs.setdefault("sleep", RecordingSleep())
    return MaxPainService(
        tokens=tokens,
        fetcher=fetcher,
        cache=cache or InMemoryResultCache(),
        **kwargs,
    )



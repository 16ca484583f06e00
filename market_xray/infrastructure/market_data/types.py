"""
Collaborator protocols for type hints.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from market_xray.domain.models import MaxPainResult, OptionsChain, Token


class TokenAcquirer(Protocol):
    async def acquire(self, source: str) -> Token:
        ...


class OptionsFetcher(Protocol):
    async def fetch(self, symbol: str, token: str) -> OptionsChain:
        ...


class RemoteCalculator(Protocol):
    async def analyze(self, symbol: str, raw: Dict[str, Any]) -> MaxPainResult:
        ...


class ResultCache(Protocol):
    async def get(self, symbol: str) -> Optional[MaxPainResult]:
        ...

    async def set(self, symbol: str, result: MaxPainResult) -> None:
        ...

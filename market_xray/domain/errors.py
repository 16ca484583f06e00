"""
Error taxonomy for the max-pain pipeline.

Only RateLimitedError is meant to reach callers of the service; everything
else is absorbed by the fallback chain.
"""

from enum import Enum
from typing import Optional


class MaxPainError(Exception):
    """Base class for pipeline failures."""
    pass


class AcquisitionError(MaxPainError):
    """No crumb could be obtained from the given source(s)."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class FetchErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    UPSTREAM = "upstream"
    MALFORMED = "malformed"


class FetchError(MaxPainError):
    """Upstream call failed; ``kind`` drives the recovery policy."""

    def __init__(self, kind: FetchErrorKind, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or kind.value)
        self.kind = kind
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: int, detail: str = "") -> "FetchError":
        if status_code in (401, 403):
            kind = FetchErrorKind.UNAUTHORIZED
        elif status_code == 429:
            kind = FetchErrorKind.RATE_LIMITED
        else:
            kind = FetchErrorKind.UPSTREAM
        message = f"HTTP {status_code}" + (f": {detail}" if detail else "")
        return cls(kind, message, status_code=status_code)


class CalculationErrorReason(str, Enum):
    INSUFFICIENT_DATA = "insufficient_data"


class CalculationError(MaxPainError):
    """Options chain cannot produce a max-pain estimate."""

    def __init__(self, reason: CalculationErrorReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


class RateLimitedError(MaxPainError):
    """Upstream throttled us; surfaced to the caller after one backoff."""

    def __init__(self, symbol: str, retry_after: float):
        super().__init__(f"Rate limited while resolving {symbol}")
        self.symbol = symbol
        self.retry_after = retry_after

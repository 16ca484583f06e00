"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Constants
    CACHE_KEY_PREFIX,
    RESULT_CACHE_TTL_SECONDS,
    TOKEN_TTL_SECONDS,
    cache_key,

    # Enums
    ResultSource,
    Sentiment,

    # Entities
    CacheEntry,
    MaxPainResult,
    OptionContract,
    OptionsChain,
    Token,
)

__all__ = [
    # Constants
    "CACHE_KEY_PREFIX",
    "RESULT_CACHE_TTL_SECONDS",
    "TOKEN_TTL_SECONDS",
    "cache_key",

    # Enums
    "ResultSource",
    "Sentiment",

    # Entities
    "CacheEntry",
    "MaxPainResult",
    "OptionContract",
    "OptionsChain",
    "Token",
]

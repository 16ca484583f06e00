"""Cashtag extraction from free text."""

import re
from typing import List

TICKER_PATTERN = re.compile(r"\$([A-Z]{1,5})\b")


def extract_tickers(text: str) -> List[str]:
    """Unique ``$TICKER`` symbols in order of first appearance."""
    if not text:
        return []
    seen: List[str] = []
    for match in TICKER_PATTERN.finditer(text):
        symbol = match.group(1)
        if symbol not in seen:
            seen.append(symbol)
    return seen

"""
Logging redaction helpers.
Redacts crumbs and other credentials from log messages.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable


_PATTERNS: Iterable[tuple[re.Pattern, str]] = (
    # Crumb embedded in a query string: ...&crumb=<value>
    (re.compile(r"(?i)([?&]crumb=)([^&\s]+)"), r"\1[REDACTED]"),
    # Crumb inside page JSON: "crumb":"<value>"
    (re.compile(r'(?i)("crumb"\s*:\s*")([^"]+)(")'), r"\1[REDACTED]\3"),
    # Authorization: Bearer <token>
    (re.compile(r"(Bearer\s+)([A-Za-z0-9\-\._]+)"), r"\1[REDACTED]"),
    # Generic token / crumb key-value
    (re.compile(r"(?i)\b(access_token|token|crumb)\s*[:=]\s*([A-Za-z0-9\-\._/]+)"), r"\1=[REDACTED]"),
)


def redact_message(message: str) -> str:
    redacted = message
    for pattern, replacement in _PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


def mask_token(token: str) -> str:
    if not token:
        return ""
    if len(token) <= 8:
        return token[:2] + "..." + token[-2:]
    return token[:4] + "..." + token[-4:]


class RedactingFilter(logging.Filter):
    """Filter that redacts sensitive data from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
            record.msg = redact_message(message)
            record.args = ()
        except Exception:
            # If redaction fails, allow log through unmodified
            pass
        return True


def _has_filter(filterer: logging.Filterer) -> bool:
    return any(isinstance(existing, RedactingFilter) for existing in filterer.filters)


def install_redaction_filter() -> None:
    root = logging.getLogger()
    # Propagated records skip logger filters, so root handlers need one too
    for target in [root, *root.handlers]:
        if not _has_filter(target):
            target.addFilter(RedactingFilter())

import logging
import sys
from typing import Iterable

from market_xray.utils.logging_redaction import install_redaction_filter

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Request lines from these carry the crumb in the query string
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(level: str = "INFO", quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """
    Configure centralized application logging with crumb redaction.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
    install_redaction_filter()

"""
Max pain service factory (config-driven).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import yaml

from market_xray.config import Settings, settings as default_settings
from market_xray.domain.services.synthetic_estimator import SyntheticEstimator
from market_xray.infrastructure.cache.cache_chain import ChainedResultCache, NamedCache
from market_xray.infrastructure.cache.memory_cache import InMemoryResultCache
from market_xray.infrastructure.cache.redis_cache import RedisResultCache
from market_xray.infrastructure.market_data.options_fetcher import YahooOptionsFetcher
from market_xray.infrastructure.remote.worker_client import WorkerCalculator, WorkerResultCache
from market_xray.infrastructure.token.crumb_acquirer import BROWSER_HEADERS, PageCrumbAcquirer
from market_xray.infrastructure.token.token_store import TokenStore
from market_xray.services.max_pain_service import MaxPainService
from market_xray.services.token_coordinator import (
    DEFAULT_ALTERNATE_SOURCES,
    DEFAULT_PRIMARY_SOURCE,
    TokenCoordinator,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def load_app_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Read the ``max_pain`` section of the YAML config; {} when absent."""
    config_path = Path(path or default_settings.APP_CONFIG_FILE)
    if not config_path.is_absolute():
        config_path = PROJECT_ROOT / config_path
    if not config_path.exists():
        logger.info(f"No app config at {config_path}, using built-in defaults")
        return {}
    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}
    return data.get("max_pain", {}) or {}


@dataclass
class ServiceBundle:
    """Service plus the resources that must be closed on shutdown."""
    service: MaxPainService
    session: httpx.AsyncClient
    cache: Any
    closeables: List[Any] = field(default_factory=list)

    async def aclose(self) -> None:
        for resource in self.closeables:
            await resource.close()
        await self.session.aclose()


def build_session(cfg: Settings) -> httpx.AsyncClient:
    """Shared browser-like session; its cookie jar serves crumb page and API alike."""
    return httpx.AsyncClient(
        headers={"User-Agent": BROWSER_HEADERS["User-Agent"]},
        timeout=cfg.HTTP_TIMEOUT_SECONDS,
        follow_redirects=True,
    )


def build_max_pain_service(
    cfg: Optional[Settings] = None,
    app_config: Optional[Dict[str, Any]] = None,
    session: Optional[httpx.AsyncClient] = None,
) -> ServiceBundle:
    cfg = cfg or default_settings
    app_config = app_config if app_config is not None else load_app_config(cfg.APP_CONFIG_FILE)
    session = session or build_session(cfg)

    sources_cfg = app_config.get("token_sources", {}) or {}
    tokens = TokenCoordinator(
        store=TokenStore(ttl_seconds=cfg.TOKEN_TTL_SECONDS),
        acquirer=PageCrumbAcquirer(session, page_url_template=cfg.YAHOO_QUOTE_PAGE_URL),
        primary_source=sources_cfg.get("primary", DEFAULT_PRIMARY_SOURCE),
        alternate_sources=sources_cfg.get("alternates", list(DEFAULT_ALTERNATE_SOURCES)),
    )

    caches: List[NamedCache] = [
        NamedCache("memory", InMemoryResultCache(ttl_seconds=cfg.RESULT_CACHE_TTL_SECONDS)),
    ]
    closeables: List[Any] = []
    if cfg.REDIS_ENABLED:
        redis_cache = RedisResultCache(url=cfg.REDIS_URL, ttl_seconds=cfg.RESULT_CACHE_TTL_SECONDS)
        caches.append(NamedCache("redis", redis_cache))
        closeables.append(redis_cache)

    remote_calculator = None
    if cfg.WORKER_BASE_URL:
        if cfg.WORKER_CACHE_ENABLED:
            caches.append(NamedCache("worker", WorkerResultCache(session, cfg.WORKER_BASE_URL)))
        if cfg.WORKER_COMPUTE_ENABLED:
            remote_calculator = WorkerCalculator(session, cfg.WORKER_BASE_URL)
    elif cfg.WORKER_CACHE_ENABLED or cfg.WORKER_COMPUTE_ENABLED:
        logger.warning("Worker features enabled but WORKER_BASE_URL is not set; ignoring")

    cache = ChainedResultCache(caches)
    service = MaxPainService(
        tokens=tokens,
        fetcher=YahooOptionsFetcher(session, options_url_template=cfg.YAHOO_OPTIONS_URL),
        cache=cache,
        synthetic=SyntheticEstimator(app_config.get("synthetic_price_ranges")),
        remote_calculator=remote_calculator,
        timeout_seconds=cfg.RESOLVE_TIMEOUT_SECONDS,
        rate_limit_backoff_seconds=cfg.RATE_LIMIT_BACKOFF_SECONDS,
    )
    logger.info(f"Max pain service ready (caches: {[c.name for c in caches]}, remote compute: {remote_calculator is not None})")
    return ServiceBundle(service=service, session=session, cache=cache, closeables=closeables)

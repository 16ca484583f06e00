import httpx
import pytest

from market_xray.config import Settings
from market_xray.infrastructure.remote.worker_client import WorkerCalculator
from market_xray.services.service_factory import build_max_pain_service, load_app_config


def _session() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))


def test_load_app_config_reads_repository_yaml():
    config = load_app_config("config/app.yml")
    assert config["token_sources"]["primary"] == "AAPL"
    assert "NVDA" in config["token_sources"]["alternates"]
    assert config["synthetic_price_ranges"]["DEFAULT"] == [50, 200]


def test_load_app_config_missing_file(tmp_path):
    assert load_app_config(str(tmp_path / "absent.yml")) == {}


@pytest.mark.asyncio
async def test_default_bundle_uses_memory_cache_only():
    bundle = build_max_pain_service(Settings(REDIS_ENABLED=False), app_config={}, session=_session())

    assert [c.name for c in bundle.cache.caches] == ["memory"]
    assert bundle.service.remote_calculator is None
    assert bundle.service.tokens.sources[0] == "AAPL"
    await bundle.aclose()


@pytest.mark.asyncio
async def test_worker_and_config_wiring():
    cfg = Settings(
        WORKER_BASE_URL="https://worker.example.com",
        WORKER_CACHE_ENABLED=True,
        WORKER_COMPUTE_ENABLED=True,
        RESOLVE_TIMEOUT_SECONDS=3.0,
    )
    app_config = {
        "token_sources": {"primary": "MSFT", "alternates": ["MSFT", "AAPL"]},
        "synthetic_price_ranges": {"gme": [10, 20]},
    }
    bundle = build_max_pain_service(cfg, app_config=app_config, session=_session())

    assert [c.name for c in bundle.cache.caches] == ["memory", "worker"]
    assert isinstance(bundle.service.remote_calculator, WorkerCalculator)
    assert bundle.service.tokens.sources == ["MSFT", "AAPL"]
    assert bundle.service.timeout_seconds == 3.0
    assert bundle.service.synthetic.price_range("GME") == (10.0, 20.0)
    await bundle.aclose()


@pytest.mark.asyncio
async def test_worker_flags_without_url_are_ignored():
    cfg = Settings(WORKER_COMPUTE_ENABLED=True, WORKER_CACHE_ENABLED=True)
    bundle = build_max_pain_service(cfg, app_config={}, session=_session())
    assert bundle.service.remote_calculator is None
    assert [c.name for c in bundle.cache.caches] == ["memory"]
    await bundle.aclose()

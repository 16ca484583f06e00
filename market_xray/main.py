"""
FastAPI Main Application
Max pain resolution API over the crumb -> options -> compute fallback chain
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from market_xray.api.routes import max_pain
from market_xray.config import settings
from market_xray.core.logging import setup_logging
from market_xray.services.service_factory import build_max_pain_service
from market_xray.utils.time import now_utc, to_utc_iso

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Builds the shared HTTP session and service, closes them on shutdown
    """
    logger.info("=" * 60)
    logger.info("🚀 Starting Market X-Ray max pain service")
    logger.info("=" * 60)

    bundle = build_max_pain_service(settings)
    app.state.max_pain_service = bundle.service
    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info(f"   ✅ Redis cache: {'Enabled' if settings.REDIS_ENABLED else 'Disabled'}")
    logger.info(f"   ✅ Worker: {settings.WORKER_BASE_URL or 'Not configured'}")

    yield

    logger.info("🛑 Shutting down Market X-Ray...")
    await bundle.aclose()
    app.state.max_pain_service = None
    logger.info("👋 Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Market X-Ray",
    description="Options max pain estimates with live, cached and synthetic fallbacks",
    version="1.0.0",
    lifespan=lifespan,
)

# The browser extension calls from arbitrary page origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(max_pain.router, prefix="/api", tags=["Max Pain"])


@app.get("/health")
async def health_check():
    """Liveness probe"""
    return {
        "status": "healthy",
        "service": "Market X-Ray",
        "environment": settings.APP_ENV,
        "timestamp": to_utc_iso(now_utc()),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("market_xray.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)

"""
Max Pain routes - resolution, scanning, compute sink and legacy cache.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from market_xray.domain.errors import CalculationError, FetchError, RateLimitedError
from market_xray.domain.models import ResultSource
from market_xray.infrastructure.market_data.options_fetcher import parse_options_payload
from market_xray.infrastructure.market_data.types import ResultCache
from market_xray.services.max_pain_service import MaxPainService
from market_xray.utils.time import now_utc, to_utc_iso

router = APIRouter()

MAX_LEGACY_SYMBOL_LENGTH = 5


class MaxPainResponse(BaseModel):
    symbol: str
    maxPain: float
    underlyingPrice: float
    percentageDiff: float
    sentiment: str
    insight: str
    timestamp: str
    source: Optional[str] = None
    strikesAnalyzed: int = 0


class ScanRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=20_000)


class ScanItem(BaseModel):
    symbol: str
    result: Optional[MaxPainResponse] = None
    error: Optional[str] = None
    retryAfter: Optional[float] = None


class AnalyzeRequest(BaseModel):
    symbol: Optional[str] = None
    rawData: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None


def get_max_pain_service(request: Request) -> MaxPainService:
    service = getattr(request.app.state, "max_pain_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Max pain service not initialized")
    return service


def get_result_cache(service: MaxPainService = Depends(get_max_pain_service)) -> ResultCache:
    return service.cache


@router.get("/v1/max-pain/{symbol}", response_model=MaxPainResponse)
async def resolve_max_pain(symbol: str, service: MaxPainService = Depends(get_max_pain_service)):
    """Run the full fallback chain for one symbol."""
    try:
        result = await service.resolve(symbol)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RateLimitedError as exc:
        raise HTTPException(
            status_code=429,
            detail=str(exc),
            headers={"Retry-After": str(int(exc.retry_after))},
        )
    return result.to_dict()


@router.post("/v1/max-pain/scan", response_model=List[ScanItem])
async def scan_text(payload: ScanRequest, service: MaxPainService = Depends(get_max_pain_service)):
    """Resolve every $TICKER found in the text."""
    entries = await service.scan(payload.text)
    return [
        {
            "symbol": entry.symbol,
            "result": entry.result.to_dict() if entry.result else None,
            "error": entry.error,
            "retryAfter": entry.retry_after,
        }
        for entry in entries
    ]


@router.post("/analyze")
async def analyze(
    payload: AnalyzeRequest,
    service: MaxPainService = Depends(get_max_pain_service),
    cache: ResultCache = Depends(get_result_cache),
):
    """Compute max pain from a raw upstream options payload posted by a client."""
    if not payload.symbol or not payload.rawData:
        raise HTTPException(status_code=400, detail="Missing required fields: symbol and rawData")

    symbol = payload.symbol.upper()
    try:
        chain = parse_options_payload(symbol, payload.rawData)
    except FetchError:
        raise HTTPException(status_code=400, detail="Invalid Yahoo Finance data structure")

    try:
        result = service.calculator.compute(chain)
    except CalculationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    await cache.set(symbol, result.with_source(ResultSource.LIVE))
    return {
        "symbol": symbol,
        "price": result.underlying_price,
        "maxPain": result.max_pain,
        "insight": result.insight,
        "percentageDiff": result.percentage_diff,
        "strikesAnalyzed": result.strikes_analyzed,
        "timestamp": payload.timestamp or to_utc_iso(result.timestamp),
        "dataSource": "client_mule",
    }


@router.get("/max-pain/{symbol}")
async def legacy_cached_max_pain(symbol: str, cache: ResultCache = Depends(get_result_cache)):
    """Read-only cache lookup; never triggers an upstream fetch."""
    if not symbol or len(symbol) > MAX_LEGACY_SYMBOL_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid symbol format")

    cached = await cache.get(symbol)
    if cached is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": "No cached data available",
                "symbol": symbol.upper(),
            },
        )

    data = cached.with_source(ResultSource.CACHE).to_dict()
    data["price"] = cached.underlying_price
    data["cached"] = True
    data["cacheTimestamp"] = to_utc_iso(now_utc())
    return data

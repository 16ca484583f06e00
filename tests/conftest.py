from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from market_xray.api.routes import max_pain
from market_xray.services.max_pain_service import MaxPainService
from tests.fakes import FakeFetcher, make_service, sample_chain


@pytest.fixture()
def service() -> MaxPainService:
    return make_service(FakeFetcher([sample_chain("AAPL")]))


@pytest.fixture()
async def app(service: MaxPainService) -> FastAPI:
    app = FastAPI()
    app.include_router(max_pain.router, prefix="/api", tags=["Max Pain"])
    app.state.max_pain_service = service
    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator

# Set test env vars before any app import
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "5")
os.environ.setdefault("READ_RATE_LIMIT_PER_MINUTE", "20")
os.environ.setdefault("HOLDINGS_API_URL", "http://holdings.invalid/api/wallet-dashboard")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from portfolio_analytics.api.deps import get_analytics_service
from portfolio_analytics.core.config import settings
from portfolio_analytics.core.rate_limit import limiter
from portfolio_analytics.main import app
from portfolio_analytics.services.analytics_service import (
    PortfolioAnalyticsService,
    build_analytics_service,
)
from portfolio_analytics.services.holdings import HoldingRecord, Holdings, StaticHoldingsProvider

WALLET = "0xabc"


@pytest.fixture
def holdings_provider() -> StaticHoldingsProvider:
    """Provider with one single-asset wallet."""
    return StaticHoldingsProvider(
        {
            WALLET: Holdings(
                total_value=1000.0,
                assets=[
                    HoldingRecord(
                        symbol="ETH",
                        name="Ethereum",
                        balance="0.5",
                        usd_value=1000.0,
                        price=2000.0,
                        chain_id=1,
                        chain_name="Ethereum",
                        change_24h=2.0,
                    )
                ],
            )
        }
    )


@pytest.fixture
def analytics_service(holdings_provider) -> PortfolioAnalyticsService:
    return build_analytics_service(settings, holdings_provider=holdings_provider)


@pytest_asyncio.fixture(scope="function")
async def client(analytics_service) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with the analytics service override."""
    limiter.reset()
    app.state.analytics_service = analytics_service
    app.dependency_overrides[get_analytics_service] = lambda: analytics_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    del app.state.analytics_service

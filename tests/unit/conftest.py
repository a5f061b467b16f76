"""Minimal conftest for unit tests - no app server, no network."""

from datetime import datetime, timedelta, timezone

import pytest

from portfolio_analytics.models.portfolio_snapshot import AssetPosition, PortfolioSnapshot
from portfolio_analytics.services.holdings import HoldingRecord, Holdings, StaticHoldingsProvider
from portfolio_analytics.services.performance_service import cross_sectional_performance
from portfolio_analytics.services.risk_service import RiskCalculator
from portfolio_analytics.services.snapshot_service import SnapshotService
from portfolio_analytics.services.snapshot_store import SnapshotStore

WALLET = "0xabc"


class StepClock:
    """Deterministic clock advancing one day per call."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(days=1)
        return current


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store():
    return SnapshotStore()


@pytest.fixture
def provider():
    return StaticHoldingsProvider()


@pytest.fixture
def snapshot_service(provider, store, clock):
    return SnapshotService(provider, store, clock=clock)


@pytest.fixture
def record():
    """Factory for raw holdings records."""

    def _record(symbol: str, usd_value: float, **overrides) -> HoldingRecord:
        fields = {
            "symbol": symbol,
            "name": symbol,
            "balance": "1.0",
            "usd_value": usd_value,
            "price": usd_value,
            "chain_id": 1,
            "chain_name": "Ethereum",
        }
        fields.update(overrides)
        return HoldingRecord(**fields)

    return _record


@pytest.fixture
def holdings():
    """Factory wrapping records into Holdings with a consistent total."""

    def _holdings(*records: HoldingRecord) -> Holdings:
        return Holdings(total_value=sum(r.usd_value for r in records), assets=list(records))

    return _holdings


@pytest.fixture
def seed_history(snapshot_service, store):
    """Build and store one snapshot per Holdings, oldest first. Returns the history."""

    def _seed(*holdings_list: Holdings, wallet_id: str = WALLET):
        for h in holdings_list:
            snapshot = snapshot_service.build_snapshot(wallet_id, h, store.history(wallet_id))
            store.append(snapshot)
        return store.history(wallet_id)

    return _seed


@pytest.fixture
def make_position():
    """Factory for weighted positions."""

    def _position(symbol: str = "ETH", weight: float = 100.0, **overrides) -> AssetPosition:
        fields = {
            "symbol": symbol,
            "name": symbol,
            "balance": "1.0",
            "usd_value": weight * 10,
            "price": 1.0,
            "chain_id": 1,
            "chain_name": "Ethereum",
            "weight": weight,
            "change_24h": 0.0,
            "change_7d": 0.0,
            "change_30d": 0.0,
            "volatility": 0.5,
            "sharpe_ratio": 1.0,
        }
        fields.update(overrides)
        return AssetPosition(**fields)

    return _position


@pytest.fixture
def make_snapshot(make_position, clock):
    """Factory for standalone snapshots (no history metrics)."""

    def _snapshot(
        snapshot_id: str = "snapshot_1",
        wallet_id: str = WALLET,
        total_value: float = 1000.0,
        positions=None,
    ) -> PortfolioSnapshot:
        positions = tuple(positions or (make_position(usd_value=total_value),))
        return PortfolioSnapshot(
            id=snapshot_id,
            wallet_id=wallet_id,
            timestamp=clock(),
            total_value=total_value,
            assets=positions,
            chains=(),
            performance=cross_sectional_performance(positions),
            risk_metrics=RiskCalculator().compute(positions, total_value),
        )

    return _snapshot

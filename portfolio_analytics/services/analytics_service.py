"""Portfolio analytics facade: snapshots, attribution and recommendations."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from portfolio_analytics.core.config import Settings
from portfolio_analytics.core.locking import WalletLocks
from portfolio_analytics.models.attribution import PerformanceAttribution
from portfolio_analytics.models.portfolio_snapshot import HistoricalData, PortfolioSnapshot
from portfolio_analytics.models.recommendation import RebalancingRecommendation
from portfolio_analytics.services.attribution_service import AttributionService
from portfolio_analytics.services.holdings import HoldingsProvider, WalletDashboardHoldingsProvider
from portfolio_analytics.services.performance_service import (
    drawdown_series,
    period_returns,
    volatility,
)
from portfolio_analytics.services.recommendation_service import RecommendationService
from portfolio_analytics.services.risk_service import RiskCalculator
from portfolio_analytics.services.snapshot_service import SnapshotService
from portfolio_analytics.services.snapshot_store import SnapshotStore, normalize_wallet_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioSummary:
    """Current snapshot with its attribution and recommendations."""

    current_snapshot: PortfolioSnapshot
    performance_attribution: PerformanceAttribution
    recommendations: List[RebalancingRecommendation]


class PortfolioAnalyticsService:
    """Entry point over the snapshot store and the analytics components."""

    def __init__(
        self,
        store: SnapshotStore,
        snapshot_service: SnapshotService,
        attribution_service: Optional[AttributionService] = None,
        recommendation_service: Optional[RecommendationService] = None,
    ):
        self.store = store
        self.snapshot_service = snapshot_service
        self.attribution_service = attribution_service or AttributionService(store)
        self.recommendation_service = recommendation_service or RecommendationService(store)

    async def create_snapshot(
        self, wallet_id: str, timeout: Optional[float] = None
    ) -> PortfolioSnapshot:
        return await self.snapshot_service.create_snapshot(wallet_id, timeout=timeout)

    def compute_attribution(self, wallet_id: str) -> PerformanceAttribution:
        return self.attribution_service.compute_attribution(wallet_id)

    def generate_recommendations(self, wallet_id: str) -> List[RebalancingRecommendation]:
        return self.recommendation_service.generate_recommendations(wallet_id)

    async def get_portfolio_summary(
        self, wallet_id: str, timeout: Optional[float] = None
    ) -> PortfolioSummary:
        """Create a fresh snapshot, then attribute it and run the rules on it."""
        snapshot = await self.create_snapshot(wallet_id, timeout=timeout)
        return PortfolioSummary(
            current_snapshot=snapshot,
            performance_attribution=self.compute_attribution(wallet_id),
            recommendations=self.generate_recommendations(wallet_id),
        )

    def get_snapshots(self, wallet_id: str, limit: int = 100) -> Tuple[PortfolioSnapshot, ...]:
        """Up to ``limit`` snapshots, newest first."""
        return self.store.get_snapshots(wallet_id, limit)

    def get_historical_data(self, wallet_id: str) -> Optional[HistoricalData]:
        """Chronological series over the wallet's history, or None when it has none."""
        history = self.store.history(normalize_wallet_id(wallet_id))
        if not history:
            return None

        chronological = history[::-1]
        values = [s.total_value for s in chronological]
        returns = period_returns(values[::-1])[::-1]

        symbols: List[str] = []
        for snapshot in chronological:
            for asset in snapshot.assets:
                if asset.symbol not in symbols:
                    symbols.append(asset.symbol)

        asset_prices: Dict[str, Tuple[float, ...]] = {}
        for symbol in symbols:
            prices = []
            for snapshot in chronological:
                match = next((a for a in snapshot.assets if a.symbol == symbol), None)
                prices.append(match.price if match else 0.0)
            asset_prices[symbol] = tuple(prices)

        return HistoricalData(
            timestamps=tuple(s.timestamp for s in chronological),
            portfolio_values=tuple(values),
            asset_prices=asset_prices,
            returns=tuple(returns),
            volatility=tuple(volatility(returns[: i + 1]) for i in range(len(returns))),
            drawdowns=tuple(drawdown_series(values)),
        )


def build_analytics_service(
    config: Settings, holdings_provider: Optional[HoldingsProvider] = None
) -> PortfolioAnalyticsService:
    """Wire the default components from settings."""
    store = SnapshotStore(max_snapshots=config.SNAPSHOT_HISTORY_LIMIT)
    provider = holdings_provider or WalletDashboardHoldingsProvider(
        base_url=config.HOLDINGS_API_URL,
        timeout=config.HOLDINGS_TIMEOUT_SECONDS,
    )
    risk_calculator = RiskCalculator(
        default_correlation=config.DEFAULT_CORRELATION,
        beta=config.MARKET_BETA,
        default_liquidity_score=config.DEFAULT_LIQUIDITY_SCORE,
        risk_free_rate=config.RISK_FREE_RATE,
    )
    snapshot_service = SnapshotService(
        holdings_provider=provider,
        store=store,
        risk_calculator=risk_calculator,
        locks=WalletLocks(timeout=config.WALLET_LOCK_TIMEOUT_SECONDS),
        timeout=config.HOLDINGS_TIMEOUT_SECONDS,
        risk_free_rate=config.RISK_FREE_RATE,
    )
    recommendation_service = RecommendationService(
        store,
        stable_asset=config.STABLE_REFERENCE_ASSET,
        max_recommendations=config.MAX_RECOMMENDATIONS,
        min_confidence=config.MIN_RECOMMENDATION_CONFIDENCE,
    )
    logger.info(
        "Analytics service configured",
        extra={"holdings_provider": provider.provider_name, "history_limit": store.max_snapshots},
    )
    return PortfolioAnalyticsService(
        store=store,
        snapshot_service=snapshot_service,
        attribution_service=AttributionService(store),
        recommendation_service=recommendation_service,
    )

"""Rule-based rebalancing recommendations over the latest snapshot."""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from portfolio_analytics.models.portfolio_snapshot import AssetPosition, PortfolioSnapshot
from portfolio_analytics.models.recommendation import (
    ActionType,
    ExpectedImpact,
    Priority,
    RebalancingAction,
    RebalancingRecommendation,
    RecommendationType,
    Urgency,
)
from portfolio_analytics.services.snapshot_store import SnapshotStore, normalize_wallet_id

logger = logging.getLogger(__name__)

STABLECOINS = ("USDC", "USDT", "DAI")

TARGET_ALLOCATIONS: Dict[str, float] = {
    "ETH": 40.0,
    "BTC": 30.0,
    "Stablecoins": 20.0,
    "Other": 10.0,
}


class RecommendationService:
    """Applies a fixed rule set to a wallet's newest snapshot.

    Confidence and expected impact are constants per rule, not simulated
    outcomes.
    """

    CONCENTRATION_THRESHOLD = 0.5  # Herfindahl index
    ASSET_VOLATILITY_THRESHOLD = 0.7
    SHARPE_THRESHOLD = 1.0
    VAR_THRESHOLD = 0.15  # VaR95 as a fraction of value
    UNDERPERFORMER_30D = -15.0
    UNDERPERFORMER_MIN_WEIGHT = 5.0
    HARVEST_LOSS_THRESHOLD = -10.0
    TAX_RATE = 0.25
    REBALANCE_DEVIATION = 10.0
    CHAIN_CONCENTRATION = 80.0

    def __init__(
        self,
        store: SnapshotStore,
        stable_asset: str = "USDC",
        max_recommendations: int = 10,
        min_confidence: float = 0.3,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.stable_asset = stable_asset
        self.max_recommendations = max_recommendations
        self.min_confidence = min_confidence
        self._clock = clock

    def generate_recommendations(self, wallet_id: str) -> List[RebalancingRecommendation]:
        """
        Evaluate every rule against the newest snapshot.

        Returns an empty list when the wallet has no history. Results are
        sorted by priority (critical first), keeping rule order within a tier.
        """
        wallet_key = normalize_wallet_id(wallet_id)
        history = self.store.history(wallet_key)
        if not history:
            return []
        return self.evaluate(history)

    def evaluate(self, history: Sequence[PortfolioSnapshot]) -> List[RebalancingRecommendation]:
        snapshot = history[0]
        stamp = int(self._clock().timestamp() * 1000)

        candidates: List[Optional[RebalancingRecommendation]] = [
            self._concentration(snapshot, stamp),
            self._high_volatility(snapshot, stamp),
            self._low_sharpe(snapshot, stamp),
            self._value_at_risk(snapshot, stamp),
            self._underperformers(snapshot, stamp),
            self._tax_loss_harvest(history, stamp),
            self._strategic_rebalance(snapshot, stamp),
            self._momentum_rotation(snapshot, stamp),
            self._chain_diversification(snapshot, stamp),
        ]

        fired = [r for r in candidates if r is not None and r.confidence >= self.min_confidence]
        # sorted() is stable, so rule order holds within a tier
        ranked = sorted(fired, key=lambda r: r.priority.rank, reverse=True)

        logger.debug(
            "Recommendations evaluated",
            extra={"wallet_id": snapshot.wallet_id, "fired": len(fired)},
        )
        return ranked[: self.max_recommendations]

    # ------------------------------------------------------------------
    # Risk rules
    # ------------------------------------------------------------------

    def _concentration(self, snapshot: PortfolioSnapshot, stamp: int):
        hhi = snapshot.risk_metrics.concentration_risk
        if hhi <= self.CONCENTRATION_THRESHOLD or not snapshot.assets:
            return None

        dominant = max(snapshot.assets, key=lambda a: a.weight)
        amount = dominant.usd_value * 0.2
        return RebalancingRecommendation(
            id=f"concentration_risk_{stamp}",
            type=RecommendationType.RISK_REDUCTION,
            priority=Priority.HIGH,
            title="Reduce Concentration Risk",
            description=(
                f"Portfolio is heavily concentrated in {dominant.symbol} "
                f"({dominant.weight:.1f}%). Diversification recommended to reduce risk."
            ),
            actions=(
                RebalancingAction(
                    action_type=ActionType.SELL,
                    from_asset=dominant.symbol,
                    to_asset=self.stable_asset,
                    amount=amount,
                    amount_usd=amount,
                    reason="Reduce concentration to improve risk-adjusted returns",
                    urgency=Urgency.HIGH,
                ),
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=20,
                return_improvement=-3,
                cost_estimate=snapshot.total_value * 0.005,
            ),
            confidence=0.85,
        )

    def _high_volatility(self, snapshot: PortfolioSnapshot, stamp: int):
        volatile = [a for a in snapshot.assets if a.volatility > self.ASSET_VOLATILITY_THRESHOLD]
        if not volatile:
            return None

        return RebalancingRecommendation(
            id=f"volatility_reduction_{stamp}",
            type=RecommendationType.RISK_REDUCTION,
            priority=Priority.MEDIUM,
            title="Reduce Portfolio Volatility",
            description=(
                f"{', '.join(a.symbol for a in volatile)} carry volatility above "
                f"{self.ASSET_VOLATILITY_THRESHOLD * 100:.0f}%. "
                "Consider reducing exposure to high-volatility assets."
            ),
            actions=tuple(
                RebalancingAction(
                    action_type=ActionType.SELL,
                    from_asset=a.symbol,
                    to_asset=self.stable_asset,
                    amount=a.usd_value * 0.3,
                    amount_usd=a.usd_value * 0.3,
                    reason="Reduce volatility and improve stability",
                    urgency=Urgency.LOW,
                )
                for a in volatile
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=25,
                return_improvement=-5,
                cost_estimate=snapshot.total_value * 0.003,
            ),
            confidence=0.75,
        )

    def _value_at_risk(self, snapshot: PortfolioSnapshot, stamp: int):
        var95 = snapshot.risk_metrics.value_at_risk_95
        if snapshot.total_value <= 0 or var95 <= snapshot.total_value * self.VAR_THRESHOLD:
            return None

        amount = snapshot.total_value * 0.1
        return RebalancingRecommendation(
            id=f"var_reduction_{stamp}",
            type=RecommendationType.RISK_REDUCTION,
            priority=Priority.HIGH,
            title="Reduce Value at Risk",
            description=(
                f"VaR (95%) is {var95 / snapshot.total_value * 100:.1f}% of portfolio. "
                "Consider hedging strategies."
            ),
            actions=(
                RebalancingAction(
                    action_type=ActionType.BUY,
                    to_asset=self.stable_asset,
                    amount=amount,
                    amount_usd=amount,
                    reason="Add stable assets to reduce downside risk",
                    urgency=Urgency.MEDIUM,
                ),
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=15,
                return_improvement=-2,
                cost_estimate=snapshot.total_value * 0.002,
            ),
            confidence=0.8,
        )

    def _chain_diversification(self, snapshot: PortfolioSnapshot, stamp: int):
        dominant = next(
            (c for c in snapshot.chains if c.weight > self.CHAIN_CONCENTRATION), None
        )
        if dominant is None:
            return None

        return RebalancingRecommendation(
            id=f"chain_diversification_{stamp}",
            type=RecommendationType.RISK_REDUCTION,
            priority=Priority.MEDIUM,
            title="Improve Cross-Chain Diversification",
            description=(
                f"Portfolio is heavily concentrated on {dominant.name} "
                f"({dominant.weight:.1f}%). Consider diversifying across multiple chains."
            ),
            actions=(
                RebalancingAction(
                    action_type=ActionType.BUY,
                    to_asset="BNB",
                    amount=snapshot.total_value * 0.1,
                    amount_usd=snapshot.total_value * 0.1,
                    reason="Add exposure to BNB Smart Chain ecosystem",
                    urgency=Urgency.LOW,
                ),
                RebalancingAction(
                    action_type=ActionType.BUY,
                    to_asset="MATIC",
                    amount=snapshot.total_value * 0.05,
                    amount_usd=snapshot.total_value * 0.05,
                    reason="Add exposure to Polygon ecosystem",
                    urgency=Urgency.LOW,
                ),
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=12,
                return_improvement=3,
                cost_estimate=snapshot.total_value * 0.003,
            ),
            confidence=0.75,
        )

    # ------------------------------------------------------------------
    # Performance rules
    # ------------------------------------------------------------------

    def _low_sharpe(self, snapshot: PortfolioSnapshot, stamp: int):
        sharpe = snapshot.performance.sharpe_ratio
        if sharpe >= self.SHARPE_THRESHOLD or not snapshot.assets:
            return None

        best = max(snapshot.assets, key=lambda a: a.sharpe_ratio or 0.0)
        amount = snapshot.total_value * 0.1
        return RebalancingRecommendation(
            id=f"sharpe_improvement_{stamp}",
            type=RecommendationType.OPPORTUNITY,
            priority=Priority.MEDIUM,
            title="Improve Risk-Adjusted Returns",
            description=(
                f"Portfolio Sharpe ratio is {sharpe:.2f}. "
                "Reallocate to assets with better risk-adjusted performance."
            ),
            actions=(
                RebalancingAction(
                    action_type=ActionType.BUY,
                    to_asset=best.symbol,
                    amount=amount,
                    amount_usd=amount,
                    reason="Increase allocation to best risk-adjusted performer",
                    urgency=Urgency.LOW,
                ),
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=5,
                return_improvement=12,
                cost_estimate=snapshot.total_value * 0.003,
            ),
            confidence=0.65,
        )

    def _underperformers(self, snapshot: PortfolioSnapshot, stamp: int):
        laggards = [
            a
            for a in snapshot.assets
            if a.change_30d < self.UNDERPERFORMER_30D and a.weight > self.UNDERPERFORMER_MIN_WEIGHT
        ]
        if not laggards:
            return None

        return RebalancingRecommendation(
            id=f"underperformer_reallocation_{stamp}",
            type=RecommendationType.OPPORTUNITY,
            priority=Priority.MEDIUM,
            title="Reallocate Underperforming Assets",
            description=(
                f"Assets {', '.join(a.symbol for a in laggards)} have underperformed "
                "significantly over the last 30 days."
            ),
            actions=tuple(
                RebalancingAction(
                    action_type=ActionType.SELL,
                    from_asset=a.symbol,
                    to_asset="ETH",
                    amount=a.usd_value * 0.2,
                    amount_usd=a.usd_value * 0.2,
                    reason="Reduce exposure to underperforming assets",
                    urgency=Urgency.LOW,
                )
                for a in laggards
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=10,
                return_improvement=8,
                cost_estimate=snapshot.total_value * 0.004,
            ),
            confidence=0.6,
        )

    def _momentum_rotation(self, snapshot: PortfolioSnapshot, stamp: int):
        strong = [a for a in snapshot.assets if a.change_7d > 10 and a.change_30d > 15]
        weak = [a for a in snapshot.assets if a.change_7d < -5 and a.change_30d < -10]
        if not strong or not weak:
            return None

        return RebalancingRecommendation(
            id=f"momentum_rotation_{stamp}",
            type=RecommendationType.OPPORTUNITY,
            priority=Priority.LOW,
            title="Momentum-Based Rotation",
            description=(
                f"Rotate from weak momentum assets ({', '.join(a.symbol for a in weak)}) "
                f"to strong momentum assets ({', '.join(a.symbol for a in strong)})."
            ),
            actions=tuple(
                RebalancingAction(
                    action_type=ActionType.SELL,
                    from_asset=a.symbol,
                    to_asset=strong[0].symbol,
                    amount=a.usd_value * 0.15,
                    amount_usd=a.usd_value * 0.15,
                    reason="Rotate from weak to strong momentum",
                    urgency=Urgency.LOW,
                )
                for a in weak
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=-5,
                return_improvement=15,
                cost_estimate=snapshot.total_value * 0.006,
            ),
            confidence=0.5,
        )

    # ------------------------------------------------------------------
    # Tax and strategic rules
    # ------------------------------------------------------------------

    def _tax_loss_harvest(self, history: Sequence[PortfolioSnapshot], stamp: int):
        if len(history) < 2:
            return None
        snapshot, previous = history[0], history[1]

        losers: List[AssetPosition] = []
        for asset in snapshot.assets:
            symbol = asset.symbol.upper()
            prior = next((p for p in previous.assets if p.symbol.upper() == symbol), None)
            if prior is None or prior.usd_value <= 0:
                continue
            change = (asset.usd_value - prior.usd_value) / prior.usd_value * 100
            if change < self.HARVEST_LOSS_THRESHOLD:
                losers.append(asset)
        if not losers:
            return None

        loss_value = sum(a.usd_value for a in losers)
        return RebalancingRecommendation(
            id=f"tax_loss_harvest_{stamp}",
            type=RecommendationType.TAX_LOSS_HARVEST,
            priority=Priority.MEDIUM,
            title="Tax Loss Harvesting Opportunity",
            description=(
                f"Harvest tax losses from {', '.join(a.symbol for a in losers)} "
                "to offset capital gains."
            ),
            actions=tuple(
                RebalancingAction(
                    action_type=ActionType.SELL,
                    from_asset=a.symbol,
                    to_asset=self.stable_asset,
                    amount=a.usd_value,
                    amount_usd=a.usd_value,
                    reason="Realize tax losses while maintaining market exposure",
                    urgency=Urgency.LOW,
                )
                for a in losers
            ),
            expected_impact=ExpectedImpact(
                risk_reduction=0,
                return_improvement=0,
                cost_estimate=loss_value * 0.005,
                tax_savings=loss_value * self.TAX_RATE,
            ),
            confidence=0.9,
        )

    @staticmethod
    def current_allocations(assets: Sequence[AssetPosition]) -> Dict[str, float]:
        """Weight per target category (ETH, BTC, Stablecoins, Other)."""
        allocations = {category: 0.0 for category in TARGET_ALLOCATIONS}
        for asset in assets:
            symbol = asset.symbol.upper()
            if symbol in ("ETH", "BTC"):
                allocations[symbol] += asset.weight
            elif symbol in STABLECOINS:
                allocations["Stablecoins"] += asset.weight
            else:
                allocations["Other"] += asset.weight
        return allocations

    def _strategic_rebalance(self, snapshot: PortfolioSnapshot, stamp: int):
        current = self.current_allocations(snapshot.assets)
        deviations = [
            (category, target, target - current[category])
            for category, target in TARGET_ALLOCATIONS.items()
            if abs(current[category] - target) > self.REBALANCE_DEVIATION
        ]
        if not deviations:
            return None

        actions = []
        for category, target, gap in deviations:
            # Close half the gap
            amount = abs(gap) / 100 * snapshot.total_value * 0.5
            actions.append(
                RebalancingAction(
                    action_type=ActionType.BUY if gap > 0 else ActionType.SELL,
                    to_asset=category if category in ("ETH", "BTC") else self.stable_asset,
                    amount=amount,
                    amount_usd=amount,
                    reason=f"Rebalance {category} allocation closer to {target:.0f}% target",
                    urgency=Urgency.LOW,
                )
            )

        return RebalancingRecommendation(
            id=f"strategic_rebalance_{stamp}",
            type=RecommendationType.REBALANCE,
            priority=Priority.MEDIUM,
            title="Strategic Portfolio Rebalancing",
            description=(
                "Portfolio allocation deviates from targets. Rebalancing recommended for "
                f"{', '.join(category for category, _, _ in deviations)}."
            ),
            actions=tuple(actions),
            expected_impact=ExpectedImpact(
                risk_reduction=8,
                return_improvement=5,
                cost_estimate=snapshot.total_value * 0.004,
            ),
            confidence=0.7,
        )

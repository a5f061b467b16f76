"""Portfolio snapshot service: builds snapshots from current holdings."""

import asyncio
import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from portfolio_analytics.core.exceptions import DataUnavailable
from portfolio_analytics.core.locking import WalletLocks
from portfolio_analytics.models.portfolio_snapshot import (
    AssetPosition,
    ChainPosition,
    PortfolioSnapshot,
)
from portfolio_analytics.services.holdings.base import HoldingRecord, Holdings, HoldingsProvider
from portfolio_analytics.services.performance_service import (
    RISK_FREE_RATE,
    compute_performance,
    finite,
    period_returns,
)
from portfolio_analytics.services.risk_service import RiskCalculator
from portfolio_analytics.services.snapshot_store import SnapshotStore, normalize_wallet_id

logger = logging.getLogger(__name__)

# Reference estimates used when the chain scan does not supply them
VOLATILITY_ESTIMATES: Dict[str, float] = {
    "ETH": 0.65, "BTC": 0.55, "BNB": 0.58, "MATIC": 0.82, "ADA": 0.70,
    "USDC": 0.05, "USDT": 0.05, "DAI": 0.08,
}
DEFAULT_VOLATILITY = 0.60

SHARPE_ESTIMATES: Dict[str, float] = {
    "ETH": 1.2, "BTC": 1.1, "BNB": 0.9, "MATIC": 0.3, "ADA": 0.7,
    "USDC": 0.1, "USDT": 0.1, "DAI": 0.1,
}
DEFAULT_SHARPE = 0.5

# Provider totals may differ from the sum of positions by rounding
TOTAL_VALUE_TOLERANCE = 0.01


def estimate_volatility(symbol: str) -> float:
    return VOLATILITY_ESTIMATES.get(symbol.upper(), DEFAULT_VOLATILITY)


def estimate_sharpe_ratio(symbol: str) -> float:
    return SHARPE_ESTIMATES.get(symbol.upper(), DEFAULT_SHARPE)


def build_positions(records: Sequence[HoldingRecord]) -> Tuple[AssetPosition, ...]:
    """Turn raw holdings into positions weighted against their summed value."""
    total_value = sum(r.usd_value for r in records)
    positions = []
    for r in records:
        positions.append(
            AssetPosition(
                symbol=r.symbol.upper(),
                name=r.name,
                balance=r.balance,
                usd_value=r.usd_value,
                price=r.price,
                chain_id=r.chain_id,
                chain_name=r.chain_name,
                weight=finite(r.usd_value / total_value * 100) if total_value > 0 else 0.0,
                change_24h=r.change_24h,
                change_7d=r.change_7d,
                change_30d=r.change_30d,
                volatility=r.volatility if r.volatility is not None else estimate_volatility(r.symbol),
                sharpe_ratio=(
                    r.sharpe_ratio if r.sharpe_ratio is not None else estimate_sharpe_ratio(r.symbol)
                ),
            )
        )
    return tuple(positions)


def aggregate_chains(
    assets: Sequence[AssetPosition], total_value: float
) -> Tuple[ChainPosition, ...]:
    """Group positions by chain id, preserving first-seen order."""
    grouped: Dict[int, List[AssetPosition]] = {}
    for asset in assets:
        grouped.setdefault(asset.chain_id, []).append(asset)

    chains = []
    for chain_id, members in grouped.items():
        chain_value = sum(a.usd_value for a in members)
        performance = (
            sum((a.usd_value / chain_value) * a.change_24h for a in members)
            if chain_value > 0
            else 0.0
        )
        chains.append(
            ChainPosition(
                chain_id=chain_id,
                name=members[0].chain_name,
                symbol=members[0].symbol,
                total_value=chain_value,
                weight=finite(chain_value / total_value * 100) if total_value > 0 else 0.0,
                asset_count=len(members),
                performance_24h=finite(performance),
            )
        )
    return tuple(chains)


def _new_snapshot_id(now: datetime) -> str:
    return f"snapshot_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


class SnapshotService:
    """Builds snapshots from the holdings collaborator and records them."""

    def __init__(
        self,
        holdings_provider: HoldingsProvider,
        store: SnapshotStore,
        risk_calculator: Optional[RiskCalculator] = None,
        locks: Optional[WalletLocks] = None,
        timeout: float = 10.0,
        risk_free_rate: float = RISK_FREE_RATE,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.holdings_provider = holdings_provider
        self.store = store
        self.risk_calculator = risk_calculator or RiskCalculator(risk_free_rate=risk_free_rate)
        self.locks = locks or WalletLocks()
        self.timeout = timeout
        self.risk_free_rate = risk_free_rate
        self._clock = clock

    async def create_snapshot(
        self, wallet_id: str, timeout: Optional[float] = None
    ) -> PortfolioSnapshot:
        """
        Fetch holdings, compute metrics and prepend a snapshot to the history.

        Args:
            wallet_id: Wallet identifier (case-insensitive).
            timeout: Seconds to wait for the holdings collaborator.

        Raises:
            InvalidWalletId: If the wallet id is empty or malformed.
            DataUnavailable: If holdings cannot be fetched. Nothing is stored.
        """
        wallet_key = normalize_wallet_id(wallet_id)
        async with self.locks.hold(wallet_key):
            holdings = await self._fetch_holdings(wallet_key, timeout or self.timeout)
            snapshot = self.build_snapshot(wallet_key, holdings, self.store.history(wallet_key))
            self.store.append(snapshot)

        logger.info(
            "Snapshot created",
            extra={
                "wallet_id": wallet_key,
                "snapshot_id": snapshot.id,
                "total_value": snapshot.total_value,
                "asset_count": len(snapshot.assets),
            },
        )
        return snapshot

    async def _fetch_holdings(self, wallet_key: str, timeout: float) -> Holdings:
        try:
            holdings = await asyncio.wait_for(
                self.holdings_provider.get_holdings(wallet_key), timeout=timeout
            )
        except DataUnavailable:
            raise
        except asyncio.TimeoutError as e:
            logger.warning("Holdings request timed out for %s after %ss", wallet_key, timeout)
            raise DataUnavailable(
                f"Holdings request timed out after {timeout}s", wallet_key
            ) from e
        except Exception as e:
            logger.warning("Holdings provider failed for %s: %s", wallet_key, e)
            raise DataUnavailable(f"Holdings provider failed: {e}", wallet_key) from e

        if holdings is None or not holdings.assets:
            raise DataUnavailable("Holdings provider returned no assets", wallet_key)
        non_finite = [r.symbol for r in holdings.assets if not math.isfinite(r.usd_value)]
        if non_finite:
            logger.warning("Non-finite holding values for %s: %s", wallet_key, non_finite)
            raise DataUnavailable(
                f"Holdings provider returned non-finite values for {', '.join(non_finite)}",
                wallet_key,
            )
        return holdings

    def build_snapshot(
        self,
        wallet_key: str,
        holdings: Holdings,
        history: Sequence[PortfolioSnapshot],
    ) -> PortfolioSnapshot:
        """Assemble a snapshot from holdings and the wallet's prior history."""
        positions = build_positions(holdings.assets)
        total_value = sum(p.usd_value for p in positions)
        if abs(total_value - holdings.total_value) > TOTAL_VALUE_TOLERANCE:
            logger.warning(
                "Reported total %.2f differs from summed positions %.2f for %s",
                holdings.total_value,
                total_value,
                wallet_key,
            )

        values = [total_value] + [s.total_value for s in history]
        performance = compute_performance(
            history,
            total_value=total_value,
            assets=positions,
            risk_free_rate=self.risk_free_rate,
        )
        risk_metrics = self.risk_calculator.compute(
            positions,
            total_value,
            returns=period_returns(values),
            chronological_values=values[::-1],
        )

        now = self._clock()
        return PortfolioSnapshot(
            id=_new_snapshot_id(now),
            wallet_id=wallet_key,
            timestamp=now,
            total_value=total_value,
            assets=positions,
            chains=aggregate_chains(positions, total_value),
            performance=performance,
            risk_metrics=risk_metrics,
        )

"""Performance attribution: per-asset, per-chain and per-sector contributions
plus an effects breakdown against an equal-weight benchmark."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from portfolio_analytics.core.exceptions import NoSnapshotAvailable
from portfolio_analytics.models.attribution import (
    AssetContribution,
    AttributionBreakdown,
    ChainContribution,
    PerformanceAttribution,
    SectorContribution,
)
from portfolio_analytics.models.portfolio_snapshot import (
    AssetPosition,
    ChainPosition,
    PortfolioSnapshot,
)
from portfolio_analytics.services.performance_service import finite
from portfolio_analytics.services.snapshot_store import SnapshotStore, normalize_wallet_id

logger = logging.getLogger(__name__)

SECTOR_CLASSIFICATION: Dict[str, str] = {
    "ETH": "Smart Contract Platforms",
    "BTC": "Store of Value",
    "BNB": "Exchange Tokens",
    "MATIC": "Layer 2 Solutions",
    "ADA": "Smart Contract Platforms",
    "USDC": "Stablecoins",
    "USDT": "Stablecoins",
}
DEFAULT_SECTOR = "Other"

# Equal-weight benchmark used for the effects breakdown
BENCHMARK_WEIGHT = 0.25
BENCHMARK_RETURN = 1.5  # % per period

# Currency effect factor, keyed on chain name
HOME_CHAIN = "Ethereum"
HOME_CHAIN_FACTOR = 0.05
OTHER_CHAIN_FACTOR = -0.02

INTERACTION_EFFECT = 0.1
TIMING_FACTOR = 0.1


def _share(contribution: float, total: float) -> float:
    """Contribution as % of a total return; 0 when the total is 0."""
    if total == 0:
        return 0.0
    return finite(contribution / total * 100)


def _pct_change(new: float, old: float) -> float:
    if old == 0:
        return 0.0
    return finite((new - old) / old * 100)


def sector_contributions(assets: Sequence[AssetPosition]) -> Tuple[SectorContribution, ...]:
    """Group positions into sectors; sector return is the weight-weighted 24h change."""
    sectors: Dict[str, List[AssetPosition]] = {}
    for asset in assets:
        sector = SECTOR_CLASSIFICATION.get(asset.symbol.upper(), DEFAULT_SECTOR)
        sectors.setdefault(sector, []).append(asset)

    result = []
    for name, members in sectors.items():
        weight = sum(a.weight for a in members)
        sector_return = (
            sum((a.weight / weight) * a.change_24h for a in members) if weight > 0 else 0.0
        )
        contribution = (weight / 100) * sector_return
        result.append(
            SectorContribution(
                sector_name=name,
                weight=weight,
                return_pct=finite(sector_return),
                contribution=finite(contribution),
                contribution_percent=finite(contribution * 100),
                risk_contribution=finite(sum((a.weight / 100) * a.volatility for a in members)),
            )
        )
    return tuple(result)


def allocation_effect(assets: Sequence[AssetContribution]) -> float:
    """Over- or under-weighting versus the benchmark, times the benchmark return."""
    return finite(sum((a.weight / 100 - BENCHMARK_WEIGHT) * BENCHMARK_RETURN for a in assets))


def selection_effect(assets: Sequence[AssetContribution]) -> float:
    """Weighted excess of each asset's return over the benchmark return."""
    return finite(sum((a.weight / 100) * (a.return_pct - BENCHMARK_RETURN) for a in assets))


def currency_effect(chains: Sequence[ChainContribution]) -> float:
    total = 0.0
    for c in chains:
        factor = HOME_CHAIN_FACTOR if c.chain_name == HOME_CHAIN else OTHER_CHAIN_FACTOR
        total += c.contribution * factor
    return finite(total)


def timing_effect(history: Sequence[PortfolioSnapshot]) -> float:
    """
    Average period move across the history, scaled by ``TIMING_FACTOR``.

    ``history`` is newest first. The oldest pair is left out, so at least
    three snapshots are needed.
    """
    if len(history) < 3:
        return 0.0
    moves = []
    for current, prior in zip(history[:-2], history[1:-1]):
        if prior.total_value:
            move = (current.total_value - prior.total_value) / prior.total_value
        else:
            move = 0.0
        moves.append(move * TIMING_FACTOR)
    return finite(sum(moves) / len(moves))


class AttributionService:
    """Decomposes a wallet's return using its two most recent snapshots."""

    def __init__(self, store: SnapshotStore):
        self.store = store

    def compute_attribution(self, wallet_id: str) -> PerformanceAttribution:
        """
        Attribute the latest return to assets, chains and sectors.

        With a single snapshot, contributions come from current weights and
        24h changes. With two or more, the newest snapshot is compared to the
        one before it and the residual is reported as unexplained return.
        Both modes carry an effects breakdown; interaction and timing are
        only measured across snapshots.

        Raises:
            InvalidWalletId: If the wallet id is malformed.
            NoSnapshotAvailable: If the wallet has no snapshots.
        """
        wallet_key = normalize_wallet_id(wallet_id)
        history = self.store.history(wallet_key)
        if not history:
            raise NoSnapshotAvailable("No portfolio data available", wallet_key)
        if len(history) < 2:
            return self.single_snapshot_attribution(history[0])
        return self.two_snapshot_attribution(history[0], history[1], history)

    @staticmethod
    def single_snapshot_attribution(snapshot: PortfolioSnapshot) -> PerformanceAttribution:
        daily_return = snapshot.performance.daily_return

        assets = []
        for asset in snapshot.assets:
            contribution = finite((asset.weight / 100) * asset.change_24h)
            assets.append(
                AssetContribution(
                    symbol=asset.symbol,
                    chain_id=asset.chain_id,
                    weight=asset.weight,
                    return_pct=asset.change_24h,
                    contribution=contribution,
                    contribution_percent=_share(contribution, daily_return),
                )
            )

        chains = []
        for chain in snapshot.chains:
            contribution = finite((chain.weight / 100) * chain.performance_24h)
            chains.append(
                ChainContribution(
                    chain_id=chain.chain_id,
                    chain_name=chain.name,
                    weight=chain.weight,
                    return_pct=chain.performance_24h,
                    contribution=contribution,
                    contribution_percent=_share(contribution, daily_return),
                )
            )

        return PerformanceAttribution(
            asset_contributions=tuple(assets),
            chain_contributions=tuple(chains),
            sector_contributions=sector_contributions(snapshot.assets),
            total_return=daily_return,
            total_attribution=finite(sum(c.contribution for c in assets)),
            unexplained_return=0.0,
            breakdown=AttributionBreakdown(
                allocation_effect=allocation_effect(assets),
                selection_effect=selection_effect(assets),
                interaction_effect=0.0,
                currency_effect=currency_effect(chains),
                timing_effect=0.0,
            ),
        )

    @staticmethod
    def _find_prior_asset(
        asset: AssetPosition, prior: PortfolioSnapshot
    ) -> Optional[AssetPosition]:
        symbol = asset.symbol.upper()
        by_symbol = None
        for candidate in prior.assets:
            if candidate.symbol.upper() == symbol:
                if candidate.chain_id == asset.chain_id:
                    return candidate
                if by_symbol is None:
                    by_symbol = candidate
        return by_symbol

    @staticmethod
    def _find_prior_chain(
        chain: ChainPosition, prior: PortfolioSnapshot
    ) -> Optional[ChainPosition]:
        return next((c for c in prior.chains if c.chain_id == chain.chain_id), None)

    def two_snapshot_attribution(
        self,
        latest: PortfolioSnapshot,
        previous: PortfolioSnapshot,
        history: Sequence[PortfolioSnapshot] = (),
    ) -> PerformanceAttribution:
        total_return = _pct_change(latest.total_value, previous.total_value)

        assets = []
        for asset in latest.assets:
            prior = self._find_prior_asset(asset, previous)
            # New positions have no prior basis
            asset_return = _pct_change(asset.usd_value, prior.usd_value) if prior else 0.0
            contribution = finite((asset.weight / 100) * asset_return)
            assets.append(
                AssetContribution(
                    symbol=asset.symbol,
                    chain_id=asset.chain_id,
                    weight=asset.weight,
                    return_pct=asset_return,
                    contribution=contribution,
                    contribution_percent=_share(contribution, total_return),
                )
            )

        chains = []
        for chain in latest.chains:
            prior_chain = self._find_prior_chain(chain, previous)
            chain_return = (
                _pct_change(chain.total_value, prior_chain.total_value) if prior_chain else 0.0
            )
            contribution = finite((chain.weight / 100) * chain_return)
            chains.append(
                ChainContribution(
                    chain_id=chain.chain_id,
                    chain_name=chain.name,
                    weight=chain.weight,
                    return_pct=chain_return,
                    contribution=contribution,
                    contribution_percent=_share(contribution, total_return),
                )
            )

        total_attribution = finite(sum(c.contribution for c in assets))
        unexplained = finite(total_return - total_attribution)
        if abs(unexplained) > 1e-9:
            logger.debug(
                "Unexplained return %.4f%% for %s (composition changed between snapshots)",
                unexplained,
                latest.wallet_id,
            )

        return PerformanceAttribution(
            asset_contributions=tuple(assets),
            chain_contributions=tuple(chains),
            sector_contributions=sector_contributions(latest.assets),
            total_return=total_return,
            total_attribution=total_attribution,
            unexplained_return=unexplained,
            breakdown=AttributionBreakdown(
                allocation_effect=allocation_effect(assets),
                selection_effect=selection_effect(assets),
                interaction_effect=INTERACTION_EFFECT,
                currency_effect=currency_effect(chains),
                timing_effect=timing_effect(history),
            ),
        )

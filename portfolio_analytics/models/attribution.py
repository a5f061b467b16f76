"""Performance attribution model."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class AssetContribution:
    symbol: str
    chain_id: int
    weight: float
    return_pct: float
    contribution: float
    contribution_percent: float


@dataclass(frozen=True)
class ChainContribution:
    chain_id: int
    chain_name: str
    weight: float
    return_pct: float
    contribution: float
    contribution_percent: float


@dataclass(frozen=True)
class SectorContribution:
    sector_name: str
    weight: float
    return_pct: float
    contribution: float
    contribution_percent: float
    risk_contribution: float


@dataclass(frozen=True)
class AttributionBreakdown:
    """Return effects measured against an equal-weight benchmark."""

    allocation_effect: float
    selection_effect: float
    interaction_effect: float
    currency_effect: float
    timing_effect: float


@dataclass(frozen=True)
class PerformanceAttribution:
    """Decomposition of a wallet's return into per-asset and per-chain parts."""

    asset_contributions: Tuple[AssetContribution, ...]
    chain_contributions: Tuple[ChainContribution, ...]
    sector_contributions: Tuple[SectorContribution, ...]
    total_return: float
    total_attribution: float
    unexplained_return: float
    breakdown: AttributionBreakdown

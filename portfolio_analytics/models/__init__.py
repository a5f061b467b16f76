"""Domain models."""

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
    HistoricalData,
    PerformanceMetrics,
    PortfolioSnapshot,
    RiskMetrics,
)
from portfolio_analytics.models.recommendation import (
    ActionType,
    ExpectedImpact,
    Priority,
    RebalancingAction,
    RebalancingRecommendation,
    RecommendationType,
    Urgency,
)

__all__ = [
    "AssetContribution",
    "AttributionBreakdown",
    "ChainContribution",
    "PerformanceAttribution",
    "SectorContribution",
    "AssetPosition",
    "ChainPosition",
    "HistoricalData",
    "PerformanceMetrics",
    "PortfolioSnapshot",
    "RiskMetrics",
    "ActionType",
    "ExpectedImpact",
    "Priority",
    "RebalancingAction",
    "RebalancingRecommendation",
    "RecommendationType",
    "Urgency",
]

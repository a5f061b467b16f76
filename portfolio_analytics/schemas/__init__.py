"""Pydantic schemas."""

from portfolio_analytics.schemas.snapshot import (
    AssetPositionResponse,
    ChainPositionResponse,
    HistoricalDataResponse,
    PerformanceMetricsResponse,
    RiskMetricsResponse,
    SnapshotListResponse,
    SnapshotResponse,
)
from portfolio_analytics.schemas.analytics import (
    AttributionResponse,
    PortfolioSummaryResponse,
    RecommendationResponse,
)

__all__ = [
    "AssetPositionResponse",
    "ChainPositionResponse",
    "HistoricalDataResponse",
    "PerformanceMetricsResponse",
    "RiskMetricsResponse",
    "SnapshotListResponse",
    "SnapshotResponse",
    "AttributionResponse",
    "PortfolioSummaryResponse",
    "RecommendationResponse",
]

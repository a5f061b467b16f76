"""Snapshot schemas."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel


class AssetPositionResponse(BaseModel):
    """Schema for one held asset."""

    symbol: str
    name: str
    balance: str
    usd_value: float
    price: float
    chain_id: int
    chain_name: str
    weight: float
    change_24h: float
    change_7d: float
    change_30d: float
    volatility: float
    sharpe_ratio: Optional[float] = None

    class Config:
        from_attributes = True


class ChainPositionResponse(BaseModel):
    chain_id: int
    name: str
    symbol: str
    total_value: float
    weight: float
    asset_count: int
    performance_24h: float

    class Config:
        from_attributes = True


class PerformanceMetricsResponse(BaseModel):
    total_return: float
    total_return_percent: float
    daily_return: float
    weekly_return: float
    monthly_return: float
    yearly_return: float
    volatility: float
    sharpe_ratio: float
    max_drawdown: float
    win_rate: float
    best_day: float
    worst_day: float

    class Config:
        from_attributes = True


class RiskMetricsResponse(BaseModel):
    portfolio_volatility: float
    value_at_risk_95: float
    value_at_risk_99: float
    beta: float
    correlation: Dict[str, float]
    diversification_ratio: float
    concentration_risk: float
    liquidity_score: float
    conditional_var_95: float
    conditional_var_99: float
    skewness: float
    kurtosis: float
    downside_deviation: float
    sortino_ratio: float
    calmar_ratio: float
    tail_risk: float
    max_drawdown_duration: int

    class Config:
        from_attributes = True


class SnapshotResponse(BaseModel):
    """Schema for a portfolio snapshot."""

    id: str
    wallet_id: str
    timestamp: datetime
    total_value: float
    assets: List[AssetPositionResponse]
    chains: List[ChainPositionResponse]
    performance: PerformanceMetricsResponse
    risk_metrics: RiskMetricsResponse

    class Config:
        from_attributes = True


class SnapshotListResponse(BaseModel):
    wallet_id: str
    count: int
    snapshots: List[SnapshotResponse]


class HistoricalDataResponse(BaseModel):
    """Chronological series over a wallet's snapshot history."""

    timestamps: List[datetime]
    portfolio_values: List[float]
    asset_prices: Dict[str, List[float]]
    returns: List[float]
    volatility: List[float]
    drawdowns: List[float]

    class Config:
        from_attributes = True

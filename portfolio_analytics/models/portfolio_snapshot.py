"""Portfolio snapshot model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class AssetPosition:
    """One held asset on one chain at one point in time."""

    symbol: str
    name: str
    balance: str  # string-precision decimal, as reported by the chain scan
    usd_value: float
    price: float
    chain_id: int
    chain_name: str
    weight: float  # % of snapshot total value (0-100)
    change_24h: float
    change_7d: float
    change_30d: float
    volatility: float  # annualized, unitless fraction
    sharpe_ratio: Optional[float] = None


@dataclass(frozen=True)
class ChainPosition:
    """Aggregate of all positions sharing a chain id."""

    chain_id: int
    name: str
    symbol: str
    total_value: float
    weight: float
    asset_count: int
    performance_24h: float


@dataclass(frozen=True)
class PerformanceMetrics:
    """Return and volatility statistics. Returns are expressed in %."""

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


@dataclass(frozen=True)
class RiskMetrics:
    """Risk metrics for a single snapshot composition.

    The trailing fields are derived from the wallet's period-return history
    and are 0 when fewer than two snapshots exist.
    """

    portfolio_volatility: float
    value_at_risk_95: float  # USD
    value_at_risk_99: float  # USD
    beta: float
    correlation: Dict[str, float]  # "A-B" -> coefficient, no self pairs
    diversification_ratio: float
    concentration_risk: float  # Herfindahl index, 0-1
    liquidity_score: float  # 0-1
    conditional_var_95: float = 0.0  # USD
    conditional_var_99: float = 0.0  # USD
    skewness: float = 0.0
    kurtosis: float = 0.0  # excess kurtosis
    downside_deviation: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    tail_risk: float = 0.0
    max_drawdown_duration: int = 0  # periods spent below the running peak


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Immutable point-in-time record of a wallet's portfolio."""

    id: str
    wallet_id: str
    timestamp: datetime
    total_value: float
    assets: Tuple[AssetPosition, ...]
    chains: Tuple[ChainPosition, ...]
    performance: PerformanceMetrics
    risk_metrics: RiskMetrics


@dataclass(frozen=True)
class HistoricalData:
    """Chronological series derived from a wallet's snapshot history."""

    timestamps: Tuple[datetime, ...]
    portfolio_values: Tuple[float, ...]
    asset_prices: Dict[str, Tuple[float, ...]] = field(default_factory=dict)
    returns: Tuple[float, ...] = ()
    volatility: Tuple[float, ...] = ()
    drawdowns: Tuple[float, ...] = ()

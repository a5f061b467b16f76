"""Performance metrics from a wallet's snapshot history."""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from portfolio_analytics.models.portfolio_snapshot import (
    AssetPosition,
    PerformanceMetrics,
    PortfolioSnapshot,
)

logger = logging.getLogger(__name__)

# Subtracted as-is from the mean period return (%)
RISK_FREE_RATE = 0.05

DAILY_WINDOW = 1
WEEKLY_WINDOW = 7
MONTHLY_WINDOW = 30
YEARLY_WINDOW = 365


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def finite(value) -> float:
    """Map NaN/inf to 0 so no undefined number reaches a caller."""
    value = float(value)
    return value if math.isfinite(value) else 0.0


def period_returns(values: Sequence[float]) -> List[float]:
    """Percent returns between adjacent values.

    ``values`` is ordered newest first, and so is the result: entry 0 is the
    most recent period.
    """
    returns = []
    for newer, older in zip(values, values[1:]):
        if older == 0:
            returns.append(0.0)
        else:
            returns.append(finite((newer - older) / older * 100))
    return returns


def snapshot_returns(history: Sequence[PortfolioSnapshot]) -> List[float]:
    """Period returns of a newest-first snapshot history."""
    return period_returns([s.total_value for s in history])


def volatility(returns: Sequence[float]) -> float:
    """Population standard deviation of a return series."""
    if len(returns) == 0:
        return 0.0
    return finite(np.std(np.asarray(returns, dtype=float)))


def sharpe_ratio(
    returns: Sequence[float], vol: float, risk_free_rate: float = RISK_FREE_RATE
) -> float:
    if vol == 0 or len(returns) == 0:
        return 0.0
    return finite((float(np.mean(returns)) - risk_free_rate) / vol)


def drawdown_series(chronological_values: Sequence[float]) -> List[float]:
    """Drawdown (%) from the running peak at each point, oldest first."""
    if len(chronological_values) == 0:
        return []
    arr = np.asarray(chronological_values, dtype=float)
    peak = np.maximum.accumulate(arr)
    safe_peak = np.where(peak > 0, peak, 1)
    dd = np.where(peak > 0, (peak - arr) / safe_peak * 100, 0.0)
    return [finite(x) for x in dd]


def max_drawdown(values: Sequence[float]) -> float:
    """Max drawdown (%) of a newest-first value series. 0 with fewer than 2 points."""
    if len(values) < 2:
        return 0.0
    return max(drawdown_series(list(values)[::-1]))


def windowed_mean(returns: Sequence[float], window: int) -> float:
    """Mean of the ``window`` most recent returns (or all when fewer)."""
    recent = list(returns)[:window]
    if not recent:
        return 0.0
    return finite(sum(recent) / len(recent))


def _weighted(assets: Sequence[AssetPosition], attr: str) -> float:
    return finite(sum((a.weight / 100) * (getattr(a, attr) or 0.0) for a in assets))


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

def cross_sectional_performance(assets: Sequence[AssetPosition]) -> PerformanceMetrics:
    """Current-composition proxy used when there is no return history.

    Returns are the weight-weighted averages of each asset's own 24h/7d/30d
    change, volatility and Sharpe likewise.
    """
    vol = _weighted(assets, "volatility")
    sharpe = _weighted(assets, "sharpe_ratio") if vol != 0 else 0.0
    return PerformanceMetrics(
        total_return=0.0,
        total_return_percent=0.0,
        daily_return=_weighted(assets, "change_24h"),
        weekly_return=_weighted(assets, "change_7d"),
        monthly_return=_weighted(assets, "change_30d"),
        yearly_return=0.0,  # Not enough data
        volatility=vol,
        sharpe_ratio=sharpe,
        max_drawdown=0.0,
        win_rate=0.0,
        best_day=0.0,
        worst_day=0.0,
    )


def compute_performance(
    history: Sequence[PortfolioSnapshot],
    total_value: Optional[float] = None,
    assets: Optional[Sequence[AssetPosition]] = None,
    risk_free_rate: float = RISK_FREE_RATE,
) -> PerformanceMetrics:
    """Derive performance metrics from a newest-first snapshot history.

    Args:
        history: Snapshots, newest first.
        total_value: Value of a snapshot being built; prepended to the series.
        assets: Current positions, used by the no-history fallback. Defaults
            to the newest snapshot's assets.
        risk_free_rate: Subtracted from the mean period return for Sharpe.
    """
    values = [s.total_value for s in history]
    if total_value is not None:
        values.insert(0, total_value)
    if assets is None:
        assets = history[0].assets if history else ()

    if len(values) < 2:
        return cross_sectional_performance(assets)

    returns = period_returns(values)
    vol = volatility(returns)
    newest, oldest = values[0], values[-1]
    total_return = finite(newest - oldest)
    total_return_percent = finite(total_return / oldest * 100) if oldest else 0.0

    return PerformanceMetrics(
        total_return=total_return,
        total_return_percent=total_return_percent,
        daily_return=windowed_mean(returns, DAILY_WINDOW),
        weekly_return=windowed_mean(returns, WEEKLY_WINDOW),
        monthly_return=windowed_mean(returns, MONTHLY_WINDOW),
        yearly_return=windowed_mean(returns, YEARLY_WINDOW),
        volatility=vol,
        sharpe_ratio=sharpe_ratio(returns, vol, risk_free_rate),
        max_drawdown=max_drawdown(values),
        win_rate=sum(1 for r in returns if r > 0) / len(returns),
        best_day=max(returns),
        worst_day=min(returns),
    )

"""Risk metrics for a single snapshot composition."""

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import kurtosis, norm, skew

from portfolio_analytics.models.portfolio_snapshot import AssetPosition, RiskMetrics
from portfolio_analytics.services.performance_service import (
    RISK_FREE_RATE,
    drawdown_series,
    finite,
)

logger = logging.getLogger(__name__)

# One-tailed normal quantiles: 1.645 and 2.326
Z_95 = round(float(norm.ppf(0.95)), 3)
Z_99 = round(float(norm.ppf(0.99)), 3)

DEFAULT_CORRELATION = 0.5
MARKET_BETA = 1.1  # Estimated relative to the crypto market
DEFAULT_LIQUIDITY_SCORE = 0.5
TRADING_DAYS = 252

KNOWN_CORRELATIONS: Dict[Tuple[str, str], float] = {
    ("ETH", "BNB"): 0.75,
    ("ETH", "MATIC"): 0.68,
    ("BNB", "MATIC"): 0.62,
}

LIQUIDITY_SCORES: Dict[str, float] = {
    "ETH": 0.95,
    "BTC": 0.95,
    "BNB": 0.85,
    "USDC": 0.98,
    "USDT": 0.98,
    "MATIC": 0.75,
    "ADA": 0.80,
}


# ---------------------------------------------------------------------------
# Correlation reference data
# ---------------------------------------------------------------------------

class CorrelationProvider(ABC):
    """Reference data source for pairwise symbol correlations."""

    @abstractmethod
    def correlation(self, symbol_a: str, symbol_b: str) -> Optional[float]:
        """Return the coefficient for a pair, or None when unknown."""
        pass


class StaticCorrelationTable(CorrelationProvider):
    """Fixed, order-independent correlation lookup."""

    def __init__(self, pairs: Optional[Mapping[Tuple[str, str], float]] = None):
        source = KNOWN_CORRELATIONS if pairs is None else pairs
        self._pairs: Dict[FrozenSet[str], float] = {}
        for (a, b), value in source.items():
            if a.upper() == b.upper():
                continue
            if not -1 <= value <= 1:
                raise ValueError(f"Correlation for {a}-{b} out of range: {value}")
            self._pairs[frozenset((a.upper(), b.upper()))] = float(value)

    def correlation(self, symbol_a: str, symbol_b: str) -> Optional[float]:
        return self._pairs.get(frozenset((symbol_a.upper(), symbol_b.upper())))


# ---------------------------------------------------------------------------
# History-derived helpers
# ---------------------------------------------------------------------------

def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def _worst(returns: np.ndarray, fraction: float) -> np.ndarray:
    """The ``floor(fraction * n)`` lowest returns."""
    cutoff = math.floor(fraction * len(returns))
    return np.sort(returns)[:cutoff]


def conditional_var(returns: Sequence[float], total_value: float, confidence: float) -> float:
    """Expected shortfall in USD: mean of the worst ``(1 - confidence)`` returns."""
    tail = _worst(np.asarray(returns, dtype=float), 1 - confidence)
    if len(tail) == 0:
        return 0.0
    return finite(abs(float(np.mean(tail)) * total_value / 100))


def skewness(returns: Sequence[float]) -> float:
    arr = np.asarray(returns, dtype=float)
    if len(arr) < 3 or np.std(arr) == 0:
        return 0.0
    return finite(float(skew(arr, bias=True)))


def excess_kurtosis(returns: Sequence[float]) -> float:
    arr = np.asarray(returns, dtype=float)
    if len(arr) < 4 or np.std(arr) == 0:
        return 0.0
    return finite(float(kurtosis(arr, fisher=True, bias=True)))


def downside_deviation(returns: Sequence[float]) -> float:
    arr = np.asarray(returns, dtype=float)
    negative = arr[arr < 0]
    if len(negative) == 0:
        return 0.0
    return finite(float(np.sqrt(np.mean(negative ** 2))))


def tail_risk(returns: Sequence[float]) -> float:
    """Mean magnitude of the worst 5% of returns."""
    tail = _worst(np.asarray(returns, dtype=float), 0.05)
    if len(tail) == 0:
        return 0.0
    return finite(abs(float(np.mean(tail))))


def max_drawdown_duration(chronological_values: Sequence[float]) -> int:
    """Longest run of consecutive periods spent below the running peak."""
    if len(chronological_values) < 2:
        return 0
    longest = current = 0
    peak = chronological_values[0]
    for value in chronological_values[1:]:
        if value >= peak:
            peak = value
            longest = max(longest, current)
            current = 0
        else:
            current += 1
    return max(longest, current)


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

class RiskCalculator:
    """Computes RiskMetrics from a snapshot's asset weights and volatilities.

    Portfolio volatility is the weight-weighted average of asset volatilities
    (not a covariance model); VaR is parametric on top of it.
    """

    def __init__(
        self,
        correlation_provider: Optional[CorrelationProvider] = None,
        default_correlation: float = DEFAULT_CORRELATION,
        beta: float = MARKET_BETA,
        liquidity_scores: Optional[Mapping[str, float]] = None,
        default_liquidity_score: float = DEFAULT_LIQUIDITY_SCORE,
        risk_free_rate: float = RISK_FREE_RATE,
    ):
        self.correlation_provider = correlation_provider or StaticCorrelationTable()
        self.default_correlation = default_correlation
        self.beta = beta
        scores = LIQUIDITY_SCORES if liquidity_scores is None else liquidity_scores
        self.liquidity_scores = {symbol.upper(): score for symbol, score in scores.items()}
        self.default_liquidity_score = default_liquidity_score
        self.risk_free_rate = risk_free_rate

    def pair_correlation(self, symbol_a: str, symbol_b: str) -> float:
        """Coefficient for two distinct symbols, looked up in canonical order."""
        first, second = sorted((symbol_a, symbol_b))
        value = self.correlation_provider.correlation(first, second)
        if value is None or not math.isfinite(value):
            return self.default_correlation
        return float(value)

    def correlation_matrix(self, assets: Iterable[AssetPosition]) -> Dict[str, float]:
        symbols: List[str] = []
        for asset in assets:
            symbol = asset.symbol.upper()
            if symbol not in symbols:
                symbols.append(symbol)

        matrix: Dict[str, float] = {}
        for i, a in enumerate(symbols):
            for b in symbols[i + 1:]:
                rho = self.pair_correlation(a, b)
                matrix[f"{a}-{b}"] = rho
                matrix[f"{b}-{a}"] = rho
        return matrix

    @staticmethod
    def weighted_volatility(assets: Sequence[AssetPosition]) -> float:
        return finite(sum((a.weight / 100) * a.volatility for a in assets))

    @staticmethod
    def concentration(assets: Sequence[AssetPosition]) -> float:
        """Herfindahl index over weights."""
        return finite(sum((a.weight / 100) ** 2 for a in assets))

    def diversification_ratio(
        self, assets: Sequence[AssetPosition], correlation: Mapping[str, float]
    ) -> float:
        """Weighted-average volatility over correlated portfolio volatility."""
        if not assets:
            return 0.0
        exposure = np.array([(a.weight / 100) * a.volatility for a in assets], dtype=float)
        n = len(assets)
        rho = np.ones((n, n))
        for i in range(n):
            for j in range(n):
                a, b = assets[i].symbol.upper(), assets[j].symbol.upper()
                if a != b:
                    rho[i, j] = correlation.get(f"{a}-{b}", self.default_correlation)
        variance = float(exposure @ rho @ exposure)
        port_vol = math.sqrt(variance) if variance > 0 else 0.0
        if port_vol == 0:
            return 0.0
        return finite(float(exposure.sum()) / port_vol)

    def liquidity_score(self, assets: Sequence[AssetPosition]) -> float:
        default = self.default_liquidity_score
        return finite(
            sum(
                (a.weight / 100) * self.liquidity_scores.get(a.symbol.upper(), default)
                for a in assets
            )
        )

    def history_metrics(
        self,
        returns: Sequence[float],
        chronological_values: Sequence[float],
        total_value: float,
    ) -> dict:
        """Distribution and drawdown metrics from the period-return series."""
        dd = downside_deviation(returns)
        drawdowns = drawdown_series(chronological_values) if len(chronological_values) >= 2 else []
        max_dd = max(drawdowns) if drawdowns else 0.0
        mean_return = _mean(returns)

        sortino = finite((mean_return - self.risk_free_rate) / dd) if dd else 0.0
        calmar = finite(mean_return * TRADING_DAYS / max_dd) if max_dd and returns else 0.0

        return {
            "conditional_var_95": conditional_var(returns, total_value, 0.95),
            "conditional_var_99": conditional_var(returns, total_value, 0.99),
            "skewness": skewness(returns),
            "kurtosis": excess_kurtosis(returns),
            "downside_deviation": dd,
            "sortino_ratio": sortino,
            "calmar_ratio": calmar,
            "tail_risk": tail_risk(returns),
            "max_drawdown_duration": max_drawdown_duration(chronological_values),
        }

    def compute(
        self,
        assets: Sequence[AssetPosition],
        total_value: float,
        returns: Sequence[float] = (),
        chronological_values: Sequence[float] = (),
    ) -> RiskMetrics:
        """
        Compute risk metrics for one snapshot.

        Args:
            assets: Positions with weights already computed against ``total_value``.
            total_value: Snapshot total value (USD).
            returns: Optional period-return history (newest first) for the
                distribution metrics.
            chronological_values: Optional value history, oldest first.
        """
        assets = list(assets)
        port_vol = self.weighted_volatility(assets)
        correlation = self.correlation_matrix(assets)

        return RiskMetrics(
            portfolio_volatility=port_vol,
            value_at_risk_95=finite(total_value * port_vol * Z_95),
            value_at_risk_99=finite(total_value * port_vol * Z_99),
            beta=self.beta,
            correlation=correlation,
            diversification_ratio=self.diversification_ratio(assets, correlation),
            concentration_risk=self.concentration(assets),
            liquidity_score=self.liquidity_score(assets),
            **self.history_metrics(list(returns), list(chronological_values), total_value),
        )

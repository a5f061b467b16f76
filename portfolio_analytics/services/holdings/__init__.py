"""Holdings provider package."""

from portfolio_analytics.services.holdings.base import (
    HoldingRecord,
    Holdings,
    HoldingsProvider,
    StaticHoldingsProvider,
)
from portfolio_analytics.services.holdings.wallet_dashboard import (
    WalletDashboardHoldingsProvider,
)

__all__ = [
    "HoldingRecord",
    "Holdings",
    "HoldingsProvider",
    "StaticHoldingsProvider",
    "WalletDashboardHoldingsProvider",
]

"""Base holdings provider interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from portfolio_analytics.core.exceptions import DataUnavailable


@dataclass
class HoldingRecord:
    """A held asset as reported by the chain scan, before weighting."""

    symbol: str
    name: str
    balance: str
    usd_value: float
    price: float
    chain_id: int = 1
    chain_name: str = "Unknown"
    change_24h: float = 0.0
    change_7d: float = 0.0
    change_30d: float = 0.0
    volatility: Optional[float] = None
    sharpe_ratio: Optional[float] = None


@dataclass
class Holdings:
    """Point-in-time holdings for a wallet."""

    total_value: float
    assets: List[HoldingRecord] = field(default_factory=list)


class HoldingsProvider(ABC):
    """Abstract source of current wallet holdings.

    Valuation and pricing correctness is the provider's responsibility.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def get_holdings(self, wallet_id: str) -> Holdings:
        """Get current holdings for a wallet.

        Raises:
            DataUnavailable: If holdings cannot be fetched.
        """
        pass


class StaticHoldingsProvider(HoldingsProvider):
    """Provider serving fixed holdings per wallet (fixtures, demos)."""

    def __init__(self, holdings: Optional[dict] = None):
        self._holdings = {k.lower(): v for k, v in (holdings or {}).items()}

    @property
    def provider_name(self) -> str:
        return "static"

    def set_holdings(self, wallet_id: str, holdings: Holdings) -> None:
        self._holdings[wallet_id.lower()] = holdings

    async def get_holdings(self, wallet_id: str) -> Holdings:
        holdings = self._holdings.get(wallet_id.lower())
        if holdings is None:
            raise DataUnavailable(f"No holdings configured for wallet {wallet_id}", wallet_id)
        return holdings

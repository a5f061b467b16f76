"""Holdings provider backed by the wallet dashboard HTTP API."""

import logging
import math
from typing import Any, Dict, List, Optional

import httpx

from portfolio_analytics.core.exceptions import DataUnavailable
from portfolio_analytics.services.holdings.base import (
    HoldingRecord,
    Holdings,
    HoldingsProvider,
)

logger = logging.getLogger(__name__)


def _float(value: Any) -> float:
    """Parse a numeric field; missing, malformed and non-finite values become 0."""
    try:
        result = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return result if math.isfinite(result) else 0.0


class WalletDashboardHoldingsProvider(HoldingsProvider):
    """Fetch holdings from ``GET <base_url>?address=<wallet>``.

    Expected payload::

        {"success": true,
         "data": {"totalBalance": 63.88,
                  "tokens": [{"symbol": "ETH", "usdValue": 57.75, ...}]}}
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @property
    def provider_name(self) -> str:
        return "wallet-dashboard"

    async def get_holdings(self, wallet_id: str) -> Holdings:
        try:
            if self._client is not None:
                response = await self._client.get(
                    self.base_url, params={"address": wallet_id}, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.base_url, params={"address": wallet_id})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Holdings API returned %s for %s", e.response.status_code, wallet_id
            )
            raise DataUnavailable(
                f"Holdings API returned status {e.response.status_code}", wallet_id
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Holdings fetch failed for %s: %s", wallet_id, e)
            raise DataUnavailable(f"Holdings fetch failed: {e}", wallet_id) from e
        except ValueError as e:
            raise DataUnavailable("Holdings API returned invalid JSON", wallet_id) from e

        if not isinstance(payload, dict) or not payload.get("success") or not payload.get("data"):
            raise DataUnavailable("Holdings API returned no data", wallet_id)

        return self._parse(payload["data"])

    @staticmethod
    def _parse(data: Dict[str, Any]) -> Holdings:
        assets: List[HoldingRecord] = []
        for token in data.get("tokens") or []:
            assets.append(
                HoldingRecord(
                    symbol=str(token.get("symbol", "")).upper(),
                    name=token.get("name") or token.get("symbol", ""),
                    balance=str(token.get("balance", "0")),
                    usd_value=_float(token.get("usdValue")),
                    price=_float(token.get("price")),
                    chain_id=int(token.get("chainId") or 1),
                    chain_name=token.get("chainName") or "Unknown",
                    change_24h=_float(token.get("change24h")),
                    change_7d=_float(token.get("change7d")),
                    change_30d=_float(token.get("change30d")),
                )
            )
        return Holdings(total_value=_float(data.get("totalBalance")), assets=assets)

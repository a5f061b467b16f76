"""In-memory snapshot history, keyed by wallet."""

import logging
import re
import threading
from typing import Dict, List, Optional, Tuple

from portfolio_analytics.core.exceptions import InvalidWalletId
from portfolio_analytics.models.portfolio_snapshot import PortfolioSnapshot

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 1000
MAX_WALLET_ID_LENGTH = 256

_INVALID_WALLET_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


def normalize_wallet_id(wallet_id: Optional[str]) -> str:
    """Strip and lowercase a wallet id, rejecting empty or malformed ones."""
    if not isinstance(wallet_id, str):
        raise InvalidWalletId("Wallet id must be a string")
    normalized = wallet_id.strip().lower()
    if not normalized:
        raise InvalidWalletId("Wallet id must not be empty")
    if len(normalized) > MAX_WALLET_ID_LENGTH:
        raise InvalidWalletId(
            f"Wallet id exceeds {MAX_WALLET_ID_LENGTH} characters", normalized[:32]
        )
    if _INVALID_WALLET_CHARS.search(normalized):
        raise InvalidWalletId("Wallet id contains whitespace or control characters", normalized)
    return normalized


class SnapshotStore:
    """Append-only, bounded snapshot history per wallet.

    Histories are tuples ordered newest first. Appending replaces the tuple,
    so a history handed to a reader never changes underneath it.
    """

    def __init__(self, max_snapshots: int = DEFAULT_HISTORY_LIMIT):
        if max_snapshots < 1:
            raise ValueError("max_snapshots must be at least 1")
        self.max_snapshots = max_snapshots
        self._histories: Dict[str, Tuple[PortfolioSnapshot, ...]] = {}
        self._lock = threading.Lock()

    def append(self, snapshot: PortfolioSnapshot) -> Tuple[PortfolioSnapshot, ...]:
        """Prepend a snapshot to its wallet's history, evicting the oldest past the cap."""
        wallet_id = normalize_wallet_id(snapshot.wallet_id)
        with self._lock:
            current = self._histories.get(wallet_id, ())
            updated = (snapshot,) + current[: self.max_snapshots - 1]
            self._histories[wallet_id] = updated
        evicted = len(current) + 1 - len(updated)
        if evicted:
            logger.debug("Evicted %d snapshot(s) for %s", evicted, wallet_id)
        return updated

    def history(self, wallet_id: str) -> Tuple[PortfolioSnapshot, ...]:
        """Full history for a wallet, newest first."""
        return self._histories.get(normalize_wallet_id(wallet_id), ())

    def latest(self, wallet_id: str) -> Optional[PortfolioSnapshot]:
        history = self.history(wallet_id)
        return history[0] if history else None

    def get_snapshots(self, wallet_id: str, limit: int = 100) -> Tuple[PortfolioSnapshot, ...]:
        if limit < 0:
            raise ValueError("limit must not be negative")
        return self.history(wallet_id)[:limit]

    def count(self, wallet_id: str) -> int:
        return len(self.history(wallet_id))

    def wallets(self) -> List[str]:
        return sorted(self._histories)

    def clear(self, wallet_id: Optional[str] = None) -> None:
        with self._lock:
            if wallet_id is None:
                self._histories.clear()
            else:
                self._histories.pop(normalize_wallet_id(wallet_id), None)

"""Per-wallet locks for snapshot creation.

Snapshot creation for one wallet must not interleave (fetch, compute and
append happen as one unit), while different wallets proceed in parallel.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)


class WalletLocks:
    """Registry of asyncio locks keyed by normalized wallet id.

    An entry lives only while some task holds or waits for it.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def _checkout(self, wallet_id: str) -> asyncio.Lock:
        lock = self._locks.get(wallet_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[wallet_id] = lock
        self._users[wallet_id] = self._users.get(wallet_id, 0) + 1
        return lock

    def _checkin(self, wallet_id: str) -> None:
        remaining = self._users[wallet_id] - 1
        if remaining:
            self._users[wallet_id] = remaining
        else:
            del self._users[wallet_id]
            del self._locks[wallet_id]

    @asynccontextmanager
    async def hold(self, wallet_id: str) -> AsyncIterator[None]:
        """
        Hold the lock for a wallet.

        Raises:
            TimeoutError: If the lock cannot be acquired within ``timeout``.
        """
        lock = self._checkout(wallet_id)
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise TimeoutError(
                    f"Could not acquire lock for wallet '{wallet_id}' within {self.timeout}s. "
                    "Another snapshot may be in progress."
                ) from None
            logger.debug("Acquired wallet lock: %s", wallet_id)
            try:
                yield
            finally:
                lock.release()
                logger.debug("Released wallet lock: %s", wallet_id)
        finally:
            self._checkin(wallet_id)

    def is_locked(self, wallet_id: str) -> bool:
        lock = self._locks.get(wallet_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

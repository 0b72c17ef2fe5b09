"""Per-address transaction nonce sequencing.

The node's pending transaction count lags behind freshly submitted
transactions, and can even go backwards when a node drops pending
entries.  :class:`NonceSequencer` keeps the last nonce it handed out per
address and never issues a value at or below it.
"""

import asyncio
import logging
from typing import Dict, Optional

from eth_utils import is_address, to_checksum_address

from core.errors import ProcessStopped, ValidationError
from core.gateway import ChainGateway
from core.interrupt import InterruptController
from core.utils import short_address

logger = logging.getLogger(__name__)


class NonceSequencer:
    """Strictly increasing nonces per address, safe under concurrency."""

    def __init__(self, interrupt: Optional[InterruptController] = None) -> None:
        self.interrupt = interrupt
        self._last_issued: Dict[str, int] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def last_issued(self, address: str) -> Optional[int]:
        return self._last_issued.get(to_checksum_address(address))

    def reset(self, address: Optional[str] = None) -> None:
        """Forget cached nonces (all of them, or one address's)."""
        if address is None:
            self._last_issued.clear()
        else:
            self._last_issued.pop(to_checksum_address(address), None)

    async def issue(self, address: str, gateway: ChainGateway) -> int:
        """Return the next nonce for *address*.

        ``max(pending_count, last_issued + 1)``, where a missing entry
        counts as ``pending_count - 1``.

        Raises:
            ProcessStopped: A stop has been requested.
            ValidationError: *address* is not a valid EVM address.
            RpcError: The pending-count read failed.
        """
        if self.interrupt is not None and self.interrupt.stop_requested:
            logger.info("Nonce fetch stopped due to stop request.")
            raise ProcessStopped()
        if not address or not is_address(address):
            logger.error(f"Invalid wallet address: {address}")
            raise ValidationError(f"Invalid wallet address: {address}")

        key = to_checksum_address(address)
        async with self._lock_for(key):
            try:
                pending = await gateway.get_transaction_count(key, "pending")
            except Exception as exc:
                logger.error(f"Failed to fetch nonce for {short_address(key)}: {exc}")
                raise
            last = self._last_issued.get(key, pending - 1)
            nonce = max(pending, last + 1)
            self._last_issued[key] = nonce

        logger.debug(f"Fetched nonce {nonce} for {short_address(key)}")
        return nonce

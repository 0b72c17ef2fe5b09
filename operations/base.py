"""Base operation and transaction result definitions.

This module defines the :class:`Operation` superclass that the bridge and
stake operations inherit from, the immutable :class:`TransactionIntent`
handed to the signer, and the :class:`OperationResult` outcome returned
for every attempt.

:class:`Operation` provides:
    * Nonce issuance through the shared :class:`~core.nonce.NonceSequencer`.
    * Signing (``eth_account``), submission and receipt waiting.
    * The ``run`` template: balance check -> skip, execute -> success,
      known errors -> failed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address

from core.accounts import Account
from core.config import BotSettings
from core.errors import (
    InsufficientBalance,
    ProcessStopped,
    RpcError,
    TransactionReverted,
    ValidationError,
)
from core.gateway import ChainGateway
from core.nonce import NonceSequencer
from core.utils import short_hash
from operations.encoding import from_base_units, to_base_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionIntent:
    """A fully specified transaction awaiting signature.

    Attributes:
        to: Target contract address.
        data: ``0x``-prefixed calldata.
        gas_limit: Gas limit for the call.
        chain_id: Chain the transaction is valid on.
        nonce: Sequence number issued for the sender.
        value: Native value attached, in wei.
    """

    to: str
    data: str
    gas_limit: int
    chain_id: int
    nonce: int
    value: int = 0

    def to_tx(self, gas_price: int) -> Dict[str, Any]:
        """Legacy transaction dict accepted by ``eth_account``."""
        return {
            "to": to_checksum_address(self.to),
            "data": self.data,
            "gas": self.gas_limit,
            "gasPrice": gas_price,
            "chainId": self.chain_id,
            "nonce": self.nonce,
            "value": self.value,
        }


@dataclass(frozen=True)
class TransactionResult:
    """Mined transaction.  Only a non-zero ``status`` means success."""

    tx_hash: str
    status: int

    @property
    def succeeded(self) -> bool:
        return self.status != 0


class OperationStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class OperationResult:
    """Outcome of a single operation attempt.

    Attributes:
        operation: Operation name (``"bridge"`` / ``"stake"``).
        status: Success, skipped or failed.
        tx_hash: Hash of the main transaction on success.
        reason: Human-readable explanation for skips and failures.
        error_kind: Failure class name (``"TransactionReverted"``,
            ``"RpcError"``, ...) for failed attempts.
    """

    operation: str
    status: OperationStatus
    tx_hash: Optional[str] = None
    reason: str = ""
    error_kind: Optional[str] = None

    @classmethod
    def succeeded(cls, operation: str, tx_hash: str) -> "OperationResult":
        return cls(operation, OperationStatus.SUCCESS, tx_hash=tx_hash)

    @classmethod
    def skipped(cls, operation: str, reason: str) -> "OperationResult":
        return cls(operation, OperationStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, operation: str, error: BaseException) -> "OperationResult":
        return cls(
            operation,
            OperationStatus.FAILED,
            reason=str(error),
            error_kind=type(error).__name__,
        )

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.SUCCESS


class Operation:
    """Abstract base class for on-chain operations.

    Subclasses implement :meth:`read_balance` (the balance the amount is
    checked against) and :meth:`execute` (build and submit, return the
    transaction hash).
    """

    name = "operation"

    def __init__(self, settings: BotSettings, nonces: NonceSequencer) -> None:
        self.settings = settings
        self.nonces = nonces

    async def read_balance(self, account: Account, gateway: ChainGateway) -> int:
        raise NotImplementedError

    async def execute(
        self, account: Account, gateway: ChainGateway, amount: float, target: Any,
    ) -> str:
        raise NotImplementedError

    async def run(
        self,
        account: Account,
        gateway: ChainGateway,
        amount: float,
        target: Any,
        label: str = "",
    ) -> OperationResult:
        """Balance-check then execute, folding the outcome into a result.

        A balance below *amount* yields a skipped result without any
        transaction being built.  Any other error (reverts, RPC errors,
        stop requests, encoding or signing failures) yields a failed
        result, so one repetition never ends the cycle.
        """
        prefix = f"{label}: " if label else ""
        try:
            await self.check_balance(account, gateway, amount, prefix)
            tx_hash = await self.execute(account, gateway, amount, target)
            return OperationResult.succeeded(self.name, tx_hash)
        except InsufficientBalance as exc:
            reason = f"Insufficient HLS balance ({exc.balance})"
            logger.warning(f"{prefix}{reason}, skipping")
            return OperationResult.skipped(self.name, reason)
        except (TransactionReverted, RpcError, ValidationError, ProcessStopped) as exc:
            logger.error(f"{prefix}Failed: {exc}")
            return OperationResult.failed(self.name, exc)
        except Exception as exc:
            logger.exception(f"{prefix}Unexpected error: {exc}")
            return OperationResult.failed(self.name, exc)

    async def check_balance(
        self, account: Account, gateway: ChainGateway, amount: float, prefix: str = "",
    ) -> int:
        """Raise :class:`InsufficientBalance` if the balance is below *amount*."""
        balance = await self.read_balance(account, gateway)
        logger.info(f"{prefix}HLS Balance: {from_base_units(balance)}")
        if balance < to_base_units(amount):
            raise InsufficientBalance(from_base_units(balance), amount)
        return balance

    # ------------------------------------------------------------------
    # Submission helpers
    # ------------------------------------------------------------------

    async def build_intent(
        self,
        account: Account,
        gateway: ChainGateway,
        to: str,
        data: str,
        gas_limit: Optional[int] = None,
    ) -> TransactionIntent:
        nonce = await self.nonces.issue(account.address, gateway)
        return TransactionIntent(
            to=to,
            data=data,
            gas_limit=gas_limit or self.settings.gas_limit,
            chain_id=self.settings.chain_id,
            nonce=nonce,
        )

    async def submit(
        self, account: Account, gateway: ChainGateway, intent: TransactionIntent,
    ) -> TransactionResult:
        """Sign, send and wait for *intent*.

        Raises:
            TransactionReverted: The receipt has ``status == 0``.
        """
        gas_price = await gateway.get_gas_price()
        raw_tx = account.sign_transaction(intent.to_tx(gas_price))
        tx_hash = await gateway.send_raw_transaction(raw_tx)
        logger.debug(f"Sent {self.name} transaction {tx_hash} (nonce {intent.nonce})")

        receipt = await gateway.wait_for_receipt(
            tx_hash,
            timeout=self.settings.receipt_timeout_seconds,
            poll_interval=self.settings.receipt_poll_interval,
        )
        result = TransactionResult(tx_hash=tx_hash, status=receipt["status"])
        if not result.succeeded:
            logger.error(f"{self.name.capitalize()} transaction reverted: {short_hash(tx_hash)}")
            raise TransactionReverted(tx_hash, receipt)
        return result

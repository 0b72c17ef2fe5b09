"""Exception hierarchy for the Helios activity bot.

All errors raised by the bot derive from :class:`HeliosBotError` so that
callers can catch the whole family at an orchestration boundary.

Classes:
    ValidationError: Malformed address, key, amount or config value.
    RpcError: Transport failure or node-reported ``{code, message}``.
    NoResult: JSON-RPC response carrying neither ``result`` nor ``error``.
    TransactionReverted: Receipt mined with ``status == 0``.
    InsufficientBalance: Balance below the requested amount (skip signal).
    ProcessStopped: Work attempted after a stop has been requested.
"""

from typing import Any, Optional


class HeliosBotError(Exception):
    """Base class for every error raised by the bot."""


class ValidationError(HeliosBotError):
    """Input failed format or range validation."""


class RpcError(HeliosBotError):
    """A JSON-RPC call failed.

    Attributes:
        message: Node-reported or transport error message.
        code: Node-reported error code, ``None`` for transport failures.
        method: RPC method that failed, when known.
    """

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        method: Optional[str] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.method = method
        if code is not None:
            super().__init__(f"RPC Error: {message} (code: {code})")
        else:
            super().__init__(f"RPC Error: {message}")


class NoResult(RpcError):
    """The node answered without a ``result`` or an ``error`` member."""

    def __init__(self, method: Optional[str] = None) -> None:
        super().__init__("No result in RPC response", method=method)


class TransactionReverted(HeliosBotError):
    """A submitted transaction was mined but reverted.

    Attributes:
        tx_hash: Hash of the reverted transaction.
        receipt: Raw receipt returned by the node.
    """

    def __init__(self, tx_hash: str, receipt: Optional[dict] = None) -> None:
        self.tx_hash = tx_hash
        self.receipt = receipt or {}
        super().__init__(f"Transaction reverted: {tx_hash}")


class InsufficientBalance(HeliosBotError):
    """Balance is lower than the amount an operation needs.

    This is a skip signal rather than a failure: the repetition is logged
    and the loop moves on.
    """

    def __init__(self, balance: Any, required: Any) -> None:
        self.balance = balance
        self.required = required
        super().__init__(f"Insufficient balance ({balance} < {required})")


class ProcessStopped(HeliosBotError):
    """Raised when a nonce or operation is requested after a stop."""

    def __init__(self, message: str = "Process stopped") -> None:
        super().__init__(message)

"""Managed accounts and the secret-file loader.

Private keys are read from a newline-delimited file (``pk.txt`` by
default).  Each surviving entry becomes an :class:`Account` whose address
is derived with ``eth_account``; the key never leaves the object except to
sign.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from eth_account import Account as EthAccount
from eth_account.signers.local import LocalAccount

from core.errors import ValidationError

logger = logging.getLogger(__name__)

PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


@dataclass
class Account:
    """A managed account.

    Attributes:
        index: Ordinal position in the registry (drives proxy choice).
        signer: ``eth_account`` local account holding the key.
        native_balance: Last-known native balance in wei, ``None`` until
            the first refresh.
        token_balance: Last-known HLS token balance in wei.
    """

    index: int
    signer: LocalAccount = field(repr=False)
    native_balance: Optional[int] = None
    token_balance: Optional[int] = None

    @property
    def address(self) -> str:
        return self.signer.address

    @property
    def label(self) -> str:
        """1-based label used in log lines (``Account 3``)."""
        return f"Account {self.index + 1}"

    def sign_transaction(self, tx: dict) -> bytes:
        """Sign *tx* and return the raw encoded transaction."""
        signed = self.signer.sign_transaction(tx)
        # eth-account renamed rawTransaction -> raw_transaction in 0.13
        raw = getattr(signed, "raw_transaction", None)
        if raw is None:
            raw = signed.rawTransaction
        return bytes(raw)

    @classmethod
    def from_key(cls, index: int, private_key: str) -> "Account":
        return cls(index=index, signer=EthAccount.from_key(private_key))


def parse_private_keys(text: str) -> List[str]:
    """Return the lines of *text* that look like 32-byte hex keys.

    Invalid entries are dropped silently.
    """
    keys = []
    for line in text.splitlines():
        candidate = line.strip()
        if PRIVATE_KEY_RE.match(candidate):
            keys.append(candidate)
    return keys


class AccountRegistry:
    """Ordered collection of :class:`Account` objects."""

    def __init__(self, accounts: Optional[List[Account]] = None) -> None:
        self.accounts: List[Account] = list(accounts or [])

    def __len__(self) -> int:
        return len(self.accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.accounts)

    def __getitem__(self, index: int) -> Account:
        return self.accounts[index]

    @classmethod
    def from_keys(cls, keys: List[str]) -> "AccountRegistry":
        return cls([Account.from_key(i, key) for i, key in enumerate(keys)])

    @classmethod
    def load(cls, path: str) -> "AccountRegistry":
        """Load private keys from *path*.

        Raises:
            ValidationError: If the file is missing or holds no valid key.
        """
        key_file = Path(path)
        if not key_file.exists():
            raise ValidationError(f"Private key file not found: {path}")
        keys = parse_private_keys(key_file.read_text(encoding="utf-8"))
        if not keys:
            raise ValidationError(f"No valid private keys in {path}")
        registry = cls.from_keys(keys)
        logger.info(f"Loaded {len(registry)} private keys from {path}")
        return registry

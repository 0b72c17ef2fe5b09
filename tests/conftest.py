"""Shared fixtures: deterministic keys and an in-memory chain gateway."""

from typing import Any, Dict, List, Optional

import pytest

from core.accounts import AccountRegistry
from core.config import BotSettings
from operations.encoding import ALLOWANCE_SELECTOR, BALANCE_OF_SELECTOR

TEST_KEYS = ["0x" + "11" * 32, "0x" + "22" * 32, "0x" + "33" * 32]


class FakeGateway:
    """Stands in for ChainGateway; records what the bot sends."""

    def __init__(
        self,
        native_balance: int = 10 ** 20,
        token_balance: int = 10 ** 20,
        allowance: int = 10 ** 30,
        pending: int = 0,
        statuses: Optional[List[int]] = None,
    ) -> None:
        self.native_balance = native_balance
        self.token_balance = token_balance
        self.allowance = allowance
        self.pending = pending
        self.statuses = list(statuses or [])
        self.sent: List[bytes] = []
        self.eth_calls: List[Dict[str, str]] = []
        self.closed = False

    async def __aenter__(self) -> "FakeGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        self.closed = True

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return self.pending

    async def get_balance(self, address: str) -> int:
        return self.native_balance

    async def get_gas_price(self) -> int:
        return 10 ** 9

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return 60_000

    async def eth_call(self, to: str, data: str) -> str:
        self.eth_calls.append({"to": to, "data": data})
        if data.startswith("0x" + BALANCE_OF_SELECTOR.hex()):
            return hex(self.token_balance)
        if data.startswith("0x" + ALLOWANCE_SELECTOR.hex()):
            return hex(self.allowance)
        return "0x"

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        self.sent.append(raw_tx)
        return "0x" + f"{len(self.sent):064x}"

    async def wait_for_receipt(self, tx_hash: str, timeout: float = 300.0, poll_interval: float = 2.0) -> Dict[str, Any]:
        status = self.statuses.pop(0) if self.statuses else 1
        return {"transactionHash": tx_hash, "status": status}


@pytest.fixture
def private_keys():
    return list(TEST_KEYS)


@pytest.fixture
def settings():
    return BotSettings(_env_file=None)


@pytest.fixture
def accounts():
    return AccountRegistry.from_keys(TEST_KEYS)


@pytest.fixture
def gateway():
    return FakeGateway()

"""Facade bundling the bridge and stake operations for the orchestrator."""

from core.accounts import Account
from core.config import BotSettings
from core.gateway import ChainGateway
from core.nonce import NonceSequencer
from core.registry import Destination, Validator
from operations.base import OperationResult
from operations.bridge import BridgeOperation
from operations.stake import StakeOperation


class OperationExecutor:
    """Runs single bridge / stake attempts and reports their outcome."""

    def __init__(self, settings: BotSettings, nonces: NonceSequencer) -> None:
        self.settings = settings
        self.nonces = nonces
        self.bridge_op = BridgeOperation(settings, nonces)
        self.stake_op = StakeOperation(settings, nonces)

    async def bridge(
        self,
        account: Account,
        gateway: ChainGateway,
        amount: float,
        destination: Destination,
        label: str = "",
    ) -> OperationResult:
        return await self.bridge_op.run(account, gateway, amount, destination, label=label)

    async def stake(
        self,
        account: Account,
        gateway: ChainGateway,
        amount: float,
        validator: Validator,
        label: str = "",
    ) -> OperationResult:
        return await self.stake_op.run(account, gateway, amount, validator, label=label)

"""HLS delegation through the staking precompile."""

import logging

from eth_utils import is_address

from core.accounts import Account
from core.errors import ValidationError
from core.gateway import ChainGateway
from core.registry import Validator
from core.utils import short_hash
from operations.base import Operation
from operations.encoding import encode_stake, to_base_units

logger = logging.getLogger(__name__)


class StakeOperation(Operation):
    """Delegate HLS to a validator.

    Staking spends native HLS, so the pre-check reads the native balance.
    """

    name = "stake"

    async def read_balance(self, account: Account, gateway: ChainGateway) -> int:
        balance = await gateway.get_balance(account.address)
        account.native_balance = balance
        return balance

    async def execute(
        self, account: Account, gateway: ChainGateway, amount: float, target: Validator,
    ) -> str:
        if not is_address(account.address):
            raise ValidationError(f"Invalid wallet address: {account.address}")
        if not is_address(target.address):
            raise ValidationError(f"Invalid validator address: {target.address}")

        logger.debug(f"Building stake transaction for {amount} HLS to validator {target.name}")
        data = encode_stake(account.address, target.address, to_base_units(amount))
        intent = await self.build_intent(account, gateway, self.settings.stake_router_address, data)
        result = await self.submit(account, gateway, intent)
        logger.info(f"Stake to {target.name} successfully: {short_hash(result.tx_hash)}")
        return result.tx_hash

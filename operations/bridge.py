"""HLS bridge from Helios to Sepolia / BSC testnet."""

import logging

from core.accounts import Account
from core.gateway import ChainGateway
from core.registry import Destination
from core.utils import short_hash
from operations.base import Operation
from operations.encoding import (
    decode_uint,
    encode_allowance,
    encode_approve,
    encode_balance_of,
    encode_bridge,
    from_base_units,
    to_base_units,
)

logger = logging.getLogger(__name__)


class BridgeOperation(Operation):
    """Approve (when needed) and call the bridge router.

    The balance checked before bridging is the account's HLS *token*
    balance, since that is what the router pulls via ``transferFrom``.
    """

    name = "bridge"

    async def read_balance(self, account: Account, gateway: ChainGateway) -> int:
        result = await gateway.eth_call(self.settings.token_address, encode_balance_of(account.address))
        balance = decode_uint(result)
        account.token_balance = balance
        return balance

    async def read_allowance(self, account: Account, gateway: ChainGateway) -> int:
        result = await gateway.eth_call(
            self.settings.token_address,
            encode_allowance(account.address, self.settings.router_address),
        )
        return decode_uint(result)

    async def ensure_allowance(self, account: Account, gateway: ChainGateway, amount_wei: int) -> None:
        """Approve the router for *amount_wei* if the current allowance is lower.

        Waits for the approval receipt before returning; a reverted
        approval raises :class:`~core.errors.TransactionReverted`.
        """
        allowance = await self.read_allowance(account, gateway)
        logger.debug(f"Allowance: {from_base_units(allowance)} HLS")
        if allowance >= amount_wei:
            return

        logger.info(f"Approving {from_base_units(amount_wei)} HLS on Helios")
        data = encode_approve(self.settings.router_address, amount_wei)
        gas = await gateway.estimate_gas({
            "from": account.address,
            "to": self.settings.token_address,
            "data": data,
        })
        intent = await self.build_intent(account, gateway, self.settings.token_address, data, gas_limit=gas)
        result = await self.submit(account, gateway, intent)
        logger.info(f"Approval HLS on Helios Successfully, Hash: {short_hash(result.tx_hash)}")

    async def execute(
        self, account: Account, gateway: ChainGateway, amount: float, target: Destination,
    ) -> str:
        amount_wei = to_base_units(amount)
        await self.ensure_allowance(account, gateway, amount_wei)

        data = encode_bridge(
            destination_chain_id=target.chain_id,
            receiver=account.address,
            token=self.settings.token_address,
            amount_wei=amount_wei,
            fee_wei=to_base_units(self.settings.bridge_fee),
        )
        intent = await self.build_intent(account, gateway, self.settings.router_address, data)
        result = await self.submit(account, gateway, intent)
        logger.info(f"Bridge Helios ⮞ {target.name} successfully: {short_hash(result.tx_hash)}")
        return result.tx_hash

"""Calldata builders for the contracts the bot talks to.

All payloads are returned as ``0x``-prefixed hex strings ready to be used
as the ``data`` field of a transaction or ``eth_call``.

The bridge router's entry point (selector ``0x7ae4a8ff``) takes
``(uint64 chainId, string receiver, address token, uint256 amount,
uint256 fee)``; the receiver is the sender's own lowercase hex address
sent as a string.  The stake router's entry point (selector
``0xf5e56040``) takes ``(address delegator, address validator, uint256
amount, bytes denom)``.
"""

from decimal import Decimal
from typing import Union

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address, to_wei

from core.errors import RpcError

BRIDGE_SELECTOR = bytes.fromhex("7ae4a8ff")
STAKE_SELECTOR = bytes.fromhex("f5e56040")
BALANCE_OF_SELECTOR = function_signature_to_4byte_selector("balanceOf(address)")
ALLOWANCE_SELECTOR = function_signature_to_4byte_selector("allowance(address,address)")
APPROVE_SELECTOR = function_signature_to_4byte_selector("approve(address,uint256)")

# Denomination tag the staking precompile expects
STAKE_DENOM = b"ahelios"

HLS_DECIMALS = 18


def to_base_units(amount: Union[float, str, Decimal]) -> int:
    """Convert an HLS amount to wei (18 decimals)."""
    return int(to_wei(Decimal(str(amount)), "ether"))


def from_base_units(value: int) -> Decimal:
    return Decimal(value) / (Decimal(10) ** HLS_DECIMALS)


def _hex(selector: bytes, args: bytes = b"") -> str:
    return "0x" + (selector + args).hex()


def encode_balance_of(owner: str) -> str:
    return _hex(BALANCE_OF_SELECTOR, encode(["address"], [to_checksum_address(owner)]))


def encode_allowance(owner: str, spender: str) -> str:
    return _hex(
        ALLOWANCE_SELECTOR,
        encode(["address", "address"], [to_checksum_address(owner), to_checksum_address(spender)]),
    )


def encode_approve(spender: str, amount_wei: int) -> str:
    return _hex(
        APPROVE_SELECTOR,
        encode(["address", "uint256"], [to_checksum_address(spender), amount_wei]),
    )


def encode_bridge(
    destination_chain_id: int,
    receiver: str,
    token: str,
    amount_wei: int,
    fee_wei: int,
) -> str:
    """Build the bridge router call sending *amount_wei* of *token*.

    The ``0xa0`` word right after the chain id is the string offset
    produced by standard ABI encoding, not a magic constant.
    """
    args = encode(
        ["uint64", "string", "address", "uint256", "uint256"],
        [
            destination_chain_id,
            receiver.lower(),
            to_checksum_address(token),
            amount_wei,
            fee_wei,
        ],
    )
    return _hex(BRIDGE_SELECTOR, args)


def encode_stake(delegator: str, validator: str, amount_wei: int) -> str:
    args = encode(
        ["address", "address", "uint256", "bytes"],
        [to_checksum_address(delegator), to_checksum_address(validator), amount_wei, STAKE_DENOM],
    )
    return _hex(STAKE_SELECTOR, args)


def decode_uint(result: str) -> int:
    """Decode a single ``uint256`` return value from ``eth_call``."""
    if not result or result == "0x":
        return 0
    try:
        return int(result, 16)
    except (TypeError, ValueError) as exc:
        raise RpcError(f"Malformed uint256 return value: {result!r}") from exc

"""JSON-RPC gateway to the Helios EVM endpoint.

:class:`ChainGateway` is the bot's only network client.  It posts JSON-RPC
2.0 requests through a lazily created ``aiohttp`` session, optionally
routed through the account's proxy (SOCKS via ``aiohttp_socks``, HTTP(S)
via aiohttp's native ``proxy=`` support), and turns every failure into
one of two exceptions:

* :class:`~core.errors.RpcError` -- transport failure, HTTP error status
  or a node-reported ``{code, message}``.
* :class:`~core.errors.NoResult` -- a response carrying neither
  ``result`` nor ``error``.

When an :class:`~core.interrupt.InterruptController` is attached, every
call counts as an active task for the duration of the request.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp_socks import ProxyConnectionError, ProxyConnector, ProxyError, ProxyTimeoutError

from core.errors import NoResult, RpcError
from core.interrupt import InterruptController
from core.proxy_manager import Proxy

logger = logging.getLogger(__name__)


def to_int(value: Any) -> int:
    """Decode a JSON-RPC quantity (``"0x1a"``) or plain integer."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if value in ("", "0x"):
            return 0
        return int(value, 16) if value.startswith(("0x", "0X")) else int(value)
    raise RpcError(f"Cannot decode quantity {value!r}")


class ChainGateway:
    """Call/response capability for one RPC endpoint and one proxy."""

    def __init__(
        self,
        rpc_url: str,
        proxy: Optional[Proxy] = None,
        timeout: float = 30.0,
        interrupt: Optional[InterruptController] = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            rpc_url: JSON-RPC endpoint URL.
            proxy: Optional proxy to route every request through.
            timeout: Total per-request timeout in seconds.
            interrupt: Controller whose active-task counter brackets calls.
        """
        self.rpc_url = rpc_url
        self.proxy = proxy
        self.timeout = timeout
        self.interrupt = interrupt
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = None
            if self.proxy is not None and self.proxy.is_socks:
                connector = ProxyConnector.from_url(self.proxy.url)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "ChainGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Raw JSON-RPC
    # ------------------------------------------------------------------

    async def call(
        self,
        method: str,
        params: Optional[List[Any]] = None,
        allow_null: bool = False,
    ) -> Any:
        """Execute one JSON-RPC call and return its ``result``.

        Args:
            method: RPC method name (e.g. ``"eth_getBalance"``).
            params: Positional parameters.
            allow_null: Accept ``"result": null`` (pending receipts)
                instead of raising :class:`NoResult`.

        Raises:
            RpcError: On transport failures and node-reported errors.
            NoResult: When the response has neither result nor error.
        """
        if self.interrupt is None:
            return await self._call(method, params or [], allow_null)
        async with self.interrupt.task():
            return await self._call(method, params or [], allow_null)

    async def _call(self, method: str, params: List[Any], allow_null: bool) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params,
        }
        request_proxy = None
        if self.proxy is not None and not self.proxy.is_socks:
            request_proxy = self.proxy.url

        try:
            session = await self._get_session()
            async with session.post(self.rpc_url, json=payload, proxy=request_proxy) as response:
                if response.status >= 400:
                    raise RpcError(f"HTTP {response.status}", method=method)
                data = await response.json(content_type=None)
        except RpcError as exc:
            logger.error(f"JSON-RPC call failed ({method}): {exc}")
            raise
        except (
            aiohttp.ClientError,
            ProxyError,
            ProxyConnectionError,
            ProxyTimeoutError,
            asyncio.TimeoutError,
            OSError,
            ValueError,
        ) as exc:
            logger.error(f"JSON-RPC call failed ({method}): {exc!r}")
            raise RpcError(str(exc) or type(exc).__name__, method=method) from exc

        return self._extract_result(method, data, allow_null)

    @staticmethod
    def _extract_result(method: str, data: Any, allow_null: bool = False) -> Any:
        if not isinstance(data, dict):
            logger.error(f"JSON-RPC call failed ({method}): malformed response")
            raise RpcError("Malformed JSON-RPC response", method=method)

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                exc = RpcError(str(error.get("message", "")), error.get("code"), method=method)
            else:
                exc = RpcError(str(error), method=method)
            logger.error(f"JSON-RPC call failed ({method}): {exc}")
            raise exc

        result = data.get("result")
        if result is None and not (allow_null and "result" in data):
            logger.error(f"JSON-RPC call failed ({method}): No result in RPC response")
            raise NoResult(method=method)
        return result

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    async def chain_id(self) -> int:
        return to_int(await self.call("eth_chainId"))

    async def get_balance(self, address: str) -> int:
        """Native balance of *address* in wei."""
        return to_int(await self.call("eth_getBalance", [address, "latest"]))

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return to_int(await self.call("eth_getTransactionCount", [address, block]))

    async def get_gas_price(self) -> int:
        return to_int(await self.call("eth_gasPrice"))

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return to_int(await self.call("eth_estimateGas", [tx]))

    async def eth_call(self, to: str, data: str) -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, "latest"])

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Submit a signed transaction and return its hash."""
        return await self.call("eth_sendRawTransaction", ["0x" + bytes(raw_tx).hex()])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.call("eth_getTransactionReceipt", [tx_hash], allow_null=True)

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 300.0,
        poll_interval: float = 2.0,
    ) -> Dict[str, Any]:
        """Poll until *tx_hash* is mined.

        The returned receipt has ``status`` decoded to ``int``.

        Raises:
            RpcError: If no receipt appears within *timeout* seconds.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt:
                receipt = dict(receipt)
                receipt["status"] = to_int(receipt.get("status", 0))
                return receipt
            if loop.time() >= deadline:
                raise RpcError(f"Timed out waiting for receipt of {tx_hash}", method="eth_getTransactionReceipt")
            if self.interrupt is None:
                await asyncio.sleep(poll_interval)
            else:
                async with self.interrupt.task():
                    await asyncio.sleep(poll_interval)

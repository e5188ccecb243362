"""
Bitcoin Core wallet RPC session.

A session is an httpx client bound to one wallet endpoint
(``<rpc_url>/wallet/<name>``). Construction never touches the network.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from wallet_gateway.errors import ConfigurationError, RpcError

# Timeout for RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0


def wallet_endpoint(rpc_url: str, wallet_name: str) -> str:
    return f"{rpc_url.rstrip('/')}/wallet/{quote(wallet_name, safe='')}"


class WalletRpcClient:
    """
    JSON-RPC client for a single Bitcoin Core wallet.

    Errors reported by the node are raised as RpcError with the node's code;
    transport failures are raised as RpcError with code None.
    """

    def __init__(
        self,
        url: str,
        rpc_user: str,
        rpc_password: str,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.client = httpx.AsyncClient(
            timeout=timeout, auth=(rpc_user, rpc_password), transport=transport
        )
        self._request_id = 0

    async def call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call against this wallet's endpoint.

        Args:
            method: RPC method name
            params: Positional method parameters

        Returns:
            RPC result, with JSON floats decoded as Decimal

        Raises:
            RpcError: On node errors and connection/timeout errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise RpcError(None, f"RPC call timed out: {method}", method) from e
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise RpcError(None, f"RPC call failed: {method}: {e}", method) from e

        # Older nodes answer RPC errors with HTTP 500 and a JSON body
        try:
            data = response.json(parse_float=Decimal)
        except ValueError:
            data = None

        if isinstance(data, dict) and data.get("error"):
            error_info = data["error"]
            if isinstance(error_info, dict):
                error_code = error_info.get("code")
                error_msg = error_info.get("message", str(error_info))
            else:
                error_code, error_msg = None, str(error_info)
            logger.debug(f"RPC {method} returned error {error_code}: {error_msg}")
            raise RpcError(error_code, error_msg, method)

        if response.is_error or not isinstance(data, dict):
            logger.error(f"RPC call failed: {method} - HTTP {response.status_code}")
            raise RpcError(
                None,
                f"RPC call failed: {method}: HTTP {response.status_code} {response.reason_phrase}",
                method,
            )

        return data.get("result")

    async def list_wallet_dir(self) -> list[str]:
        result = await self.call("listwalletdir")
        return [wallet["name"] for wallet in result.get("wallets", [])]

    async def load_wallet(self, name: str) -> dict[str, Any]:
        return await self.call("loadwallet", [name])

    async def unload_wallet(self, name: str) -> dict[str, Any] | None:
        return await self.call("unloadwallet", [name])

    async def create_wallet(self, name: str) -> dict[str, Any]:
        return await self.call("createwallet", [name])

    async def get_new_address(self, label: str, address_type: str = "bech32") -> str:
        return await self.call("getnewaddress", [label, address_type])

    async def get_wallet_info(self) -> dict[str, Any]:
        return await self.call("getwalletinfo")

    async def generate_to_address(self, blocks: int, address: str) -> list[str]:
        return await self.call("generatetoaddress", [blocks, address])

    async def send_to_address(self, address: str, amount_btc: Decimal, comment: str | None) -> str:
        # Amounts go over the wire as strings so no float rounding is involved
        params: list[Any] = [address, f"{amount_btc:.8f}"]
        if comment is not None:
            params.append(comment)
        return await self.call("sendtoaddress", params)

    async def get_transaction(self, txid: str) -> dict[str, Any]:
        return await self.call("gettransaction", [txid])

    async def get_mempool_entry(self, txid: str) -> dict[str, Any]:
        return await self.call("getmempoolentry", [txid])

    async def close(self) -> None:
        await self.client.aclose()


def create_session(
    wallet_name: str,
    rpc_url: str,
    rpc_user: str,
    rpc_password: str,
    timeout: float = DEFAULT_RPC_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WalletRpcClient:
    """
    Build a session bound to ``<rpc_url>/wallet/<wallet_name>``.

    Raises:
        ConfigurationError: If the URL is malformed or credentials are missing
    """
    validate_connection(rpc_url, rpc_user, rpc_password)
    return WalletRpcClient(
        wallet_endpoint(rpc_url, wallet_name),
        rpc_user,
        rpc_password,
        timeout=timeout,
        transport=transport,
    )


def validate_connection(rpc_url: str, rpc_user: str, rpc_password: str) -> None:
    try:
        url = httpx.URL(rpc_url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid RPC URL {rpc_url!r}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"Invalid RPC URL {rpc_url!r}: expected http(s)://host[:port]")
    if not rpc_user:
        raise ConfigurationError("RPC user is not configured")
    if not rpc_password:
        raise ConfigurationError("RPC password is not configured")

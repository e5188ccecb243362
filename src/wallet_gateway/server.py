"""
HTTP server exposing wallet RPC operations.

Each handler validates its input, resolves the wallet session through the
registry and performs exactly one node operation. Wallet registration is the
exception: it drives the lifecycle protocol before inserting the session.
"""

from __future__ import annotations

import contextlib
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, TypeVar

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from wallet_gateway.address import require_network, validate_txid
from wallet_gateway.config import Settings
from wallet_gateway.errors import (
    AddressGenerationFailed,
    GatewayError,
    InvalidRequest,
    NodeError,
    NodeUnavailable,
    RpcError,
    TransactionNotFound,
    is_not_found,
)
from wallet_gateway.lifecycle import WalletLifecycleManager
from wallet_gateway.models import (
    CreateAddressRequest,
    CreateWalletRequest,
    GatewayRequest,
    MineBlocksRequest,
    SendPaymentRequest,
    TransactionView,
    btc_to_sats,
    json_dumps,
    sats_to_btc,
)
from wallet_gateway.registry import SessionRegistry
from wallet_gateway.rpc import WalletRpcClient, create_session

RequestT = TypeVar("RequestT", bound=GatewayRequest)
SessionFactory = Callable[[str], WalletRpcClient]
Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

CORS_ALLOWED_METHODS = "GET, POST"
CORS_ALLOWED_HEADERS = "Authorization, Accept, Content-Type"
CORS_MAX_AGE = "3600"


def json_response(data: Any, status: int = 200) -> web.Response:
    return web.json_response(data, status=status, dumps=json_dumps)


def make_cors_middleware(origin: str) -> Any:
    @web.middleware
    async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.method == "OPTIONS":
            response: web.StreamResponse = web.Response(status=204)
        else:
            response = await handler(request)

        if origin and request.headers.get("Origin") == origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Methods"] = CORS_ALLOWED_METHODS
            response.headers["Access-Control-Allow-Headers"] = CORS_ALLOWED_HEADERS
            response.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
        return response

    return cors_middleware


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except GatewayError as e:
        if e.status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.name}: {e.message}")
        else:
            logger.debug(f"{request.method} {request.path} rejected: {e.name}: {e.message}")
        return json_response(e.to_dict(), status=e.status)
    except web.HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unhandled error in {request.method} {request.path}: {e}")
        return json_response({"error": "InternalError", "message": str(e)}, status=500)


class GatewayServer:
    def __init__(
        self,
        settings: Settings,
        registry: SessionRegistry | None = None,
        session_factory: SessionFactory | None = None,
        lifecycle: WalletLifecycleManager | None = None,
    ) -> None:
        self.settings = settings
        self.registry = registry if registry is not None else SessionRegistry()
        self.session_factory = session_factory or partial(
            create_session,
            rpc_url=settings.rpc_url,
            rpc_user=settings.rpc_user,
            rpc_password=settings.rpc_password,
            timeout=settings.rpc_timeout,
        )
        self.lifecycle = lifecycle or WalletLifecycleManager()
        self.app = web.Application(
            middlewares=[make_cors_middleware(settings.cors_origin), error_middleware]
        )
        self.runner: web.AppRunner | None = None
        self.site: web.TCPSite | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_post("/wallet", self._handle_create_wallet)
        self.app.router.add_post("/address", self._handle_create_address)
        self.app.router.add_post("/mine", self._handle_mine_blocks)
        self.app.router.add_get("/wallet/{walletid}/balance", self._handle_get_balance)
        self.app.router.add_post("/send", self._handle_send_payment)
        self.app.router.add_get("/tx/{walletid}/{txid}", self._handle_get_transaction)
        self.app.router.add_get("/mempool/{walletid}/{txid}", self._handle_get_mempool_entry)
        self.app.router.add_get("/health", self._handle_health)

    async def _parse_body(self, request: web.Request, model: type[RequestT]) -> RequestT:
        body = await request.read()
        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'body'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidRequest(f"Invalid request body: {errors}") from e

    async def _handle_create_wallet(self, request: web.Request) -> web.Response:
        req = await self._parse_body(request, CreateWalletRequest)
        logger.debug(f"Create or load wallet '{req.name}'")

        session = self.session_factory(req.name)
        try:
            outcome = await self.lifecycle.ensure(session, req.name)
        except Exception:
            await session.close()
            raise

        self.registry.insert(req.name, session)
        return json_response(outcome.to_dict())

    async def _handle_create_address(self, request: web.Request) -> web.Response:
        req = await self._parse_body(request, CreateAddressRequest)
        session = self.registry.require(req.wallet_name)

        try:
            address = await session.get_new_address(req.name, "bech32")
        except RpcError as e:
            raise AddressGenerationFailed(
                f"Failed to generate a new address: {e}", code=e.code
            ) from e

        require_network(address, self.settings.network)
        logger.debug(f"New address for wallet '{req.wallet_name}' with label '{req.name}'")
        return json_response(address)

    async def _handle_get_balance(self, request: web.Request) -> web.Response:
        wallet_name = request.match_info["walletid"]
        session = self.registry.require(wallet_name)
        logger.debug(f"Getting balance for: {wallet_name}")

        try:
            info = await session.get_wallet_info()
        except RpcError as e:
            raise NodeError.from_rpc(e) from e

        return json_response(btc_to_sats(info["balance"]))

    async def _handle_mine_blocks(self, request: web.Request) -> web.Response:
        req = await self._parse_body(request, MineBlocksRequest)
        if req.blocks > self.settings.max_blocks_per_request:
            raise InvalidRequest(
                f"blocks must be at most {self.settings.max_blocks_per_request}, got {req.blocks}"
            )
        session = self.registry.require(req.wallet_name)
        require_network(req.address, self.settings.network)

        try:
            block_hashes = await session.generate_to_address(req.blocks, req.address)
        except RpcError as e:
            raise NodeError.from_rpc(e) from e

        logger.info(f"Mined {len(block_hashes)} block(s) for wallet '{req.wallet_name}'")
        return json_response(block_hashes)

    async def _handle_send_payment(self, request: web.Request) -> web.Response:
        req = await self._parse_body(request, SendPaymentRequest)
        session = self.registry.require(req.from_wallet)
        require_network(req.to_address, self.settings.network)

        # Money-moving call: a failure is reported, never repeated
        try:
            txid = await session.send_to_address(
                req.to_address, sats_to_btc(req.amount), req.message
            )
        except RpcError as e:
            raise NodeError.from_rpc(e) from e

        logger.info(f"Wallet '{req.from_wallet}' sent {req.amount} sats in {txid}")
        return json_response(txid)

    async def _handle_get_transaction(self, request: web.Request) -> web.Response:
        session, txid = self._resolve_lookup(request)

        try:
            result = await session.get_transaction(txid)
        except RpcError as e:
            raise self._lookup_error(e, txid, "wallet transaction") from e

        return json_response(TransactionView.from_rpc(result).to_dict())

    async def _handle_get_mempool_entry(self, request: web.Request) -> web.Response:
        session, txid = self._resolve_lookup(request)

        try:
            entry = await session.get_mempool_entry(txid)
        except RpcError as e:
            raise self._lookup_error(e, txid, "mempool entry") from e

        return json_response(entry)

    def _resolve_lookup(self, request: web.Request) -> tuple[WalletRpcClient, str]:
        session = self.registry.require(request.match_info["walletid"])
        return session, validate_txid(request.match_info["txid"])

    @staticmethod
    def _lookup_error(error: RpcError, txid: str, what: str) -> GatewayError:
        if is_not_found(error):
            return TransactionNotFound(f"No {what} for {txid}: {error.message}")
        return NodeUnavailable(str(error), code=error.code)

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return json_response(
            {
                "status": "healthy",
                "network": self.settings.network,
                "wallets": self.registry.count(),
            }
        )

    async def start(self) -> None:
        logger.info(
            f"Starting wallet gateway on {self.settings.http_host}:{self.settings.http_port}"
        )

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.settings.http_host, self.settings.http_port)
        await self.site.start()

        logger.info(
            f"Wallet gateway running at http://{self.settings.http_host}:{self.settings.http_port}"
        )

    async def stop(self) -> None:
        logger.info("Stopping wallet gateway...")

        if self.site:
            with contextlib.suppress(RuntimeError):
                await self.site.stop()
            self.site = None

        if self.runner:
            with contextlib.suppress(RuntimeError):
                await self.runner.cleanup()
            self.runner = None

        await self.registry.close()
        logger.info("Wallet gateway stopped")

"""
Wallet lifecycle: bring a named node wallet into the loaded state.

Bitcoin Core treats "exists on disk" and "is loaded" as independent, so
registration lists the wallet directory first and then either loads or
creates. A wallet still loaded by a previous gateway process is unloaded and
loaded again, once.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from loguru import logger

from wallet_gateway.errors import (
    NodeError,
    RpcError,
    WalletStateConflict,
    is_wallet_already_exists,
    is_wallet_already_loaded,
)

LOADED = "loaded"
CREATED = "created"


class WalletSession(Protocol):
    async def list_wallet_dir(self) -> list[str]: ...

    async def load_wallet(self, name: str) -> dict[str, Any]: ...

    async def unload_wallet(self, name: str) -> dict[str, Any] | None: ...

    async def create_wallet(self, name: str) -> dict[str, Any]: ...


@dataclass
class WalletLoadOutcome:
    status: Literal["loaded", "created"]
    name: str
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_rpc(
        cls, status: Literal["loaded", "created"], requested: str, result: dict[str, Any] | None
    ) -> WalletLoadOutcome:
        result = result or {}
        # Nodes before v25 report a single "warning" string
        warnings = list(result.get("warnings") or [])
        if result.get("warning"):
            warnings.append(result["warning"])
        return cls(status=status, name=result.get("name") or requested, warnings=warnings)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "name": self.name, "warnings": self.warnings}


async def ensure_wallet(session: WalletSession, name: str) -> WalletLoadOutcome:
    """
    Load ``name`` if the node knows it, create it otherwise.

    Raises:
        WalletStateConflict: Creation says the wallet exists but it was not listed
        NodeError: Any other node failure
    """
    try:
        known = await session.list_wallet_dir()
    except RpcError as e:
        raise NodeError.from_rpc(e) from e

    if name in known:
        return await _load(session, name)
    return await _create(session, name)


async def _load(session: WalletSession, name: str) -> WalletLoadOutcome:
    try:
        result = await session.load_wallet(name)
    except RpcError as e:
        if not is_wallet_already_loaded(e):
            raise NodeError.from_rpc(e) from e
        logger.info(f"Wallet '{name}' already loaded by the node, reloading")
        try:
            await session.unload_wallet(name)
            result = await session.load_wallet(name)
        except RpcError as retry_error:
            raise NodeError.from_rpc(retry_error) from retry_error

    logger.info(f"Loaded wallet '{name}'")
    return WalletLoadOutcome.from_rpc(LOADED, name, result)


async def _create(session: WalletSession, name: str) -> WalletLoadOutcome:
    try:
        result = await session.create_wallet(name)
    except RpcError as e:
        if is_wallet_already_exists(e):
            logger.warning(f"Node refused to create unlisted wallet '{name}': {e.message}")
            raise WalletStateConflict(
                f"Wallet '{name}' already exists but was not listed: {e.message}"
            ) from e
        raise NodeError.from_rpc(e) from e

    logger.info(f"Created wallet '{name}'")
    return WalletLoadOutcome.from_rpc(CREATED, name, result)


class WalletLifecycleManager:
    """
    Runs ensure_wallet with one lock per wallet name.

    Registrations of the same name inside this process run one after the
    other; different names never wait on each other. A lock lives only while
    some registration for its name is running or waiting.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    async def ensure(self, session: WalletSession, name: str) -> WalletLoadOutcome:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        self._waiters[name] = self._waiters.get(name, 0) + 1
        try:
            async with lock:
                return await ensure_wallet(session, name)
        finally:
            self._waiters[name] -= 1
            if not self._waiters[name]:
                del self._waiters[name]
                del self._locks[name]

    def pending(self) -> int:
        """Number of wallet names with a registration in progress."""
        return len(self._locks)

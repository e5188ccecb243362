"""
Session registry: wallet name -> live RPC session.

Only manages session state. Entries are never removed while the process runs;
a name that the node later drops stays registered and its calls fail with
NodeError.
"""

from __future__ import annotations

from loguru import logger

from wallet_gateway.errors import WalletNotFound
from wallet_gateway.rpc import WalletRpcClient


class SessionRegistry:
    # All access happens on the event loop and none of these methods await,
    # so every get/insert is atomic with respect to other request tasks.

    def __init__(self) -> None:
        self._sessions: dict[str, WalletRpcClient] = {}

    def insert(self, name: str, session: WalletRpcClient) -> None:
        replaced = name in self._sessions
        self._sessions[name] = session
        if replaced:
            logger.info(f"Replaced session for wallet '{name}'")
        else:
            logger.info(f"Registered session for wallet '{name}'")

    def get(self, name: str) -> WalletRpcClient | None:
        return self._sessions.get(name)

    def require(self, name: str) -> WalletRpcClient:
        session = self._sessions.get(name)
        if session is None:
            raise WalletNotFound(name)
        return session

    def names(self) -> list[str]:
        return list(self._sessions)

    def count(self) -> int:
        return len(self._sessions)

    def __contains__(self, name: object) -> bool:
        return name in self._sessions

    async def close(self) -> None:
        """Release every session's connection pool at shutdown."""
        for name, session in list(self._sessions.items()):
            try:
                await session.close()
            except Exception as e:
                logger.warning(f"Failed to close session for wallet '{name}': {e}")

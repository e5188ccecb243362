"""
Gateway error taxonomy and RPC error classification.

Every failure a handler can produce is a GatewayError carrying the HTTP
status it maps to. Node-reported errors are classified here and nowhere else.
"""

from __future__ import annotations

# Bitcoin Core RPC error codes (src/rpc/protocol.h)
RPC_WALLET_ERROR = -4
RPC_INVALID_ADDRESS_OR_KEY = -5
RPC_WALLET_ALREADY_LOADED = -35

# Older nodes report "already loaded" as a generic wallet error (-4)
WALLET_ALREADY_LOADED_CODES = frozenset({RPC_WALLET_ERROR, RPC_WALLET_ALREADY_LOADED})
WALLET_ALREADY_EXISTS_CODES = frozenset({RPC_WALLET_ERROR})
# getmempoolentry / gettransaction report unknown ids with -5
NOT_FOUND_CODES = frozenset({RPC_INVALID_ADDRESS_OR_KEY})


class RpcError(Exception):
    """Error returned by the node, or a transport failure (code is None)."""

    def __init__(self, code: int | None, message: str, method: str = "") -> None:
        self.code = code
        self.message = message
        self.method = method
        super().__init__(f"RPC error {code}: {message}" if code is not None else message)


class GatewayError(Exception):
    status: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, str]:
        return {"error": self.name, "message": self.message}


class ConfigurationError(GatewayError):
    pass


class InvalidRequest(GatewayError):
    status = 400


class WalletNotFound(GatewayError):
    status = 404

    def __init__(self, wallet_name: str) -> None:
        self.wallet_name = wallet_name
        super().__init__(f"No such wallet: {wallet_name}")


class WalletStateConflict(GatewayError):
    status = 500


class InvalidAddress(GatewayError):
    status = 400


class BadNetwork(GatewayError):
    status = 400


class InvalidTransactionId(GatewayError):
    status = 400


class TransactionNotFound(GatewayError):
    status = 404


class NodeError(GatewayError):
    status = 500

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)

    @classmethod
    def from_rpc(cls, error: RpcError) -> NodeError:
        return cls(str(error), code=error.code)


class AddressGenerationFailed(NodeError):
    """Node refused getnewaddress, e.g. keypool exhausted. Node message kept."""

    status = 400


class NodeUnavailable(NodeError):
    """Node failure while serving a read-only lookup."""

    status = 503


def is_wallet_already_loaded(error: RpcError) -> bool:
    return error.code in WALLET_ALREADY_LOADED_CODES


def is_wallet_already_exists(error: RpcError) -> bool:
    return error.code in WALLET_ALREADY_EXISTS_CODES


def is_not_found(error: RpcError) -> bool:
    return error.code in NOT_FOUND_CODES

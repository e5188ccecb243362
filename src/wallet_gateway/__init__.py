"""
wallet_gateway - REST gateway for Bitcoin Core wallet RPC

Keeps one authenticated RPC session per wallet and exposes wallet
registration, addresses, mining, payments and transaction lookups over HTTP.
"""

__version__ = "0.1.0"

from wallet_gateway.errors import (
    AddressGenerationFailed,
    BadNetwork,
    ConfigurationError,
    GatewayError,
    InvalidAddress,
    InvalidRequest,
    InvalidTransactionId,
    NodeError,
    NodeUnavailable,
    RpcError,
    TransactionNotFound,
    WalletNotFound,
    WalletStateConflict,
)
from wallet_gateway.lifecycle import WalletLifecycleManager, WalletLoadOutcome, ensure_wallet
from wallet_gateway.models import TransactionView
from wallet_gateway.registry import SessionRegistry
from wallet_gateway.rpc import WalletRpcClient, create_session

__all__ = [
    "AddressGenerationFailed",
    "BadNetwork",
    "ConfigurationError",
    "GatewayError",
    "InvalidAddress",
    "InvalidRequest",
    "InvalidTransactionId",
    "NodeError",
    "NodeUnavailable",
    "RpcError",
    "SessionRegistry",
    "TransactionNotFound",
    "TransactionView",
    "WalletLifecycleManager",
    "WalletLoadOutcome",
    "WalletNotFound",
    "WalletRpcClient",
    "WalletStateConflict",
    "create_session",
    "ensure_wallet",
]

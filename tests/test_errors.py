"""
Tests for the error taxonomy and RPC error classification.
"""

import pytest

from wallet_gateway.errors import (
    NOT_FOUND_CODES,
    WALLET_ALREADY_EXISTS_CODES,
    WALLET_ALREADY_LOADED_CODES,
    AddressGenerationFailed,
    BadNetwork,
    InvalidAddress,
    InvalidRequest,
    InvalidTransactionId,
    NodeError,
    NodeUnavailable,
    RpcError,
    TransactionNotFound,
    WalletNotFound,
    WalletStateConflict,
    is_not_found,
    is_wallet_already_exists,
    is_wallet_already_loaded,
)


def test_classification_code_sets_are_pinned():
    assert WALLET_ALREADY_LOADED_CODES == {-4, -35}
    assert WALLET_ALREADY_EXISTS_CODES == {-4}
    assert NOT_FOUND_CODES == {-5}


@pytest.mark.parametrize(
    ("code", "loaded", "exists", "not_found"),
    [
        (-4, True, True, False),
        (-35, True, False, False),
        (-5, False, False, True),
        (-18, False, False, False),
        (-6, False, False, False),
        (None, False, False, False),
    ],
)
def test_classifiers(code, loaded, exists, not_found):
    error = RpcError(code, "message")
    assert is_wallet_already_loaded(error) is loaded
    assert is_wallet_already_exists(error) is exists
    assert is_not_found(error) is not_found


def test_classification_ignores_message_text():
    # A message mentioning code -4 must not be mistaken for the code itself
    error = RpcError(-1, "RPC error code: -4 already loaded")
    assert not is_wallet_already_loaded(error)


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (InvalidRequest("x"), 400),
        (InvalidAddress("x"), 400),
        (BadNetwork("x"), 400),
        (InvalidTransactionId("x"), 400),
        (WalletNotFound("alice"), 404),
        (TransactionNotFound("x"), 404),
        (WalletStateConflict("x"), 500),
        (NodeError("x"), 500),
        (AddressGenerationFailed("x"), 400),
        (NodeUnavailable("x"), 503),
    ],
)
def test_http_status(error, status):
    assert error.status == status


def test_error_body():
    error = WalletNotFound("alice")
    assert error.to_dict() == {"error": "WalletNotFound", "message": "No such wallet: alice"}


def test_node_error_keeps_node_message_and_code():
    rpc_error = RpcError(-6, "Insufficient funds", "sendtoaddress")
    error = NodeError.from_rpc(rpc_error)
    assert error.code == -6
    assert "Insufficient funds" in error.message


def test_transport_error_message():
    error = RpcError(None, "RPC call failed: getwalletinfo: connection refused")
    assert str(error) == "RPC call failed: getwalletinfo: connection refused"

"""
Bitcoin address and transaction id validation.

Addresses are checked before any RPC call is made so that a request for the
wrong network never reaches the node.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import base58
import bech32

from wallet_gateway.errors import BadNetwork, InvalidAddress, InvalidTransactionId

# Segwit human readable parts
BECH32_HRP_NETWORKS: dict[str, frozenset[str]] = {
    "bc": frozenset({"mainnet"}),
    "tb": frozenset({"testnet", "signet"}),
    "bcrt": frozenset({"regtest"}),
}

# Base58 version bytes; test networks share their legacy prefixes
BASE58_VERSION_NETWORKS: dict[int, frozenset[str]] = {
    0x00: frozenset({"mainnet"}),  # P2PKH
    0x05: frozenset({"mainnet"}),  # P2SH
    0x6F: frozenset({"testnet", "signet", "regtest"}),  # P2PKH
    0xC4: frozenset({"testnet", "signet", "regtest"}),  # P2SH
}

TXID_PATTERN = re.compile(r"[0-9a-fA-F]{64}")


@dataclass(frozen=True)
class ParsedAddress:
    address: str
    networks: frozenset[str]
    witness_version: int | None = None

    @property
    def is_segwit(self) -> bool:
        return self.witness_version is not None


def parse_address(address: str) -> ParsedAddress:
    """
    Parse a bech32/bech32m or base58check address.

    Raises:
        InvalidAddress: If the string is not a well-formed address
    """
    if not address or address != address.strip():
        raise InvalidAddress(f"Invalid address: {address!r}")

    lowered = address.lower()
    hrp = lowered[: lowered.rfind("1")] if "1" in lowered else ""
    if hrp in BECH32_HRP_NETWORKS:
        witver, witprog = bech32.decode(hrp, address)
        if witver is None or witprog is None:
            raise InvalidAddress(f"Invalid bech32 address: {address}")
        return ParsedAddress(address, BECH32_HRP_NETWORKS[hrp], witness_version=witver)

    try:
        decoded = base58.b58decode_check(address)
    except ValueError as e:
        raise InvalidAddress(f"Invalid address: {address}: {e}") from e

    if len(decoded) != 21 or decoded[0] not in BASE58_VERSION_NETWORKS:
        raise InvalidAddress(f"Invalid address: {address}: unknown version or length")
    return ParsedAddress(address, BASE58_VERSION_NETWORKS[decoded[0]])


def require_network(address: str, network: str) -> ParsedAddress:
    """
    Parse ``address`` and check it belongs to ``network``.

    Raises:
        InvalidAddress: Unparseable address
        BadNetwork: Valid address for another network
    """
    parsed = parse_address(address)
    if network not in parsed.networks:
        expected = ", ".join(sorted(parsed.networks))
        raise BadNetwork(f"Address {address} is for {expected}, not {network}")
    return parsed


def validate_txid(txid: str) -> str:
    """
    Check that ``txid`` is a 32-byte hex identifier.

    Raises:
        InvalidTransactionId: Wrong length or non-hex characters
    """
    if not TXID_PATTERN.fullmatch(txid):
        raise InvalidTransactionId(
            f"Invalid transaction ID: {txid!r}: expected 64 hexadecimal characters"
        )
    return txid.lower()

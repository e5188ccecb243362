"""
Request bodies, response adapters and amount conversion.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

COIN = 100_000_000
SATOSHI = Decimal("0.00000001")

# Repeated per-output fields of a wallet transaction, in serialization order
DETAIL_FIELDS = ("address", "vout", "category", "label")


def btc_to_sats(amount: Decimal | int | str) -> int:
    """Convert a node BTC amount to integer satoshis (exact for Decimal input)."""
    return int(Decimal(str(amount)) * COIN)


def sats_to_btc(sats: int) -> Decimal:
    return (Decimal(sats) / COIN).quantize(SATOSHI)


class GatewayRequest(BaseModel):
    # Strict: JSON strings are not coerced into amounts or block counts
    model_config = ConfigDict(strict=True, extra="ignore")


class CreateWalletRequest(GatewayRequest):
    name: str = Field(..., min_length=1)


class CreateAddressRequest(GatewayRequest):
    wallet_name: str = Field(..., min_length=1)
    name: str = Field(..., description="Label attached to the new address")


class MineBlocksRequest(GatewayRequest):
    wallet_name: str = Field(..., min_length=1)
    address: str
    blocks: int = Field(..., ge=1)


class SendPaymentRequest(GatewayRequest):
    from_wallet: str = Field(..., min_length=1)
    to_address: str
    amount: int = Field(..., gt=0, description="Amount in sats")
    message: str | None = None


@dataclass
class TransactionView:
    """
    Flat projection of a ``gettransaction`` result.

    Unconfirmed transactions carry no block linkage; those fields stay None.
    Each detail entry contributes one element to every list in ``details``.
    """

    txid: str
    amount: Decimal
    confirmations: int
    time: int | None
    timereceived: int | None
    hex: str
    blockhash: str | None = None
    blockindex: int | None = None
    blockheight: int | None = None
    blocktime: int | None = None
    bip125_replaceable: str | None = None
    wallet_conflicts: list[str] = field(default_factory=list)
    fee: Decimal | None = None
    details: dict[str, list[Any]] = field(default_factory=dict)

    @classmethod
    def from_rpc(cls, result: dict[str, Any]) -> TransactionView:
        details: dict[str, list[Any]] = {name: [] for name in DETAIL_FIELDS}
        for entry in result.get("details", []):
            for name in DETAIL_FIELDS:
                details[name].append(entry.get(name))

        return cls(
            txid=result["txid"],
            amount=Decimal(str(result.get("amount", 0))),
            confirmations=result.get("confirmations", 0),
            time=result.get("time"),
            timereceived=result.get("timereceived"),
            hex=result.get("hex", "").lower(),
            blockhash=result.get("blockhash"),
            blockindex=result.get("blockindex"),
            blockheight=result.get("blockheight"),
            blocktime=result.get("blocktime"),
            bip125_replaceable=result.get("bip125-replaceable"),
            wallet_conflicts=list(result.get("walletconflicts", [])),
            fee=Decimal(str(result["fee"])) if result.get("fee") is not None else None,
            details=details if result.get("details") else {},
        )

    @property
    def detail_count(self) -> int:
        return len(self.details.get("vout", []))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "txid": self.txid,
            "blockhash": self.blockhash,
            "blockindex": self.blockindex,
            "blockheight": self.blockheight,
            "bip125_replaceable": self.bip125_replaceable,
            "blocktime": self.blocktime,
            "confirmations": self.confirmations,
            "time": self.time,
            "timereceived": self.timereceived,
            "wallet_conflicts": self.wallet_conflicts,
            "amount": self.amount,
        }
        for name, values in self.details.items():
            data[name] = list(values)
        if self.fee is not None:
            data["fee"] = self.fee
        data["hex"] = self.hex
        return data


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return float(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_dumps(obj: Any) -> str:
    """json.dumps that renders node Decimal amounts as JSON numbers."""
    return json.dumps(obj, default=_json_default)

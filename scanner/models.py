"""
Data models for the arbitrage scanner. Pure data, no behavior.

All prices are integer lamports. Floats only appear when rendering values
for humans (see lamports_to_sol).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

LAMPORTS_PER_SOL = 1_000_000_000
WSOL_MINT = "So11111111111111111111111111111111111111112"


class Venue(Enum):
    MAGIC_EDEN = "magiceden"
    TENSOR = "tensor"
    # Reserved for future adapters; no client fetches from these yet.
    RARIBLE = "rarible"
    OPENSEA = "opensea"


class TradeOutcome(Enum):
    SIGNAL_ONLY = "signal"
    EXECUTED = "executed"
    FAILED = "failed"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def sol_to_lamports(value: float | str | Decimal) -> int:
    """
    Convert a SOL amount to lamports without float rounding drift.
    Venue APIs quote 1.5 as a float; str() first keeps it exact.
    """
    return int(Decimal(str(value)) * LAMPORTS_PER_SOL)


def lamports_to_sol(lamports: int) -> float:
    """Display-only conversion. Never compare the result."""
    return lamports / LAMPORTS_PER_SOL


@dataclass(frozen=True)
class MarketQuote:
    asset_id: str
    venue: Venue
    price: int  # lamports
    settlement_asset: str = WSOL_MINT
    currency: str = "SOL"
    timestamp_ms: int | None = None  # None = observation time unknown, treated as fresh
    collection: str = ""


@dataclass(frozen=True)
class Listing(MarketQuote):
    seller: str = ""
    duration_ms: int | None = None
    reserve_price: int | None = None


@dataclass(frozen=True)
class Bid(MarketQuote):
    bidder: str = ""
    expires_at_ms: int | None = None


@dataclass(frozen=True)
class Signal:
    listing: Listing
    bid: Bid
    raw_profit: int
    estimated_net_profit: int
    confidence: float
    created_at_ms: int = field(default_factory=now_ms)

    @property
    def asset_id(self) -> str:
        return self.listing.asset_id

    @property
    def buy_venue(self) -> Venue:
        return self.listing.venue

    @property
    def sell_venue(self) -> Venue:
        return self.bid.venue


@dataclass(frozen=True)
class LedgerState:
    total_profit: int = 0  # lamports, executed trades only
    trade_count: int = 0


@dataclass(frozen=True)
class TradeRecord:
    timestamp_ms: int
    asset_id: str
    buy_price: int
    sell_price: int
    net_profit: int
    currency: str
    outcome: TradeOutcome
    tx_ref: str | None = None
    executor_kind: str | None = None
    notes: str = ""
    buy_venue: str = ""
    sell_venue: str = ""

    @classmethod
    def from_signal(
        cls,
        signal: Signal,
        outcome: TradeOutcome,
        tx_ref: str | None = None,
        executor_kind: str | None = None,
        notes: str = "",
    ) -> TradeRecord:
        return cls(
            timestamp_ms=now_ms(),
            asset_id=signal.asset_id,
            buy_price=signal.listing.price,
            sell_price=signal.bid.price,
            net_profit=signal.estimated_net_profit,
            currency=signal.listing.currency,
            outcome=outcome,
            tx_ref=tx_ref,
            executor_kind=executor_kind,
            notes=notes,
            buy_venue=signal.buy_venue.value,
            sell_venue=signal.sell_venue.value,
        )

    def to_dict(self) -> dict:
        return {
            "timestamp_ms": self.timestamp_ms,
            "asset_id": self.asset_id,
            "buy_price": self.buy_price,
            "sell_price": self.sell_price,
            "net_profit": self.net_profit,
            "currency": self.currency,
            "outcome": self.outcome.value,
            "tx_ref": self.tx_ref,
            "executor_kind": self.executor_kind,
            "notes": self.notes,
            "buy_venue": self.buy_venue,
            "sell_venue": self.sell_venue,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TradeRecord:
        return cls(
            timestamp_ms=int(data["timestamp_ms"]),
            asset_id=str(data["asset_id"]),
            buy_price=int(data["buy_price"]),
            sell_price=int(data["sell_price"]),
            net_profit=int(data["net_profit"]),
            currency=str(data.get("currency", "SOL")),
            outcome=TradeOutcome(data["outcome"]),
            tx_ref=data.get("tx_ref"),
            executor_kind=data.get("executor_kind"),
            notes=str(data.get("notes", "")),
            buy_venue=str(data.get("buy_venue", "")),
            sell_venue=str(data.get("sell_venue", "")),
        )

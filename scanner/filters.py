"""
Quote filters applied before matching.
Stale, expired or foreign-currency quotes never reach the detector's pairing loop.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from scanner.models import Bid, MarketQuote

Q = TypeVar("Q", bound=MarketQuote)


def is_fresh(quote: MarketQuote, now_ms: int, max_age_ms: int) -> bool:
    """A quote without a timestamp is always fresh."""
    if quote.timestamp_ms is None:
        return True
    return now_ms - quote.timestamp_ms < max_age_ms


def is_expired(bid: Bid, now_ms: int) -> bool:
    """Bids with no expiry never expire."""
    return bid.expires_at_ms is not None and bid.expires_at_ms <= now_ms


def filter_fresh(quotes: Sequence[Q], now_ms: int, max_age_ms: int) -> list[Q]:
    return [q for q in quotes if is_fresh(q, now_ms, max_age_ms)]


def filter_live_bids(bids: Sequence[Bid], now_ms: int) -> list[Bid]:
    return [b for b in bids if not is_expired(b, now_ms)]


def filter_currency(quotes: Sequence[Q], currency: str | None) -> list[Q]:
    """Keep quotes in *currency*. None disables the filter."""
    if currency is None:
        return list(quotes)
    return [q for q in quotes if q.currency == currency]

"""
Cross-venue opportunity detector.

Pairs every fresh listing with every fresh bid for the same asset on a
different venue. A pair becomes a Signal when the bid pays more than the
listing costs by at least the fee buffer plus the minimum profit.

Same-venue pairs are never signals: buying and selling on one venue is an
ordinary trade, not a pricing inefficiency.

Pure computation: no I/O, inputs are never mutated, nothing is raised for
individual quotes.
"""

from __future__ import annotations

import logging
from typing import Sequence

from scanner.confidence import ConfidenceModel, DEFAULT_CONFIDENCE
from scanner.filters import filter_currency, filter_fresh, filter_live_bids
from scanner.models import Bid, Listing, Signal, lamports_to_sol, now_ms as _now_ms
from scanner.scorer import rank_signals

logger = logging.getLogger(__name__)


def index_bids_by_asset(bids: Sequence[Bid]) -> dict[str, list[Bid]]:
    """Group bids by asset id. Insertion order is preserved within each group."""
    index: dict[str, list[Bid]] = {}
    for bid in bids:
        index.setdefault(bid.asset_id, []).append(bid)
    return index


def candidate_bids(listing: Listing, bids_by_asset: dict[str, list[Bid]]) -> list[Bid]:
    """
    Bids that could buy *listing*: bids on the asset itself, then
    collection-wide bids (keyed by the collection id).
    """
    candidates = list(bids_by_asset.get(listing.asset_id, ()))
    if listing.collection and listing.collection != listing.asset_id:
        candidates.extend(bids_by_asset.get(listing.collection, ()))
    return candidates


def detect(
    listings: Sequence[Listing],
    bids: Sequence[Bid],
    min_profit: int,
    fee_adjustment: int,
    max_age_ms: int,
    *,
    now_ms: int | None = None,
    confidence_model: ConfidenceModel | None = None,
    currency: str | None = "SOL",
) -> list[Signal]:
    """
    Detect cross-venue arbitrage signals, ranked best-first.

    Args:
        min_profit: minimum net profit in lamports (after fee_adjustment).
        fee_adjustment: lamports subtracted from the gross spread.
        max_age_ms: quotes observed this long ago or earlier are dropped.
        now_ms: reference time; defaults to the wall clock.
        currency: only quotes in this currency are paired. None disables.
    """
    now = _now_ms() if now_ms is None else now_ms
    model = confidence_model or DEFAULT_CONFIDENCE

    fresh_listings = filter_currency(filter_fresh(listings, now, max_age_ms), currency)
    fresh_bids = filter_currency(
        filter_live_bids(filter_fresh(bids, now, max_age_ms), now), currency,
    )
    bids_by_asset = index_bids_by_asset(fresh_bids)

    signals: list[Signal] = []
    for listing in fresh_listings:
        for bid in candidate_bids(listing, bids_by_asset):
            if bid.venue == listing.venue:
                continue

            raw_profit = bid.price - listing.price
            if raw_profit <= 0:
                continue
            net_profit = raw_profit - fee_adjustment
            if net_profit < min_profit:
                continue

            signals.append(Signal(
                listing=listing,
                bid=bid,
                raw_profit=raw_profit,
                estimated_net_profit=net_profit,
                confidence=model.score(listing, bid, raw_profit, now),
                created_at_ms=now,
            ))

    ranked = rank_signals(signals)

    logger.debug(
        "Detector: listings %d/%d fresh, bids %d/%d fresh, %d signals",
        len(fresh_listings), len(listings), len(fresh_bids), len(bids), len(ranked),
    )
    if ranked:
        avg_net = sum(s.estimated_net_profit for s in ranked) // len(ranked)
        logger.debug(
            "Detector: best net %.4f SOL (%s), average net %.4f SOL",
            lamports_to_sol(ranked[0].estimated_net_profit),
            ranked[0].asset_id,
            lamports_to_sol(avg_net),
        )
    return ranked

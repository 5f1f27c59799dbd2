"""
Market snapshot fan-out. Fetches listings and bids for every tracked
collection from every venue in parallel and merges them into one snapshot.

Each (venue, collection, side) fetch is isolated: a failure is logged as a
transient error, contributes nothing to the snapshot, and is not retried
within the cycle. The snapshot records which fetches failed so an empty
result can be told apart from an unavailable venue.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Sequence

from client.venue import VenueClient
from config import CollectionTarget
from scanner.models import Bid, Listing, MarketQuote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchFailure:
    venue: str
    collection: str
    side: str  # "listings" | "bids"
    error: str


@dataclass
class MarketSnapshot:
    listings: list[Listing] = field(default_factory=list)
    bids: list[Bid] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)
    fetches_attempted: int = 0

    @property
    def all_failed(self) -> bool:
        return self.fetches_attempted > 0 and len(self.failures) == self.fetches_attempted

    def venue_counts(self) -> dict[str, tuple[int, int]]:
        """{venue: (listings, bids)} for display."""
        counts: dict[str, list[int]] = {}
        for lst in self.listings:
            counts.setdefault(lst.venue.value, [0, 0])[0] += 1
        for bid in self.bids:
            counts.setdefault(bid.venue.value, [0, 0])[1] += 1
        return {k: (v[0], v[1]) for k, v in counts.items()}


def _canonicalize(quote: MarketQuote, venue_collection: str, key: str) -> MarketQuote:
    """
    Re-key a quote from the venue's collection id to the shared collection key,
    so collection-wide bids from one venue meet listings from another.
    """
    if quote.asset_id == venue_collection:
        return replace(quote, asset_id=key, collection=key)
    return replace(quote, collection=key)


def _fetch_side(
    client: VenueClient,
    target: CollectionTarget,
    side: str,
) -> list[MarketQuote]:
    venue_collection = target.id_for(client.venue)
    if side == "listings":
        quotes = client.fetch_listings(venue_collection)
    else:
        quotes = client.fetch_bids(venue_collection)
    return [_canonicalize(q, venue_collection, target.name) for q in quotes]


def fetch_snapshot(
    clients: Sequence[VenueClient],
    collections: Sequence[CollectionTarget],
    max_workers: int = 4,
) -> MarketSnapshot:
    """
    Fetch every (client, collection, side) concurrently. Results are merged in
    a fixed order (clients, then collections, listings before bids) so the
    snapshot is deterministic regardless of completion order.
    """
    jobs: list[tuple[VenueClient, CollectionTarget, str]] = []
    for client in clients:
        for target in collections:
            if not target.id_for(client.venue):
                continue
            jobs.append((client, target, "listings"))
            jobs.append((client, target, "bids"))

    snapshot = MarketSnapshot(fetches_attempted=len(jobs))
    if not jobs:
        logger.warning("No venue/collection pairs configured; snapshot is empty")
        return snapshot

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fetch") as pool:
        futures = [pool.submit(_fetch_side, c, t, s) for c, t, s in jobs]

        for (client, target, side), future in zip(jobs, futures):
            venue = client.venue.value
            try:
                quotes = future.result()
            except Exception as e:
                logger.warning(
                    "Fetch failed: %s %s for %s (treated as empty): %s",
                    venue, side, target.name, e,
                    extra={"venue": venue, "stage": "fetching"},
                )
                snapshot.failures.append(FetchFailure(
                    venue=venue, collection=target.name, side=side, error=str(e),
                ))
                continue

            if side == "listings":
                snapshot.listings.extend(quotes)  # type: ignore[arg-type]
            else:
                snapshot.bids.extend(quotes)  # type: ignore[arg-type]

    logger.debug(
        "Snapshot: %d listings, %d bids, %d/%d fetches failed",
        len(snapshot.listings), len(snapshot.bids),
        len(snapshot.failures), snapshot.fetches_attempted,
    )
    return snapshot

"""
Tensor GraphQL client. Plain POSTs over httpx with the X-TENSOR-API-KEY header.

Both queries return lamport amounts as strings. Tensor compressed bids
(tcompBids) are collection-wide, so they are keyed by the collection slug.
"""

from __future__ import annotations

import logging

import httpx

from scanner.models import Bid, Listing, Venue, now_ms

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

LISTINGS_QUERY = """
query ActiveListingsV2($slug: String!) {
  activeListingsV2(slug: $slug, sortBy: PriceAsc) {
    txs { mint txId grossAmount seller }
  }
}
"""

BIDS_QUERY = """
query TcompBids($slug: String!) {
  tcompBids(slug: $slug) {
    bids { mint price bidder }
  }
}
"""


class TensorQueryError(Exception):
    """Raised when the GraphQL response carries an errors array."""
    pass


class TensorClient:
    """Read-only Tensor client. Satisfies the VenueClient protocol."""

    def __init__(
        self,
        host: str = "https://api.tensor.so/graphql",
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._host = host
        self._http = httpx.Client(
            timeout=timeout,
            headers={"X-TENSOR-API-KEY": api_key, "Content-Type": "application/json"},
        )

    @property
    def venue(self) -> Venue:
        return Venue.TENSOR

    def _query(self, query: str, variables: dict) -> dict:
        resp = self._http.post(self._host, json={"query": query, "variables": variables})
        resp.raise_for_status()
        payload = resp.json()
        if payload.get("errors"):
            messages = "; ".join(str(e.get("message", e)) for e in payload["errors"])
            raise TensorQueryError(messages)
        return payload.get("data") or {}

    def fetch_listings(self, collection: str) -> list[Listing]:
        data = self._query(LISTINGS_QUERY, {"slug": collection})
        txs = (data.get("activeListingsV2") or {}).get("txs") or []
        observed = now_ms()
        listings: list[Listing] = []
        for tx in txs:
            mint = tx.get("mint")
            gross = tx.get("grossAmount")
            if not mint or gross is None:
                continue
            listings.append(Listing(
                asset_id=mint,
                venue=Venue.TENSOR,
                price=int(gross),
                timestamp_ms=observed,
                collection=collection,
                seller=tx.get("seller") or "",
            ))
        logger.debug("Tensor: %d listings for %s", len(listings), collection)
        return listings

    def fetch_bids(self, collection: str) -> list[Bid]:
        data = self._query(BIDS_QUERY, {"slug": collection})
        raw_bids = (data.get("tcompBids") or {}).get("bids") or []
        observed = now_ms()
        bids: list[Bid] = []
        for raw in raw_bids:
            price = raw.get("price")
            if price is None:
                continue
            bids.append(Bid(
                # Single-mint bids carry a mint; everything else is collection-wide.
                asset_id=raw.get("mint") or collection,
                venue=Venue.TENSOR,
                price=int(price),
                timestamp_ms=observed,
                collection=collection,
                bidder=raw.get("bidder") or "",
            ))
        logger.debug("Tensor: %d bids for %s", len(bids), collection)
        return bids

    def close(self) -> None:
        self._http.close()

"""
Magic Eden REST client (Solana). Pure REST over httpx, no SDK dependency.

Listings come from /v2/collections/{symbol}/listings and are priced in SOL
floats; they are converted to lamports exactly. Bids come from the AMM pool
endpoint (/v2/mmm/pools): each buy-side pool's spotPrice is a standing offer
for any item of the collection, so it is emitted as a collection-wide bid
keyed by the collection symbol.
"""

from __future__ import annotations

import logging

import httpx

from scanner.models import Bid, Listing, Venue, now_ms, sol_to_lamports

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
_PAGE_LIMIT = 100


class MagicEdenClient:
    """Read-only Magic Eden client. Satisfies the VenueClient protocol."""

    def __init__(
        self,
        host: str = "https://api-mainnet.magiceden.dev",
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._host = host.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = httpx.Client(timeout=timeout, headers=headers)

    @property
    def venue(self) -> Venue:
        return Venue.MAGIC_EDEN

    def _get(self, path: str, params: dict | None = None) -> list | dict:
        resp = self._http.get(f"{self._host}{path}", params=params)
        resp.raise_for_status()
        return resp.json()

    def fetch_listings(self, collection: str) -> list[Listing]:
        raw = self._get(
            f"/v2/collections/{collection}/listings",
            {"offset": 0, "limit": _PAGE_LIMIT},
        )
        observed = now_ms()
        listings: list[Listing] = []
        for item in raw or []:
            mint = item.get("tokenMint") or item.get("token_mint")
            price = item.get("price")
            if not mint or price is None:
                continue
            lamports = sol_to_lamports(price)
            if lamports <= 0:
                continue
            listings.append(Listing(
                asset_id=mint,
                venue=Venue.MAGIC_EDEN,
                price=lamports,
                timestamp_ms=observed,
                collection=collection,
                seller=item.get("seller", ""),
            ))
        logger.debug("Magic Eden: %d listings for %s", len(listings), collection)
        return listings

    def fetch_bids(self, collection: str) -> list[Bid]:
        raw = self._get(
            "/v2/mmm/pools",
            {"collectionSymbol": collection, "offset": 0, "limit": _PAGE_LIMIT},
        )
        pools = raw.get("results", []) if isinstance(raw, dict) else raw or []
        observed = now_ms()
        bids: list[Bid] = []
        for pool in pools:
            spot = pool.get("spotPrice")
            if spot is None:
                continue
            # Pools with no SOL escrowed cannot buy anything.
            if int(pool.get("buysidePaymentAmount", spot) or 0) < int(spot):
                continue
            expiry = pool.get("expiry") or None
            bids.append(Bid(
                asset_id=collection,
                venue=Venue.MAGIC_EDEN,
                price=int(spot),
                timestamp_ms=observed,
                collection=collection,
                bidder=pool.get("owner", ""),
                expires_at_ms=int(expiry) * 1000 if expiry else None,
            ))
        logger.debug("Magic Eden: %d pool bids for %s", len(bids), collection)
        return bids

    def close(self) -> None:
        self._http.close()

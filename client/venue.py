"""
Venue client protocol. The only seam between marketplace APIs and the scanner.

Any marketplace client that turns its vendor JSON into canonical Listing and
Bid records can plug into the snapshot fan-out with zero changes to the
detector or executor. Vendor-specific parsing stays inside the client.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scanner.models import Bid, Listing, Venue


@runtime_checkable
class VenueClient(Protocol):
    """Minimal interface for a marketplace data source."""

    @property
    def venue(self) -> Venue:
        """Which marketplace this client reads."""
        ...

    def fetch_listings(self, collection: str) -> list[Listing]:
        """Active listings for a collection, prices in lamports. Raises on transport errors."""
        ...

    def fetch_bids(self, collection: str) -> list[Bid]:
        """Active bids for a collection, prices in lamports. Raises on transport errors."""
        ...

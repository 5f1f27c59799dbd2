"""
Confidence heuristic for arbitrage signals.

A fixed, explainable weighting, not a probability model: start from a base
score, add bonuses for larger gross profit and for recently observed quotes,
then clamp to [0, 1]. Every constant is a field so operators can tune the
policy without touching code. Defaults reproduce the production weighting.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from scanner.models import Bid, LAMPORTS_PER_SOL, Listing, Venue


@dataclass(frozen=True)
class ConfidenceModel:
    base: float = 0.5
    # (threshold in SOL, bonus) pairs; each tier whose threshold the gross
    # profit exceeds contributes its bonus.
    profit_tiers: tuple[tuple[float, float], ...] = ((0.1, 0.2), (0.5, 0.2))
    fresh_window_ms: int = 60_000
    freshness_bonus: float = 0.1
    reputable_venues: frozenset[Venue] = field(default_factory=frozenset)
    reputable_bonus: float = 0.0
    large_listing_sol: float | None = None
    large_listing_penalty: float = 0.0

    def score(self, listing: Listing, bid: Bid, raw_profit: int, now_ms: int) -> float:
        """Score one listing/bid pair. Always returns a value in [0, 1]."""
        confidence = self.base

        profit_sol = raw_profit / LAMPORTS_PER_SOL
        for threshold, bonus in self.profit_tiers:
            if profit_sol > threshold:
                confidence += bonus

        if self._recent(listing.timestamp_ms, now_ms):
            confidence += self.freshness_bonus
        if self._recent(bid.timestamp_ms, now_ms):
            confidence += self.freshness_bonus

        if listing.venue in self.reputable_venues:
            confidence += self.reputable_bonus
        if bid.venue in self.reputable_venues:
            confidence += self.reputable_bonus

        if (
            self.large_listing_sol is not None
            and listing.price / LAMPORTS_PER_SOL > self.large_listing_sol
        ):
            confidence -= self.large_listing_penalty

        return min(max(confidence, 0.0), 1.0)

    def _recent(self, timestamp_ms: int | None, now_ms: int) -> bool:
        # Unknown observation time earns no freshness bonus.
        return timestamp_ms is not None and now_ms - timestamp_ms < self.fresh_window_ms


DEFAULT_CONFIDENCE = ConfidenceModel()

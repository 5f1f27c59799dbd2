"""
Unit tests for scanner/confidence.py -- heuristic confidence scoring.
"""

import sys

import pytest

from scanner.confidence import ConfidenceModel, DEFAULT_CONFIDENCE
from scanner.models import Bid, Listing, Venue

NOW = 50_000_000
SOL = 1_000_000_000


def _pair(buy=SOL, sell=2 * SOL, listing_ts=None, bid_ts=None):
    listing = Listing(asset_id="X", venue=Venue.MAGIC_EDEN, price=buy, timestamp_ms=listing_ts)
    bid = Bid(asset_id="X", venue=Venue.TENSOR, price=sell, timestamp_ms=bid_ts)
    return listing, bid, sell - buy


class TestDefaultWeighting:
    def test_base_only(self):
        listing, bid, _ = _pair()
        assert DEFAULT_CONFIDENCE.score(listing, bid, 50_000_000, NOW) == pytest.approx(0.5)

    def test_first_profit_tier(self):
        listing, bid, _ = _pair()
        assert DEFAULT_CONFIDENCE.score(listing, bid, 200_000_000, NOW) == pytest.approx(0.7)

    def test_both_profit_tiers(self):
        listing, bid, _ = _pair()
        assert DEFAULT_CONFIDENCE.score(listing, bid, 600_000_000, NOW) == pytest.approx(0.9)

    def test_tier_threshold_is_exclusive(self):
        listing, bid, _ = _pair()
        assert DEFAULT_CONFIDENCE.score(listing, bid, 100_000_000, NOW) == pytest.approx(0.5)

    def test_freshness_bonus_per_side(self):
        listing, bid, _ = _pair(listing_ts=NOW - 1_000, bid_ts=NOW - 120_000)
        assert DEFAULT_CONFIDENCE.score(listing, bid, 50_000_000, NOW) == pytest.approx(0.6)

    def test_no_timestamp_gets_no_freshness_bonus(self):
        listing, bid, _ = _pair()
        assert DEFAULT_CONFIDENCE.score(listing, bid, 50_000_000, NOW) == pytest.approx(0.5)

    def test_clamped_to_one(self):
        listing, bid, raw = _pair(buy=SOL, sell=10 * SOL, listing_ts=NOW, bid_ts=NOW)
        assert DEFAULT_CONFIDENCE.score(listing, bid, raw, NOW) == 1.0


class TestExtremes:
    @pytest.mark.parametrize("buy,sell", [
        (0, 0),
        (0, sys.maxsize),
        (sys.maxsize, sys.maxsize),
        (1, 2),
    ])
    def test_always_in_unit_interval(self, buy, sell):
        listing, bid, raw = _pair(buy=buy, sell=sell, listing_ts=NOW, bid_ts=NOW)
        score = DEFAULT_CONFIDENCE.score(listing, bid, raw, NOW)
        assert 0.0 <= score <= 1.0

    def test_negative_weights_clamp_to_zero(self):
        model = ConfidenceModel(base=0.1, large_listing_sol=1.0, large_listing_penalty=5.0)
        listing, bid, raw = _pair(buy=sys.maxsize, sell=sys.maxsize)
        assert model.score(listing, bid, raw, NOW) == 0.0


class TestPolicyKnobs:
    def test_reputable_venue_bonus(self):
        model = ConfidenceModel(reputable_venues=frozenset({Venue.TENSOR}), reputable_bonus=0.05)
        listing, bid, _ = _pair()
        assert model.score(listing, bid, 50_000_000, NOW) == pytest.approx(0.55)

    def test_large_listing_penalty(self):
        model = ConfidenceModel(large_listing_sol=10.0, large_listing_penalty=0.1)
        listing, bid, _ = _pair(buy=20 * SOL, sell=21 * SOL)
        assert model.score(listing, bid, 50_000_000, NOW) == pytest.approx(0.4)

    def test_defaults_disable_extra_terms(self):
        model = ConfidenceModel()
        assert model.reputable_bonus == 0.0
        assert model.large_listing_sol is None

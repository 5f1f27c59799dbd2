"""
Unit tests for executor/paper.py and executor/settlement.py.
"""

import pytest

from executor.engine import ExecutionFailed
from executor.paper import PaperExecutor
from executor.settlement import SettlementExecutor
from scanner.models import Bid, Listing, Signal, Venue


def _make_signal(asset="X"):
    return Signal(
        listing=Listing(asset_id=asset, venue=Venue.TENSOR, price=100),
        bid=Bid(asset_id=asset, venue=Venue.MAGIC_EDEN, price=200),
        raw_profit=100,
        estimated_net_profit=90,
        confidence=0.5,
        created_at_ms=0,
    )


class TestPaperExecutor:
    def test_kind(self):
        assert PaperExecutor().kind == "paper"

    def test_references_numbered_by_attempt(self):
        executor = PaperExecutor()
        assert executor.attempt_trade(_make_signal("a")) == "paper_a_1"
        assert executor.attempt_trade(_make_signal("b")) == "paper_b_2"

    def test_fail_assets(self):
        executor = PaperExecutor(fail_assets=frozenset({"bad"}))
        with pytest.raises(ExecutionFailed, match="bad"):
            executor.attempt_trade(_make_signal("bad"))
        assert executor.attempts == ["bad"]
        # Failed attempts still advance the counter
        assert executor.attempt_trade(_make_signal("ok")) == "paper_ok_2"


class TestSettlementExecutor:
    def test_kind(self):
        assert SettlementExecutor("http://rpc").kind == "flash_loan"

    def test_always_fails(self):
        executor = SettlementExecutor("http://rpc", wallet_address="Wallet111")
        with pytest.raises(ExecutionFailed) as exc:
            executor.attempt_trade(_make_signal())
        assert exc.value.reason == "on-chain settlement not available"

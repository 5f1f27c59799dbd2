"""Tests for monitor/status.py -- rolling markdown status file."""

from __future__ import annotations

from monitor.status import StatusWriter, _format_duration, _padded_table, _truncate
from pipeline.driver import CycleReport
from scanner.models import Bid, Listing, Signal, Venue


# ── Factories ──


def _make_signal(asset: str = "mint1", net: int = 280_000_000) -> Signal:
    return Signal(
        listing=Listing(asset_id=asset, venue=Venue.TENSOR, price=1_500_000_000),
        bid=Bid(asset_id=asset, venue=Venue.MAGIC_EDEN, price=1_800_000_000),
        raw_profit=300_000_000,
        estimated_net_profit=net,
        confidence=0.7,
        created_at_ms=0,
    )


def _write(writer: StatusWriter, cycle: int = 1, signals=None, **kw) -> str:
    writer.write_cycle(
        cycle=cycle,
        listings=kw.get("listings", 10),
        bids=kw.get("bids", 5),
        signals=signals if signals is not None else [],
        executed=kw.get("executed", 0),
        total_profit=kw.get("total_profit", 0),
        trade_count=kw.get("trade_count", 0),
        error=kw.get("error", ""),
    )
    with open(writer.file_path) as f:
        return f.read()


class TestStatusWriter:
    def test_writes_current_state(self, tmp_path):
        writer = StatusWriter(file_path=str(tmp_path / "status.md"), mode="PAPER")
        text = _write(writer, cycle=3, total_profit=1_500_000_000, trade_count=4)
        assert "# NFT Arbitrage Scanner -- Status" in text
        assert "| Mode " in text and "PAPER" in text
        assert "1.5000 SOL" in text
        assert "*No signals.*" in text

    def test_signal_table(self, tmp_path):
        writer = StatusWriter(file_path=str(tmp_path / "status.md"))
        text = _write(writer, signals=[_make_signal("mintZ")])
        assert "mintZ" in text
        assert "tensor -> magiceden" in text
        assert "0.2800" in text

    def test_history_capped_and_newest_first(self, tmp_path):
        writer = StatusWriter(file_path=str(tmp_path / "status.md"), max_history=3)
        text = ""
        for cycle in range(1, 6):
            text = _write(writer, cycle=cycle)
        assert len(writer._history) == 3
        history = text.split("## Recent Cycles")[1]
        rows = [line for line in history.splitlines() if line.startswith("| ") and "Cycle" not in line]
        assert [r.split("|")[1].strip() for r in rows] == ["5", "4", "3"]

    def test_error_in_history(self, tmp_path):
        writer = StatusWriter(file_path=str(tmp_path / "status.md"))
        text = _write(writer, error="RuntimeError: down")
        assert "RuntimeError: down" in text

    def test_callable_with_cycle_report(self, tmp_path):
        path = tmp_path / "status.md"
        writer = StatusWriter(file_path=str(path))
        writer(CycleReport(cycle=9, started_at_ms=0, signals=[_make_signal()], trade_count=2))
        text = path.read_text()
        assert "| Cycle " in text
        assert "mint1" in text


class TestHelpers:
    def test_padded_table(self):
        lines = _padded_table(["A", "Long"], [["xyz", "1"]])
        assert lines[0] == "| A   | Long |"
        assert lines[1] == "|-----|------|"
        assert lines[2] == "| xyz | 1    |"

    def test_format_duration(self):
        assert _format_duration(42) == "42s"
        assert _format_duration(125) == "2m 5s"
        assert _format_duration(7260) == "2h 1m"

    def test_truncate(self):
        assert _truncate("abcdef", 10) == "abcdef"
        assert _truncate("abcdefghijkl", 8) == "abcde..."

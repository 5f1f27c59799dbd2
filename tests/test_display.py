"""
Unit tests for monitor/display.py -- console cycle rendering.
"""

from __future__ import annotations

import logging

from config import CollectionTarget, Config
from monitor.display import (
    _truncate,
    print_cycle,
    print_cycle_error,
    print_cycle_footer,
    print_cycle_header,
    print_scan_result,
    print_startup,
)
from pipeline.driver import CycleReport
from scanner.models import Bid, Listing, Signal, Venue


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_signal(asset="mint1", net=280_000_000, confidence=0.8):
    return Signal(
        listing=Listing(asset_id=asset, venue=Venue.MAGIC_EDEN, price=1_500_000_000),
        bid=Bid(asset_id=asset, venue=Venue.TENSOR, price=1_800_000_000),
        raw_profit=300_000_000,
        estimated_net_profit=net,
        confidence=confidence,
        created_at_ms=0,
    )


def _collect_logs(caplog, func, *args, **kwargs):
    """Run *func* and return captured INFO-level messages from the display logger."""
    with caplog.at_level(logging.INFO, logger="monitor.display"):
        func(*args, **kwargs)
    return [r.message for r in caplog.records if r.name == "monitor.display"]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestPrintStartup:
    def test_logs_mode_and_thresholds(self, caplog):
        cfg = Config(_env_file=None, min_profit_lamports=50_000_000, fee_buffer_lamports=20_000_000)
        joined = " ".join(_collect_logs(caplog, print_startup, cfg, "DRY-RUN"))
        assert "DRY-RUN" in joined
        assert "0.0500 SOL" in joined
        assert "0.0200 SOL" in joined

    def test_logs_collections(self, caplog):
        cfg = Config(_env_file=None, collections=[CollectionTarget(name="Tensorians", tensor="tensorians")])
        joined = " ".join(_collect_logs(caplog, print_startup, cfg, "PAPER"))
        assert "Tensorians" in joined

    def test_logs_interval(self, caplog):
        cfg = Config(_env_file=None, scan_interval_ms=2500)
        joined = " ".join(_collect_logs(caplog, print_startup, cfg, "PAPER"))
        assert "2.5s" in joined


class TestPrintCycleHeader:
    def test_contains_cycle_number(self, caplog):
        msgs = _collect_logs(caplog, print_cycle_header, 42)
        assert len(msgs) == 1
        assert "Cycle 42" in msgs[0]


class TestPrintScanResult:
    def test_no_signals(self, caplog):
        msgs = _collect_logs(caplog, print_scan_result, [], 10, 4)
        assert any("No signals" in m for m in msgs)
        assert any("10 listings, 4 bids" in m for m in msgs)

    def test_signal_table(self, caplog):
        signals = [_make_signal("mintA", 300_000_000), _make_signal("mintB", 100_000_000)]
        msgs = _collect_logs(caplog, print_scan_result, signals, 2, 2)
        joined = "\n".join(msgs)
        assert "2 signals" in joined
        assert "mintA" in joined
        assert "magiceden->tensor" in joined
        assert "0.3000" in joined
        assert "Best: 0.3000 SOL" in joined

    def test_venue_counts_and_failures(self, caplog):
        msgs = _collect_logs(
            caplog, print_scan_result, [], 3, 1,
            venue_counts={"tensor": (3, 0), "magiceden": (0, 1)}, fetch_failures=2,
        )
        assert any("magiceden: 0/1, tensor: 3/0" in m for m in msgs)
        assert any("2 fetch(es) failed" in m for m in msgs)

    def test_long_table_truncated(self, caplog):
        signals = [_make_signal(f"m{i}") for i in range(15)]
        msgs = _collect_logs(caplog, print_scan_result, signals, 15, 15)
        assert any("... 5 more" in m for m in msgs)


class TestPrintCycleErrorAndFooter:
    def test_error_line(self, caplog):
        msgs = _collect_logs(caplog, print_cycle_error, "fetching", "RuntimeError: down")
        assert msgs == ["  ┌ Fetching failed: RuntimeError: down"]

    def test_footer_trading(self, caplog):
        msgs = _collect_logs(
            caplog, print_cycle_footer,
            cycle=3, cycle_elapsed=1.25, executed=1, attempted=2,
            total_trades=5, total_profit=1_250_000_000, scan_only=False,
        )
        assert "1/2 executed" in msgs[0]
        assert "1.2500 SOL (5 trades)" in msgs[0]

    def test_footer_scan_only(self, caplog):
        msgs = _collect_logs(
            caplog, print_cycle_footer,
            cycle=3, cycle_elapsed=1.0, executed=0, attempted=0,
            total_trades=0, total_profit=0, scan_only=True,
        )
        assert "scan-only" in msgs[0]
        assert "P&L" not in msgs[0]


class TestPrintCycle:
    def test_renders_report(self, caplog):
        report = CycleReport(cycle=7, started_at_ms=0, listings=1, bids=1, signals=[_make_signal()])
        msgs = _collect_logs(caplog, print_cycle, report)
        assert "Cycle 7" in msgs[0]
        assert any("1 signal" in m for m in msgs)

    def test_renders_error(self, caplog):
        report = CycleReport(cycle=1, started_at_ms=0, error_stage="detecting", error="ValueError: x")
        msgs = _collect_logs(caplog, print_cycle, report)
        assert any("Detecting failed" in m for m in msgs)


class TestTruncate:
    def test_short_text_unchanged(self):
        assert _truncate("abc", 10) == "abc"

    def test_long_text_gets_ellipsis(self):
        out = _truncate("a" * 20, 10)
        assert len(out) == 10
        assert out.endswith("…")

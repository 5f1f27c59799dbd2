"""
Unit tests for monitor/pnl.py -- ledger counters and NDJSON persistence.
"""

import json
import threading

from monitor.pnl import PnLLedger
from scanner.models import Bid, Listing, Signal, TradeOutcome, TradeRecord, Venue


def _make_signal(asset="X", net=280_000_000):
    return Signal(
        listing=Listing(asset_id=asset, venue=Venue.MAGIC_EDEN, price=1_500_000_000),
        bid=Bid(asset_id=asset, venue=Venue.TENSOR, price=1_800_000_000),
        raw_profit=300_000_000,
        estimated_net_profit=net,
        confidence=0.7,
        created_at_ms=0,
    )


def _make_trade(outcome=TradeOutcome.EXECUTED, net=100, asset="X"):
    return TradeRecord.from_signal(_make_signal(asset, net), outcome, tx_ref="tx" if outcome == TradeOutcome.EXECUTED else None)


def _read_lines(path):
    with open(path) as f:
        return [json.loads(line) for line in f if line.strip()]


class TestCounters:
    def test_starts_empty(self):
        ledger = PnLLedger(ledger_path=None)
        assert ledger.total_profit() == 0
        assert ledger.trade_count() == 0

    def test_executed_updates_totals(self):
        ledger = PnLLedger(ledger_path=None)
        ledger.record(_make_trade(net=100))
        ledger.record(_make_trade(net=-30))
        assert ledger.total_profit() == 70
        assert ledger.trade_count() == 2

    def test_signal_and_failed_do_not_move_totals(self):
        ledger = PnLLedger(ledger_path=None)
        ledger.record(_make_trade(TradeOutcome.FAILED))
        ledger.record_signal(_make_signal())
        assert ledger.total_profit() == 0
        assert ledger.trade_count() == 0
        s = ledger.summary()
        assert s["failed_trades"] == 1
        assert s["signals_recorded"] == 1

    def test_concurrent_records_lose_nothing(self):
        ledger = PnLLedger(ledger_path=None)

        def _worker():
            for _ in range(200):
                ledger.record(_make_trade(net=1))

        threads = [threading.Thread(target=_worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert ledger.total_profit() == 800
        assert ledger.trade_count() == 800

    def test_summary_keys(self):
        ledger = PnLLedger(ledger_path=None)
        ledger.record(_make_trade(net=500_000_000))
        s = ledger.summary()
        assert s["total_profit_lamports"] == 500_000_000
        assert s["total_profit_sol"] == 0.5
        assert s["total_trades"] == 1
        assert s["errors"] == 0
        assert s["ledger_write_failures"] == 0
        assert "session_duration_sec" in s


class TestPersistence:
    def test_trade_event_written(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        ledger = PnLLedger(ledger_path=str(path))
        ledger.record(_make_trade(net=42))
        entries = _read_lines(path)
        assert len(entries) == 1
        assert entries[0]["event"] == "trade"
        assert entries[0]["outcome"] == "executed"
        assert entries[0]["net_profit"] == 42

    def test_signal_event(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        ledger = PnLLedger(ledger_path=str(path))
        ledger.record_signal(_make_signal())
        entry = _read_lines(path)[0]
        assert entry["outcome"] == "signal"
        assert entry["notes"] == "confidence=0.70"

    def test_error_event(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        ledger = PnLLedger(ledger_path=str(path))
        ledger.record_error("fetching", RuntimeError("timeout"), venue="tensor", cycle=3)
        entry = _read_lines(path)[0]
        assert entry["event"] == "error"
        assert entry["stage"] == "fetching"
        assert entry["error"] == "RuntimeError: timeout"
        assert entry["context"] == {"venue": "tensor", "cycle": "3"}
        assert ledger.summary()["errors"] == 1

    def test_flush_writes_snapshot(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        ledger = PnLLedger(ledger_path=str(path))
        ledger.record(_make_trade(net=10))
        ledger.flush("shutdown")
        entry = _read_lines(path)[-1]
        assert entry["event"] == "snapshot"
        assert entry["reason"] == "shutdown"
        assert entry["total_profit"] == 10
        assert entry["trade_count"] == 1

    def test_write_failure_keeps_memory_state(self, tmp_path):
        # A directory cannot be opened for append
        ledger = PnLLedger(ledger_path=str(tmp_path))
        ledger.record(_make_trade(net=99))
        assert ledger.total_profit() == 99
        assert ledger.trade_count() == 1
        assert ledger.summary()["ledger_write_failures"] == 1

    def test_no_path_writes_nothing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        ledger = PnLLedger(ledger_path=None)
        ledger.record(_make_trade())
        assert list(tmp_path.iterdir()) == []


class TestReplay:
    def test_rebuilds_counters(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        ledger = PnLLedger(ledger_path=str(path))
        ledger.record(_make_trade(net=100))
        ledger.record(_make_trade(TradeOutcome.FAILED, net=50))
        ledger.record(_make_trade(net=25))
        ledger.record_error("detecting", ValueError("x"))
        ledger.flush()

        rebuilt = PnLLedger.replay(str(path))
        assert rebuilt.total_profit() == 125
        assert rebuilt.trade_count() == 2
        assert rebuilt.summary()["failed_trades"] == 1

    def test_skips_malformed_lines(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        good = {"event": "trade", **_make_trade(net=7).to_dict()}
        path.write_text("not json\n" + json.dumps(good) + "\n" + '{"event": "trade"}\n\n')
        rebuilt = PnLLedger.replay(str(path))
        assert rebuilt.total_profit() == 7
        assert rebuilt.trade_count() == 1

    def test_missing_file(self, tmp_path):
        rebuilt = PnLLedger.replay(str(tmp_path / "absent.jsonl"))
        assert rebuilt.total_profit() == 0

    def test_replay_does_not_rewrite(self, tmp_path):
        path = tmp_path / "ledger.jsonl"
        PnLLedger(ledger_path=str(path)).record(_make_trade(net=1))
        before = path.read_text()
        PnLLedger.replay(str(path))
        assert path.read_text() == before

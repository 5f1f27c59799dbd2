"""
P&L ledger with append-only NDJSON persistence.

The ledger is the single owner of the running profit/trade counters. All
mutation goes through record() under a lock. Only "executed" trades move the
counters; signal-only and failed records are persisted and counted
separately for reporting.

Persistence is best-effort: a failed write is logged and the in-memory
counters stay authoritative for the running process. The counters are a
derived cache and can be rebuilt from the ledger file with replay().
"""

from __future__ import annotations

import json
import logging
import threading
import time

from scanner.models import (
    LedgerState,
    Signal,
    TradeOutcome,
    TradeRecord,
    lamports_to_sol,
    now_ms,
)

logger = logging.getLogger(__name__)

LEDGER_FILE = "pnl_ledger.jsonl"


class PnLLedger:
    """Track executed-trade profit and persist every trade/signal/error event."""

    def __init__(self, ledger_path: str | None = LEDGER_FILE) -> None:
        self.ledger_path = ledger_path
        self._lock = threading.Lock()
        self._state = LedgerState()
        self._failed_trades = 0
        self._signals_seen = 0
        self._errors = 0
        self._write_failures = 0
        self._session_start = time.time()

    # ── Writes ──

    def record(self, trade: TradeRecord) -> None:
        """Record a trade outcome. Executed trades update the running totals."""
        state = self._apply(trade)
        self._append({"event": "trade", **trade.to_dict()})

        if trade.outcome == TradeOutcome.EXECUTED:
            logger.info(
                "PnL update: trade=%.4f SOL total=%.4f SOL trades=%d",
                lamports_to_sol(trade.net_profit),
                lamports_to_sol(state.total_profit),
                state.trade_count,
            )

    def record_signal(self, signal: Signal, notes: str = "") -> None:
        """Persist a detected signal that has not (yet) been acted on."""
        self.record(TradeRecord.from_signal(
            signal,
            TradeOutcome.SIGNAL_ONLY,
            notes=notes or f"confidence={signal.confidence:.2f}",
        ))

    def record_error(self, stage: str, error: BaseException, **context: object) -> None:
        """Log and persist an error event with the stage it happened in."""
        with self._lock:
            self._errors += 1
        logger.error(
            "Error during %s: %s %s", stage, error, context or "",
            extra={"stage": stage, **_log_extras(context)},
        )
        self._append({
            "event": "error",
            "ts": now_ms(),
            "stage": stage,
            "error": f"{type(error).__name__}: {error}",
            "context": {k: str(v) for k, v in context.items()},
        })

    def flush(self, reason: str = "shutdown") -> None:
        """Append a final snapshot of the running totals."""
        state = self.state()
        self._append({
            "event": "snapshot",
            "ts": now_ms(),
            "reason": reason,
            "total_profit": state.total_profit,
            "trade_count": state.trade_count,
        })
        logger.info(
            "Ledger snapshot (%s): total=%.4f SOL trades=%d",
            reason, lamports_to_sol(state.total_profit), state.trade_count,
        )

    def _append(self, entry: dict) -> None:
        """Append one JSON object per line. Write failures are logged, never raised."""
        if not self.ledger_path:
            return
        line = json.dumps(entry, separators=(",", ":")) + "\n"
        try:
            with self._lock:
                with open(self.ledger_path, "a") as f:
                    f.write(line)
        except OSError as e:
            with self._lock:
                self._write_failures += 1
            logger.error(
                "Ledger write failed (%s): %s", self.ledger_path, e,
                extra={"stage": "reporting"},
            )

    # ── Reads ──

    def total_profit(self) -> int:
        with self._lock:
            return self._state.total_profit

    def trade_count(self) -> int:
        with self._lock:
            return self._state.trade_count

    def state(self) -> LedgerState:
        with self._lock:
            return self._state

    @property
    def session_duration_sec(self) -> float:
        return time.time() - self._session_start

    def summary(self) -> dict:
        """Return a summary dict of current ledger state."""
        with self._lock:
            state = self._state
            failed = self._failed_trades
            signals = self._signals_seen
            errors = self._errors
            write_failures = self._write_failures
        return {
            "total_profit_lamports": state.total_profit,
            "total_profit_sol": round(lamports_to_sol(state.total_profit), 6),
            "total_trades": state.trade_count,
            "failed_trades": failed,
            "signals_recorded": signals,
            "errors": errors,
            "ledger_write_failures": write_failures,
            "session_duration_sec": round(self.session_duration_sec, 0),
        }

    # ── Rebuild ──

    @classmethod
    def replay(cls, path: str) -> PnLLedger:
        """
        Rebuild a ledger's counters from an existing NDJSON file. The returned
        ledger appends to the same file. Malformed lines are skipped.
        """
        ledger = cls(ledger_path=path)
        try:
            with open(path) as f:
                lines = f.readlines()
        except FileNotFoundError:
            return ledger

        replayed = 0
        for lineno, line in enumerate(lines, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
                if entry.get("event") != "trade":
                    continue
                trade = TradeRecord.from_dict(entry)
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping malformed ledger line %d in %s: %s", lineno, path, e)
                continue
            ledger._apply(trade)
            replayed += 1

        logger.info(
            "Replayed %d ledger record(s) from %s: total=%.4f SOL trades=%d",
            replayed, path, lamports_to_sol(ledger.total_profit()), ledger.trade_count(),
        )
        return ledger

    def _apply(self, trade: TradeRecord) -> LedgerState:
        """Update counters without persisting. Returns the new state."""
        with self._lock:
            if trade.outcome == TradeOutcome.EXECUTED:
                self._state = LedgerState(
                    total_profit=self._state.total_profit + trade.net_profit,
                    trade_count=self._state.trade_count + 1,
                )
            elif trade.outcome == TradeOutcome.FAILED:
                self._failed_trades += 1
            else:
                self._signals_seen += 1
            return self._state


def _log_extras(context: dict[str, object]) -> dict[str, object]:
    """Pick the structured-log fields (asset, venue) out of an error context."""
    return {k: context[k] for k in ("asset", "venue") if k in context}

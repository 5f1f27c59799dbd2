"""
Scan driver: the fixed-interval loop that sequences one cycle at a time.

    Idle -> Fetching -> Detecting -> Executing -> Reporting -> Idle

Executing is skipped when the detector finds nothing and in scan-only mode
(no executor). An exception in Fetching, Detecting or Executing is logged and
recorded in the ledger, and the cycle goes straight to Reporting. Reporting
never raises into the loop.

A stop request never interrupts the step in flight. The cycle finishes that
step, skips to Reporting, and the loop then enters SHUTTING_DOWN and flushes
the ledger.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from client.snapshot import MarketSnapshot
from config import Config
from executor.engine import TradeExecutor, execute_batch
from monitor.pnl import PnLLedger
from scanner.confidence import ConfidenceModel, DEFAULT_CONFIDENCE
from scanner.detector import detect
from scanner.models import Signal, lamports_to_sol, now_ms
from scanner.scorer import select_for_execution

logger = logging.getLogger(__name__)


class DriverState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DETECTING = "detecting"
    EXECUTING = "executing"
    REPORTING = "reporting"
    SHUTTING_DOWN = "shutting_down"


@dataclass(frozen=True)
class ScanParams:
    """Per-cycle knobs the driver hands to the detector and the coordinator."""
    min_profit: int
    fee_adjustment: int
    max_age_ms: int
    max_signals: int
    interval_sec: float
    jitter_ms: tuple[int, int] = (1000, 3000)
    currency: str | None = "SOL"
    min_confidence: float = 0.0
    confidence_model: ConfidenceModel = DEFAULT_CONFIDENCE
    low_balance_warn: int = 0

    @classmethod
    def from_config(cls, cfg: Config) -> ScanParams:
        return cls(
            min_profit=cfg.min_profit_lamports,
            fee_adjustment=cfg.fee_buffer_lamports,
            max_age_ms=cfg.max_quote_age_ms,
            max_signals=cfg.max_signals_per_cycle,
            interval_sec=cfg.scan_interval_sec,
            jitter_ms=cfg.jitter_ms,
            currency=cfg.quote_currency or None,
            min_confidence=cfg.min_confidence_gate,
            confidence_model=cfg.confidence_model(),
            low_balance_warn=cfg.low_balance_warn_lamports,
        )


@dataclass
class CycleReport:
    """What one cycle saw and did. Handed to every on_cycle callback."""
    cycle: int
    started_at_ms: int
    elapsed_sec: float = 0.0
    listings: int = 0
    bids: int = 0
    fetch_failures: int = 0
    signals: list[Signal] = field(default_factory=list)
    attempted: int = 0
    executed: list[str] = field(default_factory=list)
    skipped_execution: str | None = None  # "no signals" | "scan-only" | "stop requested" | "error"
    error_stage: str | None = None
    error: str | None = None
    total_profit: int = 0
    trade_count: int = 0
    low_balance: bool = False
    venue_counts: dict[str, tuple[int, int]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None


class ScanDriver:
    """Runs scan cycles against a fetch function, a ledger and an optional executor."""

    def __init__(
        self,
        fetch: Callable[[], MarketSnapshot],
        ledger: PnLLedger,
        params: ScanParams,
        executor: TradeExecutor | None = None,
        *,
        starting_balance: int | None = None,
        on_cycle: Sequence[Callable[[CycleReport], None]] = (),
        stop_event: threading.Event | None = None,
        sleep: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._ledger = ledger
        self._params = params
        self._executor = executor
        self._starting_balance = starting_balance
        self._on_cycle = list(on_cycle)
        self._stop = stop_event or threading.Event()
        self._sleep_override = sleep
        self._rng = rng
        self._clock = clock

        self._lock = threading.Lock()
        self._state = DriverState.IDLE
        self._cycle = 0
        self._last_report: CycleReport | None = None

    # ── State ──

    @property
    def state(self) -> DriverState:
        with self._lock:
            return self._state

    @property
    def cycle(self) -> int:
        with self._lock:
            return self._cycle

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        self._stop.set()

    def _jitter_sleep(self, seconds: float) -> None:
        # Jitter waits end early on stop; the next attempt is then skipped.
        if self._sleep_override is not None:
            self._sleep_override(seconds)
        else:
            self._stop.wait(seconds)

    def _enter(self, state: DriverState) -> None:
        with self._lock:
            self._state = state
        logger.debug("Driver state -> %s", state.value)

    def status(self) -> dict:
        """Snapshot for the status surfaces. Safe to call from other threads."""
        with self._lock:
            state = self._state
            cycle = self._cycle
            last = self._last_report
        ledger_state = self._ledger.state()
        return {
            "cycle": cycle,
            "state": state.value,
            "total_profit_lamports": ledger_state.total_profit,
            "total_profit_sol": round(lamports_to_sol(ledger_state.total_profit), 6),
            "trade_count": ledger_state.trade_count,
            "mode": "scan-only" if self._executor is None else self._executor.kind,
            "last_cycle": None if last is None else {
                "cycle": last.cycle,
                "elapsed_sec": round(last.elapsed_sec, 3),
                "listings": last.listings,
                "bids": last.bids,
                "signals": len(last.signals),
                "executed": len(last.executed),
                "error": last.error,
            },
        }

    # ── One cycle ──

    def run_cycle(self) -> CycleReport:
        """Run Fetching -> Detecting -> Executing -> Reporting once."""
        with self._lock:
            self._cycle += 1
            cycle = self._cycle
        start = self._clock()
        report = CycleReport(cycle=cycle, started_at_ms=now_ms())

        try:
            self._enter(DriverState.FETCHING)
            snapshot = self._fetch()
            report.listings = len(snapshot.listings)
            report.bids = len(snapshot.bids)
            report.fetch_failures = len(snapshot.failures)
            report.venue_counts = snapshot.venue_counts()
            if snapshot.all_failed:
                logger.warning("Cycle %d: every venue fetch failed; detecting on empty data", cycle)

            if self.stop_requested:
                report.skipped_execution = "stop requested"
                logger.info("Cycle %d: stop requested, skipping detection", cycle)
            else:
                self._enter(DriverState.DETECTING)
                report.signals = self._detect(snapshot)
                self._execute_stage(report)
        except Exception as e:
            stage = self.state.value
            report.error_stage = stage
            report.error = f"{type(e).__name__}: {e}"
            report.skipped_execution = report.skipped_execution or "error"
            # Traceback goes to the verbose log; the ledger logs the one-line error.
            logger.debug("Cycle %d traceback (%s)", cycle, stage, exc_info=True)
            self._ledger.record_error(stage, e, cycle=cycle)

        report.elapsed_sec = self._clock() - start
        self._report(report)
        return report

    def _detect(self, snapshot: MarketSnapshot) -> list[Signal]:
        p = self._params
        signals = detect(
            snapshot.listings,
            snapshot.bids,
            p.min_profit,
            p.fee_adjustment,
            p.max_age_ms,
            confidence_model=p.confidence_model,
            currency=p.currency,
        )
        for sig in signals:
            self._ledger.record_signal(sig)
        return signals

    def _execute_stage(self, report: CycleReport) -> None:
        """Run Executing unless there is nothing to execute or nobody to execute it."""
        if not report.signals:
            report.skipped_execution = "no signals"
            logger.info("Cycle %d: no signals, skipping execution", report.cycle)
            return
        if self._executor is None:
            report.skipped_execution = "scan-only"
            logger.info(
                "Cycle %d: %d signal(s) detected, scan-only mode, not executing",
                report.cycle, len(report.signals),
            )
            return
        if self.stop_requested:
            report.skipped_execution = "stop requested"
            logger.info("Cycle %d: stop requested, skipping execution", report.cycle)
            return

        self._enter(DriverState.EXECUTING)
        selected = select_for_execution(
            report.signals, self._params.max_signals, self._params.min_confidence,
        )
        if not selected:
            report.skipped_execution = "below confidence gate"
            logger.info(
                "Cycle %d: no signal meets confidence %.2f, skipping execution",
                report.cycle, self._params.min_confidence,
            )
            return
        report.attempted = len(selected)
        execute_batch(
            selected,
            self._executor,
            self._ledger,
            jitter_ms=self._params.jitter_ms,
            sleep=self._jitter_sleep,
            rng=self._rng,
            should_stop=self._stop.is_set,
            out=report.executed,
        )

    def _report(self, report: CycleReport) -> None:
        """Reporting step. Callback failures are logged, never raised."""
        self._enter(DriverState.REPORTING)
        state = self._ledger.state()
        report.total_profit = state.total_profit
        report.trade_count = state.trade_count

        if self._starting_balance is not None:
            balance = self._starting_balance + state.total_profit
            if balance < self._params.low_balance_warn:
                report.low_balance = True
                logger.warning(
                    "Low balance: %.4f SOL (warn below %.4f SOL)",
                    lamports_to_sol(balance), lamports_to_sol(self._params.low_balance_warn),
                )

        logger.info(
            "Cycle %d done in %.2fs: %d listings, %d bids, %d signals, %d/%d executed, total %.4f SOL",
            report.cycle, report.elapsed_sec, report.listings, report.bids,
            len(report.signals), len(report.executed), report.attempted,
            lamports_to_sol(report.total_profit),
        )

        for callback in self._on_cycle:
            try:
                callback(report)
            except Exception as e:
                logger.warning("Cycle callback %r failed: %s", callback, e, extra={"stage": "reporting"})

        with self._lock:
            self._last_report = report
            if self._state == DriverState.REPORTING:
                self._state = DriverState.IDLE

    # ── Loop ──

    def run(self, stop_event: threading.Event | None = None, max_cycles: int | None = None) -> int:
        """
        Run cycles until *stop_event* is set or *max_cycles* have run, then shut
        down. Returns the number of cycles run.
        """
        if stop_event is not None:
            self._stop = stop_event

        ran = 0
        while not self._stop.is_set():
            if max_cycles is not None and ran >= max_cycles:
                break
            cycle_start = self._clock()
            self.run_cycle()
            ran += 1
            if max_cycles is not None and ran >= max_cycles:
                break
            self._wait_remaining(cycle_start)

        self.shutdown()
        return ran

    def _wait_remaining(self, cycle_start: float) -> None:
        """Wait out the rest of the interval. An overrunning cycle gets no wait."""
        remaining = self._params.interval_sec - (self._clock() - cycle_start)
        if remaining > 0:
            logger.debug("Sleeping %.1fs until next cycle...", remaining)
            self._stop.wait(remaining)

    def shutdown(self) -> None:
        self._enter(DriverState.SHUTTING_DOWN)
        summary = self._ledger.summary()
        logger.info(
            "Shutting down after %d cycle(s): total %.4f SOL over %d trade(s), %d failed",
            self.cycle, summary["total_profit_sol"], summary["total_trades"], summary["failed_trades"],
        )
        self._ledger.flush("shutdown")

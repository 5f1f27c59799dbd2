"""
Console rendering for scan cycles.

Pure formatting functions that emit log lines using box-drawing characters.
All data arrives via arguments; the only side effect is logging.
"""

from __future__ import annotations

import logging
import time

from config import Config
from scanner.models import Signal, lamports_to_sol

logger = logging.getLogger(__name__)

_TOP = "\u250c"  # ┌
_MID = "\u2502"  # │
_BOT = "\u2514"  # └
_DASH = "\u2500"  # ─
_SEP = "\u2502"  # inline separator

_MAX_ASSET_LEN = 16
_MAX_ROWS = 10


def _truncate(text: str, length: int = _MAX_ASSET_LEN) -> str:
    """Truncate text to *length* chars, appending ellipsis if trimmed."""
    if len(text) <= length:
        return text
    return text[: length - 1] + "\u2026"


def _sol(lamports: int) -> str:
    return f"{lamports_to_sol(lamports):.4f}"


def print_startup(cfg: Config, mode: str) -> None:
    """Compact config block emitted once after the banner."""
    logger.info(
        "  Mode: %-10s Net >= %s SOL  Fee buffer %s SOL  Max %d/cycle",
        mode, _sol(cfg.min_profit_lamports), _sol(cfg.fee_buffer_lamports), cfg.max_signals_per_cycle,
    )
    logger.info("  Collections: %s", "  ".join(c.name for c in cfg.collections) or "(none)")
    logger.info(
        "  Interval: %.1fs  Quote max age: %.0fs  Jitter: %d-%dms",
        cfg.scan_interval_sec,
        cfg.max_quote_age_ms / 1000,
        cfg.execution_jitter_min_ms,
        cfg.execution_jitter_max_ms,
    )


def print_cycle_header(cycle: int) -> None:
    """Horizontal divider with cycle number and wall-clock time."""
    ts = time.strftime("%H:%M:%S")
    label = f" Cycle {cycle} "
    left = _DASH * 2
    right_pad = max(2, 60 - len(left) - len(label) - len(ts) - 3)
    logger.info(f"{left}{label}{_DASH * right_pad} {ts} {_DASH * 2}")


def print_scan_result(
    signals: list[Signal],
    listings: int,
    bids: int,
    venue_counts: dict[str, tuple[int, int]] | None = None,
    fetch_failures: int = 0,
) -> None:
    """
    Boxed detection summary. One compact line when nothing was found,
    otherwise a table of the best signals.
    """
    per_venue = ""
    if venue_counts:
        per_venue = " (" + ", ".join(
            f"{venue}: {n_l}/{n_b}" for venue, (n_l, n_b) in sorted(venue_counts.items())
        ) + ")"
    failed = f"  {fetch_failures} fetch(es) failed" if fetch_failures else ""
    logger.info("  Fetched %d listings, %d bids%s%s", listings, bids, per_venue, failed)

    if not signals:
        logger.info("  %s No signals", _TOP)
        return

    n = len(signals)
    logger.info("  %s %d signal%s", _TOP, n, "" if n == 1 else "s")
    logger.info("  %s", _MID)
    logger.info(
        "  %s  %-3s %-16s %-20s %10s %10s %10s %5s",
        _MID, "#", "Asset", "Route", "Buy", "Sell", "Net", "Conf",
    )
    for idx, sig in enumerate(signals[:_MAX_ROWS], 1):
        logger.info(
            "  %s  %-3d %-16s %-20s %10s %10s %10s %5.2f",
            _MID,
            idx,
            _truncate(sig.asset_id),
            f"{sig.buy_venue.value}->{sig.sell_venue.value}",
            _sol(sig.listing.price),
            _sol(sig.bid.price),
            _sol(sig.estimated_net_profit),
            sig.confidence,
        )
    if n > _MAX_ROWS:
        logger.info("  %s  ... %d more", _MID, n - _MAX_ROWS)
    logger.info("  %s", _MID)
    logger.info(
        "  %s  Best: %s SOL net %s Total: %s SOL",
        _MID, _sol(signals[0].estimated_net_profit), _SEP,
        _sol(sum(s.estimated_net_profit for s in signals)),
    )


def print_cycle_error(stage: str, error: str) -> None:
    """Compact error line when a cycle step fails."""
    logger.info("  %s %s failed: %s", _TOP, stage.capitalize(), error)


def print_cycle_footer(
    cycle: int,
    cycle_elapsed: float,
    executed: int,
    attempted: int,
    total_trades: int,
    total_profit: int,
    scan_only: bool,
) -> None:
    """Close the box with this cycle's execution and session totals."""
    if scan_only:
        logger.info(
            "  %s Cycle %d in %.1fs %s scan-only",
            _BOT, cycle, cycle_elapsed, _SEP,
        )
        return
    logger.info(
        "  %s Cycle %d in %.1fs %s %d/%d executed %s P&L %s SOL (%d trades)",
        _BOT, cycle, cycle_elapsed, _SEP, executed, attempted, _SEP,
        _sol(total_profit), total_trades,
    )


def print_cycle(report, scan_only: bool = False) -> None:
    """Render a whole CycleReport. Usable as a ScanDriver on_cycle callback."""
    print_cycle_header(report.cycle)
    if report.error:
        print_cycle_error(report.error_stage or "cycle", report.error)
    print_scan_result(
        report.signals,
        report.listings,
        report.bids,
        report.venue_counts,
        report.fetch_failures,
    )
    print_cycle_footer(
        cycle=report.cycle,
        cycle_elapsed=report.elapsed_sec,
        executed=len(report.executed),
        attempted=report.attempted,
        total_trades=report.trade_count,
        total_profit=report.total_profit,
        scan_only=scan_only,
    )

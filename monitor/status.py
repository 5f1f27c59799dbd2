"""
Rolling markdown status file. Overwritten after every cycle with:
  - Current state: mode, uptime, cycle, cumulative profit and trade count
  - Signals detected this cycle
  - History: last N cycles
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from scanner.models import Signal, lamports_to_sol

logger = logging.getLogger(__name__)


_GUIDE: list[str] = [
    "## How a Cycle Works",
    "",
    "1. **Fetch** -- listings and bids for every tracked collection are pulled from each venue in parallel.",
    "   A venue that fails is skipped for the cycle; the others still count.",
    "2. **Detect** -- a listing on one venue paired with a higher bid for the same asset on another venue is a",
    "   signal when `bid - listing - fee buffer >= min profit`. Quotes older than the freshness window are ignored.",
    "3. **Execute** -- the best signals (up to the per-cycle cap) are attempted one at a time with random",
    "   jitter between attempts. *(Skipped in DRY-RUN and SCAN-ONLY modes.)*",
    "4. **Report** -- the ledger, this file and the console footer are updated.",
    "",
    "---",
]


@dataclass
class CycleSnapshot:
    """One cycle's summary for the history table."""

    cycle: int
    timestamp: float
    listings: int
    bids: int
    n_signals: int
    executed: int
    best_net: int
    best_asset: str
    error: str


@dataclass
class StatusWriter:
    """Writes a rolling status.md file each cycle."""

    file_path: str = "status.md"
    max_history: int = 20
    mode: str = "PAPER"

    _session_start: float = field(default_factory=time.time)
    _history: list[CycleSnapshot] = field(default_factory=list)

    def __call__(self, report) -> None:
        """on_cycle callback: write the status file from a CycleReport."""
        self.write_cycle(
            cycle=report.cycle,
            listings=report.listings,
            bids=report.bids,
            signals=report.signals,
            executed=len(report.executed),
            total_profit=report.total_profit,
            trade_count=report.trade_count,
            error=report.error or "",
        )

    def write_cycle(
        self,
        *,
        cycle: int,
        listings: int,
        bids: int,
        signals: list[Signal],
        executed: int,
        total_profit: int,
        trade_count: int,
        error: str = "",
    ) -> None:
        """Overwrite the status file with current state + rolling history."""
        best = signals[0] if signals else None
        self._history.append(CycleSnapshot(
            cycle=cycle,
            timestamp=time.time(),
            listings=listings,
            bids=bids,
            n_signals=len(signals),
            executed=executed,
            best_net=best.estimated_net_profit if best else 0,
            best_asset=best.asset_id if best else "",
            error=error,
        ))
        if len(self._history) > self.max_history:
            self._history = self._history[-self.max_history:]

        lines = self._render(
            cycle=cycle,
            signals=signals,
            total_profit=total_profit,
            trade_count=trade_count,
        )
        with open(self.file_path, "w") as f:
            f.write("\n".join(lines) + "\n")

    def _render(
        self,
        *,
        cycle: int,
        signals: list[Signal],
        total_profit: int,
        trade_count: int,
    ) -> list[str]:
        uptime = _format_duration(time.time() - self._session_start)
        ts = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())

        lines: list[str] = [
            "# NFT Arbitrage Scanner -- Status",
            "",
            f"*Updated {ts}*",
            "",
        ]
        lines.extend(_GUIDE)
        lines.append("")

        lines.append("## Current State")
        lines.append("")
        lines.extend(_padded_table(["Field", "Value"], [
            ["Mode", self.mode],
            ["Uptime", uptime],
            ["Cycle", str(cycle)],
            ["Signals (this cycle)", str(len(signals))],
            ["Trades executed", str(trade_count)],
            ["Net P&L", f"{lamports_to_sol(total_profit):.4f} SOL"],
        ]))
        lines.append("")

        lines.append("## Signals This Cycle")
        lines.append("")
        if signals:
            rows = [
                [
                    str(i),
                    _truncate(sig.asset_id, 44),
                    f"{sig.buy_venue.value} -> {sig.sell_venue.value}",
                    f"{lamports_to_sol(sig.listing.price):.4f}",
                    f"{lamports_to_sol(sig.bid.price):.4f}",
                    f"{lamports_to_sol(sig.estimated_net_profit):.4f}",
                    f"{sig.confidence:.2f}",
                ]
                for i, sig in enumerate(signals, 1)
            ]
            lines.extend(_padded_table(
                ["#", "Asset", "Route", "Buy (SOL)", "Sell (SOL)", "Net (SOL)", "Conf"], rows,
            ))
        else:
            lines.append("*No signals.*")
        lines.append("")

        lines.append("## Recent Cycles")
        lines.append("")
        if self._history:
            rows = []
            for snap in reversed(self._history):
                rows.append([
                    str(snap.cycle),
                    time.strftime("%H:%M:%S", time.localtime(snap.timestamp)),
                    str(snap.listings),
                    str(snap.bids),
                    str(snap.n_signals),
                    str(snap.executed),
                    f"{lamports_to_sol(snap.best_net):.4f}" if snap.n_signals else "--",
                    _truncate(snap.best_asset, 20) if snap.best_asset else "--",
                    _truncate(snap.error, 40) if snap.error else "",
                ])
            lines.extend(_padded_table(
                ["Cycle", "Time", "Listings", "Bids", "Signals", "Executed", "Best Net", "Best Asset", "Error"],
                rows,
            ))
        else:
            lines.append("*No history yet.*")
        lines.append("")
        return lines


def _padded_table(headers: list[str], rows: list[list[str]]) -> list[str]:
    """Markdown table with evenly padded columns."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def _fmt(cells: list[str]) -> str:
        return "|" + "|".join(f" {c:<{widths[i]}} " for i, c in enumerate(cells)) + "|"

    lines = [_fmt(headers), "|" + "|".join("-" * (w + 2) for w in widths) + "|"]
    lines.extend(_fmt(row) for row in rows)
    return lines


def _format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.0f}s"
    minutes = int(seconds) // 60
    if minutes < 60:
        return f"{minutes}m {seconds - minutes * 60:.0f}s"
    return f"{minutes // 60}h {minutes % 60}m"


def _truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."

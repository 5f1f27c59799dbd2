"""
Signal ranking and per-cycle selection.

Signals are ordered best-first by estimated net profit. Equal-profit signals
fall back to confidence (higher first), then to input order, so the same
input always produces the same ranking.
"""

from __future__ import annotations

from typing import Sequence

from scanner.models import Signal


def rank_signals(signals: Sequence[Signal]) -> list[Signal]:
    """Return a new list sorted by net profit desc, confidence desc. Stable."""
    ranked = sorted(signals, key=lambda s: s.confidence, reverse=True)
    ranked.sort(key=lambda s: s.estimated_net_profit, reverse=True)
    return ranked


def select_for_execution(
    ranked: Sequence[Signal],
    max_signals: int,
    min_confidence: float = 0.0,
) -> list[Signal]:
    """
    Pick the signals to execute this cycle from an already-ranked list.
    Signals under *min_confidence* are dropped before the cap is applied.
    """
    if max_signals < 1:
        raise ValueError(f"max_signals must be >= 1, got {max_signals}")
    eligible = [s for s in ranked if s.confidence >= min_confidence]
    return eligible[:max_signals]

"""
Paper executor. Simulates trade execution without touching the chain.

Deterministic: references are numbered in attempt order, and assets listed in
fail_assets always fail. Used for paper trading and throughout the tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from executor.engine import ExecutionFailed
from scanner.models import Signal, lamports_to_sol

logger = logging.getLogger(__name__)


@dataclass
class PaperExecutor:
    fail_assets: frozenset[str] = frozenset()
    attempts: list[str] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return "paper"

    def attempt_trade(self, signal: Signal) -> str:
        self.attempts.append(signal.asset_id)
        if signal.asset_id in self.fail_assets:
            raise ExecutionFailed(f"paper execution rejected {signal.asset_id}")

        tx_ref = f"paper_{signal.asset_id}_{len(self.attempts)}"
        logger.info(
            "[PAPER] Executed %s: net %.4f SOL (%s)",
            signal.asset_id, lamports_to_sol(signal.estimated_net_profit), tx_ref,
        )
        return tx_ref

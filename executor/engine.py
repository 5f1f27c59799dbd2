"""
Trade execution coordinator. Runs ranked signals one at a time through a
TradeExecutor, paces submissions with random jitter, and records every
outcome in the ledger.

Execution is strictly sequential: venue APIs are not known to be safe for
concurrent submission, and the best signal must go first in case wallet
balance or liquidity runs out for later ones.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Protocol, Sequence, runtime_checkable

from monitor.pnl import PnLLedger
from scanner.models import Signal, TradeOutcome, TradeRecord, lamports_to_sol

logger = logging.getLogger(__name__)

DEFAULT_JITTER_MS = (1000, 3000)


class ExecutionFailed(Exception):
    """Raised by an executor when a trade attempt fails. Carries a readable reason."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@runtime_checkable
class TradeExecutor(Protocol):
    """
    Anything that can attempt one arbitrage trade.

    attempt_trade returns the transaction reference on success and raises
    (ExecutionFailed, or any other exception) on failure.
    """

    @property
    def kind(self) -> str:
        """Short identifier recorded on trade records: 'paper', 'flash_loan', ..."""
        ...

    def attempt_trade(self, signal: Signal) -> str:
        ...


def execute_batch(
    signals: Sequence[Signal],
    executor: TradeExecutor,
    ledger: PnLLedger,
    *,
    jitter_ms: tuple[int, int] = DEFAULT_JITTER_MS,
    sleep: Callable[[float], None] = time.sleep,
    rng: random.Random | None = None,
    should_stop: Callable[[], bool] | None = None,
    out: list[str] | None = None,
) -> list[str]:
    """
    Execute *signals* in order. Returns tx references of the successful trades.

    A failed attempt is recorded as a "failed" trade and the batch continues.
    Between two attempts the coordinator sleeps a random delay drawn from
    *jitter_ms*. When *should_stop* returns True no further attempt starts;
    an attempt already in progress always runs to completion.

    References are appended to *out* when given, so a caller still holds the
    trades that completed if a later step raises.
    """
    rand = rng or random
    tx_refs: list[str] = out if out is not None else []

    for idx, signal in enumerate(signals):
        if idx > 0:
            delay_ms = rand.uniform(jitter_ms[0], jitter_ms[1])
            logger.debug("Pacing %.0fms before next trade", delay_ms)
            sleep(delay_ms / 1000.0)

        # Checked after the pacing wait so a stop that arrives mid-wait still counts.
        if should_stop and should_stop():
            logger.info(
                "Stop requested: skipping %d remaining signal(s)", len(signals) - idx,
            )
            break

        logger.info(
            "Executing %s: buy %s @ %.4f -> sell %s @ %.4f (net %.4f SOL, conf %.2f)",
            signal.asset_id,
            signal.buy_venue.value, lamports_to_sol(signal.listing.price),
            signal.sell_venue.value, lamports_to_sol(signal.bid.price),
            lamports_to_sol(signal.estimated_net_profit), signal.confidence,
        )

        try:
            tx_ref = executor.attempt_trade(signal)
        except Exception as e:
            reason = e.reason if isinstance(e, ExecutionFailed) else f"{type(e).__name__}: {e}"
            logger.warning(
                "Trade failed for %s (%s -> %s): %s",
                signal.asset_id, signal.buy_venue.value, signal.sell_venue.value, reason,
                extra={"asset": signal.asset_id, "venue": signal.buy_venue.value, "stage": "executing"},
            )
            ledger.record(TradeRecord.from_signal(
                signal,
                TradeOutcome.FAILED,
                executor_kind=executor.kind,
                notes=reason,
            ))
            continue

        ledger.record(TradeRecord.from_signal(
            signal,
            TradeOutcome.EXECUTED,
            tx_ref=tx_ref,
            executor_kind=executor.kind,
            notes=f"confidence={signal.confidence:.2f}",
        ))
        tx_refs.append(tx_ref)

    logger.info("Executed %d/%d trades", len(tx_refs), len(signals))
    return tx_refs

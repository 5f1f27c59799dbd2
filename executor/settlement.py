"""
Live settlement executor (flash-loan funded buy + accept-bid).

On-chain transaction building and signing is not available in this codebase.
Every attempt fails with ExecutionFailed so live mode degrades into recorded
"failed" trades instead of crashing. Satisfies the TradeExecutor protocol so a
real implementation can drop in without changing the coordinator.
"""

from __future__ import annotations

import logging

from executor.engine import ExecutionFailed
from scanner.models import Signal

logger = logging.getLogger(__name__)

_NOT_AVAILABLE = "on-chain settlement not available"


class SettlementExecutor:
    """Flash-loan settlement adapter for a Solana RPC endpoint."""

    def __init__(self, rpc_url: str, wallet_address: str = "") -> None:
        self._rpc_url = rpc_url
        self._wallet_address = wallet_address

    @property
    def kind(self) -> str:
        return "flash_loan"

    def attempt_trade(self, signal: Signal) -> str:
        logger.debug(
            "Settlement requested for %s via %s (wallet=%s)",
            signal.asset_id, self._rpc_url, self._wallet_address or "-",
        )
        raise ExecutionFailed(_NOT_AVAILABLE)

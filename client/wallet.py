"""
Solana JSON-RPC balance probe. Used for the startup balance check and the
per-cycle low-balance warning.
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

_TIMEOUT = 5.0


class RpcError(Exception):
    """Raised when the RPC node answers with a JSON-RPC error object."""
    pass


class SolanaRpcClient:
    """Minimal JSON-RPC client for read-only account queries."""

    def __init__(self, rpc_url: str = "https://api.mainnet-beta.solana.com", timeout: float = _TIMEOUT):
        self._rpc_url = rpc_url
        self._timeout = timeout

    def get_balance(self, address: str) -> int:
        """Return the account balance in lamports. Raises on transport or RPC errors."""
        resp = httpx.post(
            self._rpc_url,
            json={"jsonrpc": "2.0", "id": 1, "method": "getBalance", "params": [address]},
            timeout=self._timeout,
        )
        resp.raise_for_status()
        payload = resp.json()
        if "error" in payload:
            raise RpcError(str(payload["error"].get("message", payload["error"])))
        lamports = int(payload["result"]["value"])
        logger.debug("Balance for %s: %d lamports", address, lamports)
        return lamports

    def try_get_balance(self, address: str) -> int | None:
        """Like get_balance but returns None (and logs) on failure or empty address."""
        if not address:
            return None
        try:
            return self.get_balance(address)
        except (httpx.HTTPError, RpcError, KeyError, ValueError) as e:
            logger.warning("Balance fetch failed for %s: %s", address, e)
            return None

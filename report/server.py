"""
Read-only FastAPI status server. Runs as a daemon thread beside the scan loop.

Endpoints never mutate anything: /api/status reads the driver's status
snapshot and the ledger summary, /api/trades tails the NDJSON ledger file.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import deque
from typing import Any, Callable

from monitor.pnl import PnLLedger

logger = logging.getLogger(__name__)

_MAX_TRADES = 1000


def load_trades(path: str | None, limit: int = 100, outcome: str | None = None) -> list[dict]:
    """
    Last *limit* trade events from an NDJSON ledger, newest first. Missing
    files read as empty; malformed lines are skipped.
    """
    if not path:
        return []
    tail: deque[dict] = deque(maxlen=limit)
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except ValueError:
                    continue
                if entry.get("event") != "trade":
                    continue
                if outcome and entry.get("outcome") != outcome:
                    continue
                tail.append(entry)
    except FileNotFoundError:
        return []
    return list(reversed(tail))


def create_app(status_fn: Callable[[], dict[str, Any]], ledger: PnLLedger) -> Any:
    """Build the FastAPI application around a status callable and the ledger."""
    from fastapi import FastAPI, Query
    from fastapi.responses import JSONResponse

    app = FastAPI(title="NFT Arbitrage Scanner Status", docs_url="/docs")

    @app.get("/api/status")
    async def get_status():
        try:
            status = status_fn()
        except Exception as e:
            logger.warning("Status read failed: %s", e)
            return JSONResponse({"error": "status unavailable"}, status_code=503)
        return {**status, "ledger": ledger.summary()}

    @app.get("/api/trades")
    async def get_trades(
        limit: int = Query(100, ge=1, le=_MAX_TRADES),
        outcome: str | None = Query(None, pattern="^(signal|executed|failed)$"),
    ):
        return load_trades(ledger.ledger_path, limit=limit, outcome=outcome)

    return app


def start_server(
    status_fn: Callable[[], dict[str, Any]],
    ledger: PnLLedger,
    host: str = "127.0.0.1",
    port: int = 8787,
) -> threading.Thread:
    """Start the status server in a daemon thread. Returns the thread."""
    import uvicorn

    app = create_app(status_fn, ledger)

    def _run():
        uvicorn.run(app, host=host, port=port, log_level="warning", access_log=False)

    thread = threading.Thread(target=_run, daemon=True, name="report-server")
    thread.start()
    logger.info("Status server started at http://%s:%d/api/status", host, port)
    return thread

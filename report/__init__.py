"""
Report module: optional read-only HTTP status surface.

Usage:
    from report import start_server
    start_server(driver.status, ledger, host="127.0.0.1", port=8787)
"""

from __future__ import annotations

from report.server import create_app, load_trades, start_server

__all__ = ["create_app", "load_trades", "start_server"]

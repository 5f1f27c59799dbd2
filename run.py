#!/usr/bin/env python3
"""
Cross-venue NFT arbitrage scanner -- single entry point.

Each cycle:
  1. Fetch listings and bids for the tracked collections from every venue
  2. Detect cross-venue signals (bid above listing, net of fees)
  3. Execute the best signals one at a time (paper or live)
  4. Update the ledger, status file and console
  5. Sleep out the rest of the scan interval

Usage:
  python run.py --dry-run        # no wallet needed, public APIs only, no execution
  python run.py --scan-only      # detect only, balance warnings from the wallet
  python run.py                  # paper trading (default)
  python run.py --live           # live settlement executor
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
from functools import partial

from pydantic import ValidationError

from client.magic_eden import MagicEdenClient
from client.snapshot import fetch_snapshot
from client.tensor import TensorClient
from client.wallet import SolanaRpcClient
from config import Config, load_config
from executor.engine import TradeExecutor
from executor.paper import PaperExecutor
from executor.settlement import SettlementExecutor
from monitor.display import print_cycle, print_startup
from monitor.logger import setup_logging
from monitor.pnl import PnLLedger
from monitor.status import StatusWriter
from pipeline.driver import ScanDriver, ScanParams
from scanner.models import lamports_to_sol

logger = logging.getLogger("run")

_BANNER = r"""
 _   _ _____ _____     _         _     _ _
| \ | |  ___|_   _|   / \   _ __| |__ (_) |_ _ __ __ _  __ _  ___
|  \| | |_    | |    / _ \ | '__| '_ \| | __| '__/ _` |/ _` |/ _ \
| |\  |  _|   | |   / ___ \| |  | |_) | | |_| | | (_| | (_| |  __/
|_| \_|_|     |_|  /_/   \_\_|  |_.__/|_|\__|_|  \__,_|\__, |\___|
                                          Scanner v0.1 |___/
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cross-venue NFT arbitrage scanner")
    parser.add_argument("--live", action="store_true", help="Enable live settlement (disables paper mode)")
    parser.add_argument("--scan-only", action="store_true", help="Only detect signals, do not execute")
    parser.add_argument("--dry-run", action="store_true", help="No wallet needed. Scan public APIs only")
    parser.add_argument("--max-cycles", type=int, default=None, help="Stop after N cycles (default: run until signalled)")
    parser.add_argument("--resume-ledger", action="store_true", help="Rebuild P&L totals from the existing ledger file")
    parser.add_argument("--json-log", type=str, default=None, help="Path to JSON log file for machine-readable output")
    parser.add_argument("--report", action="store_true", help="Serve /api/status and /api/trades")
    parser.add_argument("--report-host", type=str, default="127.0.0.1", help="Status server bind address (default: 127.0.0.1)")
    parser.add_argument("--report-port", type=int, default=8787, help="Status server port (default: 8787)")
    return parser.parse_args(argv)


def mode_label(args: argparse.Namespace, cfg: Config) -> str:
    if args.dry_run:
        return "DRY-RUN"
    if args.scan_only:
        return "SCAN-ONLY"
    if cfg.paper_trading:
        return "PAPER"
    return "LIVE"


def build_executor(args: argparse.Namespace, cfg: Config) -> TradeExecutor | None:
    """None in dry-run and scan-only modes (Executing is skipped)."""
    if args.dry_run or args.scan_only:
        return None
    if cfg.paper_trading:
        return PaperExecutor()
    return SettlementExecutor(rpc_url=cfg.rpc_url, wallet_address=cfg.wallet_address)


def build_ledger(args: argparse.Namespace, cfg: Config) -> PnLLedger:
    if args.resume_ledger and os.path.exists(cfg.ledger_path):
        return PnLLedger.replay(cfg.ledger_path)
    return PnLLedger(ledger_path=cfg.ledger_path)


def _print_summary(ledger: PnLLedger, cycles: int) -> None:
    s = ledger.summary()
    logger.info("")
    logger.info("=" * 70)
    logger.info("  SESSION SUMMARY")
    logger.info("=" * 70)
    logger.info("  %-30s %d", "Cycles:", cycles)
    logger.info("  %-30s %.0fs", "Session duration:", s["session_duration_sec"])
    logger.info("  %-30s %d", "Signals recorded:", s["signals_recorded"])
    logger.info("  %-30s %d executed / %d failed", "Trades:", s["total_trades"], s["failed_trades"])
    logger.info("  %-30s %.4f SOL", "Net P&L:", s["total_profit_sol"])
    logger.info("  %-30s %d", "Errors:", s["errors"])
    if s["ledger_write_failures"]:
        logger.warning("  %-30s %d", "Ledger write failures:", s["ledger_write_failures"])
    logger.info("=" * 70)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    try:
        cfg = load_config()
    except ValidationError as e:
        setup_logging("INFO", json_log_file=args.json_log)
        logger.error("Invalid configuration:\n%s", e)
        sys.exit(1)

    if args.live:
        cfg = cfg.model_copy(update={"paper_trading": False})
    if args.dry_run:
        args.scan_only = True  # dry-run implies scan-only

    log_file_path = setup_logging(cfg.log_level, json_log_file=args.json_log)
    logger.info(_BANNER.strip("\n"))
    logger.info("  Log file: %s", log_file_path)

    if not cfg.paper_trading and not args.scan_only and not cfg.wallet_address:
        logger.error("WALLET_ADDRESS required for live trading. Use --dry-run to scan without a wallet.")
        sys.exit(1)

    mode = mode_label(args, cfg)
    print_startup(cfg, mode)

    # Wallet balance (skipped in dry-run: no wallet)
    starting_balance: int | None = None
    if not args.dry_run and cfg.wallet_address:
        starting_balance = SolanaRpcClient(cfg.rpc_url).try_get_balance(cfg.wallet_address)
        if starting_balance is not None:
            logger.info("  Wallet balance: %.4f SOL", lamports_to_sol(starting_balance))
            if starting_balance < cfg.low_balance_warn_lamports:
                logger.warning(
                    "Wallet balance below %.4f SOL; trades may fail",
                    lamports_to_sol(cfg.low_balance_warn_lamports),
                )

    clients = [
        MagicEdenClient(cfg.magic_eden_host, cfg.magic_eden_api_key, timeout=cfg.fetch_timeout_sec),
        TensorClient(cfg.tensor_host, cfg.tensor_api_key, timeout=cfg.fetch_timeout_sec),
    ]
    ledger = build_ledger(args, cfg)
    status_writer = StatusWriter(file_path=cfg.status_path, mode=mode)
    stop_event = threading.Event()

    driver = ScanDriver(
        fetch=partial(fetch_snapshot, clients, cfg.collections, cfg.fetch_workers),
        ledger=ledger,
        params=ScanParams.from_config(cfg),
        executor=build_executor(args, cfg),
        starting_balance=starting_balance,
        on_cycle=[partial(print_cycle, scan_only=args.scan_only), status_writer],
        stop_event=stop_event,
    )

    if args.report:
        from report.server import start_server
        start_server(driver.status, ledger, host=args.report_host, port=args.report_port)

    def handle_signal(signum, frame):
        if not stop_event.is_set():
            logger.info("Received signal %d, finishing current step...", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        cycles = driver.run(stop_event, max_cycles=args.max_cycles)
    finally:
        for client in clients:
            client.close()

    _print_summary(ledger, cycles)


if __name__ == "__main__":
    main()

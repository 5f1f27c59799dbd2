"""
Logging setup for the scanner. Three sinks:
  - stderr: colored, level-tagged console lines for an operator watching cycles
  - logs/scan_YYYYMMDD_HHMMSS.log: always-on verbose DEBUG file
  - optional NDJSON file: one object per record for machine consumption

Records may carry ``asset``, ``venue`` and ``stage`` extras
(``logger.warning(..., extra={"stage": "fetching"})``). The console shows
them as a dim trailing tag; the JSON sink emits them as top-level keys.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone

CONTEXT_FIELDS = ("asset", "venue", "stage")

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_CYAN = "\033[36m"
_WHITE = "\033[37m"

_LEVEL_STYLES = {
    "DEBUG": (_DIM, "DBG"),
    "INFO": (_CYAN, "INF"),
    "WARNING": (_YELLOW, "WRN"),
    "ERROR": (_RED, "ERR"),
    "CRITICAL": (_RED + _BOLD, "CRT"),
}

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn", "uvicorn.access", "uvicorn.error")


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """The asset/venue/stage extras present on *record*."""
    ctx: dict[str, str] = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value:
            ctx[name] = str(value)
    return ctx


class ConsoleFormatter(logging.Formatter):
    """HH:MM:SS TAG message [stage venue asset]"""

    def __init__(self, use_color: bool = True):
        super().__init__()
        self._use_color = use_color and _supports_color()

    def format(self, record: logging.LogRecord) -> str:
        ts = time.strftime("%H:%M:%S", time.localtime(record.created))
        color, tag = _LEVEL_STYLES.get(record.levelname, (_WHITE, "???"))
        msg = record.getMessage()
        ctx = record_context(record)
        suffix = f" [{' '.join(ctx[k] for k in ('stage', 'venue', 'asset') if k in ctx)}]" if ctx else ""

        if self._use_color:
            line = f"{_DIM}{ts}{_RESET} {color}{tag}{_RESET} {msg}{_DIM}{suffix}{_RESET}"
        else:
            line = f"{ts} {tag} {msg}{suffix}"

        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            line += f"\n{_RED}     {exc}{_RESET}" if self._use_color else f"\n     {exc}"
        return line


class JSONFormatter(logging.Formatter):
    """Single-line JSON. Context extras become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = f"{type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        return json.dumps(entry, separators=(",", ":"))


def setup_logging(
    level: str = "INFO",
    json_log_file: str | None = None,
    log_dir: str = "logs",
) -> str:
    """
    Configure the root logger and return the verbose log file path.

    The root logger is set to DEBUG so the verbose file sees everything; the
    console handler applies *level*. Existing root handlers are replaced, so
    calling this twice does not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(getattr(logging, level.upper(), logging.INFO))
    console.setFormatter(ConsoleFormatter())
    root.addHandler(console)

    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_path = os.path.join(log_dir, f"scan_{timestamp}.log")

    verbose = logging.FileHandler(log_path, mode="a")
    verbose.setLevel(logging.DEBUG)
    verbose.setFormatter(logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(verbose)

    if json_log_file:
        fh = logging.FileHandler(json_log_file, mode="a")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_path


def _supports_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

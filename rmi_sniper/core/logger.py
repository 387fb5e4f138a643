"""
Logging setup for backtest runs. Console plus optional file; the
per-trade strategy loggers can be tuned separately from the rest.
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional

TRADE_LOGGER = "rmi_sniper.strategy"
FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(name: Optional[str], default: int = logging.INFO) -> int:
    if not name:
        return default
    return getattr(logging, str(name).upper(), default)


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
    trade_level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the rmi_sniper logger: console and optional file.

    trade_level applies to the strategy loggers (one line per open, close
    and rejected entry). Long replays read better with it at WARNING while
    engine and export messages stay at `level`. Never log the Telegram token.
    """
    root = logging.getLogger("rmi_sniper")
    root.setLevel(_level(level))
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)

    formatter = logging.Formatter(FORMAT, datefmt=DATE_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir and log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)

    # NOTSET defers to the package level
    logging.getLogger(TRADE_LOGGER).setLevel(_level(trade_level, logging.NOTSET))
    return root

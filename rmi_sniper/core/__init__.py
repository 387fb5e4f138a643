"""Core: config, types, logging."""

from rmi_sniper.core.config import load_config, Config
from rmi_sniper.core.types import Bar, ExitReason, Side, TakeProfitMode, Trade, VReversalSignal
from rmi_sniper.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "Bar",
    "ExitReason",
    "Side",
    "TakeProfitMode",
    "Trade",
    "VReversalSignal",
    "setup_logging",
]

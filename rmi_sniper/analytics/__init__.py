"""Analytics: trade ledger and performance statistics (Sharpe, drawdown, streaks, profit factor)."""

from rmi_sniper.analytics.ledger import TradeLedger
from rmi_sniper.analytics.metrics import (
    PerformanceStats,
    StreakStats,
    compute_stats,
    equity_curve,
    longest_streaks,
    max_drawdown,
    profit_factor,
    running_max_drawdown,
    sharpe_ratio,
    win_rate,
)

__all__ = [
    "TradeLedger",
    "PerformanceStats",
    "StreakStats",
    "compute_stats",
    "equity_curve",
    "longest_streaks",
    "max_drawdown",
    "profit_factor",
    "running_max_drawdown",
    "sharpe_ratio",
    "win_rate",
]

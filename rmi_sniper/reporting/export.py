"""
CSV export of a finished backtest: one row per trade, then summary,
streak, V-reversal and settings sections. Runs after the replay, never
inside the per-bar path.
"""

from __future__ import annotations
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd

from rmi_sniper.analytics.metrics import PerformanceStats
from rmi_sniper.core.config import Config
from rmi_sniper.core.types import TakeProfitMode, Trade

logger = logging.getLogger("rmi_sniper.reporting")

TIME_FMT = "%Y-%m-%d %H:%M:%S"


def format_duration(duration: timedelta) -> str:
    """Compact duration: '1d 2h 3m', '2h 5m', '3m 4s' or '5s'."""
    total = int(duration.total_seconds())
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    if days >= 1:
        return f"{days}d {hours}h {minutes}m"
    if hours >= 1:
        return f"{hours}h {minutes}m"
    if minutes >= 1:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def tp_mode_label(mode: TakeProfitMode, reward_ratio: float, long_form: bool = False) -> str:
    if mode == TakeProfitMode.SIGNAL:
        return "Signal"
    if mode == TakeProfitMode.V_REVERSAL:
        return f"V-Reversal RR {reward_ratio:.1f}:1"
    return f"{'RiskReward' if long_form else 'RR'} {reward_ratio:.1f}:1"


def default_export_name(mode: TakeProfitMode, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"RMI_Backtest_{TakeProfitMode(mode).value}_{now:%Y%m%d_%H%M%S}.csv"


def trades_frame(trades: Sequence[Trade], reward_ratio: float) -> pd.DataFrame:
    """Trade table with display formatting."""
    rows = []
    for t in trades:
        rows.append({
            "Entry Time": t.entry_time.strftime(TIME_FMT),
            "Exit Time": t.exit_time.strftime(TIME_FMT),
            "Direction": t.side.value,
            "Entry Price": f"{t.entry_price:.2f}",
            "Exit Price": f"{t.exit_price:.2f}",
            "Stop Loss": f"{t.stop_loss:.2f}",
            "Take Profit": f"{t.take_profit:.2f}" if t.take_profit > 0 else "N/A",
            "Ticks P/L": f"{t.ticks:.2f}",
            "$ P/L": f"{t.profit:.2f}",
            "Exit Reason": t.exit_reason.value,
            "TP Mode": tp_mode_label(t.tp_mode, reward_ratio),
            "Risk Amount": f"{t.risk_amount:.2f}",
            "Trend Segment": t.trend_segment,
            "Is V-Reversal": "Yes" if t.is_v_reversal else "No",
        })
    return pd.DataFrame(rows)


def summary_lines(stats: PerformanceStats, config: Config) -> List[str]:
    mode = config.tp_mode
    lines = [
        "",
        "=== BACKTEST SUMMARY ===",
        f"Total Trades,{stats.total_trades}",
        f"Long Trades,{stats.long_trades}",
        f"Short Trades,{stats.short_trades}",
        f"Winners,{stats.winning_trades}",
        f"Losers,{stats.losing_trades}",
        f"Win Rate,{stats.win_rate:.2f}%",
        f"Total Ticks,{stats.total_profit_ticks:.2f}",
        f"Total P/L,${stats.total_profit:.2f}",
        f"Avg P/L,${stats.avg_profit:.2f}",
        f"Max Profit,${stats.max_profit:.2f}",
        f"Max Loss,${stats.max_loss:.2f}",
        f"Profit Factor,{stats.profit_factor:.2f}",
        f"Max Drawdown,{stats.max_drawdown_pct:.2f}%",
        f"Max Drawdown Amount,${stats.max_drawdown_amount:.2f}",
        f"Sharpe Ratio,{stats.sharpe_ratio:.2f}",
        "",
        "=== WINNING STREAK STATISTICS ===",
        f"Max Consecutive Wins,{stats.max_consecutive_wins}",
        f"Max Consecutive Wins Profit,${stats.max_consecutive_wins_profit:.2f}",
        f"Max Consecutive Wins Duration,{format_duration(stats.max_consecutive_wins_duration)}",
        "",
        "=== LOSING STREAK STATISTICS ===",
        f"Max Consecutive Losses,{stats.max_consecutive_losses}",
        f"Max Consecutive Losses Amount,${stats.max_consecutive_losses_amount:.2f}",
        f"Max Consecutive Losses Duration,{format_duration(stats.max_consecutive_losses_duration)}",
    ]
    if mode == TakeProfitMode.V_REVERSAL:
        lines += [
            "",
            "=== V-REVERSAL STATISTICS ===",
            f"V-Reversal Trades,{stats.v_reversal_trades}",
            f"V-Reversal Winners,{stats.v_reversal_winners}",
            f"V-Reversal Losers,{stats.v_reversal_losers}",
            f"V-Reversal Win Rate,{stats.v_reversal_win_rate:.2f}%",
            f"V-Reversal Total P/L,${stats.v_reversal_total_profit:.2f}",
        ]
    lines += ["", "=== SETTINGS ===", f"TP Mode,{tp_mode_label(mode, config.risk_reward_ratio, long_form=True)}"]
    if mode == TakeProfitMode.V_REVERSAL:
        lines += [
            f"V-Reversal Retracement,{config.v_reversal_threshold * 100:.0f}%",
            f"V-Reversal RMI Movement,{config.v_reversal_rmi_movement:.1f} points",
            f"V-Reversal Confirmation,{config.v_reversal_confirmation * 100:.0f}%",
            f"V-Reversal Lookback,{config.v_reversal_lookback} bars",
        ]
    lines += [
        f"Stop Loss,ATR x {config.atr_multiplier:g}",
        f"Max Risk Per Trade,${config.max_risk_per_trade:.2f}",
        f"Wait Bars,{config.wait_bars}",
        f"Initial Capital,${config.initial_capital:.2f}",
        f"Commission,${config.commission:.2f}",
        f"Tick Value,${config.tick_value:.2f}",
    ]
    return lines


def export_results(
    trades: Sequence[Trade],
    stats: PerformanceStats,
    config: Config,
    path: Union[str, Path],
) -> Path:
    """Write trades and summary to `path` (parent directories created)."""
    if not trades:
        raise ValueError("no trades to export")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        trades_frame(trades, config.risk_reward_ratio).to_csv(f, index=False, lineterminator="\n")
        f.write("\n".join(summary_lines(stats, config)) + "\n")
    logger.info("Exported %d trades to %s", len(trades), path)
    return path

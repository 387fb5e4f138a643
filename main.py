#!/usr/bin/env python3
"""
RMI Trend Sniper CLI
Usage:
  python main.py backtest --data bars.csv [--config config.yaml] [--mode VReversal] [--export]
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rmi_sniper.backtesting.engine import SniperEngine
from rmi_sniper.core.config import load_config
from rmi_sniper.core.logger import setup_logging
from rmi_sniper.core.types import TakeProfitMode
from rmi_sniper.data.loader import load_bars_csv
from rmi_sniper.reporting.export import default_export_name, export_results, format_duration
from rmi_sniper.utils.telegram import notify_run


def run_backtest(args: argparse.Namespace) -> int:
    """Replay a CSV of bars and print the statistics."""
    config = load_config(args.config, ROOT)
    if args.mode:
        config.tp_mode = args.mode
    setup_logging(config.log_level, config.log_dir, config.log_file, config.log_trade_level)
    logger = logging.getLogger("rmi_sniper")

    data_path = args.data or config.data_path
    if not data_path:
        logger.error("No bar data. Pass --data or set backtest.data_path / DATA_PATH")
        return 1
    df = load_bars_csv(data_path)
    engine = SniperEngine(config)
    result = engine.run(df)

    s = result.stats
    print("\n--- RMI Trend Sniper Backtest ---")
    print(f"Mode: {config.tp_mode.value}  Bars: {len(df)}  Skipped bars: {result.errors}")
    print(f"Total trades: {s.total_trades} (long: {s.long_trades}, short: {s.short_trades})")
    print(f"Winners / losers: {s.winning_trades} / {s.losing_trades}  Win rate: {s.win_rate:.1f}%")
    print(f"Total P/L: ${s.total_profit:.2f} ({s.total_profit_ticks:.1f} ticks)  Avg: ${s.avg_profit:.2f}")
    print(f"Profit factor: {s.profit_factor:.2f}")
    print(f"Max drawdown: {s.max_drawdown_pct:.2f}% (${s.max_drawdown_amount:.2f})")
    print(f"Sharpe ratio: {s.sharpe_ratio:.2f}")
    print(
        f"Longest win streak: {s.max_consecutive_wins} (${s.max_consecutive_wins_profit:.2f}, "
        f"{format_duration(s.max_consecutive_wins_duration)})"
    )
    print(
        f"Longest loss streak: {s.max_consecutive_losses} (${s.max_consecutive_losses_amount:.2f}, "
        f"{format_duration(s.max_consecutive_losses_duration)})"
    )
    if config.tp_mode == TakeProfitMode.V_REVERSAL:
        confirmed = sum(1 for v in result.v_reversal_signals if v.confirmed)
        print(
            f"V-reversal: {len(result.v_reversal_signals)} signals, {confirmed} confirmed, "
            f"{s.v_reversal_trades} trades, win rate {s.v_reversal_win_rate:.1f}%"
        )
    if result.open_trade is not None:
        t = result.open_trade
        print(f"Open trade: {t.side.value} @ {t.entry_price:.2f} since bar {t.entry_bar}")

    if args.export:
        if result.trades:
            path = config.export_dir / default_export_name(config.tp_mode)
            export_results(result.trades, s, config, path)
            print(f"Exported: {path}")
        else:
            logger.warning("No trades to export")

    notify_run(s, config, len(df), result.errors)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="RMI Trend Sniper backtest CLI")
    parser.add_argument("command", choices=["backtest"], help="Run a backtest")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--data", type=Path, default=None, help="OHLCV CSV (time, open, high, low, close, volume)")
    parser.add_argument("--mode", choices=[m.value for m in TakeProfitMode], default=None, help="Override exit policy")
    parser.add_argument("--export", action="store_true", help="Write trades and summary CSV to export_dir")
    args = parser.parse_args()
    return run_backtest(args)


if __name__ == "__main__":
    exit(main())

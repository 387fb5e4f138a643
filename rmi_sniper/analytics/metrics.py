"""
Performance statistics recomputed in full from the trade ledger:
win rate, profit factor, drawdown vs running peak, Sharpe on per-trade
returns, longest win/loss streaks, and V-reversal sub-totals.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Sequence, Tuple

import numpy as np

from rmi_sniper.core.types import Side, Trade

PROFIT_FACTOR_NO_LOSS = 999.0


@dataclass(frozen=True)
class StreakStats:
    """Longest run of same-outcome trades."""
    length: int = 0
    amount: float = 0.0          # cumulative profit (wins) or absolute loss (losses)
    duration: timedelta = timedelta(0)


@dataclass(frozen=True)
class PerformanceStats:
    """Statistics snapshot."""
    total_trades: int = 0
    long_trades: int = 0
    short_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    total_profit_ticks: float = 0.0
    total_profit: float = 0.0
    win_rate: float = 0.0
    avg_profit: float = 0.0
    max_profit: float = 0.0
    max_loss: float = 0.0
    profit_factor: float = 0.0
    max_drawdown_pct: float = 0.0
    max_drawdown_amount: float = 0.0
    final_equity: float = 0.0
    returns: Tuple[float, ...] = ()
    sharpe_ratio: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_wins_profit: float = 0.0
    max_consecutive_wins_duration: timedelta = timedelta(0)
    max_consecutive_losses: int = 0
    max_consecutive_losses_amount: float = 0.0
    max_consecutive_losses_duration: timedelta = timedelta(0)
    v_reversal_trades: int = 0
    v_reversal_winners: int = 0
    v_reversal_losers: int = 0
    v_reversal_total_profit: float = 0.0
    v_reversal_win_rate: float = 0.0


def sharpe_ratio(returns: Sequence[float], periods_per_year: float = 252.0) -> float:
    """Annualized Sharpe with sample std (n-1). 0 with fewer than 2 returns or zero std."""
    if len(returns) < 2:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    std = arr.std(ddof=1)
    if std <= 1e-12:
        return 0.0
    return float(arr.mean() * np.sqrt(periods_per_year) / std)


def profit_factor(profits: Sequence[float]) -> float:
    """Gross profit / gross loss. 999 if profit but no losses, 0 if neither."""
    wins = sum(p for p in profits if p > 0)
    losses = sum(-p for p in profits if p <= 0)
    if losses == 0:
        return PROFIT_FACTOR_NO_LOSS if wins > 0 else 0.0
    return wins / losses


def win_rate(profits: Sequence[float]) -> float:
    """Percent of trades with positive profit."""
    if not profits:
        return 0.0
    return sum(1 for p in profits if p > 0) / len(profits) * 100.0


def equity_curve(profits: Sequence[float], initial_capital: float) -> List[float]:
    """Equity after each trade, starting with initial capital."""
    curve = [initial_capital]
    for p in profits:
        curve.append(curve[-1] + p)
    return curve


def running_max_drawdown(profits: Sequence[float], initial_capital: float) -> List[float]:
    """Max drawdown % seen so far after each trade (non-decreasing)."""
    peak = initial_capital
    equity = initial_capital
    worst = 0.0
    out = []
    for p in profits:
        equity += p
        if equity > peak:
            peak = equity
        dd = (peak - equity) / peak * 100.0 if peak > 0 else 0.0
        if dd > worst:
            worst = dd
        out.append(worst)
    return out


def max_drawdown(profits: Sequence[float], initial_capital: float) -> Tuple[float, float]:
    """
    (percent, amount) of the deepest drawdown against the running equity
    peak. The amount is taken at the bar the percent record was set.
    """
    peak = initial_capital
    equity = initial_capital
    worst_pct = 0.0
    worst_amount = 0.0
    for p in profits:
        equity += p
        if equity > peak:
            peak = equity
        dd = (peak - equity) / peak * 100.0 if peak > 0 else 0.0
        if dd > worst_pct:
            worst_pct = dd
            worst_amount = peak - equity
    return worst_pct, worst_amount


def longest_streaks(trades: Sequence[Trade]) -> Tuple[StreakStats, StreakStats]:
    """
    Scan trades in order; a streak is closed when the outcome changes and
    the open one is finalized at the end. Equal lengths keep the larger amount.
    """
    best = {True: StreakStats(), False: StreakStats()}
    run_len = 0
    run_amount = 0.0
    run_start = 0
    run_win = None

    def finalize(end: int) -> None:
        record = best[run_win]
        if run_len > record.length or (run_len == record.length and run_amount > record.amount):
            duration = trades[end].exit_time - trades[run_start].entry_time
            best[run_win] = StreakStats(run_len, run_amount, duration)

    for i, trade in enumerate(trades):
        won = trade.is_winner
        if run_win is not None and won != run_win:
            finalize(i - 1)
            run_len = 0
            run_amount = 0.0
        if run_len == 0:
            run_start = i
            run_win = won
        run_len += 1
        run_amount += trade.profit if won else abs(trade.profit)
    if run_len > 0:
        finalize(len(trades) - 1)
    return best[True], best[False]


def compute_stats(trades: Sequence[Trade], initial_capital: float) -> PerformanceStats:
    """Full recompute from the ledger."""
    if not trades:
        return PerformanceStats(final_equity=initial_capital)
    profits = [t.profit for t in trades]
    wins = [p for p in profits if p > 0]
    losses = [p for p in profits if p <= 0]
    returns = tuple(p / initial_capital for p in profits)
    dd_pct, dd_amount = max_drawdown(profits, initial_capital)
    win_streak, loss_streak = longest_streaks(trades)
    v_trades = [t for t in trades if t.is_v_reversal]
    v_winners = sum(1 for t in v_trades if t.is_winner)
    total = sum(profits)
    return PerformanceStats(
        total_trades=len(trades),
        long_trades=sum(1 for t in trades if t.side == Side.LONG),
        short_trades=sum(1 for t in trades if t.side == Side.SHORT),
        winning_trades=len(wins),
        losing_trades=len(losses),
        total_profit_ticks=sum(t.ticks for t in trades),
        total_profit=total,
        win_rate=win_rate(profits),
        avg_profit=total / len(trades),
        max_profit=max([0.0] + wins),
        max_loss=min([0.0] + losses),
        profit_factor=profit_factor(profits),
        max_drawdown_pct=dd_pct,
        max_drawdown_amount=dd_amount,
        final_equity=initial_capital + total,
        returns=returns,
        sharpe_ratio=sharpe_ratio(returns),
        max_consecutive_wins=win_streak.length,
        max_consecutive_wins_profit=win_streak.amount,
        max_consecutive_wins_duration=win_streak.duration,
        max_consecutive_losses=loss_streak.length,
        max_consecutive_losses_amount=loss_streak.amount,
        max_consecutive_losses_duration=loss_streak.duration,
        v_reversal_trades=len(v_trades),
        v_reversal_winners=v_winners,
        v_reversal_losers=len(v_trades) - v_winners,
        v_reversal_total_profit=sum(t.profit for t in v_trades),
        v_reversal_win_rate=v_winners / len(v_trades) * 100.0 if v_trades else 0.0,
    )

"""
Trend-following policies. Both enter once per trend segment after the
confirmation wait; Signal exits on a confirmed opposite signal and flips
into the new direction, RiskReward exits only on stop or target.
"""

from __future__ import annotations
import logging
from typing import Optional

from rmi_sniper.core.types import ExitReason, Side, TakeProfitMode
from rmi_sniper.indicators.rmi import BEARISH, BULLISH
from rmi_sniper.strategies.base import BarContext, ExitPolicy

logger = logging.getLogger("rmi_sniper.strategy.signal")


class SignalPolicy(ExitPolicy):
    """Swing mode: ride the segment, exit and reverse on the next confirmed flip."""

    mode = TakeProfitMode.SIGNAL
    uses_take_profit = False
    exits_on_signal = True

    def __init__(self) -> None:
        self.fast_entry_pending = False
        self.fast_entry_side: Optional[Side] = None
        self.fast_entry_bar: Optional[int] = None

    def on_bar(self, ctx: BarContext) -> None:
        if ctx.desk.is_flat:
            self._check_entry(ctx)
        elif self.exits_on_signal:
            self._check_signal_exit(ctx)

    def on_forced_exit(self) -> None:
        self.fast_entry_pending = False

    def _check_entry(self, ctx: BarContext) -> None:
        tracker = ctx.tracker
        wait = ctx.config.wait_bars

        if self.fast_entry_pending:
            # Re-entry is only valid on the bar right after the signal exit
            if ctx.bar_index == self.fast_entry_bar:
                want = BULLISH if self.fast_entry_side == Side.LONG else BEARISH
                if ctx.regime == want and ctx.open(self.fast_entry_side) is not None:
                    tracker.trade_opened_in_segment = True
                self.fast_entry_pending = False
                return
            self.fast_entry_pending = False

        if tracker.trade_opened_in_segment:
            return
        if tracker.bullish_ready(wait):
            if ctx.regime == BULLISH and ctx.open(Side.LONG) is not None:
                tracker.trade_opened_in_segment = True
                tracker.last_bullish_bar = None
        elif tracker.bearish_ready(wait):
            if ctx.regime == BEARISH and ctx.open(Side.SHORT) is not None:
                tracker.trade_opened_in_segment = True
                tracker.last_bearish_bar = None

    def _check_signal_exit(self, ctx: BarContext) -> None:
        trade = ctx.desk.current_trade
        tracker = ctx.tracker
        wait = ctx.config.wait_bars
        if trade.is_long:
            signal_bar, ready, want, reverse = (
                tracker.last_bearish_bar, tracker.bearish_ready(wait), BEARISH, Side.SHORT,
            )
        else:
            signal_bar, ready, want, reverse = (
                tracker.last_bullish_bar, tracker.bullish_ready(wait), BULLISH, Side.LONG,
            )
        if signal_bar is None or signal_bar <= trade.entry_bar:
            return
        if ready and ctx.regime == want:
            ctx.desk.close(ctx.bar_index, ctx.bar, ctx.bar.close, ExitReason.SIGNAL_TP)
            self.fast_entry_pending = True
            self.fast_entry_side = reverse
            self.fast_entry_bar = ctx.bar_index + 1
            logger.debug("Bar %d: fast %s re-entry scheduled", ctx.bar_index, reverse.value)


class RiskRewardPolicy(SignalPolicy):
    """Counter mode: same entries, fixed target at risk * reward ratio, no signal exits."""

    mode = TakeProfitMode.RISK_REWARD
    uses_take_profit = True
    exits_on_signal = False

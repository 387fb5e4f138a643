"""Exit policy interface and the trade desk that opens and closes simulated positions."""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from rmi_sniper.analytics.ledger import TradeLedger
from rmi_sniper.core.config import Config
from rmi_sniper.core.types import Bar, ExitReason, Side, TakeProfitMode, Trade
from rmi_sniper.indicators.rmi import IndicatorState
from rmi_sniper.risk.manager import RiskManager
from rmi_sniper.strategies.trend import TrendSegmentTracker

logger = logging.getLogger("rmi_sniper.strategy")


class TradeDesk:
    """
    Holds the single open position. Entries go through the risk gate;
    closed trades are appended to the ledger. Records this bar's
    open/close events for the engine.
    """

    def __init__(self, config: Config, risk_manager: RiskManager, ledger: TradeLedger):
        self.config = config
        self.risk_manager = risk_manager
        self.ledger = ledger
        self.current_trade: Optional[Trade] = None
        self.opened: Optional[Trade] = None
        self.closed: Optional[Trade] = None

    @property
    def is_flat(self) -> bool:
        return self.current_trade is None or not self.current_trade.is_active

    def begin_bar(self) -> None:
        self.opened = None
        self.closed = None

    def try_open(
        self,
        bar_index: int,
        bar: Bar,
        indicator: IndicatorState,
        side: Side,
        segment: int,
        is_v_reversal: bool = False,
    ) -> Optional[Trade]:
        """Open at the bar close if the risk gate passes. Returns None when rejected."""
        if not self.is_flat:
            raise RuntimeError(f"bar {bar_index}: entry while trade from bar {self.current_trade.entry_bar} is open")
        entry = bar.close
        result = self.risk_manager.validate_entry(entry, side, indicator.atr, bar.range)
        if not result.allowed:
            logger.debug("Bar %d: %s entry rejected (%s)", bar_index, side.value, result.reason)
            return None
        mode = self.config.tp_mode
        take_profit = 0.0
        if mode in (TakeProfitMode.RISK_REWARD, TakeProfitMode.V_REVERSAL):
            take_profit = self.risk_manager.take_profit_price(
                entry, result.stop_price, side, self.config.risk_reward_ratio,
            )
        trade = Trade(
            entry_bar=bar_index,
            entry_price=entry,
            entry_time=bar.time,
            side=side,
            stop_loss=result.stop_price,
            take_profit=take_profit,
            risk_amount=result.risk_amount,
            trend_segment=segment,
            tp_mode=mode,
            is_v_reversal=is_v_reversal,
        )
        self.current_trade = trade
        self.opened = trade
        logger.info(
            "Bar %d: open %s%s @ %.2f SL=%.2f TP=%.2f risk=$%.2f seg=%d",
            bar_index, side.value, " (V)" if is_v_reversal else "", entry,
            trade.stop_loss, take_profit, trade.risk_amount, segment,
        )
        return trade

    def close(self, bar_index: int, bar: Bar, price: float, reason: ExitReason) -> Trade:
        trade = self.current_trade
        if trade is None or not trade.is_active:
            raise RuntimeError(f"bar {bar_index}: no open trade to close")
        trade.close(
            bar_index, price, bar.time, reason,
            self.config.tick_size, self.config.tick_value, self.config.commission,
        )
        self.ledger.append(trade)
        self.current_trade = None
        self.closed = trade
        logger.info(
            "Bar %d: close %s @ %.2f (%s) P/L=$%.2f",
            bar_index, trade.side.value, price, reason.value, trade.profit,
        )
        return trade

    def check_stops(self, bar_index: int, bar: Bar, use_take_profit: bool) -> Optional[Trade]:
        """Stop first, then target, using the bar's extremes for touch detection."""
        trade = self.current_trade
        if trade is None or not trade.is_active:
            return None
        has_target = use_take_profit and trade.take_profit > 0
        if trade.is_long:
            if bar.low <= trade.stop_loss:
                return self.close(bar_index, bar, trade.stop_loss, ExitReason.STOP_LOSS)
            if has_target and bar.high >= trade.take_profit:
                return self.close(bar_index, bar, trade.take_profit, ExitReason.TAKE_PROFIT)
        else:
            if bar.high >= trade.stop_loss:
                return self.close(bar_index, bar, trade.stop_loss, ExitReason.STOP_LOSS)
            if has_target and bar.low <= trade.take_profit:
                return self.close(bar_index, bar, trade.take_profit, ExitReason.TAKE_PROFIT)
        return None

    def check_max_hold(self, bar_index: int, bar: Bar, max_hold_bars: int) -> Optional[Trade]:
        trade = self.current_trade
        if trade is None or not trade.is_active:
            return None
        if bar_index - trade.entry_bar >= max_hold_bars:
            return self.close(bar_index, bar, bar.close, ExitReason.MAX_BARS)
        return None


@dataclass
class BarContext:
    """Everything a policy may read (and the desk it may act through) for one bar."""
    bar_index: int
    bar: Bar
    indicator: IndicatorState
    prev_regime: int
    tracker: TrendSegmentTracker
    desk: TradeDesk
    config: Config

    @property
    def regime(self) -> int:
        return self.indicator.regime

    def open(self, side: Side, is_v_reversal: bool = False) -> Optional[Trade]:
        return self.desk.try_open(
            self.bar_index, self.bar, self.indicator, side, self.tracker.segment, is_v_reversal,
        )


class ExitPolicy(ABC):
    """One of the mutually exclusive entry/exit modes."""

    mode: TakeProfitMode
    uses_take_profit: bool = False

    @abstractmethod
    def on_bar(self, ctx: BarContext) -> None:
        """Entries and policy-specific exits for one bar (after stop/target checks)."""
        pass

    def on_forced_exit(self) -> None:
        """Called after a MaxBars exit."""
        pass

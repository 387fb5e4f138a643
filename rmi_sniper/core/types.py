"""
Core data types for bars, trades, and V-reversal signals.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Side(str, Enum):
    LONG = "Long"
    SHORT = "Short"


class TakeProfitMode(str, Enum):
    SIGNAL = "Signal"          # exit on opposite confirmed signal
    RISK_REWARD = "RiskReward"  # fixed stop and target
    V_REVERSAL = "VReversal"   # counter-trend on oscillator retracement


class ExitReason(str, Enum):
    STOP_LOSS = "Stop Loss"
    TAKE_PROFIT = "Take Profit"
    SIGNAL_TP = "Signal TP"
    MAX_BARS = "MaxBars"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle."""
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3.0

    @property
    def range(self) -> float:
        return self.high - self.low


@dataclass
class Trade:
    """Simulated trade. Open until close() is called, then frozen."""
    entry_bar: int
    entry_price: float
    entry_time: datetime
    side: Side
    stop_loss: float
    take_profit: float
    risk_amount: float
    trend_segment: int
    tp_mode: TakeProfitMode
    is_v_reversal: bool = False
    exit_bar: Optional[int] = None
    exit_price: Optional[float] = None
    exit_time: Optional[datetime] = None
    exit_reason: Optional[ExitReason] = None
    ticks: float = 0.0
    profit: float = 0.0

    @property
    def is_long(self) -> bool:
        return self.side == Side.LONG

    @property
    def is_active(self) -> bool:
        return self.exit_bar is None

    @property
    def is_winner(self) -> bool:
        return self.profit > 0

    def close(
        self,
        bar: int,
        price: float,
        time: datetime,
        reason: ExitReason,
        tick_size: float,
        tick_value: float,
        commission: float,
    ) -> "Trade":
        """Set exit fields and realized profit. A trade closes exactly once."""
        if not self.is_active:
            raise ValueError(f"trade entered at bar {self.entry_bar} is already closed")
        move = price - self.entry_price if self.is_long else self.entry_price - price
        self.exit_bar = bar
        self.exit_price = price
        self.exit_time = time
        self.exit_reason = reason
        self.ticks = move / tick_size
        self.profit = self.ticks * tick_value - commission
        return self


@dataclass
class VReversalSignal:
    """Oscillator extreme tracking for one regime segment in V-reversal mode."""
    signal_bar: int
    is_long_signal: bool   # regime at the flip was bullish
    trade_is_long: bool    # trade goes against the flip
    signal_value: float
    extreme_value: float
    extreme_bar: int
    current_value: float
    confirmed: bool = False
    executed: bool = False
    confirm_bar: Optional[int] = None
    movement: float = 0.0
    retracement_pct: float = 0.0

"""
RMI Trend Sniper indicator: RSI/MFI composite oscillator, regime flag,
ATR, volatility band and range-weighted moving average.
Streaming: one update per new bar, no lookahead.
"""

from __future__ import annotations
import math
from dataclasses import asdict, dataclass, replace
from typing import List, Sequence

import pandas as pd

from rmi_sniper.core.types import Bar

PLACEHOLDER_VOLUME = 1000.0
EMA_ALPHA = 2.0 / 6.0
ATR_PERIOD = 30
BAND_LAG = 20
BAND_WIDTH_MULT = 4.0
RWMA_WINDOW = 20

BULLISH = 1
BEARISH = -1
NEUTRAL = 0


@dataclass(frozen=True)
class IndicatorState:
    """Derived values for one bar."""
    up: float = 0.0
    down: float = 0.0
    rsi: float = 0.0
    pos_mf: float = 0.0
    neg_mf: float = 0.0
    mfi: float = 0.0
    oscillator: float = 0.0
    ema: float = 0.0
    ema_slope: float = 0.0
    regime: int = NEUTRAL
    bar_range: float = 0.0
    true_range: float = 0.0
    atr: float = 0.0
    min_val: float = 0.0
    band: float = 0.0
    rwma: float = 0.0
    band_min: float = 0.0
    band_max: float = 0.0


def wilder(raw: float, prev: float, length: int) -> float:
    """Wilder smoothing step."""
    return (raw + (length - 1) * prev) / length


def is_finite_bar(bar: Bar) -> bool:
    return all(math.isfinite(v) for v in (bar.open, bar.high, bar.low, bar.close, bar.volume))


def strength_ratio(gain: float, loss: float) -> float:
    """100 - 100/(1 + gain/loss), with 100 when loss is 0 and 0 when gain is 0."""
    if loss == 0:
        return 100.0
    if gain == 0:
        return 0.0
    return 100.0 - 100.0 / (1.0 + gain / loss)


class RmiCalculator:
    """
    Append-only per-bar indicator series. update(i) must be called once per
    bar in increasing order; reset() before replaying history after a
    parameter change.
    """

    def __init__(self, bars: Sequence[Bar], length: int = 14, positive_above: float = 66, negative_below: float = 30):
        self.bars = bars
        self.length = length
        self.positive_above = positive_above
        self.negative_below = negative_below
        self._states: List[IndicatorState] = []

    def __len__(self) -> int:
        return len(self._states)

    def reset(self) -> None:
        self._states.clear()

    def state(self, bar_index: int) -> IndicatorState:
        if not 0 <= bar_index < len(self._states):
            raise IndexError(f"no indicator state for bar {bar_index} (have {len(self._states)})")
        return self._states[bar_index]

    def carry_forward(self, bar_index: int) -> IndicatorState:
        """Fill a missing slot with the previous bar's values (stale)."""
        if bar_index < len(self._states):
            return self._states[bar_index]
        if bar_index != len(self._states):
            raise ValueError(f"cannot carry forward to bar {bar_index}, next slot is {len(self._states)}")
        state = replace(self._states[-1]) if self._states else IndicatorState()
        self._states.append(state)
        return state

    def update(self, bar_index: int) -> IndicatorState:
        if bar_index != len(self._states):
            raise ValueError(f"indicator update out of order: got bar {bar_index}, expected {len(self._states)}")
        if not 0 <= bar_index < len(self.bars):
            raise IndexError(f"bar {bar_index} not available (have {len(self.bars)})")

        i = bar_index
        bar = self.bars[i]
        if not is_finite_bar(bar):
            raise ValueError(f"bar {i}: non-finite OHLCV values")
        # Rejected bars are skipped: measure change from the last clean bar
        j = i - 1
        while j >= 0 and not is_finite_bar(self.bars[j]):
            j -= 1
        first = j < 0
        prev_bar = bar if first else self.bars[j]
        prev = IndicatorState() if first else self._states[i - 1]
        n = self.length

        # Momentum
        change = 0.0 if first else bar.close - prev_bar.close
        up_raw = max(change, 0.0)
        down_raw = max(-change, 0.0)
        up = up_raw if first else wilder(up_raw, prev.up, n)
        down = down_raw if first else wilder(down_raw, prev.down, n)
        rsi = strength_ratio(up, down)

        # Money flow
        tp = bar.typical_price
        raw_mf = tp * (bar.volume if bar.volume > 0 else PLACEHOLDER_VOLUME)
        pos_raw = neg_raw = 0.0
        if not first:
            prev_tp = prev_bar.typical_price
            if tp > prev_tp:
                pos_raw = raw_mf
            elif tp < prev_tp:
                neg_raw = raw_mf
        pos_mf = pos_raw if first else wilder(pos_raw, prev.pos_mf, n)
        neg_mf = neg_raw if first else wilder(neg_raw, prev.neg_mf, n)
        mfi = strength_ratio(pos_mf, neg_mf)

        osc = (rsi + mfi) / 2.0

        ema = bar.close if first else EMA_ALPHA * bar.close + (1 - EMA_ALPHA) * prev.ema
        slope = 0.0 if first else ema - prev.ema

        regime = self._classify(osc, slope, None if first else prev.oscillator, prev.regime)

        # Volatility
        true_range = max(bar.range, abs(bar.high - prev_bar.close), abs(bar.low - prev_bar.close))
        atr = true_range if first else (true_range + (ATR_PERIOD - 1) * prev.atr) / ATR_PERIOD
        min_val = min(atr * 0.3, bar.close * 0.003)
        band = self._states[i - BAND_LAG].min_val * BAND_WIDTH_MULT if i >= BAND_LAG else 0.0

        rwma = self._range_weighted_close(i, bar)

        state = IndicatorState(
            up=up,
            down=down,
            rsi=rsi,
            pos_mf=pos_mf,
            neg_mf=neg_mf,
            mfi=mfi,
            oscillator=osc,
            ema=ema,
            ema_slope=slope,
            regime=regime,
            bar_range=bar.range,
            true_range=true_range,
            atr=atr,
            min_val=min_val,
            band=band,
            rwma=rwma,
            band_min=rwma - band,
            band_max=rwma + band,
        )
        self._states.append(state)
        return state

    def _classify(self, osc: float, slope: float, prev_osc, prev_regime: int) -> int:
        """Regime flips only on a fresh threshold cross; otherwise it persists."""
        if prev_osc is None:
            return NEUTRAL
        bullish = osc > self.positive_above and slope > 0
        bearish = osc < self.negative_below and slope < 0
        if bullish and prev_osc < self.positive_above:
            return BULLISH
        if bearish and prev_osc > self.negative_below:
            return BEARISH
        return prev_regime

    def _range_weighted_close(self, i: int, bar: Bar) -> float:
        if i < RWMA_WINDOW - 1:
            return bar.close
        window = [b for b in self.bars[i - RWMA_WINDOW + 1:i + 1] if is_finite_bar(b)]
        total_range = sum(b.range for b in window)
        if total_range <= 0:
            return 0.0
        return sum(b.close * b.range for b in window) / total_range

    def to_frame(self) -> pd.DataFrame:
        """All states as a DataFrame indexed by bar, with the bar time column."""
        df = pd.DataFrame([asdict(s) for s in self._states])
        if len(df):
            df.insert(0, "time", [self.bars[i].time for i in range(len(df))])
        return df

"""Trend segment tracking: regime flips, confirmation counting, one-trade-per-segment gate."""

from __future__ import annotations
from typing import Optional

from rmi_sniper.indicators.rmi import BEARISH, BULLISH


class TrendSegmentTracker:
    """
    A segment starts on every flip into +1 or -1. A flip records a pending
    signal whose confirmation counter grows each following bar the regime
    holds; a break in the regime invalidates it.
    """

    def __init__(self) -> None:
        self.last_bullish_bar: Optional[int] = None
        self.last_bearish_bar: Optional[int] = None
        self.bullish_confirmations = 0
        self.bearish_confirmations = 0
        self.segment = 0
        self.trade_opened_in_segment = False

    def update(self, bar: int, regime: int, prev_regime: int) -> bool:
        """Fold one bar in. Returns True when the bar starts a new segment."""
        flipped = False
        if regime == BULLISH and prev_regime != BULLISH:
            self.last_bullish_bar = bar
            self.bullish_confirmations = 0
            flipped = True
        elif regime == BEARISH and prev_regime != BEARISH:
            self.last_bearish_bar = bar
            self.bearish_confirmations = 0
            flipped = True
        if flipped:
            self.segment += 1
            self.trade_opened_in_segment = False

        if self.last_bullish_bar is not None and bar > self.last_bullish_bar:
            if regime == BULLISH:
                self.bullish_confirmations += 1
            else:
                self.last_bullish_bar = None
        if self.last_bearish_bar is not None and bar > self.last_bearish_bar:
            if regime == BEARISH:
                self.bearish_confirmations += 1
            else:
                self.last_bearish_bar = None
        return flipped

    def bullish_ready(self, wait_bars: int) -> bool:
        return self.last_bullish_bar is not None and self.bullish_confirmations >= wait_bars

    def bearish_ready(self, wait_bars: int) -> bool:
        return self.last_bearish_bar is not None and self.bearish_confirmations >= wait_bars

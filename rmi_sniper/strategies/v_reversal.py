"""
V-reversal counter-trend policy.

Every regime flip opens a signal that records the oscillator value at the
flip. While flat, the running extreme (high while bullish, low while
bearish) is tracked. Once `lookback` bars have passed since the extreme
bar, the retracement from the extreme is tested; when it is deep enough,
but not so deep that the oscillator gives back more than 5% past the
signal value, a trade is opened against the flip (short after a bullish
flip, long after a bearish one).
"""

from __future__ import annotations
import logging
from typing import Dict, Optional

from rmi_sniper.core.config import Config
from rmi_sniper.core.types import Side, TakeProfitMode, VReversalSignal
from rmi_sniper.indicators.rmi import BEARISH, BULLISH, NEUTRAL
from rmi_sniper.strategies.base import BarContext, ExitPolicy

logger = logging.getLogger("rmi_sniper.strategy.v_reversal")

SIGNAL_TOLERANCE = 0.05


class VReversalPolicy(ExitPolicy):

    mode = TakeProfitMode.V_REVERSAL
    uses_take_profit = True

    def __init__(self) -> None:
        self.signals: Dict[int, VReversalSignal] = {}
        self._live: Optional[VReversalSignal] = None
        self._last_regime = NEUTRAL

    @property
    def live_signal(self) -> Optional[VReversalSignal]:
        return self._live

    def on_bar(self, ctx: BarContext) -> None:
        regime = ctx.regime
        value = ctx.indicator.oscillator

        if regime != ctx.prev_regime and regime != NEUTRAL and regime != self._last_regime:
            self._start_signal(ctx, regime, value)

        sig = self._live
        if sig is None or sig.confirmed or ctx.bar_index <= sig.signal_bar or not ctx.desk.is_flat:
            return

        if regime == BULLISH and value > sig.extreme_value:
            sig.extreme_value = value
            sig.extreme_bar = ctx.bar_index
        elif regime == BEARISH and value < sig.extreme_value:
            sig.extreme_value = value
            sig.extreme_bar = ctx.bar_index
        sig.current_value = value

        if sig.extreme_bar <= sig.signal_bar:
            return
        if ctx.bar_index < sig.extreme_bar + ctx.config.v_reversal_lookback:
            return
        if not self.detect_reversal(sig, regime, value, ctx.config) or ctx.tracker.trade_opened_in_segment:
            return

        sig.confirmed = True
        sig.confirm_bar = ctx.bar_index
        side = Side.LONG if regime == BEARISH else Side.SHORT
        logger.debug(
            "Bar %d: V-reversal confirmed (signal bar %d, move %.2f, retrace %.0f%%)",
            ctx.bar_index, sig.signal_bar, sig.movement, sig.retracement_pct * 100,
        )
        if ctx.open(side, is_v_reversal=True) is not None:
            ctx.tracker.trade_opened_in_segment = True
            sig.executed = True

    def _start_signal(self, ctx: BarContext, regime: int, value: float) -> None:
        sig = VReversalSignal(
            signal_bar=ctx.bar_index,
            is_long_signal=regime == BULLISH,
            trade_is_long=regime == BEARISH,
            signal_value=value,
            extreme_value=value,
            extreme_bar=ctx.bar_index,
            current_value=value,
        )
        self.signals[ctx.bar_index] = sig
        self._live = sig
        self._last_regime = regime
        ctx.tracker.trade_opened_in_segment = False

    @staticmethod
    def detect_reversal(sig: VReversalSignal, regime: int, value: float, config: Config) -> bool:
        """
        Excursion from signal to extreme must reach the minimum movement and
        the pullback from the extreme must clear both the confirmation and
        reversal fractions. Records movement and retracement on the signal.
        """
        if regime == BULLISH:
            excursion = sig.extreme_value - sig.signal_value
            pullback = sig.extreme_value - value
            in_trend = value >= sig.signal_value * (1 - SIGNAL_TOLERANCE)
        elif regime == BEARISH:
            excursion = sig.signal_value - sig.extreme_value
            pullback = value - sig.extreme_value
            in_trend = value <= sig.signal_value * (1 + SIGNAL_TOLERANCE)
        else:
            return False
        if excursion <= 0 or pullback <= 0:
            return False

        retracement = pullback / excursion
        sig.movement = excursion
        sig.retracement_pct = retracement
        return (
            excursion >= config.v_reversal_rmi_movement
            and retracement >= config.v_reversal_confirmation
            and retracement >= config.v_reversal_threshold
            and in_trend
        )

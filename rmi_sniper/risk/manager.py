"""
Risk manager: ATR stop placement and max-risk-per-trade gate.
Risk amount = |entry - stop| / tick_size * tick_value.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from rmi_sniper.core.types import Side

logger = logging.getLogger("rmi_sniper.risk")

ATR_FALLBACK_RANGE_PCT = 0.1


@dataclass
class RiskResult:
    """Result of risk check: allowed or rejected + reason."""
    allowed: bool
    stop_price: float = 0.0
    risk_ticks: float = 0.0
    risk_amount: float = 0.0
    reason: str = ""


class RiskManager:
    """
    Places the stop at entry -/+ ATR * multiplier and rejects entries whose
    dollar risk at the stop exceeds max_risk_per_trade.
    """

    def __init__(
        self,
        atr_multiplier: float,
        max_risk_per_trade: float,
        tick_size: float = 0.1,
        tick_value: float = 10.0,
    ):
        self.atr_multiplier = atr_multiplier
        self.max_risk_per_trade = max_risk_per_trade
        self.tick_size = tick_size
        self.tick_value = tick_value

    def stop_distance(self, atr: float, bar_range: float) -> float:
        """ATR * multiplier; ATR falls back to 10% of the bar range until it is available."""
        atr_value = atr if atr > 0 else bar_range * ATR_FALLBACK_RANGE_PCT
        return atr_value * self.atr_multiplier

    def stop_price(self, entry_price: float, side: Side, atr: float, bar_range: float) -> float:
        dist = self.stop_distance(atr, bar_range)
        return entry_price - dist if side == Side.LONG else entry_price + dist

    def risk_amount(self, entry_price: float, stop_price: float) -> float:
        return abs(entry_price - stop_price) / self.tick_size * self.tick_value

    def take_profit_price(self, entry_price: float, stop_price: float, side: Side, reward_ratio: float) -> float:
        """Target at reward_ratio times the stop distance."""
        dist = abs(entry_price - stop_price) * reward_ratio
        return entry_price + dist if side == Side.LONG else entry_price - dist

    def validate_entry(self, entry_price: float, side: Side, atr: float, bar_range: float) -> RiskResult:
        """Compute the stop for a prospective entry and check it against the risk ceiling."""
        stop = self.stop_price(entry_price, side, atr, bar_range)
        dist = abs(entry_price - stop)
        if dist <= 0:
            return RiskResult(allowed=False, stop_price=stop, reason="zero stop distance")
        ticks = dist / self.tick_size
        amount = ticks * self.tick_value
        if amount > self.max_risk_per_trade:
            logger.debug("Entry rejected: risk %.2f > max %.2f", amount, self.max_risk_per_trade)
            return RiskResult(
                allowed=False,
                stop_price=stop,
                risk_ticks=ticks,
                risk_amount=amount,
                reason=f"risk {amount:.2f} > max {self.max_risk_per_trade:.2f}",
            )
        return RiskResult(allowed=True, stop_price=stop, risk_ticks=ticks, risk_amount=amount)

"""Indicators: RMI/MFI composite oscillator and volatility band."""

from rmi_sniper.indicators.rmi import (
    BEARISH,
    BULLISH,
    NEUTRAL,
    IndicatorState,
    RmiCalculator,
    strength_ratio,
)

__all__ = ["BEARISH", "BULLISH", "NEUTRAL", "IndicatorState", "RmiCalculator", "strength_ratio"]

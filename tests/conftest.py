"""Shared fixtures: bar factories and a scripted indicator feed for policy scenarios."""

from dataclasses import replace
from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest

from rmi_sniper.backtesting.engine import SniperEngine
from rmi_sniper.core.types import Bar
from rmi_sniper.indicators.rmi import IndicatorState

T0 = datetime(2024, 1, 2, 9, 30)


def bar_at(i, close=100.0, high=None, low=None, volume=100.0):
    return Bar(
        time=T0 + timedelta(minutes=i),
        open=close,
        high=close + 0.5 if high is None else high,
        low=close - 0.5 if low is None else low,
        close=close,
        volume=volume,
    )


class ScriptedCalculator:
    """Stands in for RmiCalculator, replaying fixed indicator states."""

    def __init__(self, states):
        self._script = list(states)
        self._states = []

    def __len__(self):
        return len(self._states)

    def update(self, i):
        if i != len(self._states):
            raise ValueError(f"out of order: {i}")
        state = self._script[i]
        self._states.append(state)
        return state

    def state(self, i):
        return self._states[i]

    def carry_forward(self, i):
        if i < len(self._states):
            return self._states[i]
        state = replace(self._states[-1]) if self._states else IndicatorState()
        self._states.append(state)
        return state

    def to_frame(self):
        return pd.DataFrame([vars(s) for s in self._states])


@pytest.fixture
def make_bar():
    return bar_at


@pytest.fixture
def run_script():
    """
    Drive a SniperEngine with scripted regimes / oscillator values.
    Returns (engine, updates).
    """
    def _run(config, regimes, oscillators=None, bars=None, atr=1.0):
        n = len(regimes)
        oscillators = oscillators or [50.0] * n
        bars = bars or [bar_at(i) for i in range(n)]
        states = [IndicatorState(oscillator=o, regime=r, atr=atr) for r, o in zip(regimes, oscillators)]
        engine = SniperEngine(config)
        engine.calculator = ScriptedCalculator(states)
        updates = [engine.append_bar(b) for b in bars]
        return engine, updates
    return _run


@pytest.fixture
def wave_bars():
    """Noisy sine wave: swings the oscillator through both thresholds repeatedly."""
    rng = np.random.RandomState(7)
    n = 600
    closes = 100 + 10 * np.sin(2 * np.pi * np.arange(n) / 80) + rng.randn(n) * 0.3
    bars = []
    for i, c in enumerate(closes):
        wiggle = abs(rng.randn()) * 0.3
        bars.append(Bar(
            time=T0 + timedelta(minutes=5 * i),
            open=float(c),
            high=float(c + 0.5 + wiggle),
            low=float(c - 0.5 - wiggle),
            close=float(c),
            volume=float(1000 + rng.randint(0, 500)),
        ))
    return bars

"""
Backtest engine: bar-by-bar, no lookahead. One append_bar() call per new
bar runs indicator update -> trend tracking -> stop/target checks ->
policy -> max-hold exit -> statistics refresh. A parameter change replays
the whole history from bar 0.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Union

import pandas as pd

from rmi_sniper.analytics.ledger import TradeLedger
from rmi_sniper.analytics.metrics import PerformanceStats, compute_stats, equity_curve
from rmi_sniper.core.config import Config
from rmi_sniper.core.types import Bar, Trade, VReversalSignal
from rmi_sniper.data.loader import bars_from_frame
from rmi_sniper.indicators.rmi import IndicatorState, RmiCalculator
from rmi_sniper.risk.manager import RiskManager
from rmi_sniper.strategies import BarContext, TradeDesk, TrendSegmentTracker, VReversalPolicy, build_policy

logger = logging.getLogger("rmi_sniper.backtest")

# Trading logic needs two prior bars of indicator history
MIN_TRADING_BAR = 2


@dataclass
class BarUpdate:
    """What one bar produced."""
    bar_index: int
    indicator: Optional[IndicatorState]
    opened: Optional[Trade] = None
    closed: Optional[Trade] = None
    stats: Optional[PerformanceStats] = None
    error: Optional[str] = None


@dataclass
class BacktestResult:
    """Backtest output: trades, equity and statistics."""
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)
    stats: Optional[PerformanceStats] = None
    v_reversal_signals: List[VReversalSignal] = field(default_factory=list)
    open_trade: Optional[Trade] = None
    errors: int = 0


class SniperEngine:
    """
    Holds all per-run state: bars, indicator series, tracker, open trade,
    ledger and the active policy. Not safe to drive from two streams at once.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._bars: List[Bar] = []
        self._reset_state()

    def _reset_state(self) -> None:
        c = self.config
        self.calculator = RmiCalculator(self._bars, c.rmi_length, c.positive_above, c.negative_below)
        self.risk_manager = RiskManager(
            atr_multiplier=c.atr_multiplier,
            max_risk_per_trade=c.max_risk_per_trade,
            tick_size=c.tick_size,
            tick_value=c.tick_value,
        )
        self.ledger = TradeLedger()
        self.tracker = TrendSegmentTracker()
        self.desk = TradeDesk(c, self.risk_manager, self.ledger)
        self.policy = build_policy(c.tp_mode)
        self._stats = PerformanceStats(final_equity=c.initial_capital)
        self._stats_count = 0
        self.errors = 0

    # --- streaming -------------------------------------------------------

    def append_bar(self, bar: Bar) -> BarUpdate:
        """Append the next bar and process it."""
        self._bars.append(bar)
        return self._process(len(self._bars) - 1)

    def _process(self, i: int) -> BarUpdate:
        self.desk.begin_bar()
        try:
            indicator = self.calculator.update(i)
            self._trade(i, indicator)
        except Exception as e:
            # One bad bar must not abort the stream
            logger.exception("Bar %d skipped: %s", i, e)
            self.errors += 1
            indicator = self.calculator.carry_forward(i)
            return BarUpdate(i, indicator, self.desk.opened, self.desk.closed, self._refresh_stats(), str(e))
        return BarUpdate(i, indicator, self.desk.opened, self.desk.closed, self._refresh_stats())

    def _trade(self, i: int, indicator: IndicatorState) -> None:
        if i < MIN_TRADING_BAR:
            return
        bar = self._bars[i]
        prev_regime = self.calculator.state(i - 1).regime
        self.tracker.update(i, indicator.regime, prev_regime)
        self.desk.check_stops(i, bar, self.policy.uses_take_profit)
        self.policy.on_bar(BarContext(
            bar_index=i,
            bar=bar,
            indicator=indicator,
            prev_regime=prev_regime,
            tracker=self.tracker,
            desk=self.desk,
            config=self.config,
        ))
        if self.desk.check_max_hold(i, bar, self.config.max_hold_bars) is not None:
            self.policy.on_forced_exit()

    def _refresh_stats(self) -> PerformanceStats:
        if len(self.ledger) != self._stats_count:
            self._stats = compute_stats(self.ledger.trades, self.config.initial_capital)
            self._stats_count = len(self.ledger)
        return self._stats

    # --- replay ----------------------------------------------------------

    def replay(self) -> None:
        """Drop all derived state and reprocess every stored bar from bar 0."""
        self._reset_state()
        for i in range(len(self._bars)):
            self._process(i)
        logger.info(
            "Replayed %d bars: %d trades, %d skipped bars",
            len(self._bars), len(self.ledger), self.errors,
        )

    def run(self, data: Union[pd.DataFrame, Iterable[Bar]]) -> BacktestResult:
        """Replace the stored history with `data` and replay it."""
        bars = bars_from_frame(data) if isinstance(data, pd.DataFrame) else list(data)
        self._bars.clear()
        self._bars.extend(bars)
        self.replay()
        return self.result()

    def configure(self, **params: Any) -> bool:
        """
        Assign parameters (clamped by Config). Any change to a strategy
        parameter triggers a full replay. Returns True if a replay ran.
        """
        before = self.config.strategy_params()
        for name, value in params.items():
            setattr(self.config, name, value)
        after = self.config.strategy_params()
        if after == before:
            return False
        changed = sorted(k for k in after if after[k] != before[k])
        logger.info("Parameters changed (%s); replaying %d bars", ", ".join(changed), len(self._bars))
        self.replay()
        return True

    # --- accessors -------------------------------------------------------

    @property
    def bars(self) -> List[Bar]:
        return list(self._bars)

    @property
    def current_trade(self) -> Optional[Trade]:
        return self.desk.current_trade

    @property
    def trades(self) -> List[Trade]:
        return self.ledger.trades

    @property
    def stats(self) -> PerformanceStats:
        return self._refresh_stats()

    @property
    def v_reversal_signals(self) -> List[VReversalSignal]:
        if isinstance(self.policy, VReversalPolicy):
            return list(self.policy.signals.values())
        return []

    def indicator_frame(self) -> pd.DataFrame:
        return self.calculator.to_frame()

    def equity_curve(self) -> List[float]:
        return equity_curve([t.profit for t in self.ledger], self.config.initial_capital)

    def result(self) -> BacktestResult:
        return BacktestResult(
            trades=self.trades,
            equity_curve=self.equity_curve(),
            stats=self.stats,
            v_reversal_signals=self.v_reversal_signals,
            open_trade=self.current_trade,
            errors=self.errors,
        )

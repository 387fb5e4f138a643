"""Scenario tests for the exit policies, driven by scripted indicator values."""

import pytest

from rmi_sniper.core.config import Config
from rmi_sniper.core.types import ExitReason, Side, TakeProfitMode, VReversalSignal
from rmi_sniper.strategies import RiskRewardPolicy, SignalPolicy, VReversalPolicy, build_policy

UP = [0, 0, 0, 1, 1, 1, 1, 1]


def _opened(updates):
    return [(u.bar_index, u.opened.side) for u in updates if u.opened is not None]


def test_build_policy():
    assert isinstance(build_policy(TakeProfitMode.SIGNAL), SignalPolicy)
    assert isinstance(build_policy("RiskReward"), RiskRewardPolicy)
    assert isinstance(build_policy(TakeProfitMode.V_REVERSAL), VReversalPolicy)


# --- Signal ------------------------------------------------------------------

def test_signal_entry_after_wait_bars(run_script):
    engine, updates = run_script(Config(wait_bars=2), UP)
    assert _opened(updates) == [(5, Side.LONG)]
    t = engine.current_trade
    assert t.entry_price == 100.0
    assert t.stop_loss == pytest.approx(99.0)
    assert t.take_profit == 0.0
    assert t.trend_segment == 1


def test_signal_entry_on_flip_bar_with_zero_wait(run_script):
    _, updates = run_script(Config(wait_bars=0), UP)
    assert _opened(updates) == [(3, Side.LONG)]


def test_signal_exit_and_fast_reentry(run_script):
    regimes = [0, 0, 0, 1, 1, 1, 1, -1, -1, -1, -1, -1]
    engine, updates = run_script(Config(wait_bars=2), regimes)
    assert len(engine.trades) == 1
    first = engine.trades[0]
    assert first.side == Side.LONG
    assert first.exit_bar == 9
    assert first.exit_reason == ExitReason.SIGNAL_TP
    assert first.exit_price == 100.0
    assert first.profit == pytest.approx(-4.44)
    assert updates[9].closed is first
    # reverse on the very next bar
    assert _opened(updates) == [(5, Side.LONG), (10, Side.SHORT)]
    assert engine.current_trade.trend_segment == 2


def test_fast_reentry_dropped_if_regime_turned(run_script):
    regimes = [0, 0, 0, 1, 1, 1, 1, -1, -1, -1, 0, 0]
    engine, updates = run_script(Config(wait_bars=2), regimes)
    assert engine.trades[0].exit_bar == 9
    assert _opened(updates) == [(5, Side.LONG)]
    assert engine.policy.fast_entry_pending is False


def test_signal_stop_loss_exact_touch(make_bar, run_script):
    bars = [make_bar(i) for i in range(8)]
    bars[6] = make_bar(6, 100.0, low=99.0)
    engine, updates = run_script(Config(wait_bars=2), UP, bars=bars)
    t = engine.trades[0]
    assert t.exit_bar == 6
    assert t.exit_reason == ExitReason.STOP_LOSS
    assert t.exit_price == pytest.approx(99.0)
    assert t.ticks == pytest.approx(-10.0)
    assert t.profit == pytest.approx(-104.44)
    # one trade per segment: no re-entry after the stop
    assert engine.current_trade is None


def test_max_hold_forces_exit(run_script):
    engine, _ = run_script(Config(wait_bars=2, max_hold_bars=2), UP)
    t = engine.trades[0]
    assert t.exit_bar == 7
    assert t.exit_reason == ExitReason.MAX_BARS
    assert t.exit_price == 100.0


def test_entry_rejected_when_risk_too_large(run_script):
    engine, updates = run_script(Config(wait_bars=2), UP, atr=500.0)
    assert _opened(updates) == []
    assert engine.current_trade is None


def test_entry_rejected_with_zero_stop_distance(make_bar, run_script):
    bars = [make_bar(i, 100.0, high=100.0, low=100.0) for i in range(8)]
    engine, updates = run_script(Config(wait_bars=2), UP, bars=bars, atr=0.0)
    assert _opened(updates) == []


def test_no_trading_before_third_bar(run_script):
    engine, updates = run_script(Config(wait_bars=0), [0, 1, 1, 1])
    # flip on bar 1 is never seen by the tracker
    assert _opened(updates) == []
    assert engine.tracker.segment == 0


# --- RiskReward ----------------------------------------------------------------

def test_risk_reward_take_profit_ignores_opposite_signal(make_bar, run_script):
    regimes = [0, 0, 0, 1, 1, 1, -1, -1, -1, -1, -1]
    bars = [make_bar(i) for i in range(11)]
    bars[9] = make_bar(9, 100.0, high=102.5)
    config = Config(wait_bars=2, tp_mode="RiskReward", risk_reward_ratio=2.0)
    engine, updates = run_script(config, regimes, bars=bars)
    t = engine.trades[0]
    assert t.entry_bar == 5
    assert t.take_profit == pytest.approx(102.0)
    assert t.exit_bar == 9
    assert t.exit_reason == ExitReason.TAKE_PROFIT
    assert t.exit_price == pytest.approx(102.0)
    assert t.profit == pytest.approx(195.56)
    # flat again in a fresh bearish segment: short on the same bar
    assert updates[9].opened.side == Side.SHORT


def test_stop_checked_before_target(make_bar, run_script):
    bars = [make_bar(i) for i in range(8)]
    bars[6] = make_bar(6, 100.0, high=103.0, low=98.0)
    config = Config(wait_bars=2, tp_mode=TakeProfitMode.RISK_REWARD)
    engine, _ = run_script(config, UP, bars=bars)
    assert engine.trades[0].exit_reason == ExitReason.STOP_LOSS


# --- V-reversal ----------------------------------------------------------------

V_CONFIG = dict(
    tp_mode="VReversal",
    v_reversal_threshold=0.5,
    v_reversal_confirmation=0.3,
    v_reversal_rmi_movement=2.0,
    v_reversal_lookback=3,
)
V_REGIMES = [0, 0, 0, 1, 1, 1, 1, 1, 1, 1, 1]


def test_v_reversal_confirms_and_trades_against_flip(make_bar, run_script):
    oscs = [50, 50, 50, 40, 55, 70, 65, 60, 50, 50, 50]
    bars = [make_bar(i) for i in range(11)]
    bars[10] = make_bar(10, 100.0, low=98.5)
    engine, updates = run_script(Config(**V_CONFIG), V_REGIMES, oscillators=oscs, bars=bars)

    sig = engine.v_reversal_signals[0]
    assert sig.signal_bar == 3
    assert sig.is_long_signal is True
    assert sig.trade_is_long is False
    assert sig.extreme_value == 70
    assert sig.extreme_bar == 5
    assert sig.confirmed and sig.executed
    assert sig.confirm_bar == 8
    assert sig.movement == pytest.approx(30.0)
    assert sig.retracement_pct == pytest.approx(20.0 / 30.0)

    assert _opened(updates) == [(8, Side.SHORT)]
    t = engine.trades[0]
    assert t.is_v_reversal
    assert t.stop_loss == pytest.approx(101.0)
    assert t.take_profit == pytest.approx(99.0)
    assert t.exit_reason == ExitReason.TAKE_PROFIT
    assert t.profit == pytest.approx(95.56)
    assert engine.stats.v_reversal_trades == 1


def test_v_reversal_shallow_pullback_not_confirmed(run_script):
    oscs = [50, 50, 50, 40, 55, 70, 65, 65, 65, 65, 65]
    engine, updates = run_script(Config(**V_CONFIG), V_REGIMES, oscillators=oscs)
    sig = engine.v_reversal_signals[0]
    assert not sig.confirmed
    assert sig.retracement_pct == pytest.approx(5.0 / 30.0)
    assert _opened(updates) == []


def test_v_reversal_too_deep_past_signal_not_confirmed(run_script):
    oscs = [50, 50, 50, 40, 55, 70, 65, 60, 30, 30, 30]
    engine, updates = run_script(Config(**V_CONFIG), V_REGIMES, oscillators=oscs)
    assert not engine.v_reversal_signals[0].confirmed
    assert _opened(updates) == []


def test_v_reversal_waits_lookback_after_extreme(run_script):
    # extreme at bar 5 but pullback is already deep on bar 6
    oscs = [50, 50, 50, 40, 55, 70, 50, 50, 50, 50, 50]
    engine, updates = run_script(Config(**V_CONFIG), V_REGIMES, oscillators=oscs)
    assert engine.v_reversal_signals[0].confirm_bar == 8


def test_v_reversal_new_flip_supersedes_signal(run_script):
    regimes = [0, 0, 0, 1, 1, 1, 1, 1, 1, -1, -1]
    oscs = [50, 50, 50, 40, 55, 70, 65, 65, 65, 25, 25]
    engine, _ = run_script(Config(**V_CONFIG), regimes, oscillators=oscs)
    signals = engine.v_reversal_signals
    assert [s.signal_bar for s in signals] == [3, 9]
    assert not signals[0].confirmed
    assert engine.policy.live_signal is signals[1]
    assert signals[1].trade_is_long is True


def test_detect_reversal_bearish_segment():
    config = Config(v_reversal_threshold=0.5, v_reversal_confirmation=0.3, v_reversal_rmi_movement=5.0)
    sig = VReversalSignal(
        signal_bar=10, is_long_signal=False, trade_is_long=True,
        signal_value=28.0, extreme_value=10.0, extreme_bar=12, current_value=10.0,
    )
    assert VReversalPolicy.detect_reversal(sig, -1, 22.0, config) is True
    assert sig.movement == pytest.approx(18.0)
    assert sig.retracement_pct == pytest.approx(12.0 / 18.0)
    # more than 5% above the signal value
    assert VReversalPolicy.detect_reversal(sig, -1, 30.0, config) is False
    assert VReversalPolicy.detect_reversal(sig, 0, 22.0, config) is False


def test_detect_reversal_requires_movement():
    config = Config(v_reversal_rmi_movement=20.0)
    sig = VReversalSignal(
        signal_bar=0, is_long_signal=True, trade_is_long=False,
        signal_value=70.0, extreme_value=80.0, extreme_bar=2, current_value=80.0,
    )
    assert VReversalPolicy.detect_reversal(sig, 1, 74.0, config) is False


def test_nan_max_risk_still_gates_entries(run_script):
    config = Config(wait_bars=2)
    config.max_risk_per_trade = float("nan")
    engine, updates = run_script(config, UP, atr=500.0)
    assert config.max_risk_per_trade == 4000.0
    assert _opened(updates) == []

"""Tests for reporting.export and the data loader."""

from datetime import datetime, timedelta

import pytest

from rmi_sniper.analytics.metrics import compute_stats
from rmi_sniper.core.config import Config
from rmi_sniper.core.types import ExitReason, Side, TakeProfitMode, Trade
from rmi_sniper.data.loader import bars_from_frame, load_bars_csv
from rmi_sniper.reporting.export import (
    default_export_name,
    export_results,
    format_duration,
    tp_mode_label,
    trades_frame,
)

T0 = datetime(2024, 5, 6, 14, 0)


def _closed(profit_points, side=Side.LONG, take_profit=0.0, v=False, mode=TakeProfitMode.SIGNAL):
    t = Trade(
        entry_bar=3,
        entry_price=100.0,
        entry_time=T0,
        side=side,
        stop_loss=99.0 if side == Side.LONG else 101.0,
        take_profit=take_profit,
        risk_amount=100.0,
        trend_segment=1,
        tp_mode=mode,
        is_v_reversal=v,
    )
    exit_price = 100.0 + profit_points if side == Side.LONG else 100.0 - profit_points
    return t.close(9, exit_price, T0 + timedelta(minutes=30), ExitReason.TAKE_PROFIT, 0.1, 10.0, 4.44)


@pytest.mark.parametrize(
    "seconds,expected",
    [
        (5, "5s"),
        (125, "2m 5s"),
        (2 * 3600 + 5 * 60, "2h 5m"),
        (86400 + 2 * 3600 + 3 * 60, "1d 2h 3m"),
        (0, "0s"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(timedelta(seconds=seconds)) == expected


def test_tp_mode_label():
    assert tp_mode_label(TakeProfitMode.SIGNAL, 2.0) == "Signal"
    assert tp_mode_label(TakeProfitMode.RISK_REWARD, 2.0) == "RR 2.0:1"
    assert tp_mode_label(TakeProfitMode.RISK_REWARD, 2.0, long_form=True) == "RiskReward 2.0:1"
    assert tp_mode_label(TakeProfitMode.V_REVERSAL, 1.5) == "V-Reversal RR 1.5:1"


def test_default_export_name():
    name = default_export_name(TakeProfitMode.V_REVERSAL, datetime(2024, 1, 2, 3, 4, 5))
    assert name == "RMI_Backtest_VReversal_20240102_030405.csv"


def test_trade_close_profit():
    t = _closed(1.0, side=Side.SHORT)
    assert t.exit_price == 99.0
    assert t.ticks == pytest.approx(10.0)
    assert t.profit == pytest.approx(95.56)
    with pytest.raises(ValueError):
        t.close(10, 98.0, T0, ExitReason.STOP_LOSS, 0.1, 10.0, 4.44)


def test_trades_frame_formatting():
    df = trades_frame([_closed(2.0), _closed(1.0, take_profit=101.0, v=True)], 1.0)
    assert list(df["Take Profit"]) == ["N/A", "101.00"]
    assert list(df["Is V-Reversal"]) == ["No", "Yes"]
    assert df["Entry Time"].iloc[0] == "2024-05-06 14:00:00"
    assert df["$ P/L"].iloc[0] == "195.56"


def test_export_results_sections(tmp_path):
    trades = [_closed(2.0, v=True, mode=TakeProfitMode.V_REVERSAL), _closed(-1.0, v=True, mode=TakeProfitMode.V_REVERSAL)]
    stats = compute_stats(trades, 5000.0)
    config = Config(tp_mode="VReversal", v_reversal_threshold=0.4)
    path = export_results(trades, stats, config, tmp_path / "out" / "run.csv")
    text = path.read_text(encoding="utf-8")
    lines = text.splitlines()
    assert lines[0].startswith("Entry Time,Exit Time,Direction")
    assert "=== BACKTEST SUMMARY ===" in lines
    assert "Total Trades,2" in lines
    assert "=== WINNING STREAK STATISTICS ===" in lines
    assert "=== LOSING STREAK STATISTICS ===" in lines
    assert "=== V-REVERSAL STATISTICS ===" in lines
    assert "V-Reversal Trades,2" in lines
    assert "TP Mode,V-Reversal RR 1.0:1" in lines
    assert "V-Reversal Retracement,40%" in lines


def test_export_without_v_section_in_signal_mode(tmp_path):
    trades = [_closed(2.0)]
    path = export_results(trades, compute_stats(trades, 5000.0), Config(), tmp_path / "run.csv")
    text = path.read_text(encoding="utf-8")
    assert "=== V-REVERSAL STATISTICS ===" not in text
    assert "TP Mode,Signal" in text


def test_export_requires_trades(tmp_path):
    with pytest.raises(ValueError):
        export_results([], compute_stats([], 5000.0), Config(), tmp_path / "empty.csv")
    assert not (tmp_path / "empty.csv").exists()


def test_load_bars_csv_sorts_and_normalizes(tmp_path):
    path = tmp_path / "bars.csv"
    path.write_text(
        "Time,Open,High,Low,Close\n"
        "2024-01-02 09:31:00,101,102,100,101.5\n"
        "2024-01-02 09:30:00,100,101,99,100.5\n",
        encoding="utf-8",
    )
    df = load_bars_csv(path)
    bars = bars_from_frame(df)
    assert [b.close for b in bars] == [100.5, 101.5]
    assert bars[0].time == datetime(2024, 1, 2, 9, 30)
    assert bars[0].volume == 0.0


def test_load_bars_csv_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("time,open,close\n2024-01-02,1,2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_bars_csv(path)

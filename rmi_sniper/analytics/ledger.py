"""Append-only ledger of closed trades."""

from __future__ import annotations
from typing import Iterator, List

import pandas as pd

from rmi_sniper.core.types import Trade

LEDGER_COLUMNS = [
    "entry_bar", "entry_time", "side", "entry_price", "stop_loss", "take_profit",
    "exit_bar", "exit_time", "exit_price", "exit_reason", "ticks", "profit",
    "risk_amount", "trend_segment", "tp_mode", "is_v_reversal",
]


class TradeLedger:
    """Closed trades in chronological (exit) order. Active trades are refused."""

    def __init__(self) -> None:
        self._trades: List[Trade] = []

    def append(self, trade: Trade) -> None:
        if trade.is_active:
            raise ValueError(f"trade entered at bar {trade.entry_bar} is still open")
        self._trades.append(trade)

    def clear(self) -> None:
        self._trades.clear()

    @property
    def trades(self) -> List[Trade]:
        return list(self._trades)

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self) -> Iterator[Trade]:
        return iter(self._trades)

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for t in self._trades:
            rows.append({
                "entry_bar": t.entry_bar,
                "entry_time": t.entry_time,
                "side": t.side.value,
                "entry_price": t.entry_price,
                "stop_loss": t.stop_loss,
                "take_profit": t.take_profit,
                "exit_bar": t.exit_bar,
                "exit_time": t.exit_time,
                "exit_price": t.exit_price,
                "exit_reason": t.exit_reason.value,
                "ticks": t.ticks,
                "profit": t.profit,
                "risk_amount": t.risk_amount,
                "trend_segment": t.trend_segment,
                "tp_mode": t.tp_mode.value,
                "is_v_reversal": t.is_v_reversal,
            })
        return pd.DataFrame(rows, columns=LEDGER_COLUMNS)

"""Load OHLCV history from CSV / DataFrame into Bar records."""

from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Union

import pandas as pd

from rmi_sniper.core.types import Bar

logger = logging.getLogger("rmi_sniper.data")

REQUIRED_COLUMNS = ("time", "open", "high", "low", "close")


def load_bars_csv(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read an OHLCV CSV (columns: time, open, high, low, close[, volume]).
    Column names are case-insensitive. Rows are sorted by time.
    """
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {missing}")
    df["time"] = pd.to_datetime(df["time"])
    df = df.sort_values("time").reset_index(drop=True)
    logger.info("Loaded %d bars from %s", len(df), path)
    return df


def bars_from_frame(df: pd.DataFrame) -> List[Bar]:
    """Convert an OHLCV DataFrame to Bar records. Missing volume becomes 0."""
    has_volume = "volume" in df.columns
    bars = []
    for row in df.itertuples(index=False):
        volume = float(row.volume) if has_volume and not pd.isna(row.volume) else 0.0
        bars.append(Bar(
            time=pd.Timestamp(row.time).to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=volume,
        ))
    return bars

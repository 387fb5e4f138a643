"""Data: OHLCV loading."""

from rmi_sniper.data.loader import load_bars_csv, bars_from_frame

__all__ = ["load_bars_csv", "bars_from_frame"]

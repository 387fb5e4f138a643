"""Backtesting engine: bar-by-bar RMI Trend Sniper simulation."""

from rmi_sniper.backtesting.engine import BacktestResult, BarUpdate, SniperEngine

__all__ = ["BacktestResult", "BarUpdate", "SniperEngine"]

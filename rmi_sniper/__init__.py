"""RMI Trend Sniper: bar-by-bar signal and trade simulation engine."""

__version__ = "0.1.0"

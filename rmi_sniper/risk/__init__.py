"""Risk management: ATR stop placement and per-trade risk ceiling."""

from rmi_sniper.risk.manager import RiskManager, RiskResult

__all__ = ["RiskManager", "RiskResult"]

"""Strategies: trend segment tracking and the three exit policies."""

from rmi_sniper.core.types import TakeProfitMode
from rmi_sniper.strategies.base import BarContext, ExitPolicy, TradeDesk
from rmi_sniper.strategies.signal import RiskRewardPolicy, SignalPolicy
from rmi_sniper.strategies.trend import TrendSegmentTracker
from rmi_sniper.strategies.v_reversal import VReversalPolicy

_POLICIES = {
    TakeProfitMode.SIGNAL: SignalPolicy,
    TakeProfitMode.RISK_REWARD: RiskRewardPolicy,
    TakeProfitMode.V_REVERSAL: VReversalPolicy,
}


def build_policy(mode: TakeProfitMode) -> ExitPolicy:
    """Fresh policy instance for the given take-profit mode."""
    return _POLICIES[TakeProfitMode(mode)]()


__all__ = [
    "BarContext",
    "ExitPolicy",
    "TradeDesk",
    "SignalPolicy",
    "RiskRewardPolicy",
    "VReversalPolicy",
    "TrendSegmentTracker",
    "build_policy",
]

"""
Load configuration from config.yaml and .env. Every parameter is clamped on assignment.
"""

from __future__ import annotations
import math
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from rmi_sniper.core.types import TakeProfitMode

# field -> (low, high); None = unbounded on that side
_BOUNDS: dict[str, tuple[Optional[float], Optional[float]]] = {
    "rmi_length": (1, None),
    "positive_above": (0, 100),
    "negative_below": (0, 100),
    "wait_bars": (0, None),
    "risk_reward_ratio": (0.5, None),
    "atr_multiplier": (0.1, None),
    "v_reversal_lookback": (0, 20),
    "v_reversal_threshold": (0.2, 0.8),
    "v_reversal_confirmation": (0.1, 0.8),
    "v_reversal_rmi_movement": (1.0, 20.0),
    "max_hold_bars": (1, None),
    "initial_capital": (1.0, None),
    "commission": (0.0, None),
    "tick_value": (0.01, None),
    "tick_size": (1e-9, None),
    "max_risk_per_trade": (100.0, 4000.0),
}

_INT_FIELDS = frozenset({"rmi_length", "wait_bars", "v_reversal_lookback", "max_hold_bars"})

# NaN falls back to these; infinity to the bound on that side, or these when unbounded
_DEFAULTS = {
    "rmi_length": 14,
    "positive_above": 66.0,
    "negative_below": 30.0,
    "wait_bars": 2,
    "risk_reward_ratio": 1.0,
    "atr_multiplier": 1.0,
    "v_reversal_lookback": 3,
    "v_reversal_threshold": 0.2,
    "v_reversal_confirmation": 0.1,
    "v_reversal_rmi_movement": 2.0,
    "max_hold_bars": 100000,
    "initial_capital": 5000.0,
    "commission": 4.44,
    "tick_value": 10.0,
    "tick_size": 0.1,
    "max_risk_per_trade": 4000.0,
}

# Parameters that feed the per-bar simulation; changing one forces a replay
STRATEGY_FIELDS = tuple(_BOUNDS) + ("tp_mode",)


def _clamp(name: str, value: Any) -> Any:
    low, high = _BOUNDS[name]
    value = float(value)
    if math.isnan(value):
        value = _DEFAULTS[name]
    elif math.isinf(value):
        bound = high if value > 0 else low
        value = _DEFAULTS[name] if bound is None else bound
    if low is not None and value < low:
        value = low
    if high is not None and value > high:
        value = high
    return int(value) if name in _INT_FIELDS else float(value)


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns a clamped Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    rmi = data.get("rmi", {})
    entry = data.get("entry", {})
    exit_ = data.get("exit", {})
    vrev = data.get("v_reversal", {})
    account = data.get("account", {})
    logging_ = data.get("logging", {})
    backtest = data.get("backtest", {})
    telegram = data.get("telegram", {})

    return Config(
        # RMI
        rmi_length=env_int("RMI_LENGTH", rmi.get("length", 14)),
        positive_above=env_float("POSITIVE_ABOVE", rmi.get("positive_above", 66)),
        negative_below=env_float("NEGATIVE_BELOW", rmi.get("negative_below", 30)),
        # Entry
        wait_bars=env_int("WAIT_BARS", entry.get("wait_bars", 2)),
        # Exit
        tp_mode=env("TP_MODE", str(exit_.get("tp_mode", "Signal"))),
        risk_reward_ratio=env_float("RISK_REWARD_RATIO", exit_.get("risk_reward_ratio", 1.0)),
        atr_multiplier=env_float("ATR_MULTIPLIER", exit_.get("atr_multiplier", 1.0)),
        max_hold_bars=env_int("MAX_HOLD_BARS", exit_.get("max_hold_bars", 100000)),
        # V-reversal
        v_reversal_lookback=env_int("V_REVERSAL_LOOKBACK", vrev.get("lookback", 3)),
        v_reversal_threshold=env_float("V_REVERSAL_THRESHOLD", vrev.get("threshold", 0.2)),
        v_reversal_confirmation=env_float("V_REVERSAL_CONFIRMATION", vrev.get("confirmation", 0.1)),
        v_reversal_rmi_movement=env_float("V_REVERSAL_RMI_MOVEMENT", vrev.get("rmi_movement", 2.0)),
        # Account
        initial_capital=env_float("INITIAL_CAPITAL", account.get("initial_capital", 5000.0)),
        commission=env_float("COMMISSION", account.get("commission", 4.44)),
        tick_value=env_float("TICK_VALUE", account.get("tick_value", 10.0)),
        tick_size=env_float("TICK_SIZE", account.get("tick_size", 0.1)),
        max_risk_per_trade=env_float("MAX_RISK_PER_TRADE", account.get("max_risk_per_trade", 4000.0)),
        # Logging
        log_level=logging_.get("level", "INFO"),
        log_dir=Path(logging_.get("log_dir", "logs")),
        log_file=logging_.get("log_file", "rmi_sniper.log"),
        log_trade_level=logging_.get("trades"),
        # Backtest
        data_path=env("DATA_PATH", backtest.get("data_path") or "") or None,
        export_dir=Path(backtest.get("export_dir", "exports")),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
    )


class Config:
    """
    Unified configuration. Strategy parameters are silently clamped to their
    valid range on every assignment, never rejected.
    """

    __slots__ = (
        "rmi_length", "positive_above", "negative_below", "wait_bars",
        "tp_mode", "risk_reward_ratio", "atr_multiplier", "max_hold_bars",
        "v_reversal_lookback", "v_reversal_threshold", "v_reversal_confirmation", "v_reversal_rmi_movement",
        "initial_capital", "commission", "tick_value", "tick_size", "max_risk_per_trade",
        "log_level", "log_dir", "log_file", "log_trade_level",
        "data_path", "export_dir",
        "telegram_bot_token", "telegram_chat_id",
    )

    def __init__(
        self,
        rmi_length: int = 14,
        positive_above: float = 66,
        negative_below: float = 30,
        wait_bars: int = 2,
        tp_mode: TakeProfitMode | str = TakeProfitMode.SIGNAL,
        risk_reward_ratio: float = 1.0,
        atr_multiplier: float = 1.0,
        max_hold_bars: int = 100000,
        v_reversal_lookback: int = 3,
        v_reversal_threshold: float = 0.2,
        v_reversal_confirmation: float = 0.1,
        v_reversal_rmi_movement: float = 2.0,
        initial_capital: float = 5000.0,
        commission: float = 4.44,
        tick_value: float = 10.0,
        tick_size: float = 0.1,
        max_risk_per_trade: float = 4000.0,
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "rmi_sniper.log",
        log_trade_level: Optional[str] = None,
        data_path: Optional[str] = None,
        export_dir: Path = None,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
    ):
        self.rmi_length = rmi_length
        self.positive_above = positive_above
        self.negative_below = negative_below
        self.wait_bars = wait_bars
        self.tp_mode = tp_mode
        self.risk_reward_ratio = risk_reward_ratio
        self.atr_multiplier = atr_multiplier
        self.max_hold_bars = max_hold_bars
        self.v_reversal_lookback = v_reversal_lookback
        self.v_reversal_threshold = v_reversal_threshold
        self.v_reversal_confirmation = v_reversal_confirmation
        self.v_reversal_rmi_movement = v_reversal_rmi_movement
        self.initial_capital = initial_capital
        self.commission = commission
        self.tick_value = tick_value
        self.tick_size = tick_size
        self.max_risk_per_trade = max_risk_per_trade
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
        self.log_trade_level = log_trade_level
        self.data_path = data_path
        self.export_dir = Path(export_dir) if export_dir else Path("exports")
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _BOUNDS:
            value = _clamp(name, value)
        elif name == "tp_mode":
            value = TakeProfitMode(value)
        object.__setattr__(self, name, value)

    def strategy_params(self) -> dict[str, Any]:
        """Snapshot of the parameters that drive the simulation."""
        return {name: getattr(self, name) for name in STRATEGY_FIELDS}

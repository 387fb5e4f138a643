"""Telegram notification of finished backtest runs. Never log token or chat_id."""

from __future__ import annotations
import logging
from typing import Optional

import requests

from rmi_sniper.analytics.metrics import PerformanceStats
from rmi_sniper.core.config import Config
from rmi_sniper.core.types import TakeProfitMode

logger = logging.getLogger("rmi_sniper.utils.telegram")

API_URL = "https://api.telegram.org/bot{token}/sendMessage"
# Telegram rejects longer messages
MAX_MESSAGE_LEN = 4096


def format_run_summary(stats: PerformanceStats, mode: str, bars: int) -> str:
    return (
        f"RMI backtest ({mode}) | {bars} bars | trades={stats.total_trades} "
        f"win={stats.win_rate:.1f}% P/L=${stats.total_profit:.2f} "
        f"PF={stats.profit_factor:.2f} DD={stats.max_drawdown_pct:.2f}% Sharpe={stats.sharpe_ratio:.2f}"
    )


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success, False if unconfigured or failed."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    if len(text) > MAX_MESSAGE_LEN:
        text = text[:MAX_MESSAGE_LEN - 3] + "..."
    try:
        r = requests.post(API_URL.format(token=bot_token), json={"chat_id": chat_id, "text": text}, timeout=10)
    except requests.RequestException as e:
        logger.warning("Telegram error: %s", type(e).__name__)
        return False
    if r.status_code != 200:
        logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
        return False
    return True


def notify_run(stats: PerformanceStats, config: Config, bars: int, skipped: int = 0) -> bool:
    """Post the run summary with the configured credentials; V-reversal runs add their sub-totals."""
    lines = [format_run_summary(stats, config.tp_mode.value, bars)]
    if config.tp_mode == TakeProfitMode.V_REVERSAL:
        lines.append(
            f"V-reversal trades={stats.v_reversal_trades} win={stats.v_reversal_win_rate:.1f}% "
            f"P/L=${stats.v_reversal_total_profit:.2f}"
        )
    if skipped:
        lines.append(f"Skipped bars: {skipped}")
    return send_telegram("\n".join(lines), config.telegram_bot_token, config.telegram_chat_id)

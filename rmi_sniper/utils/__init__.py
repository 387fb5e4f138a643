"""Utils: Telegram notifications."""

from rmi_sniper.utils.telegram import format_run_summary, notify_run, send_telegram

__all__ = ["format_run_summary", "notify_run", "send_telegram"]

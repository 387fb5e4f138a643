"""Reporting: CSV export of trades and summary."""

from rmi_sniper.reporting.export import default_export_name, export_results, format_duration, tp_mode_label

__all__ = ["default_export_name", "export_results", "format_duration", "tp_mode_label"]

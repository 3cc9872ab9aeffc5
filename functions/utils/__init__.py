"""Utility modules for FlacronBuild functions."""

from utils.estimate_logger import (
    configure_logging,
    log_estimate_start,
    log_estimate_complete,
    log_estimate_failed,
    log_raw_model_output,
    log_report_summary,
)

__all__ = [
    "configure_logging",
    "log_estimate_start",
    "log_estimate_complete",
    "log_estimate_failed",
    "log_raw_model_output",
    "log_report_summary",
]

"""
Analysis logging module.

Provides append-only logging of analysis actions for traceability.
"""

from ledger_buckets.logging.analysis_log import (
    AnalysisLogger,
    log_action,
    get_logger,
)

__all__ = [
    "AnalysisLogger",
    "log_action",
    "get_logger",
]

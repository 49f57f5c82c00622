"""
Append-only analysis logging.

Ledger replays, market passes, range derivations and written reports are
logged with timestamps so that a report can be traced back to its inputs.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from ledger_buckets.models import (
    ActionType,
    AnalysisConfig,
    AnalysisLogEntry,
    DateRange,
)


class AnalysisLogger:
    """
    Append-only analysis logger.

    Writes one JSON object per line to a JSONL file.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the analysis logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: AnalysisLogEntry) -> None:
        """
        Write an analysis log entry.

        Args:
            entry: AnalysisLogEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "analysis_id": entry.analysis_id,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def _log(self, action_type: ActionType, analysis_id: Optional[str], details: dict) -> None:
        self.log(AnalysisLogEntry.create(
            action_type=action_type,
            analysis_id=analysis_id,
            details=details,
        ))

    def log_config_loaded(self, config: AnalysisConfig, config_path: str) -> None:
        """
        Log configuration loading.

        Args:
            config: Loaded configuration
            config_path: Path to configuration file
        """
        details = {
            "config_path": config_path,
            "currency": config.currency,
            "market_payee": config.market_payee,
            "market_growth_category": config.market_growth_category,
            "money_places": config.money_places,
        }
        self._log(ActionType.CONFIG_LOADED, config.analysis_id, details)

    def log_transactions_replayed(self, analysis, transaction_count: int) -> None:
        """
        Log a completed ledger replay.

        Args:
            analysis: Cumulative Analysis built by the replay
            transaction_count: Number of transactions replayed
        """
        details = {
            "valuation_date": analysis.date_range.end,
            "transaction_count": transaction_count,
            "buckets": {
                str(analysis_type): len(bucket_list)
                for analysis_type, bucket_list in analysis.iter_bucket_lists()
            },
        }
        self._log(ActionType.TRANSACTIONS_REPLAYED, analysis.config.analysis_id, details)

    def log_market_analysis(
        self,
        analysis_id: str,
        date_range: DateRange,
        market,
    ) -> None:
        """
        Log the totals of a market pass.

        Args:
            analysis_id: Analysis identifier
            date_range: Range the market pass covered
            market: Propagated MarketAnalysis
        """
        details = {
            "start_date": date_range.start,
            "end_date": date_range.end,
            **market.to_dict(),
        }
        self._log(ActionType.MARKET_ANALYSIS_COMPLETED, analysis_id, details)

    def log_range_analysis_built(self, analysis) -> None:
        """
        Log the derivation of a range analysis.

        Args:
            analysis: Derived range Analysis
        """
        details = {
            "start_date": analysis.date_range.start,
            "end_date": analysis.date_range.end,
            "buckets": {
                str(analysis_type): len(bucket_list)
                for analysis_type, bucket_list in analysis.iter_bucket_lists()
            },
        }
        self._log(ActionType.RANGE_ANALYSIS_BUILT, analysis.config.analysis_id, details)

    def log_report_written(
        self,
        analysis_id: str,
        report: str,
        output_path: str | Path,
        row_count: int,
    ) -> None:
        """
        Log a written report file.

        Args:
            analysis_id: Analysis identifier
            report: Report name (e.g. summary, market, history)
            output_path: File written
            row_count: Rows in the report
        """
        details = {
            "report": report,
            "output_path": str(output_path),
            "row_count": row_count,
        }
        self._log(ActionType.REPORT_WRITTEN, analysis_id, details)

    def read_log(self) -> list[AnalysisLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of AnalysisLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    AnalysisLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        analysis_id=record.get("analysis_id"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_analysis(self, analysis_id: str) -> list[AnalysisLogEntry]:
        return [e for e in self.read_log() if e.analysis_id == analysis_id]

    def filter_by_action_type(self, action_type: ActionType) -> list[AnalysisLogEntry]:
        return [e for e in self.read_log() if e.action_type == action_type]


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and date types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)


# Global logger instance (initialized on first use)
_global_logger: Optional[AnalysisLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> AnalysisLogger:
    """
    Get or create the global analysis logger.

    Args:
        log_path: Optional path; replaces the current logger when given

    Returns:
        AnalysisLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if log_path is None:
            log_path = "output/analysis_log.jsonl"
        _global_logger = AnalysisLogger(log_path)
    elif log_path is not None:
        _global_logger = AnalysisLogger(log_path)

    return _global_logger


def log_action(
    action_type: ActionType,
    analysis_id: Optional[str],
    details: dict,
    log_path: Optional[str | Path] = None,
) -> None:
    """
    Convenience function to log an action.

    Args:
        action_type: Type of action
        analysis_id: Analysis identifier (optional)
        details: Action details dictionary
        log_path: Optional path to log file
    """
    logger = get_logger(log_path)
    logger._log(action_type, analysis_id, details)

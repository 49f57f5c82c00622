"""
Data ingestion module for the ledger bucket analysis.

Provides functionality for loading accounts, securities, transactions and
prices from CSV/Parquet files, and for writing analysis reports.
"""

from ledger_buckets.data.loaders import (
    load_accounts,
    load_securities,
    load_transactions,
    load_prices,
    save_bucket_summary,
    save_bucket_history,
    save_market_summary,
)
from ledger_buckets.data.schemas import (
    ACCOUNTS_SCHEMA,
    SECURITIES_SCHEMA,
    TRANSACTIONS_SCHEMA,
    PRICES_SCHEMA,
)

__all__ = [
    "load_accounts",
    "load_securities",
    "load_transactions",
    "load_prices",
    "save_bucket_summary",
    "save_bucket_history",
    "save_market_summary",
    "ACCOUNTS_SCHEMA",
    "SECURITIES_SCHEMA",
    "TRANSACTIONS_SCHEMA",
    "PRICES_SCHEMA",
]

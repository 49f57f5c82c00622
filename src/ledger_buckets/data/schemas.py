"""
Data schemas for ledger input files and analysis reports.

Defines expected columns and data types for all input and output files.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Accounts Schema
ACCOUNTS_SCHEMA = FileSchema(
    name="accounts",
    description="Value-holding accounts (deposit, cash, loan, portfolio)",
    columns=[
        ColumnSchema(name="account_id", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=True),
        ColumnSchema(name="kind", dtype="str", required=True),
    ],
)

# Securities Schema
SECURITIES_SCHEMA = FileSchema(
    name="securities",
    description="Securities with their type flags and holding portfolio",
    columns=[
        ColumnSchema(name="security_id", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=True),
        ColumnSchema(name="portfolio_id", dtype="str", required=True),
        ColumnSchema(name="security_type", dtype="str", required=False, nullable=True),
        ColumnSchema(name="capital_gains", dtype="bool", required=False, nullable=True),
        ColumnSchema(name="life_bond", dtype="bool", required=False, nullable=True),
    ],
)

# Transactions Schema
TRANSACTIONS_SCHEMA = FileSchema(
    name="transactions",
    description="Dated ledger transactions in replay order",
    columns=[
        ColumnSchema(name="transaction_id", dtype="str", required=True),
        ColumnSchema(name="date", dtype="datetime64[ns]", required=True),
        ColumnSchema(name="transaction_type", dtype="str", required=True),
        ColumnSchema(name="amount", dtype="str", required=True),
        ColumnSchema(name="debit_account", dtype="str", required=False, nullable=True),
        ColumnSchema(name="credit_account", dtype="str", required=False, nullable=True),
        ColumnSchema(name="security", dtype="str", required=False, nullable=True),
        ColumnSchema(name="units", dtype="str", required=False, nullable=True),
        ColumnSchema(name="payee", dtype="str", required=False, nullable=True),
        ColumnSchema(name="category", dtype="str", required=False, nullable=True),
        ColumnSchema(name="tax_basis", dtype="str", required=False, nullable=True),
        ColumnSchema(name="tax_credit", dtype="str", required=False, nullable=True),
    ],
)

# Price Data Schema
PRICES_SCHEMA = FileSchema(
    name="prices",
    description="Security prices by date",
    columns=[
        ColumnSchema(name="security_id", dtype="str", required=True),
        ColumnSchema(name="date", dtype="datetime64[ns]", required=True),
        ColumnSchema(name="price", dtype="str", required=True),
    ],
)

# Bucket Summary Output Schema
BUCKET_SUMMARY_SCHEMA = FileSchema(
    name="bucket_summary",
    description="Current values of every bucket, one row per bucket attribute",
    columns=[
        ColumnSchema(name="analysis_type", dtype="str", required=True),
        ColumnSchema(name="bucket", dtype="str", required=True),
        ColumnSchema(name="attribute", dtype="str", required=True),
        ColumnSchema(name="value", dtype="str", required=True),
    ],
)

# Bucket History Output Schema
BUCKET_HISTORY_SCHEMA = FileSchema(
    name="bucket_history",
    description="Snapshot history of a single bucket",
    columns=[
        ColumnSchema(name="transaction_id", dtype="str", required=True),
        ColumnSchema(name="date", dtype="datetime64[ns]", required=True),
        ColumnSchema(name="attribute", dtype="str", required=True),
        ColumnSchema(name="value", dtype="str", required=True),
        ColumnSchema(name="delta", dtype="str", required=True),
    ],
)

# Market Summary Output Schema
MARKET_SUMMARY_SCHEMA = FileSchema(
    name="market_summary",
    description="Per-security valuation and market reclassification",
    columns=[
        ColumnSchema(name="security_id", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=True),
        ColumnSchema(name="units", dtype="str", required=True),
        ColumnSchema(name="price", dtype="str", required=True),
        ColumnSchema(name="valuation", dtype="str", required=True),
        ColumnSchema(name="invested", dtype="str", required=True),
        ColumnSchema(name="gains", dtype="str", required=True),
        ColumnSchema(name="market", dtype="str", required=True),
        ColumnSchema(name="growth", dtype="str", required=True),
    ],
)

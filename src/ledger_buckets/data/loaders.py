"""
Data loading and saving functions for CSV/Parquet files.

Handles ingestion of accounts, securities, ledger transactions and prices,
as well as output of bucket summaries, bucket histories and market reports.
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import pandas as pd

from ledger_buckets.analysis.attributes import AnalysisType, DecimalKind, SecurityAttribute
from ledger_buckets.models import (
    Account,
    AccountKind,
    EventCategory,
    Payee,
    PriceHistory,
    Security,
    SecurityPrice,
    SecurityType,
    TaxBasisClass,
    Transaction,
    TransactionType,
)
from ledger_buckets.data.schemas import (
    ACCOUNTS_SCHEMA,
    FileSchema,
    PRICES_SCHEMA,
    SECURITIES_SCHEMA,
    TRANSACTIONS_SCHEMA,
)


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


# Tax basis for categories whose rows give none
DEFAULT_TAX_BASIS = {
    TransactionType.INCOME: TaxBasisClass.TAX_FREE,
    TransactionType.EXPENSE: TaxBasisClass.EXPENSE,
    TransactionType.DIVIDEND: TaxBasisClass.DIVIDEND,
}

_TRUE_FLAGS = {"true", "yes", "y", "1"}
_FALSE_FLAGS = {"false", "no", "n", "0"}


def load_accounts(file_path: str | Path) -> dict[str, Account]:
    """
    Load accounts from CSV file.

    Args:
        file_path: Path to CSV file with columns: account_id, name, kind

    Returns:
        Dictionary mapping account_id -> Account

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, ACCOUNTS_SCHEMA)

    accounts = {}
    for _, row in df.iterrows():
        account_id = row["account_id"].strip()
        kind = row["kind"].strip().upper()
        try:
            account_kind = AccountKind(kind)
        except ValueError:
            raise DataLoadError(f"Account {account_id} has unknown kind: {kind}")
        accounts[account_id] = Account(
            account_id=account_id,
            name=row["name"].strip() or account_id,
            kind=account_kind,
        )

    return accounts


def load_securities(
    file_path: str | Path,
    accounts: Optional[dict[str, Account]] = None,
) -> dict[str, Security]:
    """
    Load securities from CSV file.

    Args:
        file_path: Path to CSV file with columns: security_id, name,
                   portfolio_id and optional security_type, capital_gains,
                   life_bond
        accounts: If provided, portfolio ids are checked against these accounts

    Returns:
        Dictionary mapping security_id -> Security

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, SECURITIES_SCHEMA)

    securities = {}
    for _, row in df.iterrows():
        security_id = row["security_id"].strip()
        portfolio_id = row["portfolio_id"].strip()
        if accounts is not None:
            portfolio = accounts.get(portfolio_id)
            if portfolio is None or portfolio.kind is not AccountKind.PORTFOLIO:
                raise DataLoadError(
                    f"Security {security_id} refers to unknown portfolio: {portfolio_id}"
                )

        security_type = SecurityType(
            name=_optional(row, "security_type") or "Shares",
            capital_gains=_parse_flag(_optional(row, "capital_gains"), True, security_id),
            life_bond=_parse_flag(_optional(row, "life_bond"), False, security_id),
        )
        securities[security_id] = Security(
            security_id=security_id,
            name=row["name"].strip() or security_id,
            security_type=security_type,
            portfolio_id=portfolio_id,
        )

    return securities


def load_transactions(
    file_path: str | Path,
    accounts: dict[str, Account],
    securities: Optional[dict[str, Security]] = None,
) -> list[Transaction]:
    """
    Load ledger transactions from CSV file.

    Payees and categories are created from their names as they are first
    seen. A category's tax basis is taken from its first row that gives
    one, defaulting by transaction type.

    Args:
        file_path: Path to CSV file with transaction columns
        accounts: Accounts by id
        securities: Securities by id

    Returns:
        List of Transaction objects in file order

    Raises:
        DataLoadError: If file cannot be loaded or refers to unknown data
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, TRANSACTIONS_SCHEMA)
    securities = securities or {}

    try:
        df["date"] = pd.to_datetime(df["date"]).dt.date
    except (ValueError, TypeError) as e:
        raise DataLoadError(f"Invalid transaction date in {file_path}: {e}")

    payees: dict[str, Payee] = {}
    categories: dict[str, EventCategory] = {}
    transactions = []
    for _, row in df.iterrows():
        transaction_id = row["transaction_id"].strip()
        type_name = row["transaction_type"].strip().upper()
        try:
            transaction_type = TransactionType(type_name)
        except ValueError:
            raise DataLoadError(
                f"Transaction {transaction_id} has unknown type: {type_name}"
            )

        payee = None
        payee_name = _optional(row, "payee")
        if payee_name:
            payee = payees.setdefault(payee_name, Payee(payee_id=payee_name, name=payee_name))

        category = None
        category_name = _optional(row, "category")
        if category_name:
            category = categories.get(category_name)
            if category is None:
                category = EventCategory(
                    category_id=category_name,
                    name=category_name,
                    tax_basis=_parse_tax_basis(row, transaction_type, transaction_id),
                )
                categories[category_name] = category

        units = _optional(row, "units")
        tax_credit = _optional(row, "tax_credit")
        transactions.append(
            Transaction(
                transaction_id=transaction_id,
                date=row["date"],
                transaction_type=transaction_type,
                amount=_parse_decimal(row["amount"], "amount", transaction_id),
                debit_account=_lookup(accounts, _optional(row, "debit_account"), "account", transaction_id),
                credit_account=_lookup(accounts, _optional(row, "credit_account"), "account", transaction_id),
                security=_lookup(securities, _optional(row, "security"), "security", transaction_id),
                payee=payee,
                category=category,
                units=_parse_decimal(units, "units", transaction_id) if units else None,
                tax_credit=_parse_decimal(tax_credit, "tax_credit", transaction_id) if tax_credit else None,
            )
        )

    return transactions


def load_prices(
    file_path: str | Path,
    security_ids: Optional[list[str]] = None,
) -> PriceHistory:
    """
    Load security prices from CSV file.

    Args:
        file_path: Path to CSV file with columns: security_id, date, price
        security_ids: Optional list of securities to filter to

    Returns:
        PriceHistory over all loaded prices

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, PRICES_SCHEMA)

    try:
        df["date"] = pd.to_datetime(df["date"]).dt.date
    except (ValueError, TypeError) as e:
        raise DataLoadError(f"Invalid price date in {file_path}: {e}")
    df["security_id"] = df["security_id"].str.strip()

    if security_ids:
        df = df[df["security_id"].isin(security_ids)]

    prices = []
    for _, row in df.iterrows():
        security_id = str(row["security_id"])
        prices.append(
            SecurityPrice(
                security_id=security_id,
                date=row["date"],
                price=_parse_decimal(row["price"], "price", security_id),
            )
        )

    return PriceHistory(prices)


def save_bucket_summary(
    analysis,
    output_path: str | Path,
    money_places: int = 2,
) -> Path:
    """
    Save the current values of every bucket in an analysis to CSV.

    Args:
        analysis: Analysis to report
        output_path: Path for output CSV file
        money_places: Decimal places for money values

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for analysis_type, bucket_list in analysis.iter_bucket_lists():
        buckets = list(bucket_list)
        if bucket_list.totals is not None:
            buckets.append(bucket_list.totals)
        for bucket in buckets:
            records.extend(_value_records(analysis_type, bucket.name, bucket.values, money_places))
        if analysis_type is AnalysisType.PORTFOLIO:
            for bucket in analysis.iter_securities():
                records.extend(_value_records(
                    AnalysisType.SECURITY, bucket.name, bucket.values, money_places
                ))

    df = pd.DataFrame(records, columns=["analysis_type", "bucket", "attribute", "value"])
    df.to_csv(output_path, index=False)

    return output_path


def save_bucket_history(
    bucket,
    output_path: str | Path,
) -> Path:
    """
    Save the snapshot history of a single bucket to CSV.

    Args:
        bucket: Bucket whose history is written
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for snapshot in bucket.snapshots:
        for attr in snapshot.snapshot:
            records.append({
                "transaction_id": snapshot.transaction_id,
                "date": snapshot.date.isoformat(),
                "attribute": str(attr),
                "value": str(snapshot.snapshot.get_value(attr)),
                "delta": str(snapshot.get_delta_value(attr)),
            })

    df = pd.DataFrame(
        records, columns=["transaction_id", "date", "attribute", "value", "delta"]
    )
    df.to_csv(output_path, index=False)

    return output_path


def save_market_summary(
    analysis,
    output_path: str | Path,
) -> Path:
    """
    Save per-security valuation and market reclassification to CSV.

    Args:
        analysis: Analysis whose securities pass has run
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    growth = analysis.market.growth if analysis.market else {}
    records = []
    for bucket in analysis.iter_securities():
        values = bucket.values
        records.append({
            "security_id": bucket.key,
            "name": bucket.name,
            "units": str(values.get_units_value(SecurityAttribute.UNITS)),
            "price": str(values.get_price_value(SecurityAttribute.PRICE)),
            "valuation": str(values.get_money_value(SecurityAttribute.VALUATION)),
            "invested": str(values.get_money_value(SecurityAttribute.INVESTED)),
            "gains": str(values.get_money_value(SecurityAttribute.GAINS)),
            "market": str(values.get_money_value(SecurityAttribute.MARKET)),
            "growth": str(growth.get(bucket.key, Decimal("0.00"))),
        })

    df = pd.DataFrame(records, columns=[
        "security_id", "name", "units", "price", "valuation",
        "invested", "gains", "market", "growth",
    ])
    df.to_csv(output_path, index=False)

    return output_path


def _value_records(analysis_type, name, values, money_places) -> list[dict]:
    quantum = Decimal(1).scaleb(-money_places)
    records = []
    for attr, value in values.items():
        if attr.kind is DecimalKind.MONEY:
            value = value.quantize(quantum)
        records.append({
            "analysis_type": str(analysis_type),
            "bucket": name,
            "attribute": str(attr),
            "value": str(value),
        })
    return records


def _optional(row: pd.Series, column: str) -> Optional[str]:
    if column not in row.index:
        return None
    value = row[column]
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def _lookup(items: dict, key: Optional[str], label: str, transaction_id: str):
    if key is None:
        return None
    try:
        return items[key]
    except KeyError:
        raise DataLoadError(f"Transaction {transaction_id} refers to unknown {label}: {key}")


def _parse_decimal(value, field_name: str, row_id: str) -> Decimal:
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise DataLoadError(f"Invalid {field_name} for {row_id}: {value}")


def _parse_flag(value: Optional[str], default: bool, row_id: str) -> bool:
    if value is None:
        return default
    flag = value.lower()
    if flag in _TRUE_FLAGS:
        return True
    if flag in _FALSE_FLAGS:
        return False
    raise DataLoadError(f"Invalid flag for {row_id}: {value}")


def _parse_tax_basis(
    row: pd.Series,
    transaction_type: TransactionType,
    transaction_id: str,
) -> TaxBasisClass:
    basis = _optional(row, "tax_basis")
    if basis is None:
        return DEFAULT_TAX_BASIS.get(transaction_type, TaxBasisClass.EXPENSE)
    try:
        return TaxBasisClass(basis.upper())
    except ValueError:
        raise DataLoadError(f"Transaction {transaction_id} has unknown tax basis: {basis}")


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file as text and validate against schema.

    Values are kept as strings so that amounts convert to Decimal exactly.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    # Support both CSV and Parquet
    if file_path.suffix.lower() == ".parquet":
        try:
            df = pd.read_parquet(file_path)
        except Exception as e:
            raise DataLoadError(f"Failed to load parquet file {file_path}: {e}")
        df = df.astype(object).where(df.notna(), "").astype(str)
    else:
        try:
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        except Exception as e:
            raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    # Validate columns
    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df

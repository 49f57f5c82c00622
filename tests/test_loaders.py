"""
Tests for loading ledger files and writing analysis reports.
"""

from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from ledger_buckets.analysis.analyser import TransactionAnalyser
from ledger_buckets.data.loaders import (
    DataLoadError,
    load_accounts,
    load_prices,
    load_securities,
    load_transactions,
    save_bucket_history,
    save_bucket_summary,
    save_market_summary,
)
from ledger_buckets.models import AccountKind, TaxBasisClass, TransactionType


@pytest.fixture
def loaded(ledger_files):
    """Accounts, securities, transactions and prices loaded from the CSV ledger."""
    accounts = load_accounts(ledger_files["accounts"])
    securities = load_securities(ledger_files["securities"], accounts)
    transactions = load_transactions(ledger_files["transactions"], accounts, securities)
    prices = load_prices(ledger_files["prices"])
    return accounts, securities, transactions, prices


class TestLoadAccounts:
    """Tests for load_accounts."""

    def test_load(self, ledger_files):
        accounts = load_accounts(ledger_files["accounts"])

        assert set(accounts) == {"current", "wallet", "isa"}
        assert accounts["isa"].kind is AccountKind.PORTFOLIO
        assert accounts["wallet"].name == "Wallet"

    def test_unknown_kind(self, temp_output_dir):
        path = temp_output_dir / "accounts.csv"
        path.write_text("account_id,name,kind\npension,Pension,annuity\n")

        with pytest.raises(DataLoadError, match="unknown kind"):
            load_accounts(path)

    def test_missing_columns(self, temp_output_dir):
        path = temp_output_dir / "accounts.csv"
        path.write_text("account_id,name\ncurrent,Current\n")

        with pytest.raises(DataLoadError, match="missing required columns"):
            load_accounts(path)

    def test_missing_file(self, temp_output_dir):
        with pytest.raises(DataLoadError, match="not found"):
            load_accounts(temp_output_dir / "absent.csv")


class TestLoadSecurities:
    """Tests for load_securities."""

    def test_flags(self, ledger_files):
        securities = load_securities(ledger_files["securities"])

        assert securities["SHR"].is_capital_gains
        assert not securities["SHR"].is_life_bond
        assert securities["BOND"].is_life_bond
        assert not securities["BOND"].is_capital_gains

    def test_optional_columns_default(self, temp_output_dir):
        """A security with no type columns is a capital gains share."""
        path = temp_output_dir / "securities.csv"
        path.write_text("security_id,name,portfolio_id\nXYZ,Xyz plc,isa\n")

        securities = load_securities(path)

        assert securities["XYZ"].security_type.name == "Shares"
        assert securities["XYZ"].is_capital_gains

    def test_unknown_portfolio(self, ledger_files):
        accounts = load_accounts(ledger_files["accounts"])
        path = ledger_files["securities"]
        path.write_text("security_id,name,portfolio_id\nXYZ,Xyz plc,current\n")

        with pytest.raises(DataLoadError, match="unknown portfolio"):
            load_securities(path, accounts)

    def test_invalid_flag(self, temp_output_dir):
        path = temp_output_dir / "securities.csv"
        path.write_text("security_id,name,portfolio_id,life_bond\nXYZ,Xyz plc,isa,maybe\n")

        with pytest.raises(DataLoadError, match="Invalid flag"):
            load_securities(path)


class TestLoadTransactions:
    """Tests for load_transactions."""

    def test_load(self, loaded):
        accounts, securities, transactions, _ = loaded

        assert len(transactions) == 10
        income = transactions[2]
        assert income.transaction_type is TransactionType.INCOME
        assert income.date == date(2024, 1, 5)
        assert income.amount == Decimal("2000.00")
        assert income.tax_credit == Decimal("500.00")
        assert income.credit_account is accounts["current"]
        assert income.category.tax_basis is TaxBasisClass.SALARY

        sale = transactions[8]
        assert sale.security is securities["SHR"]
        assert sale.units == Decimal("40")

    def test_payees_shared_by_name(self, loaded):
        _, _, transactions, _ = loaded

        assert transactions[4].payee.name == "Grocer"
        assert transactions[9].payee.payee_id == "Landlord"

    def test_default_tax_basis(self, loaded):
        """Expense categories without a basis default to the expense basis."""
        _, _, transactions, _ = loaded

        assert transactions[4].category.tax_basis is TaxBasisClass.EXPENSE

    def test_unknown_account(self, ledger_files):
        accounts = load_accounts(ledger_files["accounts"])
        path = ledger_files["transactions"]
        path.write_text(
            "transaction_id,date,transaction_type,amount,credit_account\n"
            "t1,2024-01-01,OPENING,10.00,offshore\n"
        )

        with pytest.raises(DataLoadError, match="unknown account"):
            load_transactions(path, accounts)

    def test_unknown_type(self, ledger_files):
        accounts = load_accounts(ledger_files["accounts"])
        path = ledger_files["transactions"]
        path.write_text(
            "transaction_id,date,transaction_type,amount\n"
            "t1,2024-01-01,REFUND,10.00\n"
        )

        with pytest.raises(DataLoadError, match="unknown type"):
            load_transactions(path, accounts)

    def test_invalid_amount(self, ledger_files):
        accounts = load_accounts(ledger_files["accounts"])
        path = ledger_files["transactions"]
        path.write_text(
            "transaction_id,date,transaction_type,amount,credit_account\n"
            "t1,2024-01-01,OPENING,ten,current\n"
        )

        with pytest.raises(DataLoadError, match="Invalid amount"):
            load_transactions(path, accounts)


class TestLoadPrices:
    """Tests for load_prices."""

    def test_load(self, ledger_files):
        prices = load_prices(ledger_files["prices"])

        assert prices.latest_price("SHR", date(2024, 5, 1)) == Decimal("11.00")
        assert prices.latest_price("BOND", date(2024, 1, 31)) is None

    def test_filter_by_security(self, ledger_files):
        prices = load_prices(ledger_files["prices"], security_ids=["BOND"])

        assert prices.latest_price("SHR", date(2024, 6, 30)) is None
        assert prices.latest_price("BOND", date(2024, 6, 30)) == Decimal("105.00")


class TestReports:
    """Tests for the report writers."""

    @pytest.fixture
    def analysis(self, sample_config, loaded):
        _, _, transactions, prices = loaded
        return TransactionAnalyser(sample_config, prices).analyse(transactions)

    def test_bucket_summary(self, analysis, temp_output_dir):
        path = save_bucket_summary(analysis, temp_output_dir / "out" / "summary.csv")

        df = pd.read_csv(path, dtype=str)
        assert list(df.columns) == ["analysis_type", "bucket", "attribute", "value"]

        current = df[(df["bucket"] == "Current Account") & (df["attribute"] == "Valuation")]
        assert current["value"].tolist() == ["2500.00"]

        securities = df[df["analysis_type"] == "Securities"]
        assert set(securities["bucket"]) == {"Acme Shares", "Growth Bond"}

        totals = df[(df["analysis_type"] == "Payees") & (df["bucket"] == "Totals")]
        assert not totals.empty

    def test_bucket_summary_money_places(self, analysis, temp_output_dir):
        path = save_bucket_summary(analysis, temp_output_dir / "summary.csv", money_places=0)

        df = pd.read_csv(path, dtype=str)
        current = df[(df["bucket"] == "Current Account") & (df["attribute"] == "Valuation")]
        assert current["value"].tolist() == ["2500"]

    def test_bucket_history(self, analysis, temp_output_dir):
        current = analysis.get_deposits().find("current")

        path = save_bucket_history(current, temp_output_dir / "history.csv")

        df = pd.read_csv(path, dtype=str)
        valuations = df[df["attribute"] == "Valuation"]
        assert valuations["transaction_id"].tolist() == ["t01", "t03", "t04", "t10"]
        assert valuations["delta"].tolist() == ["1000.00", "2000.00", "-200.00", "-300.00"]

    def test_market_summary(self, analysis, temp_output_dir):
        path = save_market_summary(analysis, temp_output_dir / "market.csv")

        df = pd.read_csv(path, dtype=str).set_index("security_id")
        assert df.loc["SHR", "valuation"] == "660.00"
        assert df.loc["SHR", "gains"] == "80.00"
        assert df.loc["BOND", "market"] == "-50.00"

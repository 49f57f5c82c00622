"""
Pytest fixtures for the ledger bucket analysis tests.

Provides a small ledger (accounts, securities, transactions and prices) and
utilities used across test modules.
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from ledger_buckets.models import (
    Account,
    AccountKind,
    AnalysisConfig,
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


@pytest.fixture
def sample_config() -> AnalysisConfig:
    """Create a sample analysis configuration for testing."""
    return AnalysisConfig(analysis_id="TEST001")


@pytest.fixture
def sample_accounts() -> dict[str, Account]:
    """Create one account of each kind (two deposits)."""
    return {
        "current": Account(account_id="current", name="Current Account", kind=AccountKind.DEPOSIT),
        "savings": Account(account_id="savings", name="Savings", kind=AccountKind.DEPOSIT),
        "wallet": Account(account_id="wallet", name="Wallet", kind=AccountKind.CASH),
        "mortgage": Account(account_id="mortgage", name="Mortgage", kind=AccountKind.LOAN),
        "isa": Account(account_id="isa", name="Stocks ISA", kind=AccountKind.PORTFOLIO),
    }


@pytest.fixture
def sample_securities() -> dict[str, Security]:
    """Create a capital gains share, a life bond and a non-capital-gains fund."""
    return {
        "SHR": Security(
            security_id="SHR",
            name="Acme Shares",
            security_type=SecurityType(name="Shares"),
            portfolio_id="isa",
        ),
        "BOND": Security(
            security_id="BOND",
            name="Growth Bond",
            security_type=SecurityType(name="LifeBond", capital_gains=False, life_bond=True),
            portfolio_id="isa",
        ),
        "FUND": Security(
            security_id="FUND",
            name="Income Fund",
            security_type=SecurityType(name="Fund", capital_gains=False),
            portfolio_id="isa",
        ),
    }


@pytest.fixture
def make_transaction():
    """
    Factory fixture for creating transactions.

    Usage:
        def test_something(make_transaction):
            trans = make_transaction("t1", date(2024, 1, 1), TransactionType.OPENING, "100.00")
    """
    def _create(
        transaction_id: str,
        when: date,
        transaction_type: TransactionType,
        amount: str,
        **kwargs,
    ) -> Transaction:
        for field in ("units", "tax_credit"):
            if isinstance(kwargs.get(field), str):
                kwargs[field] = Decimal(kwargs[field])
        return Transaction(
            transaction_id=transaction_id,
            date=when,
            transaction_type=transaction_type,
            amount=Decimal(amount),
            **kwargs,
        )

    return _create


@pytest.fixture
def sample_ledger(sample_accounts, sample_securities, make_transaction) -> list[Transaction]:
    """
    Create a ledger covering every transaction type.

    End of ledger balances: current 2500.00, wallet 150.00, isa cash 3500.00,
    60 SHR (cost 600.00) and 10 BOND (cost 1000.00).
    """
    acc = sample_accounts
    sec = sample_securities
    employer = Payee(payee_id="employer", name="Employer")
    grocer = Payee(payee_id="grocer", name="Grocer")
    landlord = Payee(payee_id="landlord", name="Landlord")
    salary = EventCategory(category_id="salary", name="Salary", tax_basis=TaxBasisClass.SALARY)
    food = EventCategory(category_id="food", name="Food")
    rent = EventCategory(category_id="rent", name="Rent")

    return [
        make_transaction("t01", date(2024, 1, 1), TransactionType.OPENING, "1000.00",
                         credit_account=acc["current"]),
        make_transaction("t02", date(2024, 1, 1), TransactionType.OPENING, "5000.00",
                         credit_account=acc["isa"]),
        make_transaction("t03", date(2024, 1, 5), TransactionType.INCOME, "2000.00",
                         credit_account=acc["current"], payee=employer, category=salary,
                         tax_credit="500.00"),
        make_transaction("t04", date(2024, 1, 10), TransactionType.TRANSFER, "200.00",
                         debit_account=acc["current"], credit_account=acc["wallet"]),
        make_transaction("t05", date(2024, 1, 12), TransactionType.EXPENSE, "50.00",
                         debit_account=acc["wallet"], payee=grocer, category=food),
        make_transaction("t06", date(2024, 1, 15), TransactionType.PURCHASE, "1000.00",
                         debit_account=acc["isa"], security=sec["SHR"], units="100"),
        make_transaction("t07", date(2024, 2, 1), TransactionType.PURCHASE, "1000.00",
                         debit_account=acc["isa"], security=sec["BOND"], units="10"),
        make_transaction("t08", date(2024, 3, 1), TransactionType.DIVIDEND, "20.00",
                         credit_account=acc["isa"], security=sec["SHR"]),
        make_transaction("t09", date(2024, 4, 1), TransactionType.SALE, "480.00",
                         credit_account=acc["isa"], security=sec["SHR"], units="40"),
        make_transaction("t10", date(2024, 5, 1), TransactionType.EXPENSE, "300.00",
                         debit_account=acc["current"], payee=landlord, category=rent),
    ]


@pytest.fixture
def sample_prices() -> PriceHistory:
    """Create prices for SHR and BOND across the ledger period."""
    return PriceHistory([
        SecurityPrice(security_id="SHR", date=date(2024, 1, 15), price=Decimal("10.00")),
        SecurityPrice(security_id="SHR", date=date(2024, 3, 31), price=Decimal("11.00")),
        SecurityPrice(security_id="SHR", date=date(2024, 6, 30), price=Decimal("12.00")),
        SecurityPrice(security_id="BOND", date=date(2024, 2, 1), price=Decimal("100.00")),
        SecurityPrice(security_id="BOND", date=date(2024, 3, 31), price=Decimal("95.00")),
        SecurityPrice(security_id="BOND", date=date(2024, 6, 30), price=Decimal("105.00")),
    ])


@pytest.fixture
def temp_output_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def ledger_files(temp_output_dir: Path) -> dict[str, Path]:
    """
    Write the sample ledger as CSV input files plus a config YAML.

    Returns:
        Dictionary of file role -> path
    """
    files = {
        "config": temp_output_dir / "config.yaml",
        "accounts": temp_output_dir / "accounts.csv",
        "securities": temp_output_dir / "securities.csv",
        "transactions": temp_output_dir / "transactions.csv",
        "prices": temp_output_dir / "prices.csv",
    }

    files["config"].write_text(
        "analysis_id: CLI001\n"
        f"output_dir: {temp_output_dir / 'output'}\n"
    )
    files["accounts"].write_text(
        "account_id,name,kind\n"
        "current,Current Account,deposit\n"
        "wallet,Wallet,cash\n"
        "isa,Stocks ISA,portfolio\n"
    )
    files["securities"].write_text(
        "security_id,name,portfolio_id,security_type,capital_gains,life_bond\n"
        "SHR,Acme Shares,isa,Shares,true,false\n"
        "BOND,Growth Bond,isa,LifeBond,false,true\n"
    )
    files["transactions"].write_text(
        "transaction_id,date,transaction_type,amount,debit_account,credit_account,"
        "security,units,payee,category,tax_basis,tax_credit\n"
        "t01,2024-01-01,OPENING,1000.00,,current,,,,,,\n"
        "t02,2024-01-01,OPENING,5000.00,,isa,,,,,,\n"
        "t03,2024-01-05,INCOME,2000.00,,current,,,Employer,Salary,SALARY,500.00\n"
        "t04,2024-01-10,TRANSFER,200.00,current,wallet,,,,,,\n"
        "t05,2024-01-12,EXPENSE,50.00,wallet,,,,Grocer,Food,,\n"
        "t06,2024-01-15,PURCHASE,1000.00,isa,,SHR,100,,,,\n"
        "t07,2024-02-01,PURCHASE,1000.00,isa,,BOND,10,,,,\n"
        "t08,2024-03-01,DIVIDEND,20.00,,isa,SHR,,,,,\n"
        "t09,2024-04-01,SALE,480.00,,isa,SHR,40,,,,\n"
        "t10,2024-05-01,EXPENSE,300.00,current,,,,Landlord,Rent,,\n"
    )
    files["prices"].write_text(
        "security_id,date,price\n"
        "SHR,2024-01-15,10.00\n"
        "SHR,2024-03-31,11.00\n"
        "SHR,2024-06-30,12.00\n"
        "BOND,2024-02-01,100.00\n"
        "BOND,2024-03-31,95.00\n"
        "BOND,2024-06-30,105.00\n"
    )
    return files

"""
Core data models for the ledger bucket analysis engine.

This module defines the collaborator value types consumed by the analysis:
accounts, securities, payees, event categories, transactions and prices,
together with the analysis configuration and log entries.
All monetary and unit quantities use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional


class AccountKind(Enum):
    """Kind of value-holding account."""
    DEPOSIT = "DEPOSIT"
    CASH = "CASH"
    LOAN = "LOAN"
    PORTFOLIO = "PORTFOLIO"


class TransactionType(Enum):
    """Classification of a transaction for bucket routing."""
    OPENING = "OPENING"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"
    PURCHASE = "PURCHASE"
    SALE = "SALE"
    DIVIDEND = "DIVIDEND"


class PayeeClass(Enum):
    """Well-known payee classes."""
    STANDARD = "STANDARD"
    MARKET = "MARKET"
    TAXMAN = "TAXMAN"


class TaxBasisClass(Enum):
    """Tax basis categories used for tax reporting."""
    SALARY = "SALARY"
    RENTAL = "RENTAL"
    INTEREST = "INTEREST"
    DIVIDEND = "DIVIDEND"
    CAPITAL_GAINS = "CAPITAL_GAINS"
    MARKET = "MARKET"
    TAX_FREE = "TAX_FREE"
    EXPENSE = "EXPENSE"
    TAX_PAID = "TAX_PAID"

    @property
    def is_expense(self) -> bool:
        """Whether amounts under this basis reduce taxable income."""
        return self in (TaxBasisClass.EXPENSE, TaxBasisClass.TAX_PAID)


class CategoryClass(Enum):
    """Well-known event category classes."""
    STANDARD = "STANDARD"
    MARKET_GROWTH = "MARKET_GROWTH"
    CAPITAL_GAIN = "CAPITAL_GAIN"
    DIVIDEND = "DIVIDEND"
    TAX_CREDIT = "TAX_CREDIT"


class ActionType(Enum):
    """Types of logged actions for the analysis log."""
    CONFIG_LOADED = "CONFIG_LOADED"
    TRANSACTIONS_REPLAYED = "TRANSACTIONS_REPLAYED"
    MARKET_ANALYSIS_COMPLETED = "MARKET_ANALYSIS_COMPLETED"
    RANGE_ANALYSIS_BUILT = "RANGE_ANALYSIS_BUILT"
    REPORT_WRITTEN = "REPORT_WRITTEN"


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive range of dates.

    Attributes:
        start: First date in the range (None for unbounded)
        end: Last date in the range
    """
    start: Optional[date]
    end: date

    def __contains__(self, when: date) -> bool:
        if self.start is not None and when < self.start:
            return False
        return when <= self.end

    @property
    def base_date(self) -> Optional[date]:
        """Date of the opening position (the day before start)."""
        if self.start is None:
            return None
        return self.start - timedelta(days=1)


@dataclass(frozen=True)
class Account:
    """
    A value-holding account (deposit, cash, loan or portfolio).

    Attributes:
        account_id: Unique account identifier
        name: Display name
        kind: Kind of account
    """
    account_id: str
    name: str
    kind: AccountKind


@dataclass(frozen=True)
class SecurityType:
    """
    Security classification used by the market reclassification pass.

    Attributes:
        name: Type name (e.g. Shares, UnitTrust, LifeBond)
        capital_gains: Whether disposals are treated as capital gains
        life_bond: Whether the security is an insurance-wrapped life bond
    """
    name: str
    capital_gains: bool = True
    life_bond: bool = False


@dataclass(frozen=True)
class Security:
    """
    A priced security held within a portfolio.

    Attributes:
        security_id: Unique identifier (ticker or internal code)
        name: Display name
        security_type: Classification of the security
        portfolio_id: Account id of the portfolio holding the security
    """
    security_id: str
    name: str
    security_type: SecurityType
    portfolio_id: str

    @property
    def is_capital_gains(self) -> bool:
        return self.security_type.capital_gains

    @property
    def is_life_bond(self) -> bool:
        return self.security_type.life_bond


@dataclass(frozen=True)
class Payee:
    """
    A counterparty for income and expense.

    Attributes:
        payee_id: Unique identifier
        name: Display name
        payee_class: Well-known class of the payee
    """
    payee_id: str
    name: str
    payee_class: PayeeClass = PayeeClass.STANDARD


@dataclass(frozen=True)
class EventCategory:
    """
    Income/expense category for an event.

    Attributes:
        category_id: Unique identifier
        name: Display name
        category_class: Well-known class of the category
        tax_basis: Tax basis that the category's amounts are reported under
    """
    category_id: str
    name: str
    category_class: CategoryClass = CategoryClass.STANDARD
    tax_basis: TaxBasisClass = TaxBasisClass.EXPENSE


@dataclass(frozen=True)
class Transaction:
    """
    A dated ledger transaction.

    The debit side is where value comes from and the credit side is where
    it goes to. Which of the optional references are populated depends on
    the transaction type.

    Attributes:
        transaction_id: Stable identifier
        date: Transaction date
        transaction_type: Routing classification
        amount: Money amount (always non-negative)
        debit_account: Source account (EXPENSE, TRANSFER, PURCHASE)
        credit_account: Target account (OPENING, INCOME, TRANSFER, SALE, DIVIDEND)
        security: Security bought, sold or paying a dividend
        payee: Counterparty for INCOME/EXPENSE
        category: Event category for INCOME/EXPENSE/DIVIDEND
        units: Units bought or sold
        tax_credit: Tax deducted at source
    """
    transaction_id: str
    date: date
    transaction_type: TransactionType
    amount: Decimal
    debit_account: Optional[Account] = None
    credit_account: Optional[Account] = None
    security: Optional[Security] = None
    payee: Optional[Payee] = None
    category: Optional[EventCategory] = None
    units: Optional[Decimal] = None
    tax_credit: Optional[Decimal] = None

    @property
    def gross_amount(self) -> Decimal:
        """Amount including any tax credit."""
        if self.tax_credit is None:
            return self.amount
        return self.amount + self.tax_credit


@dataclass(frozen=True)
class SecurityPrice:
    """
    Price of a security on a specific date.

    Attributes:
        security_id: Security identifier
        date: Price date
        price: Price per unit
    """
    security_id: str
    date: date
    price: Decimal


class PriceHistory:
    """
    Lookup of the latest price on or before a date, per security.
    """

    def __init__(self, prices: Optional[list[SecurityPrice]] = None):
        self._prices: dict[str, list[SecurityPrice]] = {}
        for price in prices or []:
            self._prices.setdefault(price.security_id, []).append(price)
        for entries in self._prices.values():
            entries.sort(key=lambda p: p.date)

    def __iter__(self) -> Iterator[SecurityPrice]:
        for entries in self._prices.values():
            yield from entries

    def latest_price(self, security_id: str, when: date) -> Optional[Decimal]:
        """
        Get the latest price on or before a date.

        Args:
            security_id: Security to look up
            when: Valuation date

        Returns:
            Price, or None if no price exists on or before the date
        """
        latest = None
        for entry in self._prices.get(security_id, []):
            if entry.date > when:
                break
            latest = entry.price
        return latest


@dataclass
class AnalysisConfig:
    """
    Analysis configuration loaded from YAML.

    Attributes:
        analysis_id: Identifier recorded against logged actions
        currency: Reporting currency code
        market_payee: Name of the dedicated market payee
        market_growth_category: Name of the dedicated market growth category
        output_dir: Directory for output files
        money_places: Decimal places for money in written reports
    """
    analysis_id: str
    currency: str = "GBP"
    market_payee: str = "Market"
    market_growth_category: str = "MarketGrowth"
    output_dir: str = "output"
    money_places: int = 2


@dataclass
class AnalysisLogEntry:
    """
    Entry for the append-only analysis log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        analysis_id: Analysis involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    analysis_id: Optional[str]
    details: dict = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        analysis_id: Optional[str],
        details: dict,
    ) -> "AnalysisLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            analysis_id=analysis_id,
            details=details,
        )

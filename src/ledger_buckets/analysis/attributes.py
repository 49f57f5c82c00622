"""
Attribute taxonomies for the bucket analysis.

Each reporting dimension has a closed enumeration of the decimal-valued
slots its buckets hold. Every attribute declares the decimal kind it carries
and whether it is a counter (a flow over the analysed period, rebased at
period boundaries) or a balance carried across boundaries.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional


class TaxonomyError(TypeError):
    """Raised when an attribute is not legal for a dimension or accessor."""
    pass


class DecimalKind(Enum):
    """Decimal subtype carried by an attribute."""
    MONEY = "MONEY"
    UNITS = "UNITS"
    PRICE = "PRICE"

    @property
    def zero(self) -> Decimal:
        """Zero value for this kind."""
        return _ZEROS[self]


_ZEROS = {
    DecimalKind.MONEY: Decimal("0.00"),
    DecimalKind.UNITS: Decimal("0.0000"),
    DecimalKind.PRICE: Decimal("0.0000"),
}


class BucketAttribute(Enum):
    """
    Base for per-dimension attribute enumerations.

    Members are declared as (label, kind, counter) tuples.
    """

    def __init__(self, label: str, kind: DecimalKind, counter: bool):
        self.label = label
        self.kind = kind
        self.counter = counter

    def __str__(self) -> str:
        return self.label


class AccountAttribute(BucketAttribute):
    """Attributes of deposit, cash, loan and portfolio-cash buckets."""
    VALUATION = ("Valuation", DecimalKind.MONEY, False)
    SPEND = ("Spend", DecimalKind.MONEY, True)
    DELTA = ("Delta", DecimalKind.MONEY, False)


class SecurityAttribute(BucketAttribute):
    """Attributes of security and portfolio buckets."""
    UNITS = ("Units", DecimalKind.UNITS, False)
    COST = ("Cost", DecimalKind.MONEY, False)
    PRICE = ("Price", DecimalKind.PRICE, False)
    VALUATION = ("Valuation", DecimalKind.MONEY, False)
    INVESTED = ("Invested", DecimalKind.MONEY, True)
    GAINS = ("Gains", DecimalKind.MONEY, True)
    DIVIDEND = ("Dividend", DecimalKind.MONEY, True)
    MARKET = ("Market", DecimalKind.MONEY, False)


class PayeeAttribute(BucketAttribute):
    """Attributes of payee buckets."""
    INCOME = ("Income", DecimalKind.MONEY, True)
    EXPENSE = ("Expense", DecimalKind.MONEY, True)
    DELTA = ("Delta", DecimalKind.MONEY, False)


class CategoryAttribute(BucketAttribute):
    """Attributes of event category buckets."""
    INCOME = ("Income", DecimalKind.MONEY, True)
    EXPENSE = ("Expense", DecimalKind.MONEY, True)
    DELTA = ("Delta", DecimalKind.MONEY, False)


class TaxBasisAttribute(BucketAttribute):
    """Attributes of tax basis buckets."""
    GROSS = ("Gross", DecimalKind.MONEY, True)
    NETT = ("Nett", DecimalKind.MONEY, True)
    TAXCREDIT = ("TaxCredit", DecimalKind.MONEY, True)


class TransactionAttribute(BucketAttribute):
    """Attributes used when filtering on transaction tags or all transactions."""
    AMOUNT = ("Amount", DecimalKind.MONEY, False)
    TAXCREDIT = ("TaxCredit", DecimalKind.MONEY, False)


class AnalysisType(Enum):
    """Reporting dimensions of an analysis."""
    DEPOSIT = "DEPOSIT"
    CASH = "CASH"
    LOAN = "LOAN"
    PORTFOLIO = "PORTFOLIO"
    SECURITY = "SECURITY"
    PAYEE = "PAYEE"
    CATEGORY = "CATEGORY"
    TAXBASIS = "TAXBASIS"
    TRANSTAG = "TRANSTAG"
    ALL = "ALL"

    def __str__(self) -> str:
        return _DISPLAY_NAMES[self]

    def get_values(self) -> type[BucketAttribute]:
        """
        Get the attribute enumeration for this dimension.

        Raises:
            ValueError: If the dimension has no attribute set
        """
        try:
            return _ATTRIBUTE_SETS[self]
        except KeyError:
            raise ValueError(f"No attribute set for analysis type {self.name}")

    def has_balances(self) -> bool:
        """Whether the dimension accumulates running balances."""
        return self not in (AnalysisType.TRANSTAG, AnalysisType.ALL)

    def get_default_value(self) -> Optional[BucketAttribute]:
        """First declared attribute for the dimension, or None."""
        attributes = _ATTRIBUTE_SETS.get(self)
        if not attributes:
            return None
        return next(iter(attributes))


_DISPLAY_NAMES = {
    AnalysisType.DEPOSIT: "Deposits",
    AnalysisType.CASH: "Cash",
    AnalysisType.LOAN: "Loans",
    AnalysisType.PORTFOLIO: "Portfolios",
    AnalysisType.SECURITY: "Securities",
    AnalysisType.PAYEE: "Payees",
    AnalysisType.CATEGORY: "Categories",
    AnalysisType.TAXBASIS: "TaxBasis",
    AnalysisType.TRANSTAG: "TransactionTags",
    AnalysisType.ALL: "All",
}

_ATTRIBUTE_SETS: dict[AnalysisType, type[BucketAttribute]] = {
    AnalysisType.DEPOSIT: AccountAttribute,
    AnalysisType.CASH: AccountAttribute,
    AnalysisType.LOAN: AccountAttribute,
    AnalysisType.PORTFOLIO: SecurityAttribute,
    AnalysisType.SECURITY: SecurityAttribute,
    AnalysisType.PAYEE: PayeeAttribute,
    AnalysisType.CATEGORY: CategoryAttribute,
    AnalysisType.TAXBASIS: TaxBasisAttribute,
    AnalysisType.TRANSTAG: TransactionAttribute,
    AnalysisType.ALL: TransactionAttribute,
}


def check_attribute(
    attribute_class: type[BucketAttribute],
    attr: BucketAttribute,
    kind: Optional[DecimalKind] = None,
) -> None:
    """
    Validate that an attribute belongs to a dimension's attribute set.

    Args:
        attribute_class: Attribute enumeration of the owning dimension
        attr: Attribute being accessed
        kind: Required decimal kind for typed accessors

    Raises:
        TaxonomyError: If the attribute or its kind is not legal
    """
    if not isinstance(attr, attribute_class):
        raise TaxonomyError(
            f"{attr!r} is not a {attribute_class.__name__}"
        )
    if kind is not None and attr.kind is not kind:
        raise TaxonomyError(
            f"{attribute_class.__name__}.{attr.name} holds {attr.kind.value}, "
            f"not {kind.value}"
        )

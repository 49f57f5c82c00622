"""
Portfolio and security buckets.

A portfolio bucket groups the cash held inside a portfolio account with one
bucket per security held. Securities are valued from a price history at the
end of the analysed range, and the market movement of each holding is the
change in valuation not explained by money invested.
"""

import copy
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, Optional

from ledger_buckets.analysis.attributes import AnalysisType, SecurityAttribute
from ledger_buckets.analysis.errors import AnalysisError
from ledger_buckets.analysis.values import BucketValues
from ledger_buckets.buckets.accounts import AccountBucket
from ledger_buckets.buckets.base import BucketList, HistoryBucket
from ledger_buckets.models import (
    Account,
    AccountKind,
    DateRange,
    PriceHistory,
    Security,
    Transaction,
)


MONEY_QUANTUM = Decimal("0.01")

# Attributes that can be summed across holdings
SUMMABLE = (
    SecurityAttribute.COST,
    SecurityAttribute.VALUATION,
    SecurityAttribute.INVESTED,
    SecurityAttribute.GAINS,
    SecurityAttribute.DIVIDEND,
    SecurityAttribute.MARKET,
)


def _money(amount: Decimal) -> Decimal:
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class PortfolioCashBucket(AccountBucket):
    """Cash balance held within a portfolio account."""
    analysis_type = AnalysisType.PORTFOLIO


class SecurityBucket(HistoryBucket):
    """
    Holding of a single security.

    Attributes:
        security: Security held
        base_valuation: Valuation of the opening holding at the range base date
    """

    analysis_type = AnalysisType.SECURITY

    def __init__(self, security: Security):
        super().__init__(BucketValues(SecurityAttribute, {
            SecurityAttribute.UNITS: Decimal("0.0000"),
            SecurityAttribute.COST: Decimal("0.00"),
        }))
        self.security = security
        self.base_valuation = Decimal("0.00")

    @property
    def name(self) -> str:
        return self.security.name

    @property
    def key(self) -> str:
        return self.security.security_id

    @property
    def units(self) -> Decimal:
        return self.values.get_units_value(SecurityAttribute.UNITS)

    @property
    def cost(self) -> Decimal:
        return self.values.get_money_value(SecurityAttribute.COST)

    @property
    def valuation(self) -> Decimal:
        return self.values.get_money_value(SecurityAttribute.VALUATION)

    @property
    def market(self) -> Decimal:
        return self.values.get_money_value(SecurityAttribute.MARKET)

    def is_active(self) -> bool:
        return self.values.is_non_zero(SecurityAttribute.UNITS)

    def adjust_for_purchase(self, transaction: Transaction) -> None:
        self.values.adjust_value(SecurityAttribute.UNITS, transaction.units)
        self.values.adjust_value(SecurityAttribute.COST, transaction.amount)
        self.values.adjust_value(SecurityAttribute.INVESTED, transaction.amount)
        self.register_transaction(transaction)

    def adjust_for_sale(self, transaction: Transaction) -> None:
        """
        Dispose of units, releasing cost pro rata and realising gains.

        Raises:
            AnalysisError: If more units are sold than are held
        """
        held = self.units
        sold = transaction.units
        if sold > held:
            raise AnalysisError(
                f"Transaction {transaction.transaction_id} sells {sold} units of "
                f"{self.security.security_id} but only {held} are held"
            )

        cost = self.cost
        portion = cost if sold == held else _money(cost * sold / held)

        self.values.adjust_value(SecurityAttribute.UNITS, -sold)
        self.values.adjust_value(SecurityAttribute.COST, -portion)
        self.values.adjust_value(SecurityAttribute.INVESTED, -transaction.amount)
        self.values.adjust_value(SecurityAttribute.GAINS, transaction.amount - portion)
        self.register_transaction(transaction)

    def adjust_for_dividend(self, transaction: Transaction) -> None:
        self.values.adjust_value(SecurityAttribute.DIVIDEND, transaction.gross_amount)
        self.register_transaction(transaction)

    def _value_units(
        self,
        units: Decimal,
        prices: PriceHistory,
        when: Optional[date],
    ) -> tuple[Decimal, Decimal]:
        if units == 0 or when is None:
            price = None
        else:
            price = prices.latest_price(self.security.security_id, when)
            if price is None:
                raise AnalysisError(
                    f"No price for {self.security.security_id} on or before {when} "
                    f"to value {units} units"
                )
        if price is None:
            return Decimal("0.0000"), Decimal("0.00")
        return price, _money(units * price)

    def analyse_bucket(self, date_range: DateRange, prices: PriceHistory) -> None:
        """
        Value the holding and calculate its market movement.

        The holding is valued at the range end and the opening holding at
        the day before the range start, then
        MARKET = (valuation - base valuation) - INVESTED.

        Args:
            date_range: Analysed range
            prices: Price history to value from

        Raises:
            AnalysisError: If units are held with no price available
        """
        units = self.units
        # price reads as zero when nothing is held
        price, valuation = self._value_units(units, prices, date_range.end)

        base_units = self.history.opening_values.get_units_value(SecurityAttribute.UNITS)
        _, self.base_valuation = self._value_units(base_units, prices, date_range.base_date)

        invested = self.values.get_money_value(SecurityAttribute.INVESTED)
        self.values.set_value(SecurityAttribute.PRICE, price)
        self.values.set_value(SecurityAttribute.VALUATION, valuation)
        self.values.set_value(
            SecurityAttribute.MARKET,
            (valuation - self.base_valuation) - invested,
        )


class PortfolioBucket:
    """
    Aggregate of a portfolio's cash and security holdings.

    The portfolio's own values are recalculated by each securities analysis
    and are not snapshotted.

    Attributes:
        account: Portfolio account (None for a totals bucket)
        cash: Bucket for the cash held in the portfolio
        values: Summed security values plus cash valuation
    """

    analysis_type = AnalysisType.PORTFOLIO

    def __init__(self, account: Optional[Account]):
        self.account = account
        self.cash = PortfolioCashBucket(account)
        self.values = BucketValues(SecurityAttribute)
        self._securities: dict[str, SecurityBucket] = {}

    def __repr__(self) -> str:
        return f"PortfolioBucket({self.name}, {len(self._securities)} securities)"

    @property
    def name(self) -> str:
        return self.account.name if self.account else "Totals"

    @property
    def key(self) -> str:
        return self.account.account_id if self.account else "Totals"

    @property
    def securities(self) -> list[SecurityBucket]:
        return sorted(self._securities.values(), key=lambda b: b.name)

    @property
    def is_idle(self) -> bool:
        return self.cash.is_idle and all(b.is_idle for b in self._securities.values())

    def is_active(self) -> bool:
        return self.cash.is_active() or any(b.is_active() for b in self._securities.values())

    def get_security_bucket(self, security: Security) -> SecurityBucket:
        bucket = self._securities.get(security.security_id)
        if bucket is None:
            bucket = SecurityBucket(security)
            self._securities[security.security_id] = bucket
        return bucket

    def find_security_bucket(self, security_id: str) -> Optional[SecurityBucket]:
        return self._securities.get(security_id)

    def add_values(self, source) -> None:
        """Add the summable values of a security or portfolio bucket."""
        for attr in SUMMABLE:
            self.values.adjust_value(attr, source.values.get_value(attr))

    def finalize(self) -> None:
        self.cash.finalize()
        for bucket in self._securities.values():
            bucket.finalize()

    def analyse_securities(self, date_range: DateRange, prices: PriceHistory, market) -> None:
        """
        Value every holding and feed it to the market analysis.

        Args:
            date_range: Analysed range
            prices: Price history to value from
            market: MarketAnalysis receiving each security bucket
        """
        self.values = BucketValues(SecurityAttribute)
        self.cash.calculate_delta()
        for bucket in self.securities:
            bucket.analyse_bucket(date_range, prices)
            market.process_security(bucket)
            self.add_values(bucket)
        self.values.adjust_value(SecurityAttribute.VALUATION, self.cash.valuation)

    def _derive(self, cash: PortfolioCashBucket, securities: dict) -> "PortfolioBucket":
        derived = copy.copy(self)
        derived.cash = cash
        derived.values = BucketValues(SecurityAttribute)
        derived._securities = securities
        return derived

    def for_range(self, date_range: DateRange) -> "PortfolioBucket":
        securities = {}
        for key, bucket in self._securities.items():
            ranged = bucket.for_range(date_range)
            if not ranged.is_idle or ranged.is_active():
                securities[key] = ranged
        return self._derive(self.cash.for_range(date_range), securities)

    def until(self, when: date) -> "PortfolioBucket":
        securities = {key: b.until(when) for key, b in self._securities.items()}
        return self._derive(self.cash.until(when), securities)


class PortfolioBucketList(BucketList):
    """Portfolio buckets keyed by portfolio account."""

    analysis_type = AnalysisType.PORTFOLIO

    def get_bucket(self, account: Account) -> PortfolioBucket:
        return self._get_or_create(account.account_id, lambda: PortfolioBucket(account))

    def get_cash_bucket(self, account: Account) -> PortfolioCashBucket:
        return self.get_bucket(account).cash

    def get_security_bucket(self, security: Security) -> SecurityBucket:
        """
        Get the bucket for a security within its portfolio.

        A portfolio seen only through its securities gets a bucket named
        after its account id.
        """
        portfolio = self._buckets.get(security.portfolio_id)
        if portfolio is None:
            portfolio = self.get_bucket(Account(
                account_id=security.portfolio_id,
                name=security.portfolio_id,
                kind=AccountKind.PORTFOLIO,
            ))
        return portfolio.get_security_bucket(security)

    def iter_securities(self) -> Iterator[SecurityBucket]:
        for portfolio in self:
            yield from portfolio.securities

    def _new_totals(self) -> PortfolioBucket:
        return PortfolioBucket(None)

    def _keep_in_range(self, bucket: PortfolioBucket) -> bool:
        # Portfolios still holding cash or units stay so their holdings are valued.
        return not bucket.is_idle or bucket.is_active()

    def analyse_securities(self, date_range: DateRange, prices: PriceHistory, market):
        """
        Analyse every portfolio's securities and total the portfolios.

        Returns:
            The market analysis, ready for propagate_totals
        """
        for portfolio in self:
            portfolio.analyse_securities(date_range, prices, market)
        self.produce_totals()
        return market

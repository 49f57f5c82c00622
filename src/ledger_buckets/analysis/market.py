"""
Market reclassification pass.

After securities are valued, each holding's market movement is split into
realised gains and unrealised growth. The totals are then pushed to the
dedicated market payee, the market growth category and the market tax basis.
"""

from decimal import Decimal
from typing import Optional

from ledger_buckets.analysis.attributes import SecurityAttribute
from ledger_buckets.analysis.values import BucketStateError
from ledger_buckets.models import CategoryClass, PayeeClass


class MarketAnalysis:
    """
    Transient accumulator of market income, expense and growth.

    Feed every analysed security bucket to process_security, then call
    propagate_totals exactly once. All totals are positive amounts.

    Attributes:
        market_income: Total market income (gains and positive growth)
        market_expense: Total market expense (losses and negative growth)
        growth_income: Total positive unrealised growth
        growth_expense: Total negative unrealised growth
        growth: Unrealised growth per security id
    """

    def __init__(self):
        self.market_income = Decimal("0.00")
        self.market_expense = Decimal("0.00")
        self.growth_income = Decimal("0.00")
        self.growth_expense = Decimal("0.00")
        self.growth: dict[str, Decimal] = {}
        self._propagated = False

    def __repr__(self) -> str:
        return (
            f"MarketAnalysis(income={self.market_income}, expense={self.market_expense}, "
            f"growth={self.growth_income}/{self.growth_expense})"
        )

    @property
    def is_propagated(self) -> bool:
        return self._propagated

    @property
    def securities_processed(self) -> int:
        return len(self.growth)

    def process_security(self, bucket) -> Decimal:
        """
        Reclassify the market movement of a security.

        For capital gains securities the realised gains are taken out of the
        market movement and counted as market income (or expense when
        negative). For life bonds the gains are also taken out, but only
        positive gains are counted as market income. Whatever movement
        remains is unrealised growth and counts towards both growth and
        market totals.

        Args:
            bucket: Analysed SecurityBucket

        Returns:
            The unrealised growth of the security

        Raises:
            BucketStateError: If totals have already been propagated
        """
        if self._propagated:
            raise BucketStateError("Market totals have already been propagated")

        market = bucket.values.get_money_value(SecurityAttribute.MARKET)
        gains = bucket.values.get_money_value(SecurityAttribute.GAINS)
        security = bucket.security

        if gains != 0:
            if security.is_capital_gains:
                market -= gains
                if gains > 0:
                    self.market_income += gains
                else:
                    self.market_expense -= gains
            elif security.is_life_bond:
                market -= gains
                # Life bond losses are not counted as market expense
                if gains > 0:
                    self.market_income += gains

        if market > 0:
            self.growth_income += market
            self.market_income += market
        elif market < 0:
            self.growth_expense -= market
            self.market_expense -= market

        self.growth[security.security_id] = market
        return market

    def propagate_totals(
        self,
        analysis,
        market_payee: Optional[str] = None,
        market_growth_category: Optional[str] = None,
    ) -> None:
        """
        Push the totals into the owning analysis.

        The market payee receives market income and expense, the market
        growth category receives growth, and the market tax basis is adjusted
        by net growth. Well-known buckets are created on first use.

        Args:
            analysis: Analysis owning the payee, category and tax basis lists
            market_payee: Name for a newly created market payee
            market_growth_category: Name for a newly created growth category

        Raises:
            BucketStateError: If totals have already been propagated
        """
        if self._propagated:
            raise BucketStateError("Market totals have already been propagated")
        self._propagated = True

        config = analysis.config
        if self.market_income or self.market_expense:
            payee = analysis.get_payees().get_class_bucket(
                PayeeClass.MARKET, market_payee or config.market_payee
            )
            payee.add_income(self.market_income)
            payee.add_expense(self.market_expense)

        if self.growth_income or self.growth_expense:
            category = analysis.get_event_categories().get_class_bucket(
                CategoryClass.MARKET_GROWTH,
                market_growth_category or config.market_growth_category,
            )
            category.add_income(self.growth_income)
            category.add_expense(self.growth_expense)
            analysis.get_tax_basis().adjust_market(self.growth_income, self.growth_expense)

    def to_dict(self) -> dict:
        return {
            "market_income": self.market_income,
            "market_expense": self.market_expense,
            "growth_income": self.growth_income,
            "growth_expense": self.growth_expense,
            "securities_processed": self.securities_processed,
        }

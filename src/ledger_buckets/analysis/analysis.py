"""
The analysis aggregate.

An Analysis owns one bucket list per reporting dimension, the price history
used for valuation and the market analysis of its last securities pass.
"""

from datetime import date
from typing import Iterator, Optional

from ledger_buckets.analysis.attributes import AnalysisType
from ledger_buckets.analysis.market import MarketAnalysis
from ledger_buckets.buckets.accounts import AccountBucketList, CashBucket, DepositBucket, LoanBucket
from ledger_buckets.buckets.base import BucketList
from ledger_buckets.buckets.categories import EventCategoryBucketList
from ledger_buckets.buckets.payees import PayeeBucketList
from ledger_buckets.buckets.portfolios import PortfolioBucketList, SecurityBucket
from ledger_buckets.buckets.taxbasis import TaxBasisBucketList
from ledger_buckets.models import AccountKind, AnalysisConfig, DateRange, PriceHistory


class Analysis:
    """
    Bucket lists for every dimension of a ledger analysis.

    Attributes:
        config: Analysis configuration
        date_range: Range the analysis covers (start None for cumulative)
        prices: Price history for security valuation
        market: Market analysis from the last securities pass
    """

    def __init__(
        self,
        config: AnalysisConfig,
        date_range: DateRange,
        prices: Optional[PriceHistory] = None,
    ):
        self.config = config
        self.date_range = date_range
        self.prices = prices or PriceHistory()
        self.market: Optional[MarketAnalysis] = None

        self._lists: dict[AnalysisType, BucketList] = {
            AnalysisType.DEPOSIT: AccountBucketList(AnalysisType.DEPOSIT, DepositBucket),
            AnalysisType.CASH: AccountBucketList(AnalysisType.CASH, CashBucket),
            AnalysisType.LOAN: AccountBucketList(AnalysisType.LOAN, LoanBucket),
            AnalysisType.PORTFOLIO: PortfolioBucketList(),
            AnalysisType.PAYEE: PayeeBucketList(),
            AnalysisType.CATEGORY: EventCategoryBucketList(),
            AnalysisType.TAXBASIS: TaxBasisBucketList(),
        }

    def __repr__(self) -> str:
        start = self.date_range.start or "start"
        return f"Analysis({self.config.analysis_id}, {start}..{self.date_range.end})"

    @property
    def is_range(self) -> bool:
        return self.date_range.start is not None

    def get_bucket_list(self, analysis_type: AnalysisType):
        """
        Get the buckets of a dimension.

        Securities are returned as a list across all portfolios.

        Raises:
            ValueError: For dimensions without bucket lists
        """
        if analysis_type is AnalysisType.SECURITY:
            return list(self.iter_securities())
        try:
            return self._lists[analysis_type]
        except KeyError:
            raise ValueError(f"Analysis has no buckets for {analysis_type}")

    def get_account_list(self, kind: AccountKind):
        return self._lists[AnalysisType[kind.value]]

    def get_deposits(self) -> AccountBucketList:
        return self._lists[AnalysisType.DEPOSIT]

    def get_cash(self) -> AccountBucketList:
        return self._lists[AnalysisType.CASH]

    def get_loans(self) -> AccountBucketList:
        return self._lists[AnalysisType.LOAN]

    def get_portfolios(self) -> PortfolioBucketList:
        return self._lists[AnalysisType.PORTFOLIO]

    def get_payees(self) -> PayeeBucketList:
        return self._lists[AnalysisType.PAYEE]

    def get_event_categories(self) -> EventCategoryBucketList:
        return self._lists[AnalysisType.CATEGORY]

    def get_tax_basis(self) -> TaxBasisBucketList:
        return self._lists[AnalysisType.TAXBASIS]

    def iter_bucket_lists(self) -> Iterator[tuple[AnalysisType, BucketList]]:
        return iter(self._lists.items())

    def iter_securities(self) -> Iterator[SecurityBucket]:
        return self.get_portfolios().iter_securities()

    def finalize(self) -> None:
        """Close every bucket history to further transactions."""
        for bucket_list in self._lists.values():
            bucket_list.finalize()

    def analyse_securities(self) -> MarketAnalysis:
        """
        Value securities, run the market pass and produce totals.

        A fresh MarketAnalysis is used for each pass and propagated exactly
        once into the payee, category and tax basis lists.
        """
        market = MarketAnalysis()
        self.get_portfolios().analyse_securities(self.date_range, self.prices, market)
        market.propagate_totals(self)
        self.market = market
        self.produce_totals()
        return market

    def produce_totals(self) -> None:
        for analysis_type, bucket_list in self._lists.items():
            if analysis_type is not AnalysisType.PORTFOLIO:
                bucket_list.produce_totals()

    @classmethod
    def for_range(cls, base: "Analysis", date_range: DateRange) -> "Analysis":
        """
        Derive a period analysis from a cumulative one.

        Each bucket history is spliced onto the range, idle buckets are
        dropped (apart from holdings still carrying a balance), and the
        derived analysis runs its own securities pass.

        Args:
            base: Cumulative analysis
            date_range: Range to derive

        Returns:
            New Analysis for the range; the base is left unchanged
        """
        analysis = cls(base.config, date_range, base.prices)
        for analysis_type, bucket_list in base._lists.items():
            analysis._lists[analysis_type] = bucket_list.for_range(date_range)
        analysis.analyse_securities()
        return analysis

    @classmethod
    def until(cls, base: "Analysis", when: date) -> "Analysis":
        """Derive the cumulative analysis as it stood at the end of a date."""
        analysis = cls(base.config, DateRange(start=None, end=when), base.prices)
        for analysis_type, bucket_list in base._lists.items():
            analysis._lists[analysis_type] = bucket_list.until(when)
        analysis.analyse_securities()
        return analysis

"""
Tax basis buckets: gross, nett and tax credit per reporting basis.
"""

from decimal import Decimal
from typing import Optional

from ledger_buckets.analysis.attributes import AnalysisType, TaxBasisAttribute
from ledger_buckets.analysis.values import BucketValues
from ledger_buckets.buckets.base import BucketList, HistoryBucket
from ledger_buckets.models import TaxBasisClass, Transaction


class TaxBasisBucket(HistoryBucket):
    """
    Amounts reported under one tax basis.

    Attributes:
        basis: Tax basis tracked by the bucket (None for a totals bucket)
    """

    analysis_type = AnalysisType.TAXBASIS

    def __init__(self, basis: Optional[TaxBasisClass]):
        super().__init__(BucketValues(TaxBasisAttribute))
        self.basis = basis

    @property
    def name(self) -> str:
        return self.basis.value if self.basis else "Totals"

    @property
    def key(self) -> str:
        return self.name

    @property
    def gross(self) -> Decimal:
        return self.values.get_money_value(TaxBasisAttribute.GROSS)

    @property
    def nett(self) -> Decimal:
        return self.values.get_money_value(TaxBasisAttribute.NETT)

    def add_income_transaction(self, transaction: Transaction) -> None:
        """Income, with any tax deducted at source recorded as tax credit."""
        self.values.adjust_value(TaxBasisAttribute.GROSS, transaction.gross_amount)
        self.values.adjust_value(TaxBasisAttribute.NETT, transaction.amount)
        if transaction.tax_credit:
            self.values.adjust_value(TaxBasisAttribute.TAXCREDIT, transaction.tax_credit)
        self.register_transaction(transaction)

    def add_expense_transaction(self, transaction: Transaction) -> None:
        self.adjust_value(transaction.amount, transaction)

    def adjust_value(self, amount: Decimal, transaction: Optional[Transaction] = None) -> None:
        """Add an amount to both gross and nett."""
        self.values.adjust_value(TaxBasisAttribute.GROSS, amount)
        self.values.adjust_value(TaxBasisAttribute.NETT, amount)
        if transaction is not None:
            self.register_transaction(transaction)


class TaxBasisBucketList(BucketList):
    """Tax basis buckets, one per basis, created on first use."""

    analysis_type = AnalysisType.TAXBASIS

    def get_bucket(self, basis: TaxBasisClass) -> TaxBasisBucket:
        return self._get_or_create(basis.value, lambda: TaxBasisBucket(basis))

    def adjust_market(self, income: Decimal, expense: Decimal) -> None:
        """
        Record net market growth under the market basis.

        Args:
            income: Total market growth
            expense: Total market decline (positive amount)
        """
        self.get_bucket(TaxBasisClass.MARKET).adjust_value(income - expense)

    def _new_totals(self) -> TaxBasisBucket:
        return TaxBasisBucket(None)

    def produce_totals(self) -> TaxBasisBucket:
        """Totals with expense bases netted off against income bases."""
        totals = self._new_totals()
        for bucket in self._buckets.values():
            sign = -1 if bucket.basis.is_expense else 1
            for attr, value in bucket.values.items():
                totals.values.adjust_value(attr, sign * value)
        self._totals = totals
        return totals

"""
Payee buckets: income received from and expense paid to each counterparty.
"""

from decimal import Decimal
from typing import Optional

from ledger_buckets.analysis.attributes import AnalysisType, PayeeAttribute
from ledger_buckets.analysis.values import BucketValues
from ledger_buckets.buckets.base import BucketList, HistoryBucket
from ledger_buckets.models import Payee, PayeeClass, Transaction


class PayeeBucket(HistoryBucket):
    """
    Income and expense totals for one payee.

    Attributes:
        payee: Payee tracked by the bucket (None for a totals bucket)
    """

    analysis_type = AnalysisType.PAYEE

    def __init__(self, payee: Optional[Payee]):
        super().__init__(BucketValues(PayeeAttribute))
        self.payee = payee

    @property
    def name(self) -> str:
        return self.payee.name if self.payee else "Totals"

    @property
    def key(self) -> str:
        return self.payee.payee_id if self.payee else "Totals"

    @property
    def income(self) -> Decimal:
        return self.values.get_money_value(PayeeAttribute.INCOME)

    @property
    def expense(self) -> Decimal:
        return self.values.get_money_value(PayeeAttribute.EXPENSE)

    def adjust_for_debit(self, transaction: Transaction) -> None:
        """Income received from the payee, including tax deducted at source."""
        self.values.adjust_value(PayeeAttribute.INCOME, transaction.gross_amount)
        self.register_transaction(transaction)

    def adjust_for_credit(self, transaction: Transaction) -> None:
        """Expense paid to the payee."""
        self.values.adjust_value(PayeeAttribute.EXPENSE, transaction.amount)
        self.register_transaction(transaction)

    def adjust_for_tax_payments(self, transaction: Transaction) -> None:
        """Tax deducted at source, counted as paid to the tax authority."""
        if transaction.tax_credit:
            self.values.adjust_value(PayeeAttribute.EXPENSE, transaction.tax_credit)
            self.register_transaction(transaction)

    def add_income(self, amount: Decimal) -> None:
        self.values.adjust_value(PayeeAttribute.INCOME, amount)

    def add_expense(self, amount: Decimal) -> None:
        self.values.adjust_value(PayeeAttribute.EXPENSE, amount)

    def calculate_delta(self) -> None:
        self.values.set_value(PayeeAttribute.DELTA, self.income - self.expense)


class PayeeBucketList(BucketList):
    """Payee buckets, including lazily created well-known payees."""

    analysis_type = AnalysisType.PAYEE

    def get_bucket(self, payee: Payee) -> PayeeBucket:
        return self._get_or_create(payee.payee_id, lambda: PayeeBucket(payee))

    def get_class_bucket(self, payee_class: PayeeClass, name: str) -> PayeeBucket:
        """
        Get the bucket for the single payee of a well-known class.

        The payee is created on first use when the ledger has none.
        """
        for bucket in self._buckets.values():
            if bucket.payee.payee_class is payee_class:
                return bucket
        return self.get_bucket(Payee(
            payee_id=f"<{payee_class.value}>",
            name=name,
            payee_class=payee_class,
        ))

    def _new_totals(self) -> PayeeBucket:
        return PayeeBucket(None)

    def produce_totals(self) -> PayeeBucket:
        for bucket in self._buckets.values():
            bucket.calculate_delta()
        totals = super().produce_totals()
        totals.calculate_delta()
        return totals

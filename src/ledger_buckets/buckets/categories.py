"""
Event category buckets.
"""

from decimal import Decimal
from typing import Optional

from ledger_buckets.analysis.attributes import AnalysisType, CategoryAttribute
from ledger_buckets.analysis.values import BucketValues
from ledger_buckets.buckets.base import BucketList, HistoryBucket
from ledger_buckets.models import CategoryClass, EventCategory, TaxBasisClass, Transaction


class EventCategoryBucket(HistoryBucket):
    """
    Income and expense totals for one event category.

    Attributes:
        category: Category tracked by the bucket (None for a totals bucket)
    """

    analysis_type = AnalysisType.CATEGORY

    def __init__(self, category: Optional[EventCategory]):
        super().__init__(BucketValues(CategoryAttribute))
        self.category = category

    @property
    def name(self) -> str:
        return self.category.name if self.category else "Totals"

    @property
    def key(self) -> str:
        return self.category.category_id if self.category else "Totals"

    @property
    def income(self) -> Decimal:
        return self.values.get_money_value(CategoryAttribute.INCOME)

    @property
    def expense(self) -> Decimal:
        return self.values.get_money_value(CategoryAttribute.EXPENSE)

    def add_income(self, amount: Decimal, transaction: Optional[Transaction] = None) -> None:
        """Add income, snapshotting when a transaction is supplied."""
        self.values.adjust_value(CategoryAttribute.INCOME, amount)
        if transaction is not None:
            self.register_transaction(transaction)

    def add_expense(self, amount: Decimal, transaction: Optional[Transaction] = None) -> None:
        self.values.adjust_value(CategoryAttribute.EXPENSE, amount)
        if transaction is not None:
            self.register_transaction(transaction)

    def calculate_delta(self) -> None:
        self.values.set_value(CategoryAttribute.DELTA, self.income - self.expense)


class EventCategoryBucketList(BucketList):
    """Category buckets, including lazily created well-known categories."""

    analysis_type = AnalysisType.CATEGORY

    def get_bucket(self, category: EventCategory) -> EventCategoryBucket:
        return self._get_or_create(
            category.category_id, lambda: EventCategoryBucket(category)
        )

    def get_class_bucket(
        self,
        category_class: CategoryClass,
        name: str,
        tax_basis: TaxBasisClass = TaxBasisClass.MARKET,
    ) -> EventCategoryBucket:
        """Get (creating on first use) the bucket of a well-known category."""
        for bucket in self._buckets.values():
            if bucket.category.category_class is category_class:
                return bucket
        return self.get_bucket(EventCategory(
            category_id=f"<{category_class.value}>",
            name=name,
            category_class=category_class,
            tax_basis=tax_basis,
        ))

    def _new_totals(self) -> EventCategoryBucket:
        return EventCategoryBucket(None)

    def produce_totals(self) -> EventCategoryBucket:
        for bucket in self._buckets.values():
            bucket.calculate_delta()
        totals = super().produce_totals()
        totals.calculate_delta()
        return totals

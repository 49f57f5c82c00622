"""
Shared plumbing for analysis buckets and bucket lists.
"""

import copy
from decimal import Decimal
from typing import Callable, Iterator, Optional

from ledger_buckets.analysis.attributes import AnalysisType, BucketAttribute
from ledger_buckets.analysis.history import BucketHistory
from ledger_buckets.analysis.snapshot import BucketSnapShot
from ledger_buckets.analysis.values import BucketValues
from ledger_buckets.models import DateRange, Transaction


class HistoryBucket:
    """
    A per-entity accumulator backed by a BucketHistory.

    Concrete buckets declare their analysis type and apply transaction
    effects to the live values before registering the transaction.
    """

    analysis_type: AnalysisType

    def __init__(self, values: BucketValues):
        self._history = BucketHistory(values)

    @property
    def name(self) -> str:
        raise NotImplementedError

    @property
    def key(self) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"

    @property
    def history(self) -> BucketHistory:
        return self._history

    @property
    def values(self) -> BucketValues:
        return self._history.values

    @property
    def base_values(self) -> BucketValues:
        return self._history.base_values

    @property
    def is_idle(self) -> bool:
        return self._history.is_idle

    @property
    def snapshots(self) -> list[BucketSnapShot]:
        return list(self._history)

    def is_active(self) -> bool:
        return self.values.is_non_zero()

    def register_transaction(self, transaction: Transaction) -> BucketSnapShot:
        return self._history.register_transaction(transaction)

    def finalize(self) -> None:
        self._history.finalize()

    def values_for_transaction(self, transaction_id: str) -> Optional[BucketValues]:
        return self._history.values_for_transaction(transaction_id)

    def delta_for_transaction(
        self,
        transaction_id: str,
        attr: BucketAttribute,
    ) -> Optional[Decimal]:
        return self._history.delta_for_transaction(transaction_id, attr)

    def add_values(self, source: "HistoryBucket") -> None:
        """Add a source bucket's live values into this bucket (totals)."""
        for attr, value in source.values.items():
            self.values.adjust_value(attr, value)

    def with_history(self, history: BucketHistory) -> "HistoryBucket":
        """Copy of this bucket bound to a derived history."""
        derived = copy.copy(self)
        derived._history = history
        return derived

    def for_range(self, date_range: DateRange) -> "HistoryBucket":
        return self.with_history(BucketHistory.for_range(self._history, date_range))

    def until(self, when) -> "HistoryBucket":
        return self.with_history(BucketHistory.until(self._history, when))


class BucketList:
    """
    Keyed collection of buckets for one dimension.

    Buckets are created on first lookup; the list owns creation policy.
    """

    analysis_type: AnalysisType

    def __init__(self):
        self._buckets: dict[str, HistoryBucket] = {}
        self._totals: Optional[HistoryBucket] = None

    def __iter__(self) -> Iterator[HistoryBucket]:
        return iter(sorted(self._buckets.values(), key=lambda b: b.name))

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: str) -> bool:
        return key in self._buckets

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self)})"

    @property
    def totals(self) -> Optional[HistoryBucket]:
        return self._totals

    def find(self, key: str) -> Optional[HistoryBucket]:
        return self._buckets.get(key)

    def find_by_name(self, name: str) -> Optional[HistoryBucket]:
        for bucket in self._buckets.values():
            if bucket.name == name:
                return bucket
        return None

    def _get_or_create(
        self,
        key: str,
        factory: Callable[[], HistoryBucket],
    ) -> HistoryBucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = factory()
            self._buckets[key] = bucket
        return bucket

    def finalize(self) -> None:
        for bucket in self._buckets.values():
            bucket.finalize()

    def _new_totals(self) -> HistoryBucket:
        raise NotImplementedError

    def produce_totals(self) -> HistoryBucket:
        """Sum every bucket's live values into a fresh totals bucket."""
        totals = self._new_totals()
        for bucket in self._buckets.values():
            totals.add_values(bucket)
        self._totals = totals
        return totals

    def _keep_in_range(self, bucket: HistoryBucket) -> bool:
        return not bucket.is_idle

    def for_range(self, date_range: DateRange) -> "BucketList":
        """Derive the list for a date range, dropping idle buckets."""
        derived = copy.copy(self)
        derived._buckets = {}
        derived._totals = None
        for key, bucket in self._buckets.items():
            ranged = bucket.for_range(date_range)
            if self._keep_in_range(ranged):
                derived._buckets[key] = ranged
        return derived

    def until(self, when) -> "BucketList":
        """Derive the list as it stood at the end of a date."""
        derived = copy.copy(self)
        derived._buckets = {}
        derived._totals = None
        for key, bucket in self._buckets.items():
            cut = bucket.until(when)
            if not cut.is_idle:
                derived._buckets[key] = cut
        return derived

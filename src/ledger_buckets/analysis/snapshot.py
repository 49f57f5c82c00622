"""
Point-in-time captures of bucket values.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledger_buckets.analysis.attributes import BucketAttribute
from ledger_buckets.analysis.values import BucketValues
from ledger_buckets.models import Transaction


class BucketSnapShot:
    """
    Immutable capture of a bucket's values after a transaction.

    The snapshot owns a frozen copy of the values and holds a read-only
    link to the previous snapshot in the bucket's history (None at the
    start of history). It is identified by the transaction that produced it.

    Attributes:
        transaction: Transaction that produced the snapshot
        date: Date of the transaction
        snapshot: Frozen copy of the bucket values
        previous: Previous snapshot in the bucket history
    """

    def __init__(
        self,
        transaction: Transaction,
        values: BucketValues,
        previous: Optional["BucketSnapShot"] = None,
    ):
        """
        Capture the live values of a bucket.

        Args:
            transaction: Transaction just applied to the bucket
            values: Live bucket values (copied, never referenced)
            previous: Last snapshot recorded by the bucket
        """
        captured = values.get_snapshot()
        captured.freeze()
        self._transaction = transaction
        self._snapshot = captured
        self._previous = previous

    @classmethod
    def rebased(
        cls,
        source: "BucketSnapShot",
        base: BucketValues,
        previous: Optional["BucketSnapShot"],
    ) -> "BucketSnapShot":
        """
        Create a snapshot from an existing one, rebased onto base values.

        Used when splicing a history onto a period: the source snapshot is
        left untouched and the copy is made period-relative.

        Args:
            source: Snapshot from the cumulative history
            base: Values at the period boundary
            previous: Snapshot to link to in the new history
        """
        values = source.snapshot.get_snapshot()
        values.adjust_to_base_values(base)
        return cls(source.transaction, values, previous)

    def __repr__(self) -> str:
        return f"BucketSnapShot({self.transaction_id}, {self.date}, {self._snapshot!r})"

    @property
    def transaction(self) -> Transaction:
        return self._transaction

    @property
    def transaction_id(self) -> str:
        return self._transaction.transaction_id

    @property
    def date(self) -> date:
        return self._transaction.date

    @property
    def snapshot(self) -> BucketValues:
        return self._snapshot

    @property
    def previous(self) -> Optional["BucketSnapShot"]:
        return self._previous

    def _previous_values(self) -> Optional[BucketValues]:
        return None if self._previous is None else self._previous.snapshot

    def get_delta_value(self, attr: BucketAttribute) -> Decimal:
        """Change in an attribute caused by this snapshot's transaction."""
        return self._snapshot.get_delta_value(self._previous_values(), attr)

    def get_delta_money_value(self, attr: BucketAttribute) -> Decimal:
        return self._snapshot.get_delta_money_value(self._previous_values(), attr)

    def get_delta_units_value(self, attr: BucketAttribute) -> Decimal:
        return self._snapshot.get_delta_units_value(self._previous_values(), attr)

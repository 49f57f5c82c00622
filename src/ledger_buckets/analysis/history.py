"""
Ordered snapshot history of a bucket.

Each bucket owns a BucketHistory holding its live values and the append-only
sequence of snapshots recorded as transactions are replayed. Histories can be
cut at a date or spliced onto a date range to derive period analyses.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

from ledger_buckets.analysis.attributes import BucketAttribute
from ledger_buckets.analysis.snapshot import BucketSnapShot
from ledger_buckets.analysis.values import BucketStateError, BucketValues
from ledger_buckets.models import DateRange, Transaction


class BucketState(Enum):
    """Lifecycle state of a bucket history."""
    UNINITIALIZED = "UNINITIALIZED"
    ACTIVE = "ACTIVE"
    FINALIZED = "FINALIZED"


class BucketHistory:
    """
    Live values plus the chronological snapshots of a single bucket.

    Insertion order of the snapshots is the order in which transactions
    were processed.
    """

    def __init__(self, values: BucketValues):
        """
        Initialize an empty history.

        Args:
            values: Initial live values of the bucket
        """
        self._values = values
        self._base_values = BucketValues(values.attribute_class)
        self._snapshots: dict[str, BucketSnapShot] = {}
        self._last: Optional[BucketSnapShot] = None
        self._opening: Optional[BucketSnapShot] = None
        self._state = BucketState.UNINITIALIZED

    @property
    def values(self) -> BucketValues:
        return self._values

    @property
    def base_values(self) -> BucketValues:
        return self._base_values

    @property
    def state(self) -> BucketState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return not self._snapshots

    @property
    def last_snapshot(self) -> Optional[BucketSnapShot]:
        return self._last

    @property
    def opening_snapshot(self) -> Optional[BucketSnapShot]:
        """Rebased pre-period snapshot for range histories."""
        return self._opening

    @property
    def opening_values(self) -> BucketValues:
        """Values at the start of this history."""
        if self._opening is not None:
            return self._opening.snapshot
        return BucketValues(self._values.attribute_class)

    def __iter__(self) -> Iterator[BucketSnapShot]:
        return iter(list(self._snapshots.values()))

    def __len__(self) -> int:
        return len(self._snapshots)

    def register_transaction(self, transaction: Transaction) -> BucketSnapShot:
        """
        Record a snapshot of the live values for a transaction.

        A transaction that touches the bucket more than once replaces its
        own snapshot, keeping the original previous link.

        Raises:
            BucketStateError: If the history has been finalized
        """
        if self._state is BucketState.FINALIZED:
            raise BucketStateError(
                f"Cannot register transaction {transaction.transaction_id} "
                "on a finalized history"
            )

        previous = self._last
        if previous is not None and previous.transaction_id == transaction.transaction_id:
            previous = previous.previous
            del self._snapshots[transaction.transaction_id]

        snapshot = BucketSnapShot(transaction, self._values, previous)
        self._snapshots[transaction.transaction_id] = snapshot
        self._last = snapshot
        self._state = BucketState.ACTIVE
        return snapshot

    def finalize(self) -> None:
        self._state = BucketState.FINALIZED

    def get_snapshot_for_transaction(self, transaction_id: str) -> Optional[BucketSnapShot]:
        return self._snapshots.get(transaction_id)

    def values_for_transaction(self, transaction_id: str) -> Optional[BucketValues]:
        """Values as they stood after a transaction, or None if not touched."""
        snapshot = self._snapshots.get(transaction_id)
        return None if snapshot is None else snapshot.snapshot

    def previous_values_for_transaction(self, transaction_id: str) -> Optional[BucketValues]:
        """Values as they stood before a transaction, or None."""
        snapshot = self._snapshots.get(transaction_id)
        if snapshot is None or snapshot.previous is None:
            return None
        return snapshot.previous.snapshot

    def delta_for_transaction(
        self,
        transaction_id: str,
        attr: BucketAttribute,
    ) -> Optional[Decimal]:
        snapshot = self._snapshots.get(transaction_id)
        return None if snapshot is None else snapshot.get_delta_value(attr)

    def money_delta_for_transaction(
        self,
        transaction_id: str,
        attr: BucketAttribute,
    ) -> Optional[Decimal]:
        snapshot = self._snapshots.get(transaction_id)
        return None if snapshot is None else snapshot.get_delta_money_value(attr)

    @classmethod
    def until(cls, source: "BucketHistory", when: date) -> "BucketHistory":
        """
        Derive the history as it stood at the end of a date.

        Snapshots are immutable and are shared with the source.
        """
        history = cls(BucketValues(source.values.attribute_class))
        history._opening = source.opening_snapshot
        for snapshot in source:
            if snapshot.date > when:
                break
            history._snapshots[snapshot.transaction_id] = snapshot
            history._last = snapshot
        history._reset_live_values()
        return history

    @classmethod
    def for_range(cls, source: "BucketHistory", date_range: DateRange) -> "BucketHistory":
        """
        Derive a period-relative history for a date range.

        The last snapshot before the range becomes the opening snapshot with
        its counters zeroed. Every snapshot inside the range is rebased onto
        the counters at the opening, so counters become period flows while
        balances carry across the boundary.
        """
        attribute_class = source.values.attribute_class
        pre_range = source.opening_snapshot
        in_range: list[BucketSnapShot] = []
        for snapshot in source:
            if snapshot.date > date_range.end:
                break
            if snapshot.date in date_range:
                in_range.append(snapshot)
            else:
                pre_range = snapshot

        history = cls(BucketValues(attribute_class))
        if pre_range is not None:
            history._base_values = pre_range.snapshot.get_counter_snapshot()
            history._opening = BucketSnapShot.rebased(
                pre_range, history._base_values, None
            )

        previous = history._opening
        for snapshot in in_range:
            rebased = BucketSnapShot.rebased(snapshot, history._base_values, previous)
            history._snapshots[rebased.transaction_id] = rebased
            previous = rebased
        history._last = previous if in_range else None
        history._reset_live_values()
        return history

    def _reset_live_values(self) -> None:
        latest = self._last or self._opening
        if latest is not None:
            self._values = latest.snapshot.get_snapshot()
        if self._snapshots:
            self._state = BucketState.ACTIVE

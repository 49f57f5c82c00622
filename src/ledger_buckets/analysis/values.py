"""
Attribute value containers for analysis buckets.

A BucketValues maps the attributes of one dimension to Decimal amounts.
Missing attributes read as the zero of the attribute's decimal kind, so a
value is never implicitly None once the container exists.
"""

from decimal import Decimal
from typing import Iterator, Optional

from ledger_buckets.analysis.attributes import (
    BucketAttribute,
    DecimalKind,
    TaxonomyError,
    check_attribute,
)


class BucketStateError(RuntimeError):
    """Raised when frozen values or a finalized history are modified."""
    pass


class BucketValues:
    """
    Typed attribute -> Decimal map for a single bucket.

    Containers are mutable while they are a bucket's current values. The
    copies captured by snapshots are frozen after construction.
    """

    def __init__(
        self,
        attribute_class: type[BucketAttribute],
        values: Optional[dict[BucketAttribute, Decimal]] = None,
    ):
        self._attribute_class = attribute_class
        self._values: dict[BucketAttribute, Decimal] = {}
        self._frozen = False
        for attr, value in (values or {}).items():
            self.set_value(attr, value)

    @property
    def attribute_class(self) -> type[BucketAttribute]:
        return self._attribute_class

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def __iter__(self) -> Iterator[BucketAttribute]:
        return iter(self._values)

    def __contains__(self, attr: BucketAttribute) -> bool:
        return attr in self._values

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BucketValues):
            return NotImplemented
        if self._attribute_class is not other._attribute_class:
            return False
        return all(
            self.get_value(attr) == other.get_value(attr)
            for attr in self._attribute_class
        )

    def __repr__(self) -> str:
        body = ", ".join(f"{attr.name}={value}" for attr, value in self._values.items())
        return f"{self._attribute_class.__name__}Values({body})"

    def items(self) -> list[tuple[BucketAttribute, Decimal]]:
        return list(self._values.items())

    def get_value(self, attr: BucketAttribute) -> Decimal:
        """Get the value of an attribute, reading missing entries as zero."""
        check_attribute(self._attribute_class, attr)
        return self._values.get(attr, attr.kind.zero)

    def get_money_value(self, attr: BucketAttribute) -> Decimal:
        check_attribute(self._attribute_class, attr, DecimalKind.MONEY)
        return self._values.get(attr, attr.kind.zero)

    def get_units_value(self, attr: BucketAttribute) -> Decimal:
        check_attribute(self._attribute_class, attr, DecimalKind.UNITS)
        return self._values.get(attr, attr.kind.zero)

    def get_price_value(self, attr: BucketAttribute) -> Decimal:
        check_attribute(self._attribute_class, attr, DecimalKind.PRICE)
        return self._values.get(attr, attr.kind.zero)

    def set_value(self, attr: BucketAttribute, value: Decimal) -> None:
        """
        Set the value of an attribute.

        Raises:
            TaxonomyError: If the attribute is not legal for this dimension
            BucketStateError: If the container is frozen
        """
        check_attribute(self._attribute_class, attr)
        if self._frozen:
            raise BucketStateError(
                f"Cannot set {attr.name} on frozen {self._attribute_class.__name__} values"
            )
        if value is None:
            raise ValueError(f"Value for {attr.name} cannot be None")
        self._values[attr] = Decimal(value)

    def adjust_value(self, attr: BucketAttribute, delta: Decimal) -> None:
        """Add a delta to an attribute."""
        self.set_value(attr, self.get_value(attr) + delta)

    def freeze(self) -> None:
        self._frozen = True

    def get_snapshot(self) -> "BucketValues":
        """
        Produce an independent, mutable copy of these values.

        Decimals are immutable, so copying the mapping shares no mutable
        storage with the source.
        """
        return BucketValues(self._attribute_class, dict(self._values))

    def get_counter_snapshot(self) -> "BucketValues":
        """Copy holding only the counter attributes (the rebase base)."""
        return BucketValues(
            self._attribute_class,
            {attr: value for attr, value in self._values.items() if attr.counter},
        )

    def adjust_to_base_values(self, base: "BucketValues") -> None:
        """
        Rebase cumulative values onto a base, giving period-relative values.

        Every attribute present in the base is reduced by the base amount.
        This must be applied at most once to a given container: applying it
        twice subtracts the base twice.

        Raises:
            TaxonomyError: If the base belongs to another dimension
        """
        if base.attribute_class is not self._attribute_class:
            raise TaxonomyError(
                f"Cannot rebase {self._attribute_class.__name__} values onto "
                f"{base.attribute_class.__name__} values"
            )
        for attr, value in base.items():
            self.set_value(attr, self.get_value(attr) - value)

    def get_delta_value(
        self,
        previous: Optional["BucketValues"],
        attr: BucketAttribute,
    ) -> Decimal:
        """
        Difference of an attribute versus previous values.

        With no previous values the delta is the current value.
        """
        current = self.get_value(attr)
        if previous is None:
            return current
        return current - previous.get_value(attr)

    def get_delta_money_value(
        self,
        previous: Optional["BucketValues"],
        attr: BucketAttribute,
    ) -> Decimal:
        check_attribute(self._attribute_class, attr, DecimalKind.MONEY)
        return self.get_delta_value(previous, attr)

    def get_delta_units_value(
        self,
        previous: Optional["BucketValues"],
        attr: BucketAttribute,
    ) -> Decimal:
        check_attribute(self._attribute_class, attr, DecimalKind.UNITS)
        return self.get_delta_value(previous, attr)

    def is_non_zero(self, *attrs: BucketAttribute) -> bool:
        """Whether any of the given attributes (default all) is non-zero."""
        for attr in attrs or tuple(self._values):
            if self.get_value(attr) != 0:
                return True
        return False

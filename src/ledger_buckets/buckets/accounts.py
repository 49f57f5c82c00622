"""
Account buckets.

Deposit, cash and loan accounts each get a bucket tracking the running
valuation of the account. Transfers between two accounts are applied to both
sides so that value is conserved across the pair.
"""

from decimal import Decimal
from typing import Optional

from ledger_buckets.analysis.attributes import AccountAttribute, AnalysisType
from ledger_buckets.analysis.values import BucketValues
from ledger_buckets.buckets.base import BucketList, HistoryBucket
from ledger_buckets.models import Account, AccountKind, Transaction


TOTALS_NAME = "Totals"


class AccountBucket(HistoryBucket):
    """
    Running valuation of a single account.

    Attributes:
        account: Account tracked by the bucket (None for a totals bucket)
    """

    analysis_type = AnalysisType.DEPOSIT

    def __init__(self, account: Optional[Account]):
        super().__init__(BucketValues(AccountAttribute, {
            AccountAttribute.VALUATION: Decimal("0.00"),
        }))
        self.account = account

    @property
    def name(self) -> str:
        return self.account.name if self.account else TOTALS_NAME

    @property
    def key(self) -> str:
        return self.account.account_id if self.account else TOTALS_NAME

    @property
    def valuation(self) -> Decimal:
        return self.values.get_money_value(AccountAttribute.VALUATION)

    def is_active(self) -> bool:
        return self.values.is_non_zero(AccountAttribute.VALUATION)

    def set_opening_balance(self, transaction: Transaction) -> None:
        self.values.adjust_value(AccountAttribute.VALUATION, transaction.amount)
        self.register_transaction(transaction)

    def adjust_for_debit(
        self,
        transaction: Transaction,
        amount: Optional[Decimal] = None,
    ) -> None:
        """Value leaves the account."""
        if amount is None:
            amount = transaction.amount
        self.values.adjust_value(AccountAttribute.VALUATION, -amount)
        self.register_transaction(transaction)

    def adjust_for_credit(
        self,
        transaction: Transaction,
        amount: Optional[Decimal] = None,
    ) -> None:
        """Value arrives in the account."""
        if amount is None:
            amount = transaction.amount
        self.values.adjust_value(AccountAttribute.VALUATION, amount)
        self.register_transaction(transaction)

    def adjust_for_xfer(self, transaction: Transaction, source: "AccountBucket") -> None:
        """
        Apply a transfer from a source account into this account.

        Both buckets are updated and snapshotted for the transaction, so the
        sum of the two valuations is unchanged. Transfers are never spend.

        Args:
            transaction: Transfer transaction
            source: Bucket of the account the value comes from
        """
        source._move_value(transaction, -transaction.amount)
        self._move_value(transaction, transaction.amount)

    def _move_value(self, transaction: Transaction, amount: Decimal) -> None:
        self.values.adjust_value(AccountAttribute.VALUATION, amount)
        self.register_transaction(transaction)

    def calculate_delta(self) -> None:
        """Change in valuation since the start of the history."""
        opening = self.history.opening_values.get_money_value(AccountAttribute.VALUATION)
        self.values.set_value(AccountAttribute.DELTA, self.valuation - opening)


class DepositBucket(AccountBucket):
    """Bucket for a bank deposit account."""
    analysis_type = AnalysisType.DEPOSIT


class CashBucket(AccountBucket):
    """Bucket for a cash account. Outgoings are also counted as spend."""

    analysis_type = AnalysisType.CASH

    def adjust_for_debit(
        self,
        transaction: Transaction,
        amount: Optional[Decimal] = None,
    ) -> None:
        if amount is None:
            amount = transaction.amount
        self.values.adjust_value(AccountAttribute.SPEND, amount)
        super().adjust_for_debit(transaction, amount)


class LoanBucket(AccountBucket):
    """Bucket for a loan account. The valuation is negative while money is owed."""

    analysis_type = AnalysisType.LOAN

    @property
    def outstanding(self) -> Decimal:
        return -self.valuation


class AccountBucketList(BucketList):
    """
    Buckets for one kind of account.

    Accounts still carrying a balance are kept when deriving a range even
    if they have no transactions inside it.
    """

    def __init__(self, analysis_type: AnalysisType, bucket_class: type[AccountBucket]):
        super().__init__()
        self.analysis_type = analysis_type
        self.bucket_class = bucket_class

    def get_bucket(self, account: Account) -> AccountBucket:
        return self._get_or_create(account.account_id, lambda: self.bucket_class(account))

    def _new_totals(self) -> AccountBucket:
        return self.bucket_class(None)

    def _keep_in_range(self, bucket: AccountBucket) -> bool:
        return not bucket.is_idle or bucket.is_active()

    def produce_totals(self) -> AccountBucket:
        for bucket in self._buckets.values():
            bucket.calculate_delta()
        return super().produce_totals()


ACCOUNT_LISTS: dict[AccountKind, tuple[AnalysisType, type[AccountBucket]]] = {
    AccountKind.DEPOSIT: (AnalysisType.DEPOSIT, DepositBucket),
    AccountKind.CASH: (AnalysisType.CASH, CashBucket),
    AccountKind.LOAN: (AnalysisType.LOAN, LoanBucket),
}

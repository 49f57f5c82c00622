"""
Per-dimension buckets and bucket lists.
"""

from ledger_buckets.buckets.base import BucketList, HistoryBucket
from ledger_buckets.buckets.accounts import (
    AccountBucket,
    AccountBucketList,
    CashBucket,
    DepositBucket,
    LoanBucket,
)
from ledger_buckets.buckets.portfolios import (
    PortfolioBucket,
    PortfolioBucketList,
    PortfolioCashBucket,
    SecurityBucket,
)
from ledger_buckets.buckets.payees import PayeeBucket, PayeeBucketList
from ledger_buckets.buckets.categories import EventCategoryBucket, EventCategoryBucketList
from ledger_buckets.buckets.taxbasis import TaxBasisBucket, TaxBasisBucketList

__all__ = [
    "BucketList",
    "HistoryBucket",
    "AccountBucket",
    "AccountBucketList",
    "CashBucket",
    "DepositBucket",
    "LoanBucket",
    "PortfolioBucket",
    "PortfolioBucketList",
    "PortfolioCashBucket",
    "SecurityBucket",
    "PayeeBucket",
    "PayeeBucketList",
    "EventCategoryBucket",
    "EventCategoryBucketList",
    "TaxBasisBucket",
    "TaxBasisBucketList",
]

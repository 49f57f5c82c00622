"""
Analysis core: attribute taxonomies, bucket values, snapshots and histories,
and the market reclassification pass.

The Analysis aggregate and the transaction analyser live in
ledger_buckets.analysis.analysis and ledger_buckets.analysis.analyser.
"""

from ledger_buckets.analysis.attributes import (
    AccountAttribute,
    AnalysisType,
    BucketAttribute,
    CategoryAttribute,
    DecimalKind,
    PayeeAttribute,
    SecurityAttribute,
    TaxBasisAttribute,
    TaxonomyError,
    TransactionAttribute,
)
from ledger_buckets.analysis.values import BucketStateError, BucketValues
from ledger_buckets.analysis.snapshot import BucketSnapShot
from ledger_buckets.analysis.history import BucketHistory, BucketState
from ledger_buckets.analysis.errors import AnalysisError
from ledger_buckets.analysis.market import MarketAnalysis

__all__ = [
    "AccountAttribute",
    "AnalysisType",
    "BucketAttribute",
    "CategoryAttribute",
    "DecimalKind",
    "PayeeAttribute",
    "SecurityAttribute",
    "TaxBasisAttribute",
    "TaxonomyError",
    "TransactionAttribute",
    "BucketStateError",
    "BucketValues",
    "BucketSnapShot",
    "BucketHistory",
    "BucketState",
    "AnalysisError",
    "MarketAnalysis",
]

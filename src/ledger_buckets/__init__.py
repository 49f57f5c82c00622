"""
Ledger bucket analysis (ledger-buckets)

Replays a personal finance ledger into buckets: running totals per account,
security, payee, event category and tax basis. Each bucket keeps an
immutable snapshot history so that balances and flows can be reported for
any date range, and a market pass reclassifies security movements into
realised gains and unrealised growth.
"""

__version__ = "0.1.0"
__author__ = "Ledger Buckets Team"

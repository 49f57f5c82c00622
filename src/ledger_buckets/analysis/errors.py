"""
Errors raised while replaying a ledger.
"""


class AnalysisError(Exception):
    """Raised when ledger data cannot be analysed."""
    pass

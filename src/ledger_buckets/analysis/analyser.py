"""
Transaction replay.

The analyser routes each ledger transaction to the buckets it touches, in
date order, then closes the histories and runs the securities pass to give
a cumulative Analysis. Range analyses are derived from that.
"""

from datetime import date
from typing import Callable, Iterable, Optional

from ledger_buckets.analysis.analysis import Analysis
from ledger_buckets.analysis.errors import AnalysisError
from ledger_buckets.buckets.accounts import AccountBucket
from ledger_buckets.logging.analysis_log import AnalysisLogger
from ledger_buckets.models import (
    Account,
    AccountKind,
    AnalysisConfig,
    CategoryClass,
    DateRange,
    EventCategory,
    PayeeClass,
    PriceHistory,
    TaxBasisClass,
    Transaction,
    TransactionType,
)


TAXMAN_NAME = "TaxMan"
DIVIDEND_CATEGORY_NAME = "Dividends"


class TransactionAnalyser:
    """
    Replays transactions into an Analysis.

    Attributes:
        config: Analysis configuration
        prices: Price history used to value securities
        logger: Optional analysis logger
    """

    def __init__(
        self,
        config: AnalysisConfig,
        prices: Optional[PriceHistory] = None,
        logger: Optional[AnalysisLogger] = None,
    ):
        self.config = config
        self.prices = prices or PriceHistory()
        self.logger = logger
        self._handlers: dict[TransactionType, Callable[[Analysis, Transaction], None]] = {
            TransactionType.OPENING: self._process_opening,
            TransactionType.INCOME: self._process_income,
            TransactionType.EXPENSE: self._process_expense,
            TransactionType.TRANSFER: self._process_transfer,
            TransactionType.PURCHASE: self._process_purchase,
            TransactionType.SALE: self._process_sale,
            TransactionType.DIVIDEND: self._process_dividend,
        }

    def analyse(
        self,
        transactions: Iterable[Transaction],
        end_date: Optional[date] = None,
    ) -> Analysis:
        """
        Replay a ledger into a cumulative analysis.

        Args:
            transactions: Transactions in date order
            end_date: Valuation date (defaults to the last transaction date);
                later transactions are not replayed

        Returns:
            Cumulative Analysis with securities valued and totals produced

        Raises:
            AnalysisError: If transactions are out of order or cannot be routed
        """
        transactions = list(transactions)
        last_date = None
        for transaction in transactions:
            if last_date is not None and transaction.date < last_date:
                raise AnalysisError(
                    f"Transaction {transaction.transaction_id} dated {transaction.date} "
                    f"follows a transaction dated {last_date}"
                )
            last_date = transaction.date

        if end_date is None:
            end_date = last_date or date.today()
        else:
            transactions = [t for t in transactions if t.date <= end_date]

        analysis = Analysis(self.config, DateRange(start=None, end=end_date), self.prices)
        for transaction in transactions:
            self.process_transaction(analysis, transaction)
        analysis.finalize()

        if self.logger:
            self.logger.log_transactions_replayed(analysis, len(transactions))

        market = analysis.analyse_securities()
        if self.logger:
            self.logger.log_market_analysis(self.config.analysis_id, analysis.date_range, market)

        return analysis

    def analyse_range(self, base: Analysis, date_range: DateRange) -> Analysis:
        """Derive a range analysis from a cumulative one, logging the result."""
        analysis = Analysis.for_range(base, date_range)
        if self.logger:
            self.logger.log_range_analysis_built(analysis)
            self.logger.log_market_analysis(self.config.analysis_id, date_range, analysis.market)
        return analysis

    def process_transaction(self, analysis: Analysis, transaction: Transaction) -> None:
        """Route a single transaction to its buckets."""
        if transaction.amount < 0:
            raise AnalysisError(
                f"Transaction {transaction.transaction_id} has a negative amount"
            )
        handler = self._handlers[transaction.transaction_type]
        handler(analysis, transaction)

    def _require(self, transaction: Transaction, *fields: str) -> None:
        missing = [name for name in fields if getattr(transaction, name) is None]
        if missing:
            raise AnalysisError(
                f"{transaction.transaction_type.value} transaction "
                f"{transaction.transaction_id} is missing {', '.join(missing)}"
            )

    def _account_bucket(self, analysis: Analysis, account: Account) -> AccountBucket:
        if account.kind is AccountKind.PORTFOLIO:
            return analysis.get_portfolios().get_cash_bucket(account)
        return analysis.get_account_list(account.kind).get_bucket(account)

    def _portfolio_account(self, transaction: Transaction, account: Account) -> Account:
        if account.kind is not AccountKind.PORTFOLIO:
            raise AnalysisError(
                f"Transaction {transaction.transaction_id} must settle through a "
                f"portfolio account, not {account.kind.value} account {account.account_id}"
            )
        if account.account_id != transaction.security.portfolio_id:
            raise AnalysisError(
                f"Security {transaction.security.security_id} is not held in "
                f"portfolio {account.account_id}"
            )
        return account

    def _record_tax_credit(self, analysis: Analysis, transaction: Transaction) -> None:
        if not transaction.tax_credit:
            return
        taxman = analysis.get_payees().get_class_bucket(PayeeClass.TAXMAN, TAXMAN_NAME)
        taxman.adjust_for_tax_payments(transaction)
        analysis.get_tax_basis().get_bucket(TaxBasisClass.TAX_PAID).adjust_value(
            transaction.tax_credit, transaction
        )

    def _process_opening(self, analysis: Analysis, transaction: Transaction) -> None:
        self._require(transaction, "credit_account")
        self._account_bucket(analysis, transaction.credit_account).set_opening_balance(transaction)

    def _process_income(self, analysis: Analysis, transaction: Transaction) -> None:
        self._require(transaction, "credit_account", "payee", "category")
        self._account_bucket(analysis, transaction.credit_account).adjust_for_credit(transaction)
        analysis.get_payees().get_bucket(transaction.payee).adjust_for_debit(transaction)
        analysis.get_event_categories().get_bucket(transaction.category).add_income(
            transaction.gross_amount, transaction
        )
        analysis.get_tax_basis().get_bucket(transaction.category.tax_basis).add_income_transaction(
            transaction
        )
        self._record_tax_credit(analysis, transaction)

    def _process_expense(self, analysis: Analysis, transaction: Transaction) -> None:
        self._require(transaction, "debit_account", "payee", "category")
        self._account_bucket(analysis, transaction.debit_account).adjust_for_debit(transaction)
        analysis.get_payees().get_bucket(transaction.payee).adjust_for_credit(transaction)
        analysis.get_event_categories().get_bucket(transaction.category).add_expense(
            transaction.amount, transaction
        )
        analysis.get_tax_basis().get_bucket(TaxBasisClass.EXPENSE).add_expense_transaction(
            transaction
        )

    def _process_transfer(self, analysis: Analysis, transaction: Transaction) -> None:
        self._require(transaction, "debit_account", "credit_account")
        source = self._account_bucket(analysis, transaction.debit_account)
        target = self._account_bucket(analysis, transaction.credit_account)
        target.adjust_for_xfer(transaction, source)

    def _process_purchase(self, analysis: Analysis, transaction: Transaction) -> None:
        self._require(transaction, "debit_account", "security", "units")
        account = self._portfolio_account(transaction, transaction.debit_account)
        portfolios = analysis.get_portfolios()
        portfolios.get_cash_bucket(account).adjust_for_debit(transaction)
        portfolios.get_security_bucket(transaction.security).adjust_for_purchase(transaction)

    def _process_sale(self, analysis: Analysis, transaction: Transaction) -> None:
        self._require(transaction, "credit_account", "security", "units")
        account = self._portfolio_account(transaction, transaction.credit_account)
        portfolios = analysis.get_portfolios()
        portfolios.get_security_bucket(transaction.security).adjust_for_sale(transaction)
        portfolios.get_cash_bucket(account).adjust_for_credit(transaction)

    def _process_dividend(self, analysis: Analysis, transaction: Transaction) -> None:
        self._require(transaction, "credit_account", "security")
        account = self._portfolio_account(transaction, transaction.credit_account)
        portfolios = analysis.get_portfolios()
        portfolios.get_security_bucket(transaction.security).adjust_for_dividend(transaction)
        portfolios.get_cash_bucket(account).adjust_for_credit(transaction)

        categories = analysis.get_event_categories()
        if transaction.category is not None:
            category = categories.get_bucket(transaction.category)
            basis = transaction.category.tax_basis
        else:
            category = categories.get_class_bucket(
                CategoryClass.DIVIDEND, DIVIDEND_CATEGORY_NAME, TaxBasisClass.DIVIDEND
            )
            basis = TaxBasisClass.DIVIDEND
        category.add_income(transaction.gross_amount, transaction)
        analysis.get_tax_basis().get_bucket(basis).add_income_transaction(transaction)
        self._record_tax_credit(analysis, transaction)


def analyse_transactions(
    transactions: Iterable[Transaction],
    config: AnalysisConfig,
    prices: Optional[PriceHistory] = None,
    date_range: Optional[DateRange] = None,
    logger: Optional[AnalysisLogger] = None,
) -> Analysis:
    """
    Replay a ledger and optionally derive a range analysis.

    Args:
        transactions: Transactions in date order
        config: Analysis configuration
        prices: Price history for valuation
        date_range: Range to derive; the cumulative analysis is valued at its end
        logger: Optional analysis logger

    Returns:
        The range analysis when a range with a start is given, otherwise the
        cumulative analysis
    """
    analyser = TransactionAnalyser(config, prices, logger)
    end_date = date_range.end if date_range else None
    analysis = analyser.analyse(transactions, end_date)
    if date_range is None or date_range.start is None:
        return analysis
    return analyser.analyse_range(analysis, date_range)

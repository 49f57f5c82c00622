"""
Tests for transaction replay into a cumulative analysis.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_buckets.analysis.analyser import TransactionAnalyser, analyse_transactions
from ledger_buckets.analysis.attributes import (
    AccountAttribute,
    AnalysisType,
    CategoryAttribute,
    PayeeAttribute,
    SecurityAttribute,
    TaxBasisAttribute,
)
from ledger_buckets.analysis.errors import AnalysisError
from ledger_buckets.analysis.values import BucketStateError
from ledger_buckets.logging.analysis_log import AnalysisLogger
from ledger_buckets.models import (
    ActionType,
    DateRange,
    PriceHistory,
    TaxBasisClass,
    TransactionType,
)


VALUATION_DATE = date(2024, 6, 30)


@pytest.fixture
def analysis(sample_config, sample_ledger, sample_prices):
    """Cumulative analysis of the sample ledger valued at the end of June."""
    analyser = TransactionAnalyser(sample_config, sample_prices)
    return analyser.analyse(sample_ledger, end_date=VALUATION_DATE)


def _total_wealth(analysis) -> Decimal:
    total = Decimal("0")
    for analysis_type in (AnalysisType.DEPOSIT, AnalysisType.CASH, AnalysisType.LOAN):
        total += analysis.get_bucket_list(analysis_type).totals.valuation
    total += analysis.get_portfolios().totals.values.get_money_value(SecurityAttribute.VALUATION)
    return total


class TestAccountReplay:
    """Tests for account balances after replay."""

    def test_account_valuations(self, analysis):
        """Balances reflect income, transfers and expenses."""
        assert analysis.get_deposits().find("current").valuation == Decimal("2500.00")
        assert analysis.get_cash().find("wallet").valuation == Decimal("150.00")
        assert analysis.get_portfolios().find("isa").cash.valuation == Decimal("3500.00")

    def test_cash_spend_excludes_transfers(self, analysis):
        """Only the grocery expense counts as spend from the wallet."""
        wallet = analysis.get_cash().find("wallet")

        assert wallet.values.get_money_value(AccountAttribute.SPEND) == Decimal("50.00")

    def test_transfer_snapshots_both_sides(self, analysis):
        """A transfer is recorded against both accounts."""
        current = analysis.get_deposits().find("current")
        wallet = analysis.get_cash().find("wallet")

        assert current.delta_for_transaction("t04", AccountAttribute.VALUATION) == Decimal("-200.00")
        assert wallet.delta_for_transaction("t04", AccountAttribute.VALUATION) == Decimal("200.00")

    def test_histories_finalized(self, analysis, make_transaction):
        """Replayed histories accept no further transactions."""
        current = analysis.get_deposits().find("current")

        with pytest.raises(BucketStateError):
            current.set_opening_balance(
                make_transaction("t99", date(2024, 7, 1), TransactionType.OPENING, "1.00")
            )


class TestSecurityReplay:
    """Tests for security holdings after replay and valuation."""

    def test_share_holding(self, analysis):
        """The share holding reflects the purchase, dividend and part sale."""
        shares = analysis.get_portfolios().find("isa").find_security_bucket("SHR")

        assert shares.units == Decimal("60")
        assert shares.cost == Decimal("600.00")
        assert shares.values.get_value(SecurityAttribute.INVESTED) == Decimal("520.00")
        assert shares.values.get_value(SecurityAttribute.GAINS) == Decimal("80.00")
        assert shares.values.get_value(SecurityAttribute.DIVIDEND) == Decimal("20.00")
        assert shares.valuation == Decimal("720.00")
        assert shares.market == Decimal("200.00")

    def test_bond_holding(self, analysis):
        bond = analysis.get_portfolios().find("isa").find_security_bucket("BOND")

        assert bond.valuation == Decimal("1050.00")
        assert bond.market == Decimal("50.00")

    def test_portfolio_valuation_includes_cash(self, analysis):
        """Portfolio valuation is holdings plus cash."""
        portfolio = analysis.get_portfolios().find("isa")

        assert portfolio.values.get_money_value(SecurityAttribute.VALUATION) == Decimal("5270.00")

    def test_securities_listed_across_portfolios(self, analysis):
        securities = analysis.get_bucket_list(AnalysisType.SECURITY)

        assert [b.key for b in securities] == ["SHR", "BOND"]


class TestMarketReplay:
    """Tests for the market pass run after replay."""

    def test_market_totals(self, analysis):
        """Realised gains and growth both count as market income."""
        market = analysis.market

        assert market.market_income == Decimal("250.00")
        assert market.market_expense == Decimal("0")
        assert market.growth_income == Decimal("170.00")
        assert market.growth["SHR"] == Decimal("120.00")
        assert market.growth["BOND"] == Decimal("50.00")
        assert market.is_propagated

    def test_market_payee_and_growth_category(self, analysis):
        payee = analysis.get_payees().find_by_name("Market")
        category = analysis.get_event_categories().find_by_name("MarketGrowth")

        assert payee.values.get_value(PayeeAttribute.INCOME) == Decimal("250.00")
        assert category.values.get_value(CategoryAttribute.INCOME) == Decimal("170.00")
        assert analysis.get_tax_basis().find("MARKET").gross == Decimal("170.00")


class TestIncomeAndExpenseReplay:
    """Tests for payees, categories and tax bases after replay."""

    def test_payees(self, analysis):
        payees = analysis.get_payees()

        assert payees.find("employer").income == Decimal("2500.00")
        assert payees.find_by_name("TaxMan").expense == Decimal("500.00")
        assert payees.find("grocer").expense == Decimal("50.00")
        assert payees.find("landlord").expense == Decimal("300.00")

    def test_categories(self, analysis):
        categories = analysis.get_event_categories()

        assert categories.find("salary").income == Decimal("2500.00")
        assert categories.find("rent").expense == Decimal("300.00")
        assert categories.find_by_name("Dividends").income == Decimal("20.00")

    def test_salary_tax_basis(self, analysis):
        """Salary is reported gross with the tax deducted as a credit."""
        salary = analysis.get_tax_basis().find(TaxBasisClass.SALARY.value)

        assert salary.gross == Decimal("2500.00")
        assert salary.nett == Decimal("2000.00")
        assert salary.values.get_value(TaxBasisAttribute.TAXCREDIT) == Decimal("500.00")

    def test_other_tax_bases(self, analysis):
        bases = analysis.get_tax_basis()

        assert bases.find(TaxBasisClass.TAX_PAID.value).gross == Decimal("500.00")
        assert bases.find(TaxBasisClass.EXPENSE.value).gross == Decimal("350.00")
        assert bases.find(TaxBasisClass.DIVIDEND.value).gross == Decimal("20.00")

    def test_tax_basis_totals(self, analysis):
        """Totals net expense and tax paid off against income."""
        assert analysis.get_tax_basis().totals.gross == Decimal("1840.00")


class TestConservation:
    """Tests that every movement in wealth is explained."""

    def test_wealth_matches_flows(self, analysis):
        """Closing wealth is opening balances plus income less expense plus market."""
        opening = Decimal("6000.00")
        income = Decimal("2000.00") + Decimal("20.00")
        expense = Decimal("350.00")
        market = analysis.market.market_income - analysis.market.market_expense

        assert _total_wealth(analysis) == Decimal("7920.00")
        assert _total_wealth(analysis) == opening + income - expense + market


class TestReplayOptions:
    """Tests for analyse options and the module-level helper."""

    def test_end_date_defaults_to_last_transaction(self, sample_config, sample_ledger, sample_prices):
        analysis = TransactionAnalyser(sample_config, sample_prices).analyse(sample_ledger)

        assert analysis.date_range.end == date(2024, 5, 1)
        shares = analysis.get_portfolios().find("isa").find_security_bucket("SHR")
        assert shares.valuation == Decimal("660.00")

    def test_end_date_excludes_later_transactions(self, sample_config, sample_ledger, sample_prices):
        """Transactions after the end date are not replayed."""
        analysis = TransactionAnalyser(sample_config, sample_prices).analyse(
            sample_ledger, end_date=date(2024, 2, 15)
        )

        assert analysis.get_deposits().find("current").valuation == Decimal("2800.00")
        assert analysis.get_event_categories().find("rent") is None

    def test_analyse_transactions_cumulative(self, sample_config, sample_ledger, sample_prices):
        analysis = analyse_transactions(
            sample_ledger, sample_config, sample_prices,
            DateRange(start=None, end=VALUATION_DATE),
        )

        assert not analysis.is_range
        assert analysis.market.market_income == Decimal("250.00")

    def test_analyse_transactions_range(self, sample_config, sample_ledger, sample_prices):
        analysis = analyse_transactions(
            sample_ledger, sample_config, sample_prices,
            DateRange(start=date(2024, 4, 1), end=VALUATION_DATE),
        )

        assert analysis.is_range
        assert analysis.market.market_income == Decimal("200.00")

    def test_replay_is_logged(self, sample_config, sample_ledger, sample_prices, temp_output_dir):
        logger = AnalysisLogger(temp_output_dir / "log.jsonl")
        analyser = TransactionAnalyser(sample_config, sample_prices, logger)

        base = analyser.analyse(sample_ledger, end_date=VALUATION_DATE)
        analyser.analyse_range(base, DateRange(start=date(2024, 4, 1), end=VALUATION_DATE))

        actions = [e.action_type for e in logger.read_log()]
        assert actions == [
            ActionType.TRANSACTIONS_REPLAYED,
            ActionType.MARKET_ANALYSIS_COMPLETED,
            ActionType.RANGE_ANALYSIS_BUILT,
            ActionType.MARKET_ANALYSIS_COMPLETED,
        ]
        replayed = logger.filter_by_action_type(ActionType.TRANSACTIONS_REPLAYED)[0]
        assert replayed.details["transaction_count"] == 10
        assert replayed.analysis_id == "TEST001"


class TestReplayErrors:
    """Tests for ledgers that cannot be analysed."""

    def test_out_of_order_transactions(self, sample_config, sample_ledger):
        ledger = list(reversed(sample_ledger))

        with pytest.raises(AnalysisError, match="follows"):
            TransactionAnalyser(sample_config).analyse(ledger)

    def test_oversold_security(self, sample_config, sample_accounts, sample_securities, make_transaction):
        ledger = [
            make_transaction("t1", date(2024, 1, 1), TransactionType.SALE, "10.00",
                             credit_account=sample_accounts["isa"],
                             security=sample_securities["SHR"], units="1"),
        ]

        with pytest.raises(AnalysisError):
            TransactionAnalyser(sample_config).analyse(ledger)

    def test_missing_price(self, sample_config, sample_ledger):
        """Held units with no price cannot be valued."""
        with pytest.raises(AnalysisError, match="No price"):
            TransactionAnalyser(sample_config, PriceHistory()).analyse(sample_ledger)

    def test_purchase_through_deposit_account(
        self, sample_config, sample_accounts, sample_securities, make_transaction
    ):
        ledger = [
            make_transaction("t1", date(2024, 1, 1), TransactionType.PURCHASE, "10.00",
                             debit_account=sample_accounts["current"],
                             security=sample_securities["SHR"], units="1"),
        ]

        with pytest.raises(AnalysisError, match="portfolio"):
            TransactionAnalyser(sample_config).analyse(ledger)

    def test_missing_payee(self, sample_config, sample_accounts, make_transaction):
        ledger = [
            make_transaction("t1", date(2024, 1, 1), TransactionType.INCOME, "10.00",
                             credit_account=sample_accounts["current"]),
        ]

        with pytest.raises(AnalysisError, match="missing payee"):
            TransactionAnalyser(sample_config).analyse(ledger)

    def test_negative_amount(self, sample_config, sample_accounts, make_transaction):
        ledger = [
            make_transaction("t1", date(2024, 1, 1), TransactionType.OPENING, "-5.00",
                             credit_account=sample_accounts["current"]),
        ]

        with pytest.raises(AnalysisError, match="negative"):
            TransactionAnalyser(sample_config).analyse(ledger)

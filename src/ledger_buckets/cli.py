"""
Command-line interface for the ledger bucket analysis.

Provides commands for:
- analyse: Replay a ledger and write bucket and market summaries
- history: Write the snapshot history of a single bucket
- init-config: Write a default analysis configuration
"""

import sys
from pathlib import Path
from typing import Optional

import click

from ledger_buckets.analysis import AnalysisError, AnalysisType
from ledger_buckets.analysis.analyser import TransactionAnalyser
from ledger_buckets.config import (
    ConfigurationError,
    create_default_config,
    load_analysis_config,
    parse_date,
)
from ledger_buckets.data import (
    load_accounts,
    load_prices,
    load_securities,
    load_transactions,
    save_bucket_history,
    save_bucket_summary,
    save_market_summary,
)
from ledger_buckets.data.loaders import DataLoadError
from ledger_buckets.logging import get_logger
from ledger_buckets.models import DateRange, PriceHistory


BUCKET_TYPES = {
    "deposit": AnalysisType.DEPOSIT,
    "cash": AnalysisType.CASH,
    "loan": AnalysisType.LOAN,
    "portfolio": AnalysisType.PORTFOLIO,
    "security": AnalysisType.SECURITY,
    "payee": AnalysisType.PAYEE,
    "category": AnalysisType.CATEGORY,
    "taxbasis": AnalysisType.TAXBASIS,
}


@click.group()
@click.version_option(version="0.1.0", prog_name="ledger-buckets")
def main():
    """
    Ledger bucket analysis.

    Replays a personal finance ledger into per-account, per-security,
    per-payee, per-category and per-tax-basis buckets.
    """
    pass


def ledger_options(func):
    """Options shared by commands that replay a ledger."""
    options = [
        click.option(
            "--config", "-c",
            required=True,
            type=click.Path(exists=True),
            help="Path to analysis configuration YAML file",
        ),
        click.option(
            "--accounts", "-a",
            required=True,
            type=click.Path(exists=True),
            help="Path to accounts CSV file",
        ),
        click.option(
            "--securities", "-s",
            type=click.Path(exists=True),
            default=None,
            help="Path to securities CSV file",
        ),
        click.option(
            "--transactions", "-t",
            required=True,
            type=click.Path(exists=True),
            help="Path to transactions CSV file",
        ),
        click.option(
            "--prices", "-p",
            type=click.Path(exists=True),
            default=None,
            help="Path to security prices CSV file",
        ),
        click.option(
            "--start",
            type=str,
            default=None,
            help="Range start date (YYYY-MM-DD). Omit for a cumulative analysis.",
        ),
        click.option(
            "--end",
            type=str,
            default=None,
            help="Valuation date (YYYY-MM-DD). Defaults to the last transaction date.",
        ),
        click.option(
            "--output-dir", "-o",
            type=click.Path(),
            default=None,
            help="Output directory. Defaults to config output_dir.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run_analysis(
    config: str,
    accounts: str,
    securities: Optional[str],
    transactions: str,
    prices: Optional[str],
    start: Optional[str],
    end: Optional[str],
    output_dir: Optional[str],
):
    """Load inputs and replay the ledger, exiting on any error."""
    try:
        analysis_config = load_analysis_config(config)
        start_date = parse_date(start, "start") if start else None
        end_date = parse_date(end, "end") if end else None
    except ConfigurationError as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    if start_date and end_date and start_date > end_date:
        click.echo(f"Start date {start_date} is after end date {end_date}.", err=True)
        sys.exit(1)

    out_dir = Path(output_dir or analysis_config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    logger = get_logger(out_dir / "analysis_log.jsonl")
    logger.log_config_loaded(analysis_config, config)

    click.echo("Loading ledger...")
    try:
        account_map = load_accounts(accounts)
        security_map = load_securities(securities, account_map) if securities else {}
        ledger = load_transactions(transactions, account_map, security_map)
        price_history = load_prices(prices) if prices else PriceHistory()
    except DataLoadError as e:
        click.echo(f"Error loading ledger: {e}", err=True)
        sys.exit(1)

    click.echo(f"  Accounts: {len(account_map)}")
    click.echo(f"  Securities: {len(security_map)}")
    click.echo(f"  Transactions: {len(ledger)}")

    analyser = TransactionAnalyser(analysis_config, price_history, logger)
    try:
        analysis = analyser.analyse(ledger, end_date)
        if start_date:
            analysis = analyser.analyse_range(
                analysis, DateRange(start=start_date, end=analysis.date_range.end)
            )
    except AnalysisError as e:
        click.echo(f"Error analysing ledger: {e}", err=True)
        sys.exit(1)

    return analysis_config, analysis, out_dir, logger


@main.command()
@ledger_options
def analyse(
    config: str,
    accounts: str,
    securities: Optional[str],
    transactions: str,
    prices: Optional[str],
    start: Optional[str],
    end: Optional[str],
    output_dir: Optional[str],
):
    """
    Replay a ledger and write bucket and market summaries.

    With --start, the cumulative analysis is spliced onto the range and
    counters (income, expense, invested, gains) become period flows.
    """
    analysis_config, analysis, out_dir, logger = _run_analysis(
        config, accounts, securities, transactions, prices, start, end, output_dir
    )
    analysis_id = analysis_config.analysis_id
    suffix = analysis.date_range.end.isoformat()

    summary_path = save_bucket_summary(
        analysis,
        out_dir / f"bucket_summary_{suffix}.csv",
        analysis_config.money_places,
    )
    logger.log_report_written(analysis_id, "summary", summary_path, sum(
        len(bucket_list) for _, bucket_list in analysis.iter_bucket_lists()
    ))

    securities_analysed = list(analysis.iter_securities())
    market_path = save_market_summary(analysis, out_dir / f"market_summary_{suffix}.csv")
    logger.log_report_written(analysis_id, "market", market_path, len(securities_analysed))

    market = analysis.market
    currency = analysis_config.currency
    click.echo("")
    click.echo(f"Analysis {analysis_id} ({analysis.date_range.start or 'start'} to {analysis.date_range.end})")
    click.echo("=" * 50)
    for analysis_type, bucket_list in analysis.iter_bucket_lists():
        click.echo(f"  {str(analysis_type):<12} {len(bucket_list):>5} buckets")
    click.echo(f"  Securities   {len(securities_analysed):>5} buckets")
    click.echo("")
    click.echo(f"Market income:  {currency} {market.market_income:,.2f}")
    click.echo(f"Market expense: {currency} {market.market_expense:,.2f}")
    click.echo(f"Growth:         {currency} {market.growth_income - market.growth_expense:,.2f}")
    click.echo("")
    click.echo("Output files:")
    click.echo(f"  Summary: {summary_path}")
    click.echo(f"  Market: {market_path}")


@main.command()
@ledger_options
@click.option(
    "--bucket-type", "-b",
    required=True,
    type=click.Choice(sorted(BUCKET_TYPES)),
    help="Dimension of the bucket",
)
@click.option(
    "--name", "-n",
    required=True,
    type=str,
    help="Bucket name or identifier",
)
def history(
    config: str,
    accounts: str,
    securities: Optional[str],
    transactions: str,
    prices: Optional[str],
    start: Optional[str],
    end: Optional[str],
    output_dir: Optional[str],
    bucket_type: str,
    name: str,
):
    """
    Write the snapshot history of a single bucket.

    Each row gives an attribute's value after a transaction and the change
    the transaction made to it.
    """
    analysis_config, analysis, out_dir, logger = _run_analysis(
        config, accounts, securities, transactions, prices, start, end, output_dir
    )

    bucket = _find_bucket(analysis, BUCKET_TYPES[bucket_type], name)
    if bucket is None:
        click.echo(f"No {bucket_type} bucket named {name}.", err=True)
        sys.exit(1)

    safe_name = "".join(c if c.isalnum() else "_" for c in name)
    output_path = save_bucket_history(bucket, out_dir / f"history_{bucket_type}_{safe_name}.csv")
    logger.log_report_written(
        analysis_config.analysis_id, "history", output_path, len(bucket.snapshots)
    )

    click.echo(f"{bucket.name}: {len(bucket.snapshots)} snapshots")
    click.echo(f"History saved to: {output_path}")


def _find_bucket(analysis, analysis_type: AnalysisType, name: str):
    if analysis_type is AnalysisType.SECURITY:
        for bucket in analysis.iter_securities():
            if name in (bucket.name, bucket.key):
                return bucket
        return None

    bucket_list = analysis.get_bucket_list(analysis_type)
    bucket = bucket_list.find(name) or bucket_list.find_by_name(name)
    if bucket is not None and analysis_type is AnalysisType.PORTFOLIO:
        return bucket.cash
    return bucket


@main.command("init-config")
@click.option(
    "--analysis-id", "-i",
    required=True,
    type=str,
    help="Analysis identifier",
)
@click.option(
    "--output", "-o",
    required=True,
    type=click.Path(),
    help="Path for the configuration YAML file",
)
def init_config(analysis_id: str, output: str):
    """Write a default analysis configuration."""
    config = create_default_config(analysis_id, output)
    click.echo(f"Configuration for {config.analysis_id} written to: {output}")


if __name__ == "__main__":
    main()

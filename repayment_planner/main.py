"""Command-line interface for the repayment planner.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute full repayment schedules or view summaries. Results can be
printed to the terminal or exported to text, CSV or JSON files.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Tuple

import click

from .data_models import RepaymentStyle, ScheduleConfig
from .engine import ScheduleEngine
from .exceptions import RepaymentPlannerError
from .formatter import (
    print_schedule,
    print_summary,
    render_schedule_csv,
    render_schedule_text,
    serialize_installments,
)
from .utils import decimal_from_str, parse_date

logger = logging.getLogger(__name__)


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a Decimal.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_rate(value: str) -> Decimal:
    """Parse an annual rate given in percent ("2", "2.5%") into a fraction."""
    value = str(value).strip()
    if value.endswith("%"):
        value = value[:-1]
    try:
        return decimal_from_str(value) / Decimal(100)
    except ValueError:
        raise click.BadParameter(f"Invalid rate: {value}")


def parse_cli_date(value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def parse_payment_strings(values: Tuple[str, ...]) -> List[Tuple[date, Decimal]]:
    payments = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Payment must be in YYYY-MM-DD:AMOUNT format; got {item}")
        day, amount = parts
        payments.append((parse_cli_date(day), parse_amount(amount)))
    return payments


def parse_rate_change_strings(values: Tuple[str, ...]) -> List[Tuple[date, Decimal]]:
    changes = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Rate change must be in YYYY-MM-DD:PERCENT format; got {item}")
        day, rate = parts
        changes.append((parse_cli_date(day), parse_rate(rate)))
    return changes


def build_config_from_options(
    amount: str,
    rate: str,
    start: str,
    end: str,
    period: str = "monthly",
    style: str = "annuity",
    first_repayment: Optional[str] = None,
    daily: bool = False,
    decimals: int = 2,
    payment: Tuple[str, ...] = (),
    rate_change: Tuple[str, ...] = (),
) -> ScheduleConfig:
    try:
        repayment_style = RepaymentStyle(style.lower())
    except ValueError:
        raise click.BadParameter(f"Unknown repayment style: {style}")
    return ScheduleConfig(
        amount=parse_amount(str(amount)),
        rate=parse_rate(str(rate)),
        start=parse_cli_date(start),
        end=parse_cli_date(end),
        granularity=period.lower(),
        repayment_style=repayment_style,
        first_repayment_date=parse_cli_date(first_repayment) if first_repayment else None,
        daily_accrual=daily,
        annuity_decimals=decimals,
        payments=parse_payment_strings(tuple(payment)) if payment else [],
        rate_changes=parse_rate_change_strings(tuple(rate_change)) if rate_change else [],
    )


def build_engine(config: ScheduleConfig) -> ScheduleEngine:
    """Configure and calculate an engine, turning engine errors into CLI errors."""
    logger.debug("Building schedule from %s", config)
    try:
        engine = ScheduleEngine.from_config(config)
        engine.calc()
    except RepaymentPlannerError as exc:
        raise click.ClickException(str(exc))
    return engine


def export_to_json(path: Path, engine: ScheduleEngine) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": engine.summary(), "schedule": serialize_installments(engine)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def schedule_options(func):
    """Options shared by every command that builds a schedule."""
    options = [
        click.option("--amount", "-a", "amount", required=True, help="Principal disbursed on the start date"),
        click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)"),
        click.option("--start", "-s", "start", required=True, help="Disbursement date (YYYY-MM-DD)"),
        click.option("--end", "-e", "end", required=True, help="Last day of the schedule (YYYY-MM-DD)"),
        click.option("--period", "period", type=click.Choice(["monthly", "quarterly", "yearly"]), default="monthly", help="Installment period"),
        click.option("--style", "style", type=click.Choice([s.value for s in RepaymentStyle]), default="annuity", help="Repayment style"),
        click.option("--first-repayment", "first_repayment", help="End of the grace period (YYYY-MM-DD)"),
        click.option("--daily/--no-daily", "daily", default=False, help="Accrue interest on actual days"),
        click.option("--decimals", "decimals", type=int, default=2, help="Rounding of annuity installments"),
        click.option("--payment", "payment", multiple=True, help="Extra disbursement in YYYY-MM-DD:AMOUNT format"),
        click.option("--rate-change", "rate_change", multiple=True, help="Rate change in YYYY-MM-DD:PERCENT format"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine steps to stderr")
def cli(verbose: bool) -> None:
    """Loan repayment schedules with linear, annuity and balloon styles."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


@cli.command()
@schedule_options
@click.option("--output", "-o", "output", type=str, help="Output file path (.txt, .csv or .json)")
def schedule(output: Optional[str], **options) -> None:
    """Compute and print the full repayment schedule."""
    engine = build_engine(build_config_from_options(**options))
    if output:
        path = Path(output)
        suffix = path.suffix.lower()
        if suffix == ".json":
            export_to_json(path, engine)
        elif suffix == ".csv":
            path.write_text(render_schedule_csv(engine), encoding="utf-8")
        elif suffix == ".txt":
            path.write_text(render_schedule_text(engine), encoding="utf-8")
        else:
            raise click.BadParameter("Unsupported output format; use .txt, .csv or .json")
        click.echo(f"Schedule exported to {path}")
    else:
        print_schedule(engine)


@cli.command()
@schedule_options
@click.option("--output", "-o", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options) -> None:
    """Compute and print only the summary totals."""
    engine = build_engine(build_config_from_options(**options))
    summary_data = engine.summary()
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_data}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


if __name__ == "__main__":
    cli()

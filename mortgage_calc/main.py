"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full amortization schedules or only the
financial indicators of a simulation. Results can be printed to the terminal
or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from .data_models import CalculationInput, IndicatorSummary, ScheduleEntry
from .engine import calculate
from .exceptions import ValidationError
from .formatter import print_schedule, print_summary
from .serialization import input_to_dict, schedule_to_list, summary_to_dict
from .validation import build_input

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("250000") and shorthand with ``k``/``m`` suffixes
    (e.g., "250k" meaning 250_000).
    """
    value = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return Decimal(value) * factor
    except InvalidOperation:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_rate(value: str) -> Decimal:
    """Parse a rate given as a fraction ("0.085") or a percentage ("8.5%" or "8.5")."""
    value = value.strip()
    percent = value.endswith("%")
    if percent:
        value = value[:-1]
    try:
        rate = Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"Invalid rate: {value}")
    # If the user enters a number like 8.5, treat it as 8.5%
    if percent or rate > 1:
        rate = rate / Decimal(100)
    return rate


def build_config_from_options(
    principal: str,
    currency: str,
    rate_type: str,
    tea: Optional[str],
    tna: Optional[str],
    capitalization: Optional[int],
    term: int,
    grace_type: str,
    grace_months: int,
    start_date: str,
    apply_bonus: bool,
    bonus_amount: Optional[str],
    life_insurance: str,
    risk_insurance: str,
    fees: str,
) -> CalculationInput:
    request: Dict[str, Any] = {
        "principal": parse_amount(principal),
        "currency": currency,
        "rateType": rate_type,
        "tea": parse_rate(tea) if tea else None,
        "tna": parse_rate(tna) if tna else None,
        "capitalizationPerYear": capitalization,
        "termMonths": term,
        "graceType": grace_type,
        "graceMonths": grace_months,
        "startDate": start_date,
        "applyBonus": apply_bonus,
        "bonusAmount": parse_amount(bonus_amount) if bonus_amount else None,
        "lifeInsuranceRateMonthly": parse_rate(life_insurance),
        "riskInsuranceRateAnnual": parse_rate(risk_insurance),
        "feesMonthly": parse_amount(fees),
    }
    try:
        return build_input(request)
    except ValidationError as exc:
        problems = "; ".join(f"{field}: {msg}" for field, msg in exc.errors.items())
        raise click.BadParameter(problems)


def export_to_json(
    path: Path,
    config: CalculationInput,
    summary: IndicatorSummary,
    schedule: Optional[List[ScheduleEntry]] = None,
) -> None:
    """Export the simulation (and optionally its schedule) to a JSON file."""
    data: Dict[str, Any] = {"input": input_to_dict(config), "summary": summary_to_dict(summary)}
    if schedule is not None:
        data["schedule"] = schedule_to_list(schedule)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Period",
        "Due_Date",
        "Opening_Balance",
        "Interest",
        "Principal",
        "Life_Insurance",
        "Risk_Insurance",
        "Fees",
        "Installment",
        "Closing_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.period,
                    e.due_date.isoformat(),
                    float(e.opening_balance),
                    float(e.interest),
                    float(e.principal),
                    float(e.life_insurance),
                    float(e.risk_insurance),
                    float(e.fees),
                    float(e.installment),
                    float(e.closing_balance),
                ]
            )


def simulation_options(command: Callable) -> Callable:
    """Attach the loan parameter options shared by every command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount before the bonus (e.g. 250k)"),
        click.option("--currency", "currency", type=click.Choice(["PEN", "USD"], case_sensitive=False), default="PEN", help="Loan currency"),
        click.option("--rate-type", "rate_type", type=click.Choice(["TEA", "TNA"], case_sensitive=False), required=True, help="Annual rate convention"),
        click.option("--tea", "tea", help="Annual effective rate (0.085 or 8.5%)"),
        click.option("--tna", "tna", help="Annual nominal rate (0.08 or 8%)"),
        click.option("--capitalization", "capitalization", type=int, help="Compounding periods per year for TNA"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in months, grace included"),
        click.option("--grace-type", "grace_type", type=click.Choice(["None", "Partial", "Total"], case_sensitive=False), default="None", help="Grace period policy"),
        click.option("--grace-months", "grace_months", type=int, default=0, show_default=True, help="Number of grace months"),
        click.option("--start-date", "-s", "start_date", required=True, help="First due date (YYYY-MM-DD)"),
        click.option("--apply-bonus", "apply_bonus", is_flag=True, help="Deduct the housing bonus from the principal"),
        click.option("--bonus-amount", "bonus_amount", help="Bonus amount deducted when --apply-bonus is set"),
        click.option("--life-insurance", "life_insurance", default="0", help="Monthly life insurance rate on the balance"),
        click.option("--risk-insurance", "risk_insurance", default="0", help="Annual risk insurance rate on the principal"),
        click.option("--fees", "fees", default="0", help="Fixed monthly fee"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line mortgage simulator (French method with grace periods)."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@cli.command()
@simulation_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(output: Optional[str], **options: Any) -> None:
    """Compute and print the full amortization schedule."""
    config = build_config_from_options(**options)
    summary_data, schedule_entries = calculate(config)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, config, summary_data, schedule_entries)
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule_entries)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(summary_data, config.currency.value)
        # Limit schedule length printed to avoid flooding the terminal
        if len(schedule_entries) > MAX_PRINTED_ROWS:
            click.echo(
                f"Schedule has {len(schedule_entries)} rows; showing first {MAX_PRINTED_ROWS} rows."
            )
            print_schedule(schedule_entries[:MAX_PRINTED_ROWS])
        else:
            print_schedule(schedule_entries)


@cli.command()
@simulation_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options: Any) -> None:
    """Compute and print only the financial indicators."""
    config = build_config_from_options(**options)
    summary_data, _ = calculate(config)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        export_to_json(path, config, summary_data)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data, config.currency.value)


if __name__ == "__main__":
    cli()

"""Output helpers for the mortgage calculator.

This module renders amortization schedules and indicator summaries in a
plain tabular text format, using only built-in printing and string
formatting. Amounts are printed with two decimals and rates as percentages;
no currency symbols or localization are applied.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import IndicatorSummary, ScheduleEntry


def print_summary(summary: IndicatorSummary, currency: str = "") -> None:
    """Print the financial indicators in a human-readable format."""
    unit = f" {currency}" if currency else ""
    print("Summary")
    print("-" * 72)
    print(f"TEM                : {summary.monthly_rate * 100:.6f}%")
    print(f"Monthly payment    : {summary.monthly_payment:.2f}{unit}")
    print(f"TCEA               : {summary.tcea * 100:.4f}%")
    print(f"TIR                : {summary.irr * 100:.4f}%")
    print(f"VAN                : {summary.npv:.2f}{unit}")
    print(f"Total interest     : {summary.total_interest:.2f}{unit}")
    print(f"Total cost         : {summary.total_cost:.2f}{unit}")
    print("-" * 72)


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = [
        "Period",
        "DueDate",
        "Opening",
        "Interest",
        "Principal",
        "LifeIns",
        "RiskIns",
        "Fees",
        "Installment",
        "Closing",
    ]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.period),
            entry.due_date.isoformat(),
            f"{entry.opening_balance:.2f}",
            f"{entry.interest:.2f}",
            f"{entry.principal:.2f}",
            f"{entry.life_insurance:.2f}",
            f"{entry.risk_insurance:.2f}",
            f"{entry.fees:.2f}",
            f"{entry.installment:.2f}",
            f"{entry.closing_balance:.2f}",
        ]
        print("\t".join(row))

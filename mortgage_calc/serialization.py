"""Conversion of calculation results into JSON-serialisable dictionaries.

Field names follow the HTTP API (camelCase). Decimals become floats and dates
ISO strings.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .data_models import CalculationInput, IndicatorSummary, ScheduleEntry


def summary_to_dict(summary: IndicatorSummary) -> Dict[str, float]:
    return {
        "tem": float(summary.monthly_rate),
        "monthlyPayment": float(summary.monthly_payment),
        "tcea": float(summary.tcea),
        "van": float(summary.npv),
        "tir": float(summary.irr),
        "totalInterest": float(summary.total_interest),
        "totalCost": float(summary.total_cost),
    }


def entry_to_dict(entry: ScheduleEntry) -> Dict[str, Any]:
    return {
        "period": entry.period,
        "dueDate": entry.due_date.isoformat(),
        "openingBalance": float(entry.opening_balance),
        "interest": float(entry.interest),
        "principal": float(entry.principal),
        "lifeInsurance": float(entry.life_insurance),
        "riskInsurance": float(entry.risk_insurance),
        "fees": float(entry.fees),
        "installment": float(entry.installment),
        "closingBalance": float(entry.closing_balance),
    }


def schedule_to_list(schedule: Iterable[ScheduleEntry]) -> List[Dict[str, Any]]:
    return [entry_to_dict(entry) for entry in schedule]


def input_to_dict(config: CalculationInput) -> Dict[str, Any]:
    """Echo the validated request, with the bonus amount already normalized."""

    def optional_float(value):
        return None if value is None else float(value)

    return {
        "principal": float(config.principal),
        "currency": config.currency.value,
        "rateType": config.rate_type.value,
        "tea": optional_float(config.annual_effective_rate),
        "tna": optional_float(config.annual_nominal_rate),
        "capitalizationPerYear": config.compounding_per_year,
        "termMonths": config.term_months,
        "graceType": config.grace_type.value,
        "graceMonths": config.grace_months,
        "startDate": config.start_date.isoformat(),
        "applyBonus": config.bonus_applied,
        "bonusAmount": float(config.bonus_amount),
        "lifeInsuranceRateMonthly": float(config.life_insurance_rate_monthly),
        "riskInsuranceRateAnnual": float(config.risk_insurance_rate_annual),
        "feesMonthly": float(config.fees_monthly),
    }

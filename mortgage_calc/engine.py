"""Core calculation engine for the mortgage calculator.

``calculate`` is the single entry point: it deducts the subsidy from the
principal, converts the annual rate to a monthly effective rate, builds the
schedule (grace phase followed by French amortization) and derives the
financial indicators from it. The engine is a pure function of its input.
"""

from __future__ import annotations

import logging
from decimal import getcontext
from typing import List, Tuple

from .data_models import CalculationInput, IndicatorSummary, ScheduleEntry
from .indicators import summarize
from .rates import convert
from .schedule import build_schedule

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)


def calculate(config: CalculationInput) -> Tuple[IndicatorSummary, List[ScheduleEntry]]:
    """Compute the indicators and amortization schedule of a loan.

    Parameters
    ----------
    config: CalculationInput
        Validated loan parameters. ``principal`` is the amount before the
        subsidy; risk insurance keeps using it while everything else runs on
        the subsidy-adjusted principal.

    Returns
    -------
    summary: IndicatorSummary
        TEM, representative installment, TCEA, NPV, IRR and totals.
    schedule: List[ScheduleEntry]
        One entry per period, in period order.

    Raises
    ------
    MissingRateInput
        If the selected rate type lacks its companion value(s).
    """
    adjusted_principal = config.adjusted_principal

    monthly_rate = convert(
        config.rate_type,
        config.annual_effective_rate,
        config.annual_nominal_rate,
        config.compounding_per_year,
    )
    logger.debug("Monthly effective rate for %s input: %s", config.rate_type.value, monthly_rate)

    schedule = build_schedule(
        adjusted_principal,
        monthly_rate,
        config.term_months,
        config.grace_type,
        config.grace_months,
        config.start_date,
        config.life_insurance_rate_monthly,
        config.risk_insurance_rate_annual,
        config.fees_monthly,
        insured_principal=config.principal,
    )

    summary = summarize(schedule, adjusted_principal, monthly_rate, config.grace_months)
    return summary, schedule

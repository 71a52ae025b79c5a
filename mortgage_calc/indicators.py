"""Financial indicators derived from an amortization schedule.

The installment column of a schedule already embeds every cost component
(interest, both insurances and fees), so the internal rate of return of that
cash-flow series is also the effective annual cost rate (TCEA). Both come
from the same Newton-Raphson solver.
"""

from __future__ import annotations

import logging
from decimal import Decimal, getcontext
from typing import List, Sequence, Tuple

from .data_models import IndicatorSummary, ScheduleEntry

getcontext().prec = 28

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")

IRR_INITIAL_GUESS = Decimal("0.01")
IRR_MAX_ITERATIONS = 100
IRR_TOLERANCE = Decimal("0.0001")
IRR_MIN_RATE = Decimal("-0.5")
IRR_MAX_RATE = Decimal("1")


def _cash_flows(schedule: Sequence[ScheduleEntry]) -> List[Tuple[int, Decimal]]:
    return [(entry.period, entry.installment) for entry in schedule]


def net_present_value(cash_flows: Sequence[Tuple[int, Decimal]], rate: Decimal, principal: Decimal) -> Decimal:
    """Discount each ``(period, amount)`` back to period 0 and subtract ``principal``."""
    npv = -principal
    for period, amount in cash_flows:
        npv += amount / (ONE + rate) ** period
    return npv


def annualize(monthly_rate: Decimal) -> Decimal:
    return (ONE + monthly_rate) ** 12 - ONE


def solve_monthly_irr(cash_flows: Sequence[Tuple[int, Decimal]], principal: Decimal) -> Tuple[Decimal, bool]:
    """Find the monthly rate that makes the discounted cash flows equal ``principal``.

    Newton-Raphson starting at 1 % a month, at most 100 iterations, stopping
    once ``|npv| < 0.0001``. After every update the rate is clamped to
    ``[-0.5, 1.0]``.

    Returns
    -------
    rate: Decimal
        The monthly rate. When the solver does not converge this is the last
        (possibly clamped) estimate.
    converged: bool
        Whether the tolerance was met.
    """
    rate = IRR_INITIAL_GUESS
    for _ in range(IRR_MAX_ITERATIONS):
        npv = -principal
        derivative = ZERO
        for period, amount in cash_flows:
            factor = (ONE + rate) ** period
            npv += amount / factor
            derivative -= amount * period / (factor * (ONE + rate))

        if abs(npv) < IRR_TOLERANCE:
            return rate, True
        if derivative == 0:
            logger.warning("IRR derivative vanished at rate %s; keeping current estimate", rate)
            return rate, False

        rate = rate - npv / derivative
        if rate < IRR_MIN_RATE:
            rate = IRR_MIN_RATE
        if rate > IRR_MAX_RATE:
            rate = IRR_MAX_RATE

    logger.warning("IRR did not converge after %d iterations; using %s", IRR_MAX_ITERATIONS, rate)
    return rate, False


def summarize(
    schedule: Sequence[ScheduleEntry],
    adjusted_principal: Decimal,
    monthly_rate: Decimal,
    grace_months: int,
) -> IndicatorSummary:
    """Compute totals, representative installment, NPV, IRR and TCEA."""
    total_interest = sum((e.interest for e in schedule), ZERO)
    total_life_insurance = sum((e.life_insurance for e in schedule), ZERO)
    total_risk_insurance = sum((e.risk_insurance for e in schedule), ZERO)
    total_fees = sum((e.fees for e in schedule), ZERO)
    total_cost = adjusted_principal + total_interest + total_life_insurance + total_risk_insurance + total_fees

    # Representative installment: mean over the periods after the grace phase
    amortizing = [e.installment for e in schedule if e.period > grace_months]
    monthly_payment = sum(amortizing, ZERO) / Decimal(len(amortizing)) if amortizing else ZERO

    cash_flows = _cash_flows(schedule)
    npv = net_present_value(cash_flows, monthly_rate, adjusted_principal)
    irr_monthly, _ = solve_monthly_irr(cash_flows, adjusted_principal)
    irr = annualize(irr_monthly)
    return IndicatorSummary(
        monthly_rate=monthly_rate,
        monthly_payment=monthly_payment,
        tcea=irr,  # installments embed every cost
        npv=npv,
        irr=irr,
        total_interest=total_interest,
        total_cost=total_cost,
    )

"""Amortization schedule builder.

A schedule has two phases laid out in period order:

1. an optional grace phase, where the principal is not amortized. A partial
   grace pays interest, insurance and fees; a total grace pays nothing and
   capitalizes the interest into the balance.
2. the amortization phase, which follows the French method: a constant base
   installment (principal plus interest) whose interest/principal split
   shifts every period. The last period absorbs any residual so the schedule
   closes exactly at zero.

Each period is produced by a pure step function that takes the opening
balance and returns one ``ScheduleEntry``; ``build_schedule`` threads the
closing balance of one entry into the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, getcontext
from typing import List

from .data_models import GraceType, ScheduleEntry
from .utils import add_months

getcontext().prec = 28

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")


@dataclass(frozen=True)
class PeriodCharges:
    """Insurance and fee rates charged on top of principal and interest.

    Risk insurance is always computed on ``insured_principal`` (the original,
    pre-subsidy principal), never on the outstanding balance.
    """

    life_insurance_rate_monthly: Decimal
    risk_insurance_rate_annual: Decimal
    fees_monthly: Decimal
    insured_principal: Decimal

    def life_insurance(self, opening_balance: Decimal) -> Decimal:
        return opening_balance * self.life_insurance_rate_monthly

    def risk_insurance(self) -> Decimal:
        return self.insured_principal * (self.risk_insurance_rate_annual / Decimal(12))


def french_installment(balance: Decimal, monthly_rate: Decimal, periods: int) -> Decimal:
    """Return the constant base installment (principal + interest).

    The formula is::

        installment = B * i / (1 - (1 + i)^-n)

    where ``B`` is the balance entering the amortization phase, ``i`` the
    monthly rate and ``n`` the number of amortizing periods. With a zero rate
    the installment simplifies to ``B / n``.
    """
    if periods <= 0:
        raise ValueError("Number of amortizing periods must be positive")
    if monthly_rate == 0:
        return balance / Decimal(periods)
    return balance * monthly_rate / (ONE - (ONE + monthly_rate) ** -periods)


def grace_period(
    grace_type: GraceType,
    period: int,
    due_date: date,
    opening_balance: Decimal,
    monthly_rate: Decimal,
    charges: PeriodCharges,
) -> ScheduleEntry:
    """Return the schedule entry of one grace period."""
    interest = opening_balance * monthly_rate
    if grace_type == GraceType.TOTAL:
        # Nothing is paid; interest is added to the balance.
        return ScheduleEntry(
            period=period,
            due_date=due_date,
            opening_balance=opening_balance,
            interest=interest,
            principal=ZERO,
            life_insurance=ZERO,
            risk_insurance=ZERO,
            fees=ZERO,
            installment=ZERO,
            closing_balance=opening_balance * (ONE + monthly_rate),
        )
    if grace_type == GraceType.PARTIAL:
        life_insurance = charges.life_insurance(opening_balance)
        risk_insurance = charges.risk_insurance()
        fees = charges.fees_monthly
        return ScheduleEntry(
            period=period,
            due_date=due_date,
            opening_balance=opening_balance,
            interest=interest,
            principal=ZERO,
            life_insurance=life_insurance,
            risk_insurance=risk_insurance,
            fees=fees,
            installment=interest + life_insurance + risk_insurance + fees,
            closing_balance=opening_balance,
        )
    raise ValueError(f"No grace period exists for grace type {grace_type}")


def amortization_period(
    period: int,
    due_date: date,
    opening_balance: Decimal,
    monthly_rate: Decimal,
    base_installment: Decimal,
    charges: PeriodCharges,
    is_last: bool = False,
) -> ScheduleEntry:
    """Return the schedule entry of one French-method period.

    On the last period the principal paid is forced to the opening balance
    and the base installment recomputed from it, so the closing balance is
    exactly zero.
    """
    interest = opening_balance * monthly_rate
    if is_last:
        principal = opening_balance
        base_installment = principal + interest
    else:
        principal = base_installment - interest

    closing_balance = opening_balance - principal
    if closing_balance < 0:
        closing_balance = ZERO

    life_insurance = charges.life_insurance(opening_balance)
    risk_insurance = charges.risk_insurance()
    fees = charges.fees_monthly
    return ScheduleEntry(
        period=period,
        due_date=due_date,
        opening_balance=opening_balance,
        interest=interest,
        principal=principal,
        life_insurance=life_insurance,
        risk_insurance=risk_insurance,
        fees=fees,
        installment=base_installment + life_insurance + risk_insurance + fees,
        closing_balance=closing_balance,
    )


def build_schedule(
    adjusted_principal: Decimal,
    monthly_rate: Decimal,
    term_months: int,
    grace_type: GraceType,
    grace_months: int,
    start_date: date,
    life_insurance_rate_monthly: Decimal,
    risk_insurance_rate_annual: Decimal,
    fees_monthly: Decimal,
    insured_principal: Decimal,
) -> List[ScheduleEntry]:
    """Compute the amortization schedule of a loan.

    Parameters
    ----------
    adjusted_principal: Decimal
        The financed amount, i.e. the principal net of any subsidy.
    monthly_rate: Decimal
        Monthly effective rate (TEM).
    term_months: int
        Total number of periods, grace periods included.
    grace_type: GraceType
        Grace policy. With ``GraceType.NONE`` no grace periods are emitted,
        whatever ``grace_months`` says.
    grace_months: int
        Number of grace periods.
    start_date: date
        Due date of period 1; period ``n`` falls ``n - 1`` months later.
    insured_principal: Decimal
        Original principal, the base of the risk insurance.

    Returns
    -------
    List[ScheduleEntry]
        Entries in period order. When no periods remain after the grace
        phase, only the grace entries are returned.
    """
    charges = PeriodCharges(
        life_insurance_rate_monthly=life_insurance_rate_monthly,
        risk_insurance_rate_annual=risk_insurance_rate_annual,
        fees_monthly=fees_monthly,
        insured_principal=insured_principal,
    )
    schedule: List[ScheduleEntry] = []
    balance = adjusted_principal
    period = 1

    if grace_type != GraceType.NONE:
        for _ in range(grace_months):
            entry = grace_period(
                grace_type,
                period,
                add_months(start_date, period - 1),
                balance,
                monthly_rate,
                charges,
            )
            schedule.append(entry)
            balance = entry.closing_balance
            period += 1

    remaining_periods = term_months - grace_months
    if remaining_periods <= 0:
        logger.debug("No amortizing periods left after %d grace months", grace_months)
        return schedule

    base_installment = french_installment(balance, monthly_rate, remaining_periods)
    for i in range(remaining_periods):
        entry = amortization_period(
            period,
            add_months(start_date, period - 1),
            balance,
            monthly_rate,
            base_installment,
            charges,
            is_last=(i == remaining_periods - 1),
        )
        schedule.append(entry)
        balance = entry.closing_balance
        period += 1

    logger.debug("Built schedule with %d periods (base installment %s)", len(schedule), base_installment)
    return schedule

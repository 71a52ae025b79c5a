"""Data models for the mortgage calculator.

This module defines the enums and dataclasses used by the calculator: the
validated calculation input, individual schedule entries and the summary of
financial indicators. All amounts and rates are ``Decimal`` values so that
schedules can close exactly at zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Currency(str, Enum):
    PEN = "PEN"
    USD = "USD"


class RateType(str, Enum):
    """Annual rate convention supplied by the caller."""

    ANNUAL_EFFECTIVE = "TEA"
    ANNUAL_NOMINAL = "TNA"


class GraceType(str, Enum):
    """Grace-period policy applied before amortization starts.

    ``PARTIAL`` pays interest, insurance and fees while the principal stays
    untouched. ``TOTAL`` pays nothing and capitalizes the interest.
    """

    NONE = "None"
    PARTIAL = "Partial"
    TOTAL = "Total"


@dataclass(frozen=True)
class CalculationInput:
    """Validated input of a single calculation.

    The principal is the full loan amount *before* the subsidy; the
    calculator subtracts ``bonus_amount`` itself when ``bonus_applied`` is
    set. Callers are expected to zero ``bonus_amount`` when the bonus does
    not apply.
    """

    principal: Decimal
    currency: Currency
    rate_type: RateType
    term_months: int
    start_date: date
    annual_effective_rate: Optional[Decimal] = None
    annual_nominal_rate: Optional[Decimal] = None
    compounding_per_year: Optional[int] = None
    grace_type: GraceType = GraceType.NONE
    grace_months: int = 0
    bonus_applied: bool = False
    bonus_amount: Decimal = Decimal("0")
    life_insurance_rate_monthly: Decimal = Decimal("0")  # fraction of the outstanding balance
    risk_insurance_rate_annual: Decimal = Decimal("0")  # fraction of the original principal
    fees_monthly: Decimal = Decimal("0")

    @property
    def adjusted_principal(self) -> Decimal:
        """Financed amount once the subsidy has been deducted."""
        if self.bonus_applied:
            return self.principal - self.bonus_amount
        return self.principal


@dataclass(frozen=True)
class ScheduleEntry:
    """An entry in the amortization schedule.

    ``installment`` is the total amount due for the period (principal,
    interest, both insurances and fees). During a total grace period the
    installment is zero and ``interest`` is capitalized into
    ``closing_balance``.
    """

    period: int
    due_date: date
    opening_balance: Decimal
    interest: Decimal
    principal: Decimal
    life_insurance: Decimal
    risk_insurance: Decimal
    fees: Decimal
    installment: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class IndicatorSummary:
    """Aggregate indicators derived from a schedule.

    ``monthly_rate`` is the TEM, ``tcea`` and ``irr`` are annualized rates and
    ``npv`` is discounted at the TEM, net of the financed principal.
    """

    monthly_rate: Decimal
    monthly_payment: Decimal
    tcea: Decimal
    npv: Decimal
    irr: Decimal
    total_interest: Decimal
    total_cost: Decimal

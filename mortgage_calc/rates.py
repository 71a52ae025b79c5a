"""Rate conversion for the mortgage calculator.

Every downstream calculation runs on a single monthly effective rate (TEM).
This module turns either supported annual convention into that rate:

* an annual effective rate (TEA): ``TEM = (1 + TEA)^(1/12) - 1``
* an annual nominal rate (TNA) compounded ``m`` times a year: first
  ``TEA = (1 + TNA/m)^m - 1``, then the conversion above.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, getcontext
from typing import Optional, Union

from .data_models import RateType
from .exceptions import MissingRateInput

getcontext().prec = 28

ONE = Decimal("1")
MONTHS_PER_YEAR = 12


def monthly_from_annual_effective(annual_effective: Decimal) -> Decimal:
    """Return the monthly effective rate equivalent to ``annual_effective``."""
    return (ONE + annual_effective) ** (ONE / Decimal(MONTHS_PER_YEAR)) - ONE


def annual_effective_from_nominal(annual_nominal: Decimal, compounding_per_year: int) -> Decimal:
    """Return the annual effective rate of a nominal rate compounded ``m`` times a year."""
    m = int(compounding_per_year)
    return (ONE + annual_nominal / Decimal(m)) ** m - ONE


@dataclass(frozen=True)
class EffectiveAnnualRate:
    """An annual effective rate (TEA), e.g. ``Decimal("0.085")``."""

    rate: Decimal

    def monthly_rate(self) -> Decimal:
        return monthly_from_annual_effective(self.rate)


@dataclass(frozen=True)
class NominalAnnualRate:
    """An annual nominal rate (TNA) together with its compounding frequency."""

    rate: Decimal
    compounding_per_year: int

    def annual_effective(self) -> Decimal:
        return annual_effective_from_nominal(self.rate, self.compounding_per_year)

    def monthly_rate(self) -> Decimal:
        return monthly_from_annual_effective(self.annual_effective())


RateSpec = Union[EffectiveAnnualRate, NominalAnnualRate]


def rate_spec(
    rate_type: RateType,
    annual_effective: Optional[Decimal] = None,
    annual_nominal: Optional[Decimal] = None,
    compounding_per_year: Optional[int] = None,
) -> RateSpec:
    """Build the rate variant selected by ``rate_type``.

    Only the values belonging to the selected convention are looked at; the
    others are ignored.

    Raises
    ------
    MissingRateInput
        If the selected convention lacks one of its required values.
    """
    rate_type = RateType(rate_type)
    if rate_type == RateType.ANNUAL_EFFECTIVE:
        if annual_effective is None:
            raise MissingRateInput(rate_type.value, ["annual_effective_rate"])
        return EffectiveAnnualRate(Decimal(annual_effective))

    missing = []
    if annual_nominal is None:
        missing.append("annual_nominal_rate")
    if compounding_per_year is None:
        missing.append("compounding_per_year")
    if missing:
        raise MissingRateInput(rate_type.value, missing)
    return NominalAnnualRate(Decimal(annual_nominal), int(compounding_per_year))


def convert(
    rate_type: RateType,
    annual_effective: Optional[Decimal] = None,
    annual_nominal: Optional[Decimal] = None,
    compounding_per_year: Optional[int] = None,
) -> Decimal:
    """Return the monthly effective rate (TEM) for the given annual rate."""
    return rate_spec(rate_type, annual_effective, annual_nominal, compounding_per_year).monthly_rate()

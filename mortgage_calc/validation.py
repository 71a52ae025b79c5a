"""Validation of simulation requests.

Both the command-line interface and the web API describe a simulation as a
mapping with the camelCase field names of the HTTP API. ``build_input``
checks every field against the request rules, normalizes the bonus amount
and returns a ``CalculationInput`` ready for the engine. All rule failures
are reported together in a single ``ValidationError``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type

from .data_models import CalculationInput, Currency, GraceType, RateType
from .exceptions import ValidationError
from .utils import decimal_from_str, parse_date

MIN_RATE = Decimal("0.0001")
MAX_RATE = Decimal("1")
MAX_TERM_MONTHS = 600
MAX_GRACE_MONTHS = 120
MAX_COMPOUNDING_PER_YEAR = 365
MAX_LIFE_INSURANCE_RATE = Decimal("0.01")
MAX_RISK_INSURANCE_RATE = Decimal("0.1")
MAX_FEES_MONTHLY = Decimal("10000")
MIN_PRINCIPAL = Decimal("1")
# Schedule totals stay below the float range when stored or sent as JSON.
MAX_PRINCIPAL = Decimal("1e300")
# Integer fields hold at most a few digits; larger exponents are rejected
# before ``int()`` expands them.
MAX_INTEGER_EXPONENT = 6

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _RequestReader:
    """Reads typed fields from a request mapping, recording errors per field."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self.data = data
        self.errors: Dict[str, str] = {}

    def present(self, field: str) -> bool:
        return not _is_blank(self.data.get(field))

    def fail(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def decimal(self, field: str, default: Optional[Decimal] = None) -> Optional[Decimal]:
        if not self.present(field):
            return default
        try:
            return decimal_from_str(self.data[field])
        except ValueError:
            self.fail(field, f"{field} must be a number")
            return None

    def integer(self, field: str, default: Optional[int] = None) -> Optional[int]:
        value = self.decimal(field)
        if value is None:
            return default if field not in self.errors else None
        if value.adjusted() > MAX_INTEGER_EXPONENT:
            self.fail(field, f"{field} is out of range")
            return None
        if value != value.to_integral_value():
            self.fail(field, f"{field} must be a whole number")
            return None
        return int(value)

    def boolean(self, field: str) -> bool:
        value = self.data.get(field)
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text not in _FALSE_STRINGS:
            self.fail(field, f"{field} must be true or false")
        return False

    def choice(self, field: str, enum_cls: Type[Enum], default: Optional[Enum] = None):
        if isinstance(self.data.get(field), enum_cls):
            return self.data[field]
        if not self.present(field):
            if default is None:
                self.fail(field, f"{field} is required")
            return default
        raw = str(self.data[field]).strip().lower()
        for member in enum_cls:
            if raw in (member.value.lower(), member.name.lower()):
                return member
        allowed = ", ".join(m.value for m in enum_cls)
        self.fail(field, f"{field} must be one of: {allowed}")
        return None

    def date(self, field: str) -> Optional[date]:
        value = self.data.get(field)
        if isinstance(value, date):
            return value
        if _is_blank(value):
            self.fail(field, f"{field} is required")
            return None
        try:
            return parse_date(str(value))
        except ValueError:
            self.fail(field, f"{field} must be a date in YYYY-MM-DD format")
            return None

    def check_range(self, field: str, value, low, high) -> None:
        if value is not None and not (low <= value <= high):
            self.fail(field, f"{field} must be between {low} and {high}")


def build_input(data: Mapping[str, Any]) -> CalculationInput:
    """Validate a simulation request and convert it into a ``CalculationInput``.

    When ``applyBonus`` is false the bonus amount is forced to zero, whatever
    the request carries.

    Raises
    ------
    ValidationError
        If any rule fails. ``errors`` maps field names to messages.
    """
    reader = _RequestReader(data)

    principal = reader.decimal("principal")
    if principal is None and "principal" not in reader.errors:
        reader.fail("principal", "principal is required")
    reader.check_range("principal", principal, MIN_PRINCIPAL, MAX_PRINCIPAL)

    currency = reader.choice("currency", Currency, Currency.PEN)
    rate_type = reader.choice("rateType", RateType)

    tea = reader.decimal("tea")
    tna = reader.decimal("tna")
    compounding = reader.integer("capitalizationPerYear")
    if rate_type == RateType.ANNUAL_EFFECTIVE:
        if tea is None and "tea" not in reader.errors:
            reader.fail("tea", "tea is required when rateType is TEA")
        reader.check_range("tea", tea, MIN_RATE, MAX_RATE)
        if reader.present("tna"):
            reader.fail("tna", "tna must be empty when rateType is TEA")
    elif rate_type == RateType.ANNUAL_NOMINAL:
        if tna is None and "tna" not in reader.errors:
            reader.fail("tna", "tna is required when rateType is TNA")
        reader.check_range("tna", tna, MIN_RATE, MAX_RATE)
        if reader.present("tea"):
            reader.fail("tea", "tea must be empty when rateType is TNA")
        if compounding is None and "capitalizationPerYear" not in reader.errors:
            reader.fail("capitalizationPerYear", "capitalizationPerYear is required when rateType is TNA")
        reader.check_range("capitalizationPerYear", compounding, 1, MAX_COMPOUNDING_PER_YEAR)

    term_months = reader.integer("termMonths")
    if term_months is None and "termMonths" not in reader.errors:
        reader.fail("termMonths", "termMonths is required")
    reader.check_range("termMonths", term_months, 1, MAX_TERM_MONTHS)

    grace_type = reader.choice("graceType", GraceType, GraceType.NONE)
    grace_months = reader.integer("graceMonths", 0)
    reader.check_range("graceMonths", grace_months, 0, MAX_GRACE_MONTHS)
    if grace_months is not None and term_months is not None and grace_months >= term_months:
        reader.fail("graceMonths", "graceMonths must be less than termMonths")

    start_date = reader.date("startDate")

    apply_bonus = reader.boolean("applyBonus")
    bonus_amount = reader.decimal("bonusAmount")
    if apply_bonus:
        if bonus_amount is None and "bonusAmount" not in reader.errors:
            reader.fail("bonusAmount", "bonusAmount is required when applyBonus is set")
        elif bonus_amount is not None and bonus_amount <= 0:
            reader.fail("bonusAmount", "bonusAmount must be greater than zero")
        elif bonus_amount is not None and principal is not None and bonus_amount >= principal:
            reader.fail("bonusAmount", "bonusAmount must be less than principal")
    else:
        bonus_amount = Decimal("0")

    life_rate = reader.decimal("lifeInsuranceRateMonthly", Decimal("0"))
    reader.check_range("lifeInsuranceRateMonthly", life_rate, Decimal("0"), MAX_LIFE_INSURANCE_RATE)
    risk_rate = reader.decimal("riskInsuranceRateAnnual", Decimal("0"))
    reader.check_range("riskInsuranceRateAnnual", risk_rate, Decimal("0"), MAX_RISK_INSURANCE_RATE)
    fees = reader.decimal("feesMonthly", Decimal("0"))
    reader.check_range("feesMonthly", fees, Decimal("0"), MAX_FEES_MONTHLY)

    if reader.errors:
        raise ValidationError(reader.errors)

    is_nominal = rate_type == RateType.ANNUAL_NOMINAL
    return CalculationInput(
        principal=principal,
        currency=currency,
        rate_type=rate_type,
        term_months=term_months,
        start_date=start_date,
        annual_effective_rate=None if is_nominal else tea,
        annual_nominal_rate=tna if is_nominal else None,
        compounding_per_year=compounding if is_nominal else None,
        grace_type=grace_type,
        grace_months=grace_months,
        bonus_applied=apply_bonus,
        bonus_amount=bonus_amount or Decimal("0"),
        life_insurance_rate_monthly=life_rate,
        risk_insurance_rate_annual=risk_rate,
        fees_monthly=fees,
    )

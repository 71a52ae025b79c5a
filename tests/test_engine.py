"""End-to-end tests of ``calculate``: subsidy, rate conversion, schedule and indicators."""

import unittest
from dataclasses import replace
from datetime import date
from decimal import Decimal

from mortgage_calc.data_models import CalculationInput, Currency, GraceType, RateType
from mortgage_calc.engine import calculate
from mortgage_calc.exceptions import MissingRateInput

ZERO = Decimal("0")

BASE_INPUT = CalculationInput(
    principal=Decimal("100000"),
    currency=Currency.PEN,
    rate_type=RateType.ANNUAL_EFFECTIVE,
    annual_effective_rate=Decimal("0.085"),
    term_months=12,
    start_date=date(2025, 3, 1),
)


class TestCalculate(unittest.TestCase):

    def test_reference_scenario(self):
        summary, schedule = calculate(BASE_INPUT)
        self.assertEqual(len(schedule), 12)
        self.assertAlmostEqual(float(summary.monthly_rate), 1.085 ** (1 / 12) - 1, places=12)
        self.assertEqual(schedule[-1].closing_balance, ZERO)
        self.assertEqual(schedule[0].due_date, date(2025, 3, 1))
        self.assertEqual(schedule[-1].due_date, date(2026, 2, 1))
        self.assertAlmostEqual(float(summary.irr), 0.085, places=5)
        self.assertAlmostEqual(float(summary.npv), 0.0, places=6)
        self.assertAlmostEqual(
            float(summary.total_cost), float(Decimal("100000") + summary.total_interest), places=8
        )

    def test_bonus_reduces_financed_principal_but_not_risk_insurance(self):
        config = replace(
            BASE_INPUT,
            bonus_applied=True,
            bonus_amount=Decimal("20000"),
            risk_insurance_rate_annual=Decimal("0.0024"),
        )
        summary, schedule = calculate(config)
        self.assertEqual(schedule[0].opening_balance, Decimal("80000"))
        self.assertEqual(schedule[0].risk_insurance, Decimal("20"))
        principal_paid = sum((e.principal for e in schedule), ZERO)
        self.assertAlmostEqual(float(principal_paid), 80000.0, places=8)
        self.assertGreater(summary.total_cost, Decimal("80000"))

    def test_bonus_ignored_when_not_applied(self):
        config = replace(BASE_INPUT, bonus_applied=False, bonus_amount=Decimal("20000"))
        _, schedule = calculate(config)
        self.assertEqual(schedule[0].opening_balance, Decimal("100000"))

    def test_nominal_rate_input(self):
        config = replace(
            BASE_INPUT,
            rate_type=RateType.ANNUAL_NOMINAL,
            annual_effective_rate=None,
            annual_nominal_rate=Decimal("0.12"),
            compounding_per_year=12,
        )
        summary, schedule = calculate(config)
        self.assertAlmostEqual(float(summary.monthly_rate), 0.01, places=12)
        self.assertEqual(schedule[-1].closing_balance, ZERO)

    def test_missing_rate_input_is_fatal(self):
        config = replace(BASE_INPUT, rate_type=RateType.ANNUAL_NOMINAL, annual_nominal_rate=Decimal("0.12"))
        with self.assertRaises(MissingRateInput):
            calculate(config)

    def test_total_grace_then_amortization(self):
        config = replace(BASE_INPUT, grace_type=GraceType.TOTAL, grace_months=3)
        summary, schedule = calculate(config)
        tem = summary.monthly_rate
        self.assertEqual(len(schedule), 12)
        self.assertAlmostEqual(
            float(schedule[3].opening_balance), float(Decimal("100000") * (1 + tem) ** 3), places=8
        )
        # Only the nine amortizing installments are averaged
        amortizing = schedule[3:]
        mean = sum((e.installment for e in amortizing), ZERO) / 9
        self.assertEqual(summary.monthly_payment, mean)

    def test_partial_grace_with_charges(self):
        config = replace(
            BASE_INPUT,
            grace_type=GraceType.PARTIAL,
            grace_months=3,
            life_insurance_rate_monthly=Decimal("0.0005"),
            risk_insurance_rate_annual=Decimal("0.0024"),
            fees_monthly=Decimal("10"),
        )
        summary, schedule = calculate(config)
        for entry in schedule[:3]:
            self.assertEqual(entry.principal, ZERO)
            self.assertEqual(entry.closing_balance, Decimal("100000"))
            self.assertEqual(
                entry.installment, entry.interest + entry.life_insurance + entry.risk_insurance + entry.fees
            )
        self.assertGreater(summary.tcea, Decimal("0.085"))
        self.assertEqual(summary.tcea, summary.irr)

    def test_calls_are_independent(self):
        first = calculate(BASE_INPUT)
        calculate(replace(BASE_INPUT, principal=Decimal("5"), term_months=2))
        self.assertEqual(calculate(BASE_INPUT), first)


if __name__ == "__main__":
    unittest.main()

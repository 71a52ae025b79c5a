"""Unit tests for the TEA/TNA to TEM conversion."""

import unittest
from decimal import Decimal

from mortgage_calc.data_models import RateType
from mortgage_calc.exceptions import MissingRateInput
from mortgage_calc.rates import (
    EffectiveAnnualRate,
    NominalAnnualRate,
    annual_effective_from_nominal,
    convert,
    rate_spec,
)

DECIMAL_PLACES_FOR_ASSERTIONS = 12


class TestConvert(unittest.TestCase):

    def test_annual_effective_to_monthly(self):
        tem = convert(RateType.ANNUAL_EFFECTIVE, annual_effective=Decimal("0.085"))
        self.assertAlmostEqual(float(tem), 1.085 ** (1 / 12) - 1, places=DECIMAL_PLACES_FOR_ASSERTIONS)
        self.assertAlmostEqual(float(tem), 0.006818, places=4)

    def test_monthly_rate_compounds_back_to_annual(self):
        tem = convert(RateType.ANNUAL_EFFECTIVE, annual_effective=Decimal("0.12"))
        self.assertAlmostEqual(float((1 + tem) ** 12 - 1), 0.12, places=DECIMAL_PLACES_FOR_ASSERTIONS)

    def test_nominal_goes_through_equivalent_effective_rate(self):
        tna = Decimal("0.10")
        tea = annual_effective_from_nominal(tna, 12)
        self.assertAlmostEqual(float(tea), (1 + 0.10 / 12) ** 12 - 1, places=DECIMAL_PLACES_FOR_ASSERTIONS)

        tem = convert(RateType.ANNUAL_NOMINAL, annual_nominal=tna, compounding_per_year=12)
        # Monthly compounding of a nominal rate gives exactly TNA / 12 a month
        self.assertAlmostEqual(float(tem), 0.10 / 12, places=DECIMAL_PLACES_FOR_ASSERTIONS)

    def test_nominal_daily_compounding(self):
        tem = convert(RateType.ANNUAL_NOMINAL, annual_nominal=Decimal("0.09"), compounding_per_year=360)
        expected = ((1 + 0.09 / 360) ** 360) ** (1 / 12) - 1
        self.assertAlmostEqual(float(tem), expected, places=DECIMAL_PLACES_FOR_ASSERTIONS)

    def test_string_rate_type_is_accepted(self):
        self.assertEqual(
            convert("TEA", annual_effective=Decimal("0.085")),
            convert(RateType.ANNUAL_EFFECTIVE, annual_effective=Decimal("0.085")),
        )

    def test_values_of_the_other_convention_are_ignored(self):
        tem = convert(
            RateType.ANNUAL_EFFECTIVE,
            annual_effective=Decimal("0.085"),
            annual_nominal=Decimal("0.5"),
            compounding_per_year=4,
        )
        self.assertEqual(tem, convert(RateType.ANNUAL_EFFECTIVE, annual_effective=Decimal("0.085")))


class TestMissingRateInput(unittest.TestCase):

    def test_effective_without_value(self):
        with self.assertRaises(MissingRateInput) as ctx:
            convert(RateType.ANNUAL_EFFECTIVE, annual_nominal=Decimal("0.08"), compounding_per_year=12)
        self.assertEqual(ctx.exception.details["missing"], ["annual_effective_rate"])

    def test_nominal_without_compounding(self):
        with self.assertRaises(MissingRateInput) as ctx:
            convert(RateType.ANNUAL_NOMINAL, annual_nominal=Decimal("0.08"))
        self.assertEqual(ctx.exception.details["missing"], ["compounding_per_year"])

    def test_nominal_without_anything(self):
        with self.assertRaises(MissingRateInput) as ctx:
            convert(RateType.ANNUAL_NOMINAL, annual_effective=Decimal("0.08"))
        self.assertEqual(
            ctx.exception.details["missing"], ["annual_nominal_rate", "compounding_per_year"]
        )

    def test_is_a_value_error(self):
        with self.assertRaises(ValueError):
            convert(RateType.ANNUAL_EFFECTIVE)


class TestRateSpec(unittest.TestCase):

    def test_builds_tagged_variants(self):
        self.assertEqual(
            rate_spec(RateType.ANNUAL_EFFECTIVE, annual_effective=Decimal("0.07")),
            EffectiveAnnualRate(Decimal("0.07")),
        )
        self.assertEqual(
            rate_spec(RateType.ANNUAL_NOMINAL, annual_nominal=Decimal("0.07"), compounding_per_year=4),
            NominalAnnualRate(Decimal("0.07"), 4),
        )

    def test_nominal_variant_exposes_effective_rate(self):
        spec = NominalAnnualRate(Decimal("0.08"), 2)
        self.assertEqual(spec.annual_effective(), Decimal("0.0816"))


if __name__ == "__main__":
    unittest.main()

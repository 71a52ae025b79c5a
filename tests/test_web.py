"""Tests for the simulation store and the JSON web API."""

import os
import tempfile
import unittest
from datetime import date
from decimal import Decimal

from mortgage_calc.data_models import CalculationInput, Currency, RateType
from mortgage_calc.engine import calculate
from mortgage_calc.exceptions import SimulationNotFound
from mortgage_calc_web.app import create_app
from mortgage_calc_web.simulation_store import SimulationStore

REQUEST = {
    "clientId": "client-1",
    "bankId": 3,
    "principal": 180000,
    "currency": "PEN",
    "rateType": "TEA",
    "tea": 0.1,
    "termMonths": 24,
    "graceType": "Total",
    "graceMonths": 2,
    "startDate": "2025-05-01",
    "applyBonus": True,
    "bonusAmount": 30000,
    "lifeInsuranceRateMonthly": 0.0004,
    "riskInsuranceRateAnnual": 0.003,
    "feesMonthly": 5,
}


class TestSimulationStore(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = SimulationStore("sqlite:///" + os.path.join(self.tmp.name, "store.sqlite3"))
        self.config = CalculationInput(
            principal=Decimal("60000"),
            currency=Currency.USD,
            rate_type=RateType.ANNUAL_EFFECTIVE,
            annual_effective_rate=Decimal("0.08"),
            term_months=6,
            start_date=date(2025, 1, 1),
        )
        self.summary, self.schedule = calculate(self.config)

    def tearDown(self):
        self.store._engine.dispose()
        self.tmp.cleanup()

    def test_round_trip_keeps_period_order(self):
        stored = self.store.add_simulation(self.config, self.summary, self.schedule, client_id="c1")
        loaded = self.store.get_simulation(stored["id"])
        periods = [item["period"] for item in loaded["amortizationSchedule"]]
        self.assertEqual(periods, [1, 2, 3, 4, 5, 6])
        self.assertEqual(loaded["clientId"], "c1")
        self.assertEqual(loaded["input"]["currency"], "USD")
        self.assertAlmostEqual(loaded["summary"]["tem"], float(self.summary.monthly_rate))
        self.assertEqual(loaded["amortizationSchedule"][-1]["closingBalance"], 0.0)

    def test_list_filters_and_paginates(self):
        for _ in range(3):
            self.store.add_simulation(self.config, self.summary, self.schedule, client_id="a")
        self.store.add_simulation(self.config, self.summary, self.schedule, client_id="b")

        data, pagination = self.store.list_simulations(client_id="a", page=1, page_size=2)
        self.assertEqual(len(data), 2)
        self.assertEqual(pagination, {"page": 1, "pageSize": 2, "total": 3, "totalPages": 2})

        data, pagination = self.store.list_simulations(page=2, page_size=3)
        self.assertEqual(len(data), 1)
        self.assertEqual(pagination["total"], 4)

    def test_delete(self):
        stored = self.store.add_simulation(self.config, self.summary, self.schedule)
        self.store.delete_simulation(stored["id"])
        with self.assertRaises(SimulationNotFound):
            self.store.get_simulation(stored["id"])
        with self.assertRaises(SimulationNotFound):
            self.store.delete_simulation(stored["id"])


class TestSimulationApi(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.app = create_app(
            {"TESTING": True, "DATABASE_URL": "sqlite:///" + os.path.join(self.tmp.name, "api.sqlite3")}
        )
        self.client = self.app.test_client()

    def tearDown(self):
        self.app.extensions["simulation_store"]._engine.dispose()
        self.tmp.cleanup()

    def test_create_and_fetch(self):
        response = self.client.post("/api/v1/simulations", json=REQUEST)
        self.assertEqual(response.status_code, 201, response.get_json())
        created = response.get_json()
        self.assertEqual(created["clientId"], "client-1")
        self.assertEqual(created["bankId"], 3)
        schedule = created["amortizationSchedule"]
        self.assertEqual(len(schedule), 24)
        self.assertEqual(schedule[0]["openingBalance"], 150000.0)
        self.assertEqual(schedule[0]["installment"], 0.0)
        self.assertEqual(schedule[-1]["closingBalance"], 0.0)

        fetched = self.client.get(f"/api/v1/simulations/{created['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.get_json()["summary"], created["summary"])

    def test_validation_failure(self):
        response = self.client.post("/api/v1/simulations", json={**REQUEST, "termMonths": 0})
        self.assertEqual(response.status_code, 400)
        self.assertIn("termMonths", response.get_json()["errors"])

    def test_principal_beyond_float_range_is_rejected(self):
        response = self.client.post("/api/v1/simulations/preview", json={**REQUEST, "principal": "1e400"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("principal", response.get_json()["errors"])

    def test_bank_id_error_reported_with_other_errors(self):
        response = self.client.post(
            "/api/v1/simulations", json={**REQUEST, "bankId": "third", "termMonths": 0}
        )
        self.assertEqual(response.status_code, 400)
        errors = response.get_json()["errors"]
        self.assertIn("bankId", errors)
        self.assertIn("termMonths", errors)

    def test_non_object_body(self):
        response = self.client.post("/api/v1/simulations", json=[1, 2])
        self.assertEqual(response.status_code, 400)

    def test_preview_does_not_persist(self):
        response = self.client.post("/api/v1/simulations/preview", json=REQUEST)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()["amortizationSchedule"]), 24)
        listing = self.client.get("/api/v1/simulations").get_json()
        self.assertEqual(listing["pagination"]["total"], 0)

    def test_listing(self):
        self.client.post("/api/v1/simulations", json=REQUEST)
        self.client.post("/api/v1/simulations", json={**REQUEST, "clientId": "client-2"})
        listing = self.client.get("/api/v1/simulations?clientId=client-2").get_json()
        self.assertEqual(listing["pagination"]["total"], 1)
        self.assertEqual(listing["data"][0]["clientId"], "client-2")
        bad = self.client.get("/api/v1/simulations?page=first")
        self.assertEqual(bad.status_code, 400)

    def test_delete_and_not_found(self):
        created = self.client.post("/api/v1/simulations", json=REQUEST).get_json()
        self.assertEqual(self.client.delete(f"/api/v1/simulations/{created['id']}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/v1/simulations/{created['id']}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/v1/simulations/{created['id']}").status_code, 404)


if __name__ == "__main__":
    unittest.main()

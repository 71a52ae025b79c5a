"""JSON web API for mortgage simulations.

Routes live under ``/api/v1/simulations``. A simulation request is validated,
calculated with ``mortgage_calc.engine.calculate`` and, unless previewed,
stored together with its amortization schedule.

Configuration comes from the environment:

* ``SIMULATION_DATABASE_URL`` - SQLAlchemy URL of the simulation store
* ``FLASK_SECRET_KEY`` - Flask secret key
* ``SIMULATION_PAGE_SIZE`` - default page size of the listing endpoint
"""

import logging
import os

from flask import Flask, jsonify, request

from mortgage_calc.engine import calculate
from mortgage_calc.exceptions import MortgageCalcError, SimulationNotFound, ValidationError
from mortgage_calc.serialization import input_to_dict, schedule_to_list, summary_to_dict
from mortgage_calc.validation import build_input
from mortgage_calc_web.simulation_store import create_store_from_env

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/simulations"


def _optional_str(value):
    if value is None or str(value).strip() == "":
        return None
    return str(value).strip()


def _query_int(name: str, default: int) -> int:
    value = request.args.get(name, "")
    try:
        return int(value) if value.strip() else default
    except ValueError:
        raise ValidationError({name: f"{name} must be a whole number"})


def _bank_id(payload, errors):
    value = payload.get("bankId")
    if value is None or value == "":
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit() and len(value.strip()) <= 18:
        return int(value)
    errors["bankId"] = "bankId must be a whole number"
    return None


def _build_request(payload):
    """Validate the calculator fields and ``bankId`` together."""
    errors = {}
    bank_id = _bank_id(payload, errors)
    try:
        config = build_input(payload)
    except ValidationError as exc:
        raise ValidationError({**exc.errors, **errors})
    if errors:
        raise ValidationError(errors)
    return config, bank_id


def _json_payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError({"body": "request body must be a JSON object"})
    return payload


def create_app(config=None) -> Flask:
    """Build the Flask application.

    ``config`` overrides the environment-derived settings (``DATABASE_URL``,
    ``PAGE_SIZE``, ``SECRET_KEY`` and any Flask setting).
    """
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    app.config["DATABASE_URL"] = os.environ.get("SIMULATION_DATABASE_URL")
    app.config["PAGE_SIZE"] = int(os.environ.get("SIMULATION_PAGE_SIZE", "10"))
    if config:
        app.config.update(config)

    store = create_store_from_env(app.config["DATABASE_URL"])
    app.extensions["simulation_store"] = store

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"message": exc.message, "errors": exc.errors}), 400

    @app.errorhandler(SimulationNotFound)
    def handle_not_found(exc: SimulationNotFound):
        return jsonify({"message": exc.message}), 404

    @app.errorhandler(MortgageCalcError)
    def handle_calculator_error(exc: MortgageCalcError):
        return jsonify({"message": exc.message, "errors": exc.details}), 400

    @app.post(API_PREFIX)
    def create_simulation():
        payload = _json_payload()
        config, bank_id = _build_request(payload)
        summary, schedule = calculate(config)
        simulation = store.add_simulation(
            config,
            summary,
            schedule,
            client_id=_optional_str(payload.get("clientId")),
            property_id=_optional_str(payload.get("propertyId")),
            bank_id=bank_id,
        )
        logger.info("Created simulation %s", simulation["id"])
        return jsonify(simulation), 201

    @app.post(f"{API_PREFIX}/preview")
    def preview_simulation():
        config = build_input(_json_payload())
        summary, schedule = calculate(config)
        return jsonify(
            {
                "input": input_to_dict(config),
                "summary": summary_to_dict(summary),
                "amortizationSchedule": schedule_to_list(schedule),
            }
        )

    @app.get(API_PREFIX)
    def list_simulations():
        page = _query_int("page", 1)
        page_size = _query_int("pageSize", app.config["PAGE_SIZE"])
        data, pagination = store.list_simulations(
            client_id=_optional_str(request.args.get("clientId")),
            page=page,
            page_size=page_size,
        )
        return jsonify({"data": data, "pagination": pagination})

    @app.get(f"{API_PREFIX}/<simulation_id>")
    def get_simulation(simulation_id: str):
        return jsonify(store.get_simulation(simulation_id))

    @app.delete(f"{API_PREFIX}/<simulation_id>")
    def delete_simulation(simulation_id: str):
        store.delete_simulation(simulation_id)
        return "", 204

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting mortgage simulation API...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)

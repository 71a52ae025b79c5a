"""Custom exceptions for the mortgage calculator."""

from __future__ import annotations

from typing import Dict, Iterable, Optional


class MortgageCalcError(Exception):
    """Base exception for all calculator errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class MissingRateInput(MortgageCalcError, ValueError):
    """Raised when the selected rate type lacks its companion value(s)."""

    def __init__(self, rate_type: str, missing: Iterable[str]):
        missing = list(missing)
        super().__init__(
            f"Rate type {rate_type} requires {', '.join(missing)}",
            {"rate_type": rate_type, "missing": missing},
        )


class ValidationError(MortgageCalcError, ValueError):
    """Raised when a simulation request breaks one or more rules.

    ``details`` maps each offending field to its error message.
    """

    def __init__(self, errors: Dict[str, str]):
        super().__init__("Invalid simulation request", dict(errors))

    @property
    def errors(self) -> Dict[str, str]:
        return self.details


class SimulationNotFound(MortgageCalcError):
    """Raised when a stored simulation cannot be found."""

    def __init__(self, simulation_id: str):
        super().__init__(f"Simulation '{simulation_id}' not found", {"id": simulation_id})

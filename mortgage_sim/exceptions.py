"""Exceptions raised by the mortgage simulator."""

from __future__ import annotations

from typing import Any, Dict, Optional


class MortgageSimError(ValueError):
    """Base exception for all simulator errors.

    Subclasses ``ValueError`` so callers that already catch bad numeric input
    (the CLI and the web form) handle simulator errors the same way.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class PreconditionError(MortgageSimError):
    """Raised when an input lies outside the simulator's domain.

    Examples are a negative price, a zero duration or a duration outside the
    supported bounds. It is raised before any computation starts.
    """


class ConfigurationError(MortgageSimError):
    """Raised when a policy override from the environment cannot be parsed."""

    def __init__(self, variable: str, value: str, reason: str):
        super().__init__(
            f"Invalid value for {variable}: {reason}",
            {"variable": variable, "value": value},
        )

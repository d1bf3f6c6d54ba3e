"""Mortgage simulator: rate tier, loan summary and amortization schedule."""

from .classifier import classify
from .composer import compose, simulate
from .data_models import (
    AmortizationRow,
    LoanSummary,
    ProjectInput,
    ProjectType,
    RateProfile,
    RateTier,
    Simulation,
    YearSummary,
)
from .engine import aggregate_by_year, generate_schedule
from .exceptions import ConfigurationError, PreconditionError

__all__ = [
    "AmortizationRow",
    "ConfigurationError",
    "LoanSummary",
    "PreconditionError",
    "ProjectInput",
    "ProjectType",
    "RateProfile",
    "RateTier",
    "Simulation",
    "YearSummary",
    "aggregate_by_year",
    "classify",
    "compose",
    "generate_schedule",
    "simulate",
]

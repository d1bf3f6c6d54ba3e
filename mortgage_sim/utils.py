"""Utility functions for the mortgage simulator.

This module provides helpers for parsing user input into ``Decimal`` values,
for rounding money at presentation boundaries, and the boundary validation
that turns out-of-domain projects into ``PreconditionError``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Optional

from .config import DEFAULT_POLICY, RatePolicy
from .data_models import ProjectInput, ProjectType
from .exceptions import PreconditionError

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

CENT = Decimal("0.01")
ZERO = Decimal("0")


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    Spaces and thousands separators are stripped and a single decimal comma
    is accepted ("1 250,50" and "1,250.50" both give 1250.50). It raises
    ``ValueError`` if conversion fails.
    """
    cleaned = str(value).strip().replace(" ", "").replace("\u00a0", "")
    if "," in cleaned and "." not in cleaned and cleaned.count(",") == 1 and len(cleaned.split(",")[1]) != 3:
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")
    try:
        result = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def parse_amount(value: str) -> Decimal:
    """Parse an amount with optional ``k``/``m`` suffix.

    Accepts plain numbers ("250000") and shorthand such as "250k" meaning
    250 000. Returns a ``Decimal``.
    """
    value = str(value).strip().lower()
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    return decimal_from_str(value) * factor


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary value to the cent, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"{quantize_money(value):.2f}"


def parse_project_type(value: Optional[str]) -> ProjectType:
    if not value:
        return ProjectType.PRIMARY_RESIDENCE
    try:
        return ProjectType(value.strip().lower().replace("-", "_"))
    except ValueError as exc:
        choices = ", ".join(t.value for t in ProjectType)
        raise ValueError(f"Unknown project type '{value}'; expected one of {choices}") from exc


def validate_project(project: ProjectInput, policy: RatePolicy = DEFAULT_POLICY) -> ProjectInput:
    """Reject a project that lies outside the simulator's domain.

    Amounts must be non-negative and the duration must be an integer number
    of years within the policy bounds. Nothing is clamped: the first
    violation raises ``PreconditionError``. A down payment larger than the
    project cost is valid (no loan needed). Returns the project unchanged so
    the call can be chained.
    """
    amounts = {
        "property_price": project.property_price,
        "notary_fees": project.notary_fees,
        "agency_fees": project.agency_fees,
        "works_amount": project.works_amount,
        "down_payment": project.down_payment,
    }
    for name, amount in amounts.items():
        if not isinstance(amount, Decimal) or not amount.is_finite():
            raise PreconditionError(f"{name} must be a finite Decimal", {name: amount})
        if amount < 0:
            raise PreconditionError(f"{name} must not be negative", {name: str(amount)})

    duration = project.duration_years
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise PreconditionError("duration_years must be an integer", {"duration_years": duration})
    if duration < policy.min_duration_years or duration > policy.max_duration_years:
        raise PreconditionError(
            f"duration_years must be between {policy.min_duration_years} "
            f"and {policy.max_duration_years}",
            {"duration_years": duration},
        )
    if not isinstance(project.project_type, ProjectType):
        raise PreconditionError(
            "project_type must be a ProjectType", {"project_type": project.project_type}
        )
    return project

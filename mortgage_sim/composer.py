"""Loan composition: from a project and a rate profile to a loan summary.

The composer derives the borrowed capital and the monthly payment, then
builds the amortization schedule once and takes every total from it. The
summary and the schedule of a simulation therefore always agree to the last
digit.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from .classifier import classify
from .config import DEFAULT_POLICY, RatePolicy
from .data_models import AmortizationRow, LoanSummary, ProjectInput, RateProfile, Simulation
from .engine import as_decimal, calculate_credit_payment, calculate_monthly_insurance, generate_schedule
from .exceptions import PreconditionError
from .utils import validate_project

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
DEFAULT_INSURANCE_RATE = DEFAULT_POLICY.insurance_rate


def calculate_bank_fees(borrowed_capital: Decimal, policy: RatePolicy = DEFAULT_POLICY) -> Decimal:
    """Return the file fee plus the guarantee fee on the borrowed capital."""
    if borrowed_capital <= 0:
        return ZERO
    return policy.origination_fee + borrowed_capital * policy.guarantee_rate / Decimal(100)


def debt_ratio(monthly_payment: Decimal, monthly_income: Decimal) -> Decimal:
    """Return the monthly payment as a percentage of monthly income.

    An income of zero or less gives 0 (the ratio is undefined).
    """
    if monthly_income <= 0:
        return ZERO
    return monthly_payment / monthly_income * Decimal(100)


def is_eligible(ratio: Decimal, max_debt_ratio: Optional[Decimal] = None) -> bool:
    limit = DEFAULT_POLICY.max_debt_ratio if max_debt_ratio is None else max_debt_ratio
    return ratio <= limit


def _checked_rate(name: str, value: Decimal) -> Decimal:
    rate = as_decimal(name, value)
    if rate < 0:
        raise PreconditionError(f"{name} must not be negative", {name: str(rate)})
    return rate


def _empty_summary(
    borrowed_capital: Decimal, duration_months: int, annual_rate: Decimal, insurance_rate: Decimal
) -> LoanSummary:
    return LoanSummary(
        borrowed_capital=borrowed_capital,
        duration_months=duration_months,
        annual_rate_percent=annual_rate,
        insurance_rate_percent=insurance_rate,
        credit_payment=ZERO,
        monthly_insurance=ZERO,
        monthly_payment=ZERO,
        total_interest=ZERO,
        total_insurance_cost=ZERO,
        total_paid=ZERO,
        effective_rate_estimate=ZERO,
        bank_fees=ZERO,
        total_cost=ZERO,
    )


def _compose_with_schedule(
    project: ProjectInput,
    profile: RateProfile,
    insurance_rate_percent: Decimal,
    policy: RatePolicy,
) -> Tuple[LoanSummary, List[AmortizationRow]]:
    validate_project(project, policy)
    annual_rate = _checked_rate("annual_rate_percent", profile.annual_rate_percent)
    insurance_rate = _checked_rate("insurance_rate_percent", insurance_rate_percent)
    capital = project.borrowed_capital
    months = project.duration_months

    if capital <= 0:
        logger.debug("No financing needed (borrowed capital %s)", capital)
        return _empty_summary(capital, months, annual_rate, insurance_rate), []

    credit_payment = calculate_credit_payment(capital, annual_rate, months)
    monthly_insurance = calculate_monthly_insurance(capital, insurance_rate)
    monthly_payment = credit_payment + monthly_insurance
    schedule = generate_schedule(capital, annual_rate, months, monthly_payment, insurance_rate)

    total_interest = sum((row.interest_paid for row in schedule), ZERO)
    total_insurance = sum((row.insurance_paid for row in schedule), ZERO)
    total_paid = sum((row.payment for row in schedule), ZERO)
    effective_rate = (total_interest + total_insurance) / capital / Decimal(project.duration_years) * Decimal(100)
    bank_fees = calculate_bank_fees(capital, policy)

    summary = LoanSummary(
        borrowed_capital=capital,
        duration_months=months,
        annual_rate_percent=annual_rate,
        insurance_rate_percent=insurance_rate,
        credit_payment=credit_payment,
        monthly_insurance=monthly_insurance,
        monthly_payment=monthly_payment,
        total_interest=total_interest,
        total_insurance_cost=total_insurance,
        total_paid=total_paid,
        effective_rate_estimate=effective_rate,
        bank_fees=bank_fees,
        total_cost=total_interest + total_insurance + bank_fees,
    )
    logger.debug(
        "Composed loan of %s over %s months at %s%%: monthly payment %s",
        capital,
        months,
        annual_rate,
        monthly_payment,
    )
    return summary, schedule


def compose(
    project: ProjectInput,
    profile: RateProfile,
    insurance_rate_percent: Decimal = DEFAULT_INSURANCE_RATE,
    policy: Optional[RatePolicy] = None,
) -> LoanSummary:
    """Compute the loan summary of a project at the profile's rate.

    A project needing no financing (borrowed capital of zero or less) gives
    a summary whose payment, total and fee fields are all zero; the negative
    capital is kept so the caller can show the surplus.

    Raises
    ------
    PreconditionError
        If the project is outside the supported domain, or a rate is
        negative or given as a float.
    """
    summary, _ = _compose_with_schedule(project, profile, insurance_rate_percent, policy or DEFAULT_POLICY)
    return summary


def simulate(
    project: ProjectInput,
    insurance_rate_percent: Optional[Decimal] = None,
    policy: Optional[RatePolicy] = None,
    annual_rate_percent: Optional[Decimal] = None,
) -> Simulation:
    """Run the whole pipeline: validate, classify, compose and schedule.

    ``annual_rate_percent`` replaces the classified rate when given (a broker
    quoting a negotiated rate); the tier is still reported.
    """
    policy = policy or DEFAULT_POLICY
    validate_project(project, policy)
    profile = classify(project, policy)
    if annual_rate_percent is not None:
        profile = RateProfile(
            tier=profile.tier, annual_rate_percent=_checked_rate("annual_rate_percent", annual_rate_percent)
        )
    insurance_rate = policy.insurance_rate if insurance_rate_percent is None else insurance_rate_percent
    summary, schedule = _compose_with_schedule(project, profile, insurance_rate, policy)
    return Simulation(project=project, profile=profile, summary=summary, schedule=schedule)

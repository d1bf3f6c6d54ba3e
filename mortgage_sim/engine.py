"""Core calculation engine for the mortgage simulator.

This module implements the amortization schedule of a fixed-rate loan with
flat borrower insurance (French convention: the insurance premium is a
percentage of the *initial* capital, billed in equal monthly amounts for the
whole duration). Results are returned as a list of ``AmortizationRow``
objects; ``aggregate_by_year`` projects them onto loan years.

All arithmetic is done on ``Decimal`` with 28 significant digits. Nothing
is rounded here: cents only appear in the formatter and the exporters.
"""

from __future__ import annotations

from decimal import Decimal, getcontext
from typing import Dict, Iterable, List, Union

from .data_models import AmortizationRow, YearSummary
from .exceptions import PreconditionError

getcontext().prec = 28  # increase precision for financial calculations

ZERO = Decimal("0")

Number = Union[Decimal, int, str]


def as_decimal(name: str, value: Number) -> Decimal:
    if isinstance(value, bool) or isinstance(value, float):
        raise PreconditionError(f"{name} must be a Decimal, int or numeric string", {name: value})
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except ArithmeticError as exc:
        raise PreconditionError(f"{name} is not a number", {name: value}) from exc
    if not result.is_finite():
        raise PreconditionError(f"{name} must be finite", {name: str(value)})
    return result


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / Decimal(100) / Decimal(12)


def calculate_credit_payment(principal: Decimal, annual_rate_percent: Decimal, term: int) -> Decimal:
    """Return the monthly credit payment of an amortizing loan, insurance excluded.

    The formula is:

        payment = P * i / (1 - (1 + i)^-n)

    where ``P`` is the principal, ``i`` the monthly interest rate and ``n``
    the number of payments. When the interest rate is zero, the payment
    simplifies to ``P / n``.
    """
    if term <= 0:
        raise PreconditionError("Term must be positive", {"term": term})
    rate_per_month = monthly_rate(annual_rate_percent)
    if rate_per_month == 0:
        return principal / Decimal(term)
    return principal * rate_per_month / (1 - (1 + rate_per_month) ** -term)


def calculate_monthly_insurance(principal: Decimal, insurance_rate_percent: Decimal) -> Decimal:
    """Return the flat monthly insurance premium on the initial capital."""
    if principal <= 0:
        return ZERO
    return principal * (insurance_rate_percent / Decimal(100)) / Decimal(12)


def generate_schedule(
    borrowed_capital: Number,
    annual_rate_percent: Number,
    duration_months: int,
    monthly_payment: Number,
    insurance_rate_percent: Number = Decimal("0.31"),
) -> List[AmortizationRow]:
    """Compute the month-by-month amortization schedule.

    Parameters
    ----------
    borrowed_capital: Decimal
        Amount financed. Zero yields an empty schedule (there is nothing to
        amortize).
    annual_rate_percent: Decimal
        Nominal annual rate in percent.
    duration_months: int
        Number of monthly periods, at least 1.
    monthly_payment: Decimal
        Total monthly payment, credit plus insurance.
    insurance_rate_percent: Decimal
        Annual borrower insurance rate in percent of the initial capital.

    Returns
    -------
    List[AmortizationRow]
        One row per month. The principal of the last month absorbs any
        residual balance, so the final closing balance is exactly zero and
        the principal column adds up to ``borrowed_capital``. If the payment
        clears the balance early, the remaining rows carry insurance only.

    Raises
    ------
    PreconditionError
        For a negative capital or rate, a duration below one month, or a
        payment whose credit part does not cover the first month's interest.
    """
    capital = as_decimal("borrowed_capital", borrowed_capital)
    annual_rate = as_decimal("annual_rate_percent", annual_rate_percent)
    payment = as_decimal("monthly_payment", monthly_payment)
    insurance_rate = as_decimal("insurance_rate_percent", insurance_rate_percent)

    if capital < 0:
        raise PreconditionError("Borrowed capital must not be negative", {"borrowed_capital": str(capital)})
    if isinstance(duration_months, bool) or not isinstance(duration_months, int) or duration_months < 1:
        raise PreconditionError("Duration must be at least one month", {"duration_months": duration_months})
    if annual_rate < 0:
        raise PreconditionError("Interest rate must not be negative", {"annual_rate_percent": str(annual_rate)})
    if insurance_rate < 0:
        raise PreconditionError(
            "Insurance rate must not be negative", {"insurance_rate_percent": str(insurance_rate)}
        )
    if capital == 0:
        return []

    rate_per_month = monthly_rate(annual_rate)
    monthly_insurance = calculate_monthly_insurance(capital, insurance_rate)
    credit_portion = payment - monthly_insurance
    if credit_portion - capital * rate_per_month <= 0:
        raise PreconditionError(
            "Monthly payment does not cover the first month's interest and insurance",
            {"monthly_payment": str(payment)},
        )

    schedule: List[AmortizationRow] = []
    balance = capital
    cumulative_paid = ZERO
    cumulative_interest = ZERO
    for month in range(1, duration_months + 1):
        opening = balance
        interest = opening * rate_per_month
        scheduled_principal = credit_portion - interest
        principal = min(scheduled_principal, opening)
        if month == duration_months:
            # Last period clears whatever drift is left.
            principal = opening
        balance = max(ZERO, opening - principal)

        if principal == scheduled_principal:
            paid = payment
        else:
            paid = principal + interest + monthly_insurance
        cumulative_paid += paid
        cumulative_interest += interest

        schedule.append(
            AmortizationRow(
                month=month,
                year=(month + 11) // 12,
                opening_balance=opening,
                payment=paid,
                principal_paid=principal,
                interest_paid=interest,
                insurance_paid=monthly_insurance,
                closing_balance=balance,
                cumulative_paid=cumulative_paid,
                cumulative_interest=cumulative_interest,
            )
        )
    return schedule


def aggregate_by_year(schedule: Iterable[AmortizationRow]) -> List[YearSummary]:
    """Group monthly rows by loan year.

    Amounts are summed and the closing balance is the one of the last month
    of each year. This is a projection of the monthly rows only; nothing is
    recomputed.
    """
    totals: Dict[int, Dict[str, Decimal]] = {}
    for row in schedule:
        year = totals.setdefault(
            row.year,
            {
                "payments": ZERO,
                "principal_paid": ZERO,
                "interest_paid": ZERO,
                "insurance_paid": ZERO,
                "closing_balance": ZERO,
            },
        )
        year["payments"] += row.payment
        year["principal_paid"] += row.principal_paid
        year["interest_paid"] += row.interest_paid
        year["insurance_paid"] += row.insurance_paid
        year["closing_balance"] = row.closing_balance
    return [YearSummary(year=year, **values) for year, values in sorted(totals.items())]

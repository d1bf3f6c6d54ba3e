"""Data models for the mortgage simulator.

This module defines the dataclasses exchanged between the simulator stages:
the project description entered by the borrower, the rate profile it
qualifies for, the loan summary and the rows of the amortization schedule.
All of them are frozen: a simulation never mutates its inputs and every
derived value is recomputed from scratch on demand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List


class ProjectType(str, Enum):
    """Kind of real-estate project being financed."""

    PRIMARY_RESIDENCE = "primary_residence"
    SECONDARY_RESIDENCE = "secondary_residence"
    RENTAL_INVESTMENT = "rental_investment"
    CONSTRUCTION = "construction"
    RENOVATION = "renovation"


class RateTier(str, Enum):
    """Qualitative risk tier driving the indicative interest rate."""

    PREMIUM = "premium"
    STANDARD = "standard"
    MODERATE_RISK = "moderate_risk"
    FIRST_TIME_BUYER = "first_time_buyer"


@dataclass(frozen=True)
class ProjectInput:
    """A borrower's project as entered in the simulator.

    Attributes
    ----------
    property_price: Decimal
        Price of the property.
    notary_fees: Decimal
        Notary fees ("frais de notaire").
    agency_fees: Decimal
        Real-estate agency fees.
    down_payment: Decimal
        Personal contribution ("apport"). It may exceed the project cost, in
        which case the borrowed capital is negative and no loan is needed.
    duration_years: int
        Loan duration in whole years.
    project_type: ProjectType
        What the loan finances.
    works_amount: Decimal
        Optional renovation works budget financed together with the purchase.
    """

    property_price: Decimal
    notary_fees: Decimal
    agency_fees: Decimal
    down_payment: Decimal
    duration_years: int
    project_type: ProjectType = ProjectType.PRIMARY_RESIDENCE
    works_amount: Decimal = Decimal("0")

    @property
    def total_project_cost(self) -> Decimal:
        return self.property_price + self.notary_fees + self.agency_fees + self.works_amount

    @property
    def borrowed_capital(self) -> Decimal:
        return self.total_project_cost - self.down_payment

    @property
    def duration_months(self) -> int:
        return self.duration_years * 12


@dataclass(frozen=True)
class RateProfile:
    tier: RateTier
    annual_rate_percent: Decimal


@dataclass(frozen=True)
class LoanSummary:
    """Headline figures of a simulated loan.

    ``total_interest``, ``total_insurance_cost`` and ``total_paid`` are sums
    over the amortization schedule, never re-derived from a closed formula.
    ``effective_rate_estimate`` is an informational all-in cost percentage,
    not a regulatory APR (TAEG).
    """

    borrowed_capital: Decimal
    duration_months: int
    annual_rate_percent: Decimal
    insurance_rate_percent: Decimal
    credit_payment: Decimal
    monthly_insurance: Decimal
    monthly_payment: Decimal
    total_interest: Decimal
    total_insurance_cost: Decimal
    total_paid: Decimal
    effective_rate_estimate: Decimal
    bank_fees: Decimal
    total_cost: Decimal

    @property
    def financing_needed(self) -> bool:
        return self.borrowed_capital > 0


@dataclass(frozen=True)
class AmortizationRow:
    """One month of the amortization schedule.

    ``payment`` is the cash paid during the month (credit plus insurance).
    It equals the regular monthly payment except on the row where the
    balance is cleared, and after an early payoff where only insurance is
    still billed.
    """

    month: int
    year: int
    opening_balance: Decimal
    payment: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    insurance_paid: Decimal
    closing_balance: Decimal
    cumulative_paid: Decimal
    cumulative_interest: Decimal


@dataclass(frozen=True)
class YearSummary:
    """Monthly rows of one loan year added together."""

    year: int
    payments: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    insurance_paid: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class Simulation:
    project: ProjectInput
    profile: RateProfile
    summary: LoanSummary
    schedule: List[AmortizationRow] = field(default_factory=list)

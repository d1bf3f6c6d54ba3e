"""Output helpers for the mortgage simulator.

This module renders profiles, summaries and amortization schedules in a
tabular text format for the terminal. Amounts are rounded to the cent here
and nowhere earlier.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from .data_models import AmortizationRow, LoanSummary, RateProfile, YearSummary
from .utils import format_money


def print_profile(profile: RateProfile) -> None:
    print(f"Rate tier          : {profile.tier.value}")
    print(f"Annual rate        : {profile.annual_rate_percent:.2f}%")


def print_summary(summary: LoanSummary, debt_ratio: Optional[Decimal] = None, eligible: Optional[bool] = None) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Borrowed capital   : {format_money(summary.borrowed_capital)}")
    if not summary.financing_needed:
        print("No financing needed: the down payment covers the whole project.")
        print("-" * 72)
        return
    print(f"Duration           : {summary.duration_months} months")
    print(f"Annual rate        : {summary.annual_rate_percent:.2f}%")
    print(f"Credit payment     : {format_money(summary.credit_payment)}")
    print(f"Insurance (month)  : {format_money(summary.monthly_insurance)} ({summary.insurance_rate_percent}%)")
    print(f"Monthly payment    : {format_money(summary.monthly_payment)}")
    print(f"Total interest     : {format_money(summary.total_interest)}")
    print(f"Total insurance    : {format_money(summary.total_insurance_cost)}")
    print(f"Bank fees          : {format_money(summary.bank_fees)}")
    print(f"Total cost         : {format_money(summary.total_cost)}")
    print(f"Total paid         : {format_money(summary.total_paid)}")
    # Not a regulatory TAEG: interest and insurance spread over the duration.
    print(f"Effective rate est.: {summary.effective_rate_estimate:.2f}%")
    if debt_ratio is not None:
        verdict = "eligible" if eligible else "above limit"
        print(f"Debt ratio         : {debt_ratio:.2f}% ({verdict})")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationRow]) -> None:
    """Print the monthly amortization schedule as a simple table."""
    headers = ["Month", "Year", "StartBal", "Payment", "Principal", "Interest", "Insurance", "EndBal"]
    print("\t".join(headers))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.month),
                    str(row.year),
                    format_money(row.opening_balance),
                    format_money(row.payment),
                    format_money(row.principal_paid),
                    format_money(row.interest_paid),
                    format_money(row.insurance_paid),
                    format_money(row.closing_balance),
                ]
            )
        )


def print_yearly(years: Iterable[YearSummary]) -> None:
    headers = ["Year", "Paid", "Principal", "Interest", "Insurance", "EndBal"]
    print("\t".join(headers))
    for year in years:
        print(
            "\t".join(
                [
                    str(year.year),
                    format_money(year.payments),
                    format_money(year.principal_paid),
                    format_money(year.interest_paid),
                    format_money(year.insurance_paid),
                    format_money(year.closing_balance),
                ]
            )
        )

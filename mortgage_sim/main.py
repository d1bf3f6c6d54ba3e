"""Command-line interface for the mortgage simulator.

This module uses the ``click`` library to implement a multi-command
interface. Users can run a full simulation of a property project, check
which rate tier a project qualifies for, or print the raw amortization
schedule of a given capital. Results can be printed to the terminal or
exported to CSV/JSON files.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional

import click

from .classifier import classify
from .composer import debt_ratio, is_eligible, simulate
from .config import create_policy_from_env
from .data_models import ProjectInput, ProjectType
from .engine import aggregate_by_year, calculate_credit_payment, calculate_monthly_insurance, generate_schedule
from .exceptions import MortgageSimError, PreconditionError
from .export import export_to_json, write_csv
from .formatter import print_profile, print_schedule, print_summary, print_yearly
from .utils import decimal_from_str, parse_amount, parse_project_type

MAX_PRINTED_ROWS = 120


def _amount(value: Optional[str], name: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint=name) from exc


def _rate(value: Optional[str], name: str) -> Optional[Decimal]:
    if value is None:
        return None
    value = value.strip().rstrip("%")
    try:
        return decimal_from_str(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint=name) from exc


def build_project_from_options(
    price: str,
    notary_fees: Optional[str],
    agency_fees: Optional[str],
    works: Optional[str],
    down_payment: Optional[str],
    duration: int,
    project_type: Optional[str],
) -> ProjectInput:
    """Turn raw option strings into a ``ProjectInput``.

    Used by the CLI and by the web form, which both receive text.
    """
    try:
        kind = parse_project_type(project_type)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--project-type") from exc
    return ProjectInput(
        property_price=_amount(price, "--price"),
        notary_fees=_amount(notary_fees, "--notary-fees"),
        agency_fees=_amount(agency_fees, "--agency-fees"),
        works_amount=_amount(works, "--works"),
        down_payment=_amount(down_payment, "--down-payment"),
        duration_years=duration,
        project_type=kind,
    )


def project_options(func: Callable) -> Callable:
    """Attach the options describing a property project to a command."""
    options = [
        click.option("--price", "-p", "price", required=True, help="Property price (e.g. 250000 or 250k)"),
        click.option("--notary-fees", "-n", "notary_fees", help="Notary fees"),
        click.option("--agency-fees", "-a", "agency_fees", help="Agency fees"),
        click.option("--works", "works", help="Renovation works budget"),
        click.option("--down-payment", "-d", "down_payment", help="Down payment (apport)"),
        click.option("--duration", "-y", "duration", required=True, type=int, help="Loan duration in years"),
        click.option(
            "--project-type",
            "project_type",
            type=click.Choice([t.value for t in ProjectType]),
            default=ProjectType.PRIMARY_RESIDENCE.value,
            show_default=True,
            help="Kind of project financed",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug information to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """A mortgage simulator: rate tier, monthly payment and amortization schedule."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = create_policy_from_env()
    except MortgageSimError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command(name="simulate")
@project_options
@click.option("--rate", "-r", "rate", help="Negotiated annual rate in percent (overrides the tier rate)")
@click.option("--insurance-rate", "insurance_rate", help="Borrower insurance rate in percent per year")
@click.option("--no-insurance", "no_insurance", is_flag=True, help="Simulate without borrower insurance")
@click.option("--monthly-income", "monthly_income", help="Net monthly income, to compute the debt ratio")
@click.option("--yearly", "yearly", is_flag=True, help="Print the schedule aggregated by year")
@click.option("--output", "output", type=str, help="Output file path (.csv or .json)")
@click.pass_obj
def simulate_cmd(
    policy,
    price: str,
    notary_fees: Optional[str],
    agency_fees: Optional[str],
    works: Optional[str],
    down_payment: Optional[str],
    duration: int,
    project_type: str,
    rate: Optional[str],
    insurance_rate: Optional[str],
    no_insurance: bool,
    monthly_income: Optional[str],
    yearly: bool,
    output: Optional[str],
) -> None:
    """Simulate a loan for a property project."""
    project = build_project_from_options(price, notary_fees, agency_fees, works, down_payment, duration, project_type)
    insurance = Decimal("0") if no_insurance else _rate(insurance_rate, "--insurance-rate")
    try:
        simulation = simulate(
            project,
            insurance_rate_percent=insurance,
            policy=policy,
            annual_rate_percent=_rate(rate, "--rate"),
        )
    except PreconditionError as exc:
        raise click.BadParameter(exc.message) from exc

    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, simulation)
        elif path.suffix.lower() == ".csv":
            write_csv(path, simulation.schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
        click.echo(f"Simulation exported to {path}")
        return

    ratio = eligible = None
    if monthly_income:
        ratio = debt_ratio(simulation.summary.monthly_payment, _amount(monthly_income, "--monthly-income"))
        eligible = is_eligible(ratio, policy.max_debt_ratio)
    print_profile(simulation.profile)
    print_summary(simulation.summary, ratio, eligible)
    if not simulation.schedule:
        return
    if yearly:
        print_yearly(aggregate_by_year(simulation.schedule))
    elif len(simulation.schedule) > MAX_PRINTED_ROWS:
        # Limit schedule length printed to avoid flooding the terminal
        click.echo(f"Schedule has {len(simulation.schedule)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(simulation.schedule[:MAX_PRINTED_ROWS])
    else:
        print_schedule(simulation.schedule)


@cli.command(name="classify")
@project_options
@click.pass_obj
def classify_cmd(
    policy,
    price: str,
    notary_fees: Optional[str],
    agency_fees: Optional[str],
    works: Optional[str],
    down_payment: Optional[str],
    duration: int,
    project_type: str,
) -> None:
    """Show the rate tier and indicative rate a project qualifies for."""
    project = build_project_from_options(price, notary_fees, agency_fees, works, down_payment, duration, project_type)
    print_profile(classify(project, policy))


@cli.command(name="schedule")
@click.option("--capital", "-c", "capital", required=True, help="Borrowed capital")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--months", "-m", "months", required=True, type=int, help="Duration in months")
@click.option("--payment", "payment", help="Monthly payment incl. insurance (computed when omitted)")
@click.option("--insurance-rate", "insurance_rate", help="Borrower insurance rate in percent per year")
@click.option("--yearly", "yearly", is_flag=True, help="Aggregate the schedule by year")
@click.option("--output", "output", type=str, help="Output CSV file path")
@click.pass_obj
def schedule_cmd(
    policy,
    capital: str,
    rate: str,
    months: int,
    payment: Optional[str],
    insurance_rate: Optional[str],
    yearly: bool,
    output: Optional[str],
) -> None:
    """Print the amortization schedule of a given capital."""
    capital_value = _amount(capital, "--capital")
    rate_value = _rate(rate, "--rate")
    insurance = _rate(insurance_rate, "--insurance-rate")
    if insurance is None:
        insurance = policy.insurance_rate
    try:
        if payment:
            payment_value = _amount(payment, "--payment")
        else:
            payment_value = calculate_credit_payment(capital_value, rate_value, months) + calculate_monthly_insurance(
                capital_value, insurance
            )
        rows = generate_schedule(capital_value, rate_value, months, payment_value, insurance)
    except PreconditionError as exc:
        raise click.BadParameter(exc.message) from exc

    if output:
        path = Path(output)
        if path.suffix.lower() != ".csv":
            raise click.BadParameter("Schedule export must use .csv extension", param_hint="--output")
        write_csv(path, rows)
        click.echo(f"Schedule exported to {path}")
    elif yearly:
        print_yearly(aggregate_by_year(rows))
    else:
        print_schedule(rows)


if __name__ == "__main__":
    cli()

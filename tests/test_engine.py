from __future__ import annotations

from decimal import Decimal

import pytest

from mortgage_sim.engine import (
    aggregate_by_year,
    calculate_credit_payment,
    calculate_monthly_insurance,
    generate_schedule,
)
from mortgage_sim.exceptions import PreconditionError
from mortgage_sim.utils import quantize_money

CAPITAL = Decimal("245000")
RATE = Decimal("3.45")
INSURANCE = Decimal("0.31")
MONTHS = 240
ZERO = Decimal("0")


def reference_payment() -> Decimal:
    return calculate_credit_payment(CAPITAL, RATE, MONTHS) + calculate_monthly_insurance(CAPITAL, INSURANCE)


@pytest.fixture()
def schedule():
    return generate_schedule(CAPITAL, RATE, MONTHS, reference_payment(), INSURANCE)


def test_credit_payment_matches_reference_value():
    payment = calculate_credit_payment(Decimal("100000"), Decimal("3"), 240)

    assert abs(payment - Decimal("554.60")) < Decimal("0.01")


def test_credit_payment_with_zero_rate_is_linear():
    assert calculate_credit_payment(Decimal("12000"), ZERO, 12) == Decimal("1000")


def test_credit_payment_rejects_non_positive_term():
    with pytest.raises(PreconditionError):
        calculate_credit_payment(Decimal("12000"), Decimal("3"), 0)


def test_monthly_insurance_is_flat_on_initial_capital():
    assert quantize_money(calculate_monthly_insurance(Decimal("100000"), INSURANCE)) == Decimal("25.83")
    assert calculate_monthly_insurance(ZERO, INSURANCE) == ZERO


def test_schedule_has_one_row_per_month(schedule):
    assert len(schedule) == MONTHS
    assert [row.month for row in schedule] == list(range(1, MONTHS + 1))
    assert schedule[0].year == 1
    assert schedule[11].year == 1
    assert schedule[12].year == 2
    assert schedule[-1].year == 20


def test_capital_is_conserved(schedule):
    total_principal = sum((row.principal_paid for row in schedule), ZERO)

    assert abs(total_principal - CAPITAL) <= Decimal("0.01")
    assert schedule[-1].closing_balance == ZERO


def test_balance_is_monotonic_and_chained(schedule):
    for row in schedule:
        assert row.closing_balance <= row.opening_balance
        assert row.closing_balance >= ZERO
    for current, following in zip(schedule, schedule[1:]):
        assert current.closing_balance == following.opening_balance
    assert schedule[0].opening_balance == CAPITAL


def test_running_totals(schedule):
    assert schedule[-1].cumulative_interest == sum((row.interest_paid for row in schedule), ZERO)
    assert schedule[-1].cumulative_paid == sum((row.payment for row in schedule), ZERO)
    assert schedule[0].cumulative_paid == schedule[0].payment


def test_insurance_is_constant(schedule):
    expected = calculate_monthly_insurance(CAPITAL, INSURANCE)

    assert {row.insurance_paid for row in schedule} == {expected}


def test_interest_decreases_over_time(schedule):
    assert schedule[0].interest_paid > schedule[-1].interest_paid
    assert quantize_money(schedule[0].interest_paid) == Decimal("704.38")


def test_zero_rate_pays_equal_principal():
    rows = generate_schedule(Decimal("12000"), ZERO, 12, Decimal("1000"), ZERO)

    assert len(rows) == 12
    assert all(row.principal_paid == Decimal("1000") for row in rows)
    assert all(row.interest_paid == ZERO for row in rows)
    assert rows[-1].closing_balance == ZERO


def test_zero_rate_with_insurance():
    rows = generate_schedule(Decimal("120000"), ZERO, 120, Decimal("1031"), INSURANCE)

    assert all(row.insurance_paid == Decimal("31") for row in rows)
    assert all(row.principal_paid == Decimal("1000") for row in rows)
    assert all(row.payment == Decimal("1031") for row in rows)


def test_zero_capital_gives_empty_schedule():
    assert generate_schedule(ZERO, RATE, MONTHS, ZERO, INSURANCE) == []


def test_rounded_payment_drift_is_absorbed_by_last_row():
    payment = quantize_money(reference_payment())
    rows = generate_schedule(CAPITAL, RATE, MONTHS, payment, INSURANCE)

    assert rows[-1].closing_balance == ZERO
    assert abs(sum((row.principal_paid for row in rows), ZERO) - CAPITAL) <= Decimal("0.01")
    assert abs(rows[-1].payment - payment) < Decimal("2")


def test_early_payoff_leaves_insurance_only_rows():
    rows = generate_schedule(Decimal("1200"), ZERO, 6, Decimal("300"), ZERO)

    assert len(rows) == 6
    assert [row.principal_paid for row in rows] == [Decimal("300")] * 4 + [ZERO, ZERO]
    assert rows[3].closing_balance == ZERO
    assert rows[4].payment == ZERO
    assert rows[-1].closing_balance == ZERO


def test_accepts_integers_and_strings():
    rows = generate_schedule(12000, "0", 12, "1000", 0)

    assert rows[0].principal_paid == Decimal("1000")


@pytest.mark.parametrize(
    "capital, rate, months, payment",
    [
        (Decimal("-1"), RATE, MONTHS, Decimal("1000")),
        (CAPITAL, RATE, 0, Decimal("1000")),
        (CAPITAL, RATE, -12, Decimal("1000")),
        (CAPITAL, Decimal("-0.5"), MONTHS, Decimal("1000")),
        # 704.38 of interest in the first month is not covered
        (CAPITAL, RATE, MONTHS, Decimal("700")),
        (CAPITAL, RATE, MONTHS, ZERO),
    ],
)
def test_preconditions(capital, rate, months, payment):
    with pytest.raises(PreconditionError):
        generate_schedule(capital, rate, months, payment, INSURANCE)


def test_float_inputs_are_rejected():
    with pytest.raises(PreconditionError):
        generate_schedule(245000.0, RATE, MONTHS, Decimal("1500"), INSURANCE)


def test_negative_insurance_rate_is_rejected():
    with pytest.raises(PreconditionError):
        generate_schedule(CAPITAL, RATE, MONTHS, reference_payment(), Decimal("-0.1"))


def test_schedule_is_pure(schedule):
    again = generate_schedule(CAPITAL, RATE, MONTHS, reference_payment(), INSURANCE)

    assert again == schedule


def test_yearly_aggregation_is_projection(schedule):
    years = aggregate_by_year(schedule)

    assert len(years) == 20
    assert [y.year for y in years] == list(range(1, 21))
    assert years[0].principal_paid == sum((row.principal_paid for row in schedule[:12]), ZERO)
    assert years[0].interest_paid == sum((row.interest_paid for row in schedule[:12]), ZERO)
    assert years[0].closing_balance == schedule[11].closing_balance
    assert years[-1].closing_balance == ZERO
    assert quantize_money(sum((y.insurance_paid for y in years), ZERO)) == Decimal("15190.00")


def test_yearly_aggregation_of_partial_year():
    rows = generate_schedule(Decimal("1800"), ZERO, 18, Decimal("100"), ZERO)
    years = aggregate_by_year(rows)

    assert [y.year for y in years] == [1, 2]
    assert years[0].principal_paid == Decimal("1200")
    assert years[1].principal_paid == Decimal("600")
    assert years[1].payments == Decimal("600")


def test_yearly_aggregation_of_empty_schedule():
    assert aggregate_by_year([]) == []

"""Export helpers for simulations.

The CSV layout is the one customers download from the simulator page as
``echeancier.csv``: semicolon separated, French headers, amounts with two
decimals and one line per month. JSON exports carry the summary, the rate
profile and the schedule with amounts rounded to the cent.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .data_models import AmortizationRow, Simulation
from .engine import aggregate_by_year
from .utils import format_money, quantize_money

logger = logging.getLogger(__name__)

CSV_FILENAME = "echeancier.csv"
CSV_HEADER = ["Mois", "Année", "Mensualité", "Capital", "Intérêts", "Assurance", "Capital restant"]
CSV_DELIMITER = ";"


def schedule_to_csv(schedule: Iterable[AmortizationRow]) -> str:
    """Render the schedule as CSV text.

    Lines are separated by ``\\n`` and the text has no trailing newline.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=CSV_DELIMITER, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in schedule:
        writer.writerow(
            [
                row.month,
                row.year,
                format_money(row.payment),
                format_money(row.principal_paid),
                format_money(row.interest_paid),
                format_money(row.insurance_paid),
                format_money(row.closing_balance),
            ]
        )
    return buffer.getvalue().rstrip("\n")


def write_csv(path: Path, schedule: Iterable[AmortizationRow]) -> None:
    """Export the schedule to a CSV file (UTF-8)."""
    with path.open("w", newline="", encoding="utf-8") as f:
        f.write(schedule_to_csv(schedule))
    logger.info("Schedule exported to %s", path)


def _money(value) -> float:
    return float(quantize_money(value))


def schedule_to_dicts(schedule: Iterable[AmortizationRow]) -> List[Dict[str, Any]]:
    """Convert schedule rows into JSON-serialisable dictionaries."""
    return [
        {
            "month": row.month,
            "year": row.year,
            "opening_balance": _money(row.opening_balance),
            "payment": _money(row.payment),
            "principal": _money(row.principal_paid),
            "interest": _money(row.interest_paid),
            "insurance": _money(row.insurance_paid),
            "closing_balance": _money(row.closing_balance),
            "cumulative_paid": _money(row.cumulative_paid),
            "cumulative_interest": _money(row.cumulative_interest),
        }
        for row in schedule
    ]


def simulation_to_dict(simulation: Simulation, include_schedule: bool = True) -> Dict[str, Any]:
    summary = simulation.summary
    data: Dict[str, Any] = {
        "profile": {
            "tier": simulation.profile.tier.value,
            "annual_rate_percent": float(simulation.profile.annual_rate_percent),
        },
        "summary": {
            "borrowed_capital": _money(summary.borrowed_capital),
            "financing_needed": summary.financing_needed,
            "duration_months": summary.duration_months,
            "annual_rate_percent": float(summary.annual_rate_percent),
            "insurance_rate_percent": float(summary.insurance_rate_percent),
            "credit_payment": _money(summary.credit_payment),
            "monthly_insurance": _money(summary.monthly_insurance),
            "monthly_payment": _money(summary.monthly_payment),
            "total_interest": _money(summary.total_interest),
            "total_insurance_cost": _money(summary.total_insurance_cost),
            "total_paid": _money(summary.total_paid),
            "bank_fees": _money(summary.bank_fees),
            "total_cost": _money(summary.total_cost),
            "effective_rate_estimate": float(round(summary.effective_rate_estimate, 4)),
        },
    }
    if include_schedule:
        data["schedule"] = schedule_to_dicts(simulation.schedule)
        data["yearly"] = [
            {
                "year": y.year,
                "payments": _money(y.payments),
                "principal": _money(y.principal_paid),
                "interest": _money(y.interest_paid),
                "insurance": _money(y.insurance_paid),
                "closing_balance": _money(y.closing_balance),
            }
            for y in aggregate_by_year(simulation.schedule)
        ]
    return data


def export_to_json(path: Path, simulation: Simulation) -> None:
    """Export the simulation to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(simulation_to_dict(simulation), f, indent=2, ensure_ascii=False)
    logger.info("Simulation exported to %s", path)

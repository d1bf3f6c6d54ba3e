import logging
import os
from decimal import Decimal
from http import HTTPStatus

import click
from flask import Flask, Response, jsonify, render_template, request

from mortgage_sim.composer import debt_ratio, is_eligible, simulate
from mortgage_sim.config import create_policy_from_env
from mortgage_sim.data_models import ProjectInput, ProjectType
from mortgage_sim.engine import aggregate_by_year
from mortgage_sim.exceptions import MortgageSimError
from mortgage_sim.export import CSV_FILENAME, schedule_to_csv, simulation_to_dict
from mortgage_sim.main import build_project_from_options
from mortgage_sim.utils import decimal_from_str, format_money, parse_project_type

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
policy = create_policy_from_env()

PREVIEW_ROWS = 120

PROJECT_TYPE_LABELS = {
    ProjectType.PRIMARY_RESIDENCE: "Résidence principale",
    ProjectType.SECONDARY_RESIDENCE: "Résidence secondaire",
    ProjectType.RENTAL_INVESTMENT: "Investissement locatif",
    ProjectType.CONSTRUCTION: "Construction",
    ProjectType.RENOVATION: "Rénovation",
}


@app.template_filter("money")
def money_filter(value) -> str:
    return format_money(value)


def _optional_decimal(raw):
    if raw is None:
        return None
    raw = str(raw).strip().rstrip("%")
    if not raw:
        return None
    return decimal_from_str(raw)


def _form_to_project(form) -> ProjectInput:
    try:
        duration = int(form.get("duration", "0"))
    except ValueError as exc:
        raise ValueError(f"Invalid duration: {form.get('duration')}") from exc
    return build_project_from_options(
        form.get("price", "").strip(),
        form.get("notary_fees", "").strip(),
        form.get("agency_fees", "").strip(),
        form.get("works", "").strip(),
        form.get("down_payment", "").strip(),
        duration,
        form.get("project_type") or None,
    )


def _insurance_rate(form):
    if form.get("no_insurance") == "1":
        return Decimal("0")
    return _optional_decimal(form.get("insurance_rate"))


def _run_simulation(form):
    project = _form_to_project(form)
    return simulate(
        project,
        insurance_rate_percent=_insurance_rate(form),
        policy=policy,
        annual_rate_percent=_optional_decimal(form.get("rate")),
    )


def _payload_to_project(payload: dict) -> ProjectInput:
    def amount(key):
        value = payload.get(key)
        return Decimal("0") if value in (None, "") else decimal_from_str(str(value))

    duration = payload.get("duration_years")
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise ValueError("duration_years must be an integer")
    return ProjectInput(
        property_price=amount("property_price"),
        notary_fees=amount("notary_fees"),
        agency_fees=amount("agency_fees"),
        works_amount=amount("works_amount"),
        down_payment=amount("down_payment"),
        duration_years=duration,
        project_type=parse_project_type(payload.get("project_type")),
    )


@app.route("/", methods=["GET", "POST"])
def index():
    simulation = None
    schedule = None
    yearly = None
    ratio = None
    eligible = None
    truncated = 0
    error = None
    show_full_schedule = False

    if request.method == "POST":
        show_full_schedule = request.form.get("show_full_schedule") == "1"
        try:
            simulation = _run_simulation(request.form)
            schedule = simulation.schedule if show_full_schedule else simulation.schedule[:PREVIEW_ROWS]
            truncated = len(simulation.schedule) - len(schedule)
            yearly = aggregate_by_year(simulation.schedule)
            income = _optional_decimal(request.form.get("monthly_income"))
            if income is not None:
                ratio = debt_ratio(simulation.summary.monthly_payment, income)
                eligible = is_eligible(ratio, policy.max_debt_ratio)
        except (MortgageSimError, ValueError, click.ClickException) as exc:
            logger.info("Rejected simulation form: %s", exc)
            error = str(exc)

    return render_template(
        "index.html",
        form=request.form,
        simulation=simulation,
        schedule=schedule,
        yearly=yearly,
        truncated=truncated,
        show_full_schedule=show_full_schedule,
        debt_ratio=ratio,
        eligible=eligible,
        error=error,
        project_types=PROJECT_TYPE_LABELS,
        policy=policy,
        asset_version=app.config["ASSET_VERSION"],
    )


@app.post("/export.csv")
def export_csv():
    try:
        simulation = _run_simulation(request.form)
    except (MortgageSimError, ValueError, click.ClickException) as exc:
        return Response(str(exc), status=HTTPStatus.BAD_REQUEST, mimetype="text/plain")
    return Response(
        schedule_to_csv(simulation.schedule),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
    )


@app.post("/api/simulate")
def api_simulate():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Expected a JSON object"}), HTTPStatus.BAD_REQUEST
    include_schedule = payload.get("include_schedule", True)
    if not isinstance(include_schedule, bool):
        return jsonify({"error": "include_schedule must be a boolean"}), HTTPStatus.BAD_REQUEST
    try:
        project = _payload_to_project(payload)
        simulation = simulate(
            project,
            insurance_rate_percent=_optional_decimal(payload.get("insurance_rate_percent")),
            policy=policy,
            annual_rate_percent=_optional_decimal(payload.get("annual_rate_percent")),
        )
    except (MortgageSimError, ValueError) as exc:
        return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST

    data = simulation_to_dict(simulation, include_schedule=include_schedule)
    income = payload.get("monthly_income")
    if income not in (None, ""):
        try:
            ratio = debt_ratio(simulation.summary.monthly_payment, decimal_from_str(str(income)))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), HTTPStatus.BAD_REQUEST
        data["debt_ratio"] = float(round(ratio, 2))
        data["eligible"] = is_eligible(ratio, policy.max_debt_ratio)
    return jsonify(data)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting mortgage simulator web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)

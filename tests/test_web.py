from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from mortgage_sim_web.app import app as flask_app

REFERENCE_FORM = {
    "price": "250000",
    "notary_fees": "20000",
    "agency_fees": "5000",
    "down_payment": "30000",
    "duration": "20",
    "project_type": "primary_residence",
}

REFERENCE_JSON = {
    "property_price": 250000,
    "notary_fees": 20000,
    "agency_fees": 5000,
    "down_payment": 30000,
    "duration_years": 20,
    "project_type": "primary_residence",
}


@pytest.fixture()
def client() -> FlaskClient:
    with flask_app.test_client() as test_client:
        yield test_client


def test_index_renders_form(client):
    resp = client.get("/")

    assert resp.status_code == 200
    assert "Simulateur" in resp.get_data(as_text=True)


def test_index_runs_simulation(client):
    resp = client.post("/", data=REFERENCE_FORM)
    body = resp.get_data(as_text=True)

    assert resp.status_code == 200
    assert "245000.00" in body
    assert "standard" in body
    assert "120 mois supplémentaires" in body


def test_index_full_schedule(client):
    resp = client.post("/", data={**REFERENCE_FORM, "show_full_schedule": "1"})

    assert resp.status_code == 200
    assert "mois supplémentaires" not in resp.get_data(as_text=True)


def test_index_shows_debt_ratio(client):
    resp = client.post("/", data={**REFERENCE_FORM, "monthly_income": "3000"})

    assert resp.status_code == 200
    assert "au-delà de 35" in resp.get_data(as_text=True)


def test_index_reports_errors(client):
    resp = client.post("/", data={**REFERENCE_FORM, "duration": "50"})

    assert resp.status_code == 200
    assert "between 5 and 30" in resp.get_data(as_text=True)


def test_index_reports_bad_duration(client):
    resp = client.post("/", data={**REFERENCE_FORM, "duration": "twenty"})

    assert "Invalid duration" in resp.get_data(as_text=True)


def test_csv_download(client):
    resp = client.post("/export.csv", data=REFERENCE_FORM)

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "echeancier.csv" in resp.headers["Content-Disposition"]
    lines = resp.get_data(as_text=True).split("\n")
    assert lines[0] == "Mois;Année;Mensualité;Capital;Intérêts;Assurance;Capital restant"
    assert len(lines) == 241


def test_csv_download_without_insurance(client):
    resp = client.post("/export.csv", data={**REFERENCE_FORM, "no_insurance": "1"})

    first_row = resp.get_data(as_text=True).split("\n")[1].split(";")
    assert first_row[5] == "0.00"


def test_csv_download_rejects_invalid_project(client):
    resp = client.post("/export.csv", data={**REFERENCE_FORM, "down_payment": "-1"})

    assert resp.status_code == 400


def test_api_simulate(client):
    resp = client.post("/api/simulate", json=REFERENCE_JSON)

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["profile"]["tier"] == "standard"
    assert data["summary"]["borrowed_capital"] == 245000.0
    assert len(data["schedule"]) == 240
    assert len(data["yearly"]) == 20


def test_api_simulate_with_overrides_and_income(client):
    payload = {
        **REFERENCE_JSON,
        "annual_rate_percent": "2.5",
        "insurance_rate_percent": 0,
        "monthly_income": 6000,
        "include_schedule": False,
    }
    resp = client.post("/api/simulate", json=payload)

    assert resp.status_code == 200
    data = resp.get_json()
    assert data["summary"]["annual_rate_percent"] == 2.5
    assert data["summary"]["monthly_insurance"] == 0.0
    assert data["eligible"] is True
    assert 0 < data["debt_ratio"] < 35
    assert "schedule" not in data


def test_api_simulate_no_financing(client):
    resp = client.post("/api/simulate", json={**REFERENCE_JSON, "down_payment": 275000})

    data = resp.get_json()
    assert data["summary"]["financing_needed"] is False
    assert data["schedule"] == []


@pytest.mark.parametrize(
    "payload",
    [
        {**REFERENCE_JSON, "duration_years": 3},
        {**REFERENCE_JSON, "duration_years": "20"},
        {**REFERENCE_JSON, "property_price": -5},
        {**REFERENCE_JSON, "project_type": "castle"},
        {**REFERENCE_JSON, "notary_fees": "a lot"},
    ],
)
def test_api_simulate_rejects_invalid_payloads(client, payload):
    resp = client.post("/api/simulate", json=payload)

    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_api_simulate_requires_json_object(client):
    resp = client.post("/api/simulate", data="not json", content_type="text/plain")

    assert resp.status_code == 400


def test_stylesheet_link_carries_asset_version(client):
    body = client.get("/").get_data(as_text=True)

    assert f"style.css?v={flask_app.config['ASSET_VERSION']}" in body
    assert client.get("/static/style.css").status_code == 200


@pytest.mark.parametrize("flag", ["false", 0, None, "no"])
def test_api_simulate_requires_boolean_include_schedule(client, flag):
    resp = client.post("/api/simulate", json={**REFERENCE_JSON, "include_schedule": flag})

    assert resp.status_code == 400
    assert "include_schedule" in resp.get_json()["error"]


def test_api_simulate_rejects_negative_rate_without_financing(client):
    payload = {**REFERENCE_JSON, "down_payment": 275000, "insurance_rate_percent": -1}
    resp = client.post("/api/simulate", json=payload)

    assert resp.status_code == 400

from __future__ import annotations

from decimal import Decimal

import pytest

from mortgage_sim.data_models import ProjectInput, ProjectType


def make_project(**overrides) -> ProjectInput:
    values = {
        "property_price": Decimal("250000"),
        "notary_fees": Decimal("20000"),
        "agency_fees": Decimal("5000"),
        "down_payment": Decimal("30000"),
        "duration_years": 20,
        "project_type": ProjectType.PRIMARY_RESIDENCE,
    }
    values.update(overrides)
    return ProjectInput(**values)


@pytest.fixture()
def project() -> ProjectInput:
    """The reference project: 245 000 borrowed over 20 years."""
    return make_project()

"""Business policy for the simulator.

Tier rates, qualification thresholds, supported durations and fee constants
are business decisions rather than derived quantities, so they are gathered
in a single ``RatePolicy`` object. ``DEFAULT_POLICY`` holds the values used
by the simulator page; ``create_policy_from_env`` lets a deployment override
any of them through ``MORTGAGE_SIM_*`` environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Mapping, Optional

from .data_models import RateTier
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "MORTGAGE_SIM_"


def _default_tier_rates() -> Dict[RateTier, Decimal]:
    return {
        RateTier.PREMIUM: Decimal("3.00"),
        RateTier.STANDARD: Decimal("3.45"),
        RateTier.MODERATE_RISK: Decimal("3.89"),
        RateTier.FIRST_TIME_BUYER: Decimal("3.65"),
    }


RateGrid = Mapping[RateTier, Mapping[int, Decimal]]


def _grid_column(*rates: str) -> Dict[int, Decimal]:
    return dict(zip((5, 10, 15, 20, 25, 30), (Decimal(rate) for rate in rates)))


# Published market rates by duration in years. Premium borrowers get the
# "excellent" column, standard borrowers the "good" column and everyone else
# the "standard" column.
PUBLISHED_RATE_GRID: RateGrid = {
    RateTier.PREMIUM: _grid_column("2.25", "2.63", "2.86", "2.93", "3.01", "3.22"),
    RateTier.STANDARD: _grid_column("2.36", "2.72", "2.96", "3.03", "3.12", "3.34"),
    RateTier.MODERATE_RISK: _grid_column("2.43", "2.86", "3.04", "3.14", "3.22", "3.42"),
    RateTier.FIRST_TIME_BUYER: _grid_column("2.43", "2.86", "3.04", "3.14", "3.22", "3.42"),
}


def interpolate_rate(column: Mapping[int, Decimal], duration_years: int) -> Decimal:
    """Return the rate for ``duration_years`` from a duration-indexed column.

    Durations between two grid points are interpolated linearly and rounded
    to two decimals; durations outside the grid take the nearest end point.
    """
    durations = sorted(column)
    if duration_years <= durations[0]:
        return column[durations[0]]
    if duration_years >= durations[-1]:
        return column[durations[-1]]
    lower = max(d for d in durations if d <= duration_years)
    upper = min(d for d in durations if d >= duration_years)
    if lower == upper:
        return column[lower]
    share = Decimal(duration_years - lower) / Decimal(upper - lower)
    rate = column[lower] + (column[upper] - column[lower]) * share
    return rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RatePolicy:
    """All tuneable constants of the simulator.

    Rates and fee rates are expressed in percent (``Decimal("3.45")`` means
    3.45 %), ratios as fractions (``Decimal("0.20")`` means 20 %).
    """

    tier_rates: Dict[RateTier, Decimal] = field(default_factory=_default_tier_rates)

    # Tier thresholds, evaluated in this order: premium, standard, moderate_risk.
    premium_min_ratio: Decimal = Decimal("0.20")
    premium_max_years: int = 20
    standard_min_ratio: Decimal = Decimal("0.10")

    # Duration adjustment applied on top of the tier rate. Off by default.
    short_duration_years: int = 15
    short_duration_adjustment: Decimal = Decimal("0.00")
    long_duration_years: int = 25
    long_duration_adjustment: Decimal = Decimal("0.00")
    rate_floor: Decimal = Decimal("0.00")

    min_duration_years: int = 5
    max_duration_years: int = 30

    # Borrower insurance, billed flat on the initial capital.
    insurance_rate: Decimal = Decimal("0.31")

    origination_fee: Decimal = Decimal("500")
    guarantee_rate: Decimal = Decimal("1.2")
    max_debt_ratio: Decimal = Decimal("35")

    # Optional duration-indexed rates. A tier present here ignores tier_rates.
    rate_grid: RateGrid = field(default_factory=dict)

    def rate_for(self, tier: RateTier, duration_years: Optional[int] = None) -> Decimal:
        """Return the base rate of ``tier``.

        With a duration and a grid column for the tier, the rate is read from
        the grid (see ``interpolate_rate``); otherwise it is ``tier_rates[tier]``.
        """
        column = self.rate_grid.get(tier)
        if column and duration_years is not None:
            return interpolate_rate(column, duration_years)
        return self.tier_rates[tier]


DEFAULT_POLICY = RatePolicy()

# Environment variable suffix -> RatePolicy field.
_ENV_FIELDS = {
    "PREMIUM_MIN_RATIO": "premium_min_ratio",
    "PREMIUM_MAX_YEARS": "premium_max_years",
    "STANDARD_MIN_RATIO": "standard_min_ratio",
    "SHORT_DURATION_YEARS": "short_duration_years",
    "SHORT_DURATION_ADJUSTMENT": "short_duration_adjustment",
    "LONG_DURATION_YEARS": "long_duration_years",
    "LONG_DURATION_ADJUSTMENT": "long_duration_adjustment",
    "RATE_FLOOR": "rate_floor",
    "MIN_DURATION_YEARS": "min_duration_years",
    "MAX_DURATION_YEARS": "max_duration_years",
    "INSURANCE_RATE": "insurance_rate",
    "ORIGINATION_FEE": "origination_fee",
    "GUARANTEE_RATE": "guarantee_rate",
    "MAX_DEBT_RATIO": "max_debt_ratio",
}

_INT_FIELDS = {f.name for f in fields(RatePolicy) if f.type in ("int", int)}

_RATE_GRIDS: Dict[str, RateGrid] = {
    "none": {},
    "published": PUBLISHED_RATE_GRID,
}


def _parse_decimal(variable: str, raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip().replace(",", "."))
    except InvalidOperation as exc:
        raise ConfigurationError(variable, raw, "not a number") from exc
    if not value.is_finite():
        raise ConfigurationError(variable, raw, "not a finite number")
    return value


def _parse_int(variable: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(variable, raw, "not an integer") from exc


def create_policy_from_env(
    environ: Optional[Mapping[str, str]] = None,
    base: RatePolicy = DEFAULT_POLICY,
) -> RatePolicy:
    """Return ``base`` with overrides read from the environment.

    Tier rates use ``MORTGAGE_SIM_RATE_<TIER>`` (for example
    ``MORTGAGE_SIM_RATE_PREMIUM=2.95``); ``MORTGAGE_SIM_RATE_GRID=published``
    switches to the duration-indexed market grid. Every other field uses
    ``MORTGAGE_SIM_<FIELD>``. Unset variables keep the base value.

    Raises
    ------
    ConfigurationError
        If a variable is set to something that cannot be parsed, or if the
        resulting duration bounds are inconsistent.
    """
    env = os.environ if environ is None else environ
    overrides: Dict[str, object] = {}

    tier_rates = dict(base.tier_rates)
    for tier in RateTier:
        variable = f"{ENV_PREFIX}RATE_{tier.name}"
        raw = env.get(variable)
        if raw:
            tier_rates[tier] = _parse_decimal(variable, raw)
            logger.debug("Rate for tier %s overridden to %s", tier.value, tier_rates[tier])
    if tier_rates != base.tier_rates:
        overrides["tier_rates"] = tier_rates

    variable = ENV_PREFIX + "RATE_GRID"
    raw = env.get(variable)
    if raw:
        grid_name = raw.strip().lower()
        if grid_name not in _RATE_GRIDS:
            raise ConfigurationError(variable, raw, f"expected one of {sorted(_RATE_GRIDS)}")
        overrides["rate_grid"] = _RATE_GRIDS[grid_name]
        logger.debug("Rate grid set to %s", grid_name)

    for suffix, name in _ENV_FIELDS.items():
        variable = ENV_PREFIX + suffix
        raw = env.get(variable)
        if not raw:
            continue
        if name in _INT_FIELDS:
            overrides[name] = _parse_int(variable, raw)
        else:
            overrides[name] = _parse_decimal(variable, raw)
        logger.debug("Policy field %s overridden to %s", name, overrides[name])

    policy = replace(base, **overrides) if overrides else base
    if policy.min_duration_years < 1 or policy.min_duration_years > policy.max_duration_years:
        logger.warning(
            "Rejected duration bounds %s-%s years",
            policy.min_duration_years,
            policy.max_duration_years,
        )
        raise ConfigurationError(
            ENV_PREFIX + "MIN_DURATION_YEARS",
            str(policy.min_duration_years),
            f"must be between 1 and the maximum duration ({policy.max_duration_years})",
        )
    return policy

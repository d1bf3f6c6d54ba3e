"""Rate profile classification.

A project is mapped to one of four rate tiers from its down-payment ratio,
its duration and its type. The rules are evaluated in a fixed priority
order and the first match wins, so every project lands in exactly one tier:

1. ratio >= premium_min_ratio and duration <= premium_max_years -> premium
2. ratio >= standard_min_ratio -> standard
3. rental investment below the standard ratio -> moderate_risk
4. anything else -> first_time_buyer

The classifier does not validate its input. Duration bounds are enforced by
``validate_project`` before composition.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from .config import DEFAULT_POLICY, RatePolicy
from .data_models import ProjectInput, ProjectType, RateProfile, RateTier

logger = logging.getLogger(__name__)


def down_payment_ratio(project: ProjectInput) -> Decimal:
    """Return the down payment as a fraction of the total project cost.

    A project cost of zero or less gives a ratio of 0 rather than an error.
    """
    total = project.total_project_cost
    if total <= 0:
        return Decimal("0")
    return project.down_payment / total


def _select_tier(ratio: Decimal, duration_years: int, project_type: ProjectType, policy: RatePolicy) -> RateTier:
    if ratio >= policy.premium_min_ratio and duration_years <= policy.premium_max_years:
        return RateTier.PREMIUM
    if ratio >= policy.standard_min_ratio:
        return RateTier.STANDARD
    if project_type == ProjectType.RENTAL_INVESTMENT:
        return RateTier.MODERATE_RISK
    return RateTier.FIRST_TIME_BUYER


def _duration_adjustment(duration_years: int, policy: RatePolicy) -> Decimal:
    if duration_years <= policy.short_duration_years:
        return policy.short_duration_adjustment
    if duration_years >= policy.long_duration_years:
        return policy.long_duration_adjustment
    return Decimal("0")


def classify(project: ProjectInput, policy: Optional[RatePolicy] = None) -> RateProfile:
    """Return the rate profile a project qualifies for.

    The annual rate is the tier's base rate (read from the policy's rate
    grid at the project's duration when it has one) plus the duration
    adjustment, never below ``policy.rate_floor``. With the default policy
    there is no grid, the adjustments are zero and the rate is exactly the
    tier rate.
    """
    policy = policy or DEFAULT_POLICY
    ratio = down_payment_ratio(project)
    tier = _select_tier(ratio, project.duration_years, project.project_type, policy)
    rate = policy.rate_for(tier, project.duration_years) + _duration_adjustment(project.duration_years, policy)
    rate = max(rate, policy.rate_floor)
    logger.debug(
        "Classified project (ratio=%.4f, %s years, %s) as %s at %s%%",
        ratio,
        project.duration_years,
        project.project_type.value,
        tier.value,
        rate,
    )
    return RateProfile(tier=tier, annual_rate_percent=rate)

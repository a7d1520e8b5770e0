"""Shared tiered pricing patterns used by every service model."""

import math
from typing import Tuple


def flat_rate_with_minimum(count: float, rate: float, minimum: float = 0.0) -> float:
    if count <= 0:
        return 0.0
    return max(count * rate, minimum)


def small_facility_price(
    count: float,
    threshold: float,
    minimum: float,
    regular_price: float,
    extra_fees: float = 0.0,
) -> Tuple[float, float, bool]:
    """Small-account rule.

    At or below ``threshold`` the flat ``minimum`` replaces the subtotal and
    already includes the fees that are otherwise added separately.
    Returns (base, fees, small_facility_applied).
    """
    if count <= 0:
        return (0.0, 0.0, False)
    if count <= threshold:
        return (max(regular_price, minimum), 0.0, True)
    return (regular_price, extra_fees, False)


def minimum_coverage_sqft(unit_sqft: float, first_unit_rate: float, per_unit_rate: float) -> float:
    if per_unit_rate <= 0 or unit_sqft <= 0:
        return 0.0
    return math.floor(first_unit_rate / per_unit_rate) * unit_sqft


def step_down_area_price(
    sqft: float,
    unit_sqft: float,
    first_unit_rate: float,
    per_unit_rate: float,
    exact: bool = True,
) -> float:
    """Flat price up to the coverage the minimum buys, per-unit above it.

    exact:  ceil(sqft / unit_sqft) * per_unit_rate over the whole area.
    direct: first_unit_rate + (sqft - coverage) * per_unit_rate / unit_sqft.
    """
    if sqft <= 0:
        return 0.0
    coverage = minimum_coverage_sqft(unit_sqft, first_unit_rate, per_unit_rate)
    if sqft <= coverage or unit_sqft <= 0 or per_unit_rate <= 0:
        return float(first_unit_rate)
    if exact:
        return math.ceil(sqft / unit_sqft) * per_unit_rate
    return first_unit_rate + (sqft - coverage) * (per_unit_rate / unit_sqft)


def per_block_price(sqft: float, unit_sqft: float, rate_per_unit: float) -> float:
    """ceil(sqft / unit) blocks at a flat rate (huge-bathroom style lines)."""
    if sqft <= 0 or unit_sqft <= 0:
        return 0.0
    return math.ceil(sqft / unit_sqft) * rate_per_unit


def partial_install_split(
    total_units: float,
    installed_units: float,
    install_rate: float,
    service_rate: float,
) -> Tuple[float, float]:
    """Return (first_visit, recurring_per_visit).

    Only ``installed_units`` pay the install rate on the first visit; the
    recurring price always uses the full unit count at the service rate.
    """
    total = max(total_units, 0.0)
    installed = min(max(installed_units, 0.0), total)
    first_visit = installed * install_rate + (total - installed) * service_rate
    return (first_visit, total * service_rate)

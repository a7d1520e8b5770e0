import pytest

from agreement_pricing.pricing.units import (
    flat_rate_with_minimum,
    minimum_coverage_sqft,
    partial_install_split,
    per_block_price,
    small_facility_price,
    step_down_area_price,
)


def test_flat_rate_with_minimum_enforces_minimum():
    # 3 fixtures at $7 with a $40 minimum
    assert flat_rate_with_minimum(3, 7, 40) == 40
    assert flat_rate_with_minimum(10, 7, 40) == 70
    assert flat_rate_with_minimum(0, 7, 40) == 0


def test_small_facility_minimum_includes_fees():
    base, fees, applied = small_facility_price(3, threshold=5, minimum=50, regular_price=40, extra_fees=8)
    assert (base, fees, applied) == (50, 0.0, True)

    base, fees, applied = small_facility_price(6, threshold=5, minimum=50, regular_price=42, extra_fees=8)
    assert (base, fees, applied) == (42, 8, False)


def test_step_down_boundary_and_exact_units():
    # $100 buys 10 units of 400 sq ft
    assert minimum_coverage_sqft(400, 100, 10) == 4000
    assert step_down_area_price(4000, 400, 100, 10) == 100
    assert step_down_area_price(4001, 400, 100, 10, exact=True) == 110


def test_step_down_direct_is_proportional_above_coverage():
    assert step_down_area_price(4400, 400, 100, 10, exact=False) == pytest.approx(110.0)
    assert step_down_area_price(4200, 400, 100, 10, exact=False) == pytest.approx(105.0)


def test_step_down_zero_area_costs_nothing():
    assert step_down_area_price(0, 400, 100, 10) == 0
    assert step_down_area_price(-5, 400, 100, 10) == 0


@pytest.mark.parametrize("exact", [True, False])
def test_step_down_is_monotonic(exact):
    prices = [step_down_area_price(s, 500, 250, 125, exact=exact) for s in range(0, 6000, 37)]
    assert prices == sorted(prices)


def test_per_block_price_rounds_blocks_up():
    assert per_block_price(301, 300, 10) == 20
    assert per_block_price(0, 300, 10) == 0


def test_partial_install_split():
    first, recurring = partial_install_split(total_units=10, installed_units=4, install_rate=25, service_rate=3)
    assert first == 4 * 25 + 6 * 3
    assert recurring == 30
    first, _ = partial_install_split(total_units=2, installed_units=5, install_rate=25, service_rate=3)
    assert first == 50

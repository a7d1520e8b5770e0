import pytest

from agreement_pricing.pricing.aggregate import aggregate_billing
from agreement_pricing.pricing.frequency import FrequencyKey, visits_per_month, visits_per_year
from agreement_pricing.pricing.units import flat_rate_with_minimum, step_down_area_price


def test_flat_rate_minimum_wins_for_small_counts():
    # 3 fixtures at $7 is $21, below the $40 region minimum.
    assert flat_rate_with_minimum(3, 7, 40) == 40


def test_step_down_exact_boundary():
    # $100 buys 10 units of 400 sq ft; past 4000 sq ft the whole area bills per unit.
    assert step_down_area_price(4000, 400, 100, 10, exact=True) == 100
    assert step_down_area_price(4400, 400, 100, 10, exact=True) == 110


def test_step_down_direct_adds_from_the_boundary():
    assert step_down_area_price(4000, 400, 100, 10, exact=False) == 100
    assert step_down_area_price(4001, 400, 100, 10, exact=False) == pytest.approx(100.025)


def test_one_time_job_is_one_visit():
    totals = aggregate_billing(200.0, FrequencyKey.ONE_TIME, 24)
    assert totals.monthly_recurring == 0
    assert totals.contract_total == 200.0


def test_weekly_fifty_dollar_visit():
    totals = aggregate_billing(50.0, FrequencyKey.WEEKLY, 12)
    assert totals.monthly_recurring == pytest.approx(216.50)
    assert totals.contract_total == pytest.approx(2598.00)


@pytest.mark.parametrize("freq", [f for f in FrequencyKey if f is not FrequencyKey.ONE_TIME])
def test_visits_per_month_times_twelve_tracks_visits_per_year(freq):
    # Billing constants round 52/12 to 4.33, so allow a small drift.
    assert visits_per_month(freq) * 12 == pytest.approx(visits_per_year(freq), rel=0.01)


def test_one_time_frequency_closure():
    assert visits_per_month(FrequencyKey.ONE_TIME) == 0
    assert visits_per_year(FrequencyKey.ONE_TIME) == 1

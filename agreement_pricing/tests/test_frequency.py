import pytest

from agreement_pricing.pricing.frequency import (
    FREQUENCY_TABLE,
    FrequencyKey,
    build_frequency_table,
    is_visit_based,
    parse_frequency,
    visits_per_month,
    visits_per_year,
)


@pytest.mark.parametrize("key", [k for k in FrequencyKey if k is not FrequencyKey.ONE_TIME])
def test_visits_per_month_times_twelve_matches_visits_per_year(key):
    # weekly 4.33 * 12 = 51.96 vs 52; stay within one visit a year
    assert visits_per_month(key) * 12 == pytest.approx(visits_per_year(key), abs=0.1)


def test_one_time_has_no_monthly_billing_and_one_visit():
    assert visits_per_month(FrequencyKey.ONE_TIME) == 0
    assert visits_per_year(FrequencyKey.ONE_TIME) == 1
    assert is_visit_based(FrequencyKey.ONE_TIME)


def test_visit_based_keys_never_bill_monthly():
    for key, info in FREQUENCY_TABLE.items():
        if info.is_visit_based:
            assert info.monthly_multiplier == 0, key


def test_parse_frequency_aliases_and_unknown_values():
    assert parse_frequency("Bi-Weekly") is FrequencyKey.BIWEEKLY
    assert parse_frequency("2x/month") is FrequencyKey.TWICE_PER_MONTH
    assert parse_frequency("semi-annual") is FrequencyKey.BIANNUAL
    assert parse_frequency("one_time") is FrequencyKey.ONE_TIME
    assert parse_frequency("every full moon") is FrequencyKey.WEEKLY
    assert parse_frequency(None) is FrequencyKey.WEEKLY


def test_remote_metadata_takes_precedence_over_legacy_conversions():
    remote = {
        "frequencyMetadata": {
            "weekly": {"monthlyRecurringMultiplier": 4.33, "firstMonthExtraMultiplier": 3.33},
            "quarterly": {"cycleMonths": 3},
        },
        "billingConversions": {
            "weekly": {"monthlyMultiplier": 4.0},
            "biweekly": {"monthlyMultiplier": 2.0},
            "bimonthly": {"annualMultiplier": 5},
        },
    }
    table = build_frequency_table(remote)

    assert table[FrequencyKey.WEEKLY].monthly_multiplier == 4.33
    assert table[FrequencyKey.WEEKLY].first_month_extra == 3.33
    assert table[FrequencyKey.BIWEEKLY].monthly_multiplier == 2.0
    assert table[FrequencyKey.QUARTERLY].annual_multiplier == pytest.approx(4.0)
    assert table[FrequencyKey.BIMONTHLY].annual_multiplier == 5
    assert table[FrequencyKey.MONTHLY] == FREQUENCY_TABLE[FrequencyKey.MONTHLY]


def test_service_visit_approximations_only_fill_gaps():
    fallbacks = {FrequencyKey.QUARTERLY: 0.33, FrequencyKey.ANNUAL: 0.083}
    table = build_frequency_table({"frequencyMetadata": {"annual": {"visitsPerYear": 1}}}, fallbacks=fallbacks)

    assert table[FrequencyKey.QUARTERLY].annual_multiplier == pytest.approx(3.96)
    assert table[FrequencyKey.ANNUAL].annual_multiplier == 1
    assert visits_per_month(FrequencyKey.QUARTERLY, table) == pytest.approx(0.33)


def test_one_time_ignores_remote_metadata():
    table = build_frequency_table({"frequencyMetadata": {"oneTime": {"visitsPerYear": 12}}})
    assert table[FrequencyKey.ONE_TIME] == FREQUENCY_TABLE[FrequencyKey.ONE_TIME]

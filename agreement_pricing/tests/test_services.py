import pytest

from agreement_pricing.engine import compute_quote
from agreement_pricing.pricing.forms import FormState
from agreement_pricing.pricing.frequency import FrequencyKey, parse_frequency
from agreement_pricing.pricing.resolver import resolve_effective_config
from agreement_pricing.service_models import default_registry


def _quote(service_id, inputs, frequency=None, months=12, remote=None):
    model = default_registry().require(service_id)
    config = resolve_effective_config(model, remote)
    state = FormState(
        service_id=model.service_id,
        inputs=inputs,
        frequency=parse_frequency(frequency or model.default_frequency),
        contract_months=months,
    )
    return compute_quote(state, config, model=model)


# --------------------------------------------------------------------
# SaniClean
# --------------------------------------------------------------------
def test_saniclean_per_item_inside_beltway():
    q = _quote("saniclean", {"sinks": 6, "urinals": 4, "pricing_mode": "perItem"})
    assert q.breakdown["base_service"] == 70
    assert q.breakdown["trip_charge"] == 8
    assert q.per_visit == 78
    assert q.monthly_recurring == pytest.approx(78 * 4.33)


def test_saniclean_small_facility_minimum_includes_trip():
    q = _quote("saniclean", {"sinks": 2, "male_toilets": 1, "pricing_mode": "perItem"})
    assert q.breakdown["base_service"] == 50
    assert q.breakdown["trip_charge"] == 0
    assert q.per_visit == 50


def test_saniclean_region_minimum_without_small_facility_rule():
    remote = {"smallBathroomMinimums": {"minimumFixturesThreshold": 0}}
    q = _quote("saniclean", {"sinks": 3, "pricing_mode": "perItem"}, remote=remote)
    assert q.breakdown["base_service"] == 40


def test_saniclean_outside_beltway_and_green_tier():
    outside = _quote("saniclean", {"sinks": 10, "pricing_mode": "perItem", "location": "outsideBeltway"})
    assert outside.per_visit == 68
    green = _quote("saniclean", {"sinks": 10, "pricing_mode": "perItem", "rate_tier": "greenRate"})
    assert green.breakdown["base_service"] == pytest.approx(91.0)


def test_saniclean_auto_all_inclusive_with_paper_overage():
    q = _quote("saniclean", {"sinks": 4, "male_toilets": 4, "paper_spend": 50, "warranty_dispensers": 4})
    assert q.breakdown["base_service"] == 160
    assert q.breakdown["paper_overage"] == 10
    assert q.breakdown["trip_charge"] == 0
    assert q.breakdown["warranty_fees"] == 0
    assert q.per_visit == 170


def test_saniclean_facility_components_and_included_screen_rate():
    inputs = {"sinks": 6, "pricing_mode": "perItem", "urinal_screens": 2, "urinal_mats": 1, "seat_cover_dispensers": 1}
    q = _quote("saniclean", inputs)
    assert q.breakdown["facility_components"] == 2 * 8 + 8 + 2

    remote = {"monthlyAddOnSupplyPricing": {"urinalScreenMonthlyPrice": "included", "urinalMatMonthlyPrice": 5}}
    q = _quote("saniclean", inputs, remote=remote)
    assert q.breakdown["facility_components"] == 2 * 5 + 5 + 2


def test_saniclean_facility_components_on_their_own_cadence():
    inputs = {"sinks": 6, "urinals": 4, "pricing_mode": "perItem", "urinal_screens": 4}
    assert _quote("saniclean", inputs).per_visit == 110

    monthly = dict(inputs, facility_components_frequency="monthly")
    q = _quote("saniclean", monthly)
    assert q.breakdown["facility_components"] == 32
    assert q.per_visit == 78
    assert q.monthly_recurring == pytest.approx(78 * 4.33 + 32)
    assert q.contract_total == pytest.approx(12 * (78 * 4.33 + 32))

    # visit-based service, components still billed every month
    q = _quote("saniclean", monthly, frequency="quarterly")
    assert q.total_visits == 4
    assert q.monthly_recurring == 32
    assert q.first_month_total == 78 + 32
    assert q.contract_total == pytest.approx(4 * 78 + 12 * 32)

    same = dict(inputs, facility_components_frequency="weekly")
    assert _quote("saniclean", same).per_visit == 110


def test_saniclean_luxury_soap():
    q = _quote("saniclean", {"sinks": 6, "pricing_mode": "perItem", "soap_type": "luxury", "excess_soap_gallons": 2})
    assert q.breakdown["soap_upgrade"] == 30
    assert q.breakdown["excess_soap"] == 60


# --------------------------------------------------------------------
# SaniPod
# --------------------------------------------------------------------
def test_sanipod_picks_the_cheaper_rule():
    assert _quote("sanipod", {"pods": 4}).per_visit == 32
    assert _quote("sanipod", {"pods": 10}).per_visit == 70


def test_sanipod_partial_install_first_visit():
    q = _quote("sanipod", {"pods": 4, "install_pods": 2})
    assert q.installation_fee == 50
    assert q.first_visit_price == 66
    assert q.per_visit == 32
    assert q.first_month_total == pytest.approx(66 + 3.33 * 32)


def test_sanipod_one_time_bags_only_on_first_visit():
    q = _quote("sanipod", {"pods": 4, "extra_bags": 5, "extra_bags_recurring": False})
    assert q.breakdown["extra_bags"] == 0
    assert q.installation_fee == 0
    assert q.first_visit_price == 32 + 10


# --------------------------------------------------------------------
# SaniScrub
# --------------------------------------------------------------------
def test_saniscrub_fixture_minimum_by_frequency():
    assert _quote("saniscrub", {"fixtures": 4}).per_visit == 175
    assert _quote("saniscrub", {"fixtures": 10}).per_visit == 250
    assert _quote("saniscrub", {"fixtures": 4}, frequency="quarterly").per_visit == 250


def test_saniscrub_twice_per_month_combo_discount():
    q = _quote("saniscrub", {"fixtures": 10, "has_saniclean": True}, frequency="twicePerMonth")
    assert q.breakdown["combo_discount"] == -7.5
    assert q.monthly_recurring == pytest.approx(485.0)


def test_saniscrub_install_replaces_first_visit():
    q = _quote("saniscrub", {"fixtures": 10, "include_install": True, "dirty_install": True})
    assert q.installation_fee == 750
    assert q.first_visit_price == 750
    assert q.first_month_total == 750
    assert q.contract_total == pytest.approx(750 + 11 * 250)


def test_saniscrub_non_bathroom_area():
    assert _quote("saniscrub", {"non_bathroom_sqft": 1000}).breakdown["non_bathroom_area"] == 250


# --------------------------------------------------------------------
# Microfiber mopping
# --------------------------------------------------------------------
def test_microfiber_lines():
    q = _quote(
        "microfiberMopping",
        {"bathrooms": 3, "huge_bathroom_sqft": 301, "extra_area_sqft": 4001, "standalone_sqft": 100, "chemical_gallons": 2},
    )
    assert q.breakdown["bathrooms"] == 30
    assert q.breakdown["huge_bathrooms"] == 20
    assert q.breakdown["extra_area"] == 110
    assert q.breakdown["standalone_area"] == 40
    assert q.breakdown["chemical"] == pytest.approx(54.68)


def test_microfiber_bathrooms_included_with_saniclean():
    q = _quote("microfiberMopping", {"bathrooms": 3, "included_in_saniclean": True})
    assert q.per_visit == 0


# --------------------------------------------------------------------
# Carpet, strip & wax, windows
# --------------------------------------------------------------------
def test_carpet_step_down_and_minimum():
    assert _quote("carpetCleaning", {"area_sqft": 300}).per_visit == 250
    assert _quote("carpetCleaning", {"area_sqft": 1600}).per_visit == 500
    assert _quote("carpetCleaning", {"area_sqft": 1600, "use_exact_sqft": False}).per_visit == pytest.approx(400)


def test_carpet_dirty_install():
    q = _quote("carpetCleaning", {"area_sqft": 1600, "include_install": True, "dirty_install": True})
    assert q.installation_fee == 1500
    assert q.first_visit_price == 1500


def test_strip_wax_variants_and_one_time_contract():
    q = _quote("stripWax", {"floor_area_sqft": 1000}, months=24)
    assert q.frequency is FrequencyKey.ONE_TIME
    assert q.per_visit == 750
    assert q.contract_total == 750
    assert _quote("stripWax", {"floor_area_sqft": 500, "variant": "wellMaintained"}).per_visit == 400


def test_rpm_windows_frequency_multiplier_and_install():
    inputs = {"small_windows": 10, "medium_windows": 5, "large_windows": 2}
    assert _quote("rpmWindows", inputs).per_visit == 52
    assert _quote("rpmWindows", inputs, frequency="quarterly").per_visit == 104

    q = _quote("rpmWindows", dict(inputs, first_time_install=True))
    assert q.installation_fee == 104
    assert q.first_visit_price == 156


def test_rpm_windows_trip_needs_windows():
    assert _quote("rpmWindows", {}).per_visit == 0


# --------------------------------------------------------------------
# Foaming drain
# --------------------------------------------------------------------
def test_foaming_drain_cheaper_rule_and_minimum():
    q = _quote("foamingDrain", {"standard_drains": 4})
    assert q.breakdown["standard_drains"] == 36
    assert q.breakdown["minimum_adjustment"] == 14
    assert q.per_visit == 50


def test_foaming_drain_volume_install_program():
    q = _quote("foamingDrain", {"standard_drains": 12, "install_drains": 4})
    assert q.breakdown["standard_drains"] == 52
    assert q.breakdown["install_drains"] == 80
    assert q.per_visit == 132

    bimonthly = _quote("foamingDrain", {"standard_drains": 12, "install_drains": 4, "install_frequency": "bimonthly"})
    assert bimonthly.breakdown["install_drains"] == 40


def test_foaming_drain_big_account_flat_rate():
    q = _quote("foamingDrain", {"standard_drains": 10, "pricing_option": "bigAccountTen"})
    assert q.per_visit == 100


def test_foaming_drain_filthy_install_replaces_standard_visit():
    q = _quote("foamingDrain", {"standard_drains": 5, "facility_condition": "filthy"})
    assert q.installation_fee == 120
    assert q.first_visit_price == 120
    assert q.per_visit == 50


def test_foaming_drain_grease_trap_install():
    q = _quote("foamingDrain", {"grease_traps": 2})
    assert q.breakdown["grease_traps"] == 250
    assert q.installation_fee == 600
    no_install = _quote("foamingDrain", {"grease_traps": 2, "charge_grease_trap_install": False})
    assert no_install.installation_fee is None


# --------------------------------------------------------------------
# Electrostatic spray
# --------------------------------------------------------------------
def test_electrostatic_by_room_with_trip():
    assert _quote("electrostaticSpray", {"rooms": 5, "location": "insideBeltway"}).per_visit == 110
    assert _quote("electrostaticSpray", {"rooms": 5}).per_visit == 100
    combined = {"rooms": 5, "location": "insideBeltway", "combined_with_saniclean": True}
    assert _quote("electrostaticSpray", combined).per_visit == 100


def test_electrostatic_by_square_feet():
    base = {"pricing_method": "bySqFt"}
    assert _quote("electrostaticSpray", dict(base, area_sqft=2500)).per_visit == pytest.approx(125)
    assert _quote("electrostaticSpray", dict(base, area_sqft=2500, round_to_unit=True)).per_visit == 150
    assert _quote("electrostaticSpray", dict(base, area_sqft=500)).per_visit == 50


# --------------------------------------------------------------------
# Declarative grease trap
# --------------------------------------------------------------------
def test_grease_trap_definition():
    q = _quote("greaseTrap", {"traps": 3, "include_install": True})
    assert q.per_visit == 375
    assert q.installation_fee == 900
    assert q.first_visit_price == 900
    assert _quote("grease-trap", {"traps": 1}).installation_fee is None


# --------------------------------------------------------------------
# Pure janitorial
# --------------------------------------------------------------------
def test_pure_janitorial_four_hour_minimum():
    q = _quote("pureJanitorial", {"manual_hours": 2})
    assert q.breakdown["labor"] == 120
    assert q.per_visit == 120
    assert q.monthly_recurring == pytest.approx(120 * 4.33)
    assert _quote("pureJanitorial", {"manual_hours": 5, "dusting_places": 8}).per_visit == 210


def test_pure_janitorial_dirty_initial_triples_first_visit():
    q = _quote("pureJanitorial", {"manual_hours": 2, "dirty_initial": True})
    assert q.installation_fee == 240
    assert q.first_visit_price == 360
    assert q.first_month_total == pytest.approx(360 + 3.33 * 120)
    assert q.contract_total == pytest.approx(360 + 3.33 * 120 + 11 * 120 * 4.33)


def test_pure_janitorial_one_time_uses_short_job_rate():
    q = _quote("janitorial", {"vacuuming_hours": 2}, frequency="oneTime")
    assert q.per_visit == 200
    assert q.contract_total == 200


@pytest.mark.parametrize("minutes, price", [(10, 10), (30, 20), (90, 80), (240, 120), (300, 150)])
def test_pure_janitorial_addon_time_tiers(minutes, price):
    q = _quote("pureJanitorial", {"manual_hours": 4, "addon_minutes": minutes})
    assert q.breakdown["addon_time"] == pytest.approx(price)
    assert q.per_visit == pytest.approx(120 + price)


# --------------------------------------------------------------------
# Refresh power scrub
# --------------------------------------------------------------------
def test_refresh_power_scrub_area_prices():
    q = _quote("refreshPowerScrub", {"boh_method": "areaSpecific"})
    assert q.frequency is FrequencyKey.ONE_TIME
    assert q.breakdown["back_of_house"] == 2500
    assert _quote("refreshPowerScrub", {"boh_method": "areaSpecific", "kitchen_size": "smallMedium"}).per_visit == 1500

    q = _quote("refreshPowerScrub", {"dumpster_method": "areaSpecific", "patio_method": "areaSpecific", "patio_mode": "upsell"})
    assert q.per_visit == 475 + 500
    assert q.contract_total == 975

    walkway = _quote("powerScrub", {"walkway_method": "areaSpecific", "walkway_outside_sqft": 1000})
    assert walkway.breakdown["walkway"] == 675


def test_refresh_power_scrub_hourly_and_square_footage_respect_minimum():
    crew = {"foh_method": "hourly", "foh_workers": 2, "foh_hours": 3}
    assert _quote("refreshPowerScrub", crew).breakdown["front_of_house"] == 1275
    small = {"foh_method": "hourly", "foh_workers": 1, "foh_hours": 1}
    assert _quote("refreshPowerScrub", small).per_visit == 475

    sqft = {"other_method": "squareFootage", "other_inside_sqft": 1000, "other_outside_sqft": 500}
    assert _quote("refreshPowerScrub", sqft).breakdown["other_area"] == pytest.approx(1075)


def test_refresh_power_scrub_green_tier_and_inactive_form():
    q = _quote("refreshPowerScrub", {"foh_method": "areaSpecific", "rate_tier": "greenRate"})
    assert q.per_visit == pytest.approx(3250)
    idle = _quote("refreshPowerScrub", {})
    assert idle.active is False
    assert idle.per_visit == 0

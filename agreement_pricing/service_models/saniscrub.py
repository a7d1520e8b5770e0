from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from ..pricing.units import flat_rate_with_minimum, step_down_area_price
from .base import BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing

# Cadences with their own fixture rate/minimum; anything else uses monthly.
_RATE_FREQUENCIES = {
    FrequencyKey.MONTHLY: "monthly",
    FrequencyKey.TWICE_PER_MONTH: "twicePerMonth",
    FrequencyKey.BIMONTHLY: "bimonthly",
    FrequencyKey.QUARTERLY: "quarterly",
}


def _fixture_specs(name: str, rate: float, minimum: float) -> List[RateSpec]:
    return [
        RateSpec(f"{name}RatePerFixture", rate, (f"bathroomPricing.{name}.ratePerFixture", f"fixtureRates.{name}")),
        RateSpec(f"{name}Minimum", minimum, (f"bathroomPricing.{name}.minimumCharge", f"minimums.{name}")),
    ]


class SaniScrubModel(BaseServiceModel):
    """SaniScrub deep bathroom scrub.

    Fixture rates are per visit and depend on the cadence. At 2x/month a
    discount applies when the customer also has SaniClean. Non-bathroom floor
    area is priced with the step-down area rule.
    """

    service_id = "saniscrub"
    display_name = "SaniScrub"
    default_frequency = FrequencyKey.MONTHLY
    has_installation = True

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "fixtures": InputSpec("fixtures", qualifying=True, default=0),
            "non_bathroom_sqft": InputSpec("non_bathroom_sqft", kind="sqft", qualifying=True, default=0),
            "use_exact_non_bathroom": InputSpec("use_exact_non_bathroom", kind="bool", default=True),
            "has_saniclean": InputSpec("has_saniclean", kind="bool", default=False),
            "include_install": InputSpec("include_install", kind="bool", default=False),
            "dirty_install": InputSpec("dirty_install", kind="bool", default=False),
        }

    def rate_specs(self) -> List[RateSpec]:
        return (
            _fixture_specs("monthly", 25, 175)
            + _fixture_specs("twicePerMonth", 25, 175)
            + _fixture_specs("bimonthly", 35, 250)
            + _fixture_specs("quarterly", 40, 250)
            + [
                RateSpec("twicePerMonthDiscount", 15, ("bathroomPricing.twicePerMonth.comboDiscountWithSaniClean", "twoTimesPerMonthDiscountFromSaniClean")),
                RateSpec("nonBathroomUnitSqFt", 500, ("nonBathroomPricing.unitSqFt", "nonBathroomUnitSqFt")),
                RateSpec("nonBathroomFirstUnitRate", 250, ("nonBathroomPricing.firstUnitRate", "nonBathroomFirstUnitRate")),
                RateSpec("nonBathroomAdditionalUnitRate", 125, ("nonBathroomPricing.additionalUnitRate", "nonBathroomAdditionalUnitRate")),
                RateSpec("installMultiplierDirty", 3, ("installationMultipliers.dirtyInstallMultiplier", "installMultipliers.dirty")),
                RateSpec("installMultiplierClean", 1, ("installationMultipliers.cleanInstallMultiplier", "installMultipliers.clean")),
            ]
        )

    def component_fields(self) -> List[str]:
        return ["bathroom_fixtures", "non_bathroom_area", "combo_discount"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        name = _RATE_FREQUENCIES.get(frequency, "monthly")
        rate = rates[f"{name}RatePerFixture"]
        fixtures = flat_rate_with_minimum(inputs["fixtures"], rate, rates[f"{name}Minimum"])
        area = step_down_area_price(
            inputs["non_bathroom_sqft"],
            rates["nonBathroomUnitSqFt"],
            rates["nonBathroomFirstUnitRate"],
            rates["nonBathroomAdditionalUnitRate"],
            exact=inputs["use_exact_non_bathroom"],
        )

        details: List[str] = []
        if inputs["fixtures"] > 0:
            details.append(f"{inputs['fixtures']:g} fixtures @ ${rate:,.2f} ({name} rate, min ${rates[f'{name}Minimum']:,.2f})")
        if inputs["non_bathroom_sqft"] > 0:
            method = "exact" if inputs["use_exact_non_bathroom"] else "direct"
            details.append(f"Non-bathroom {inputs['non_bathroom_sqft']:g} sq ft ({method})")

        discount = 0.0
        if frequency is FrequencyKey.TWICE_PER_MONTH and inputs["has_saniclean"] and fixtures > 0:
            # monthly discount spread over the two visits
            discount = -min(rates["twicePerMonthDiscount"] / 2.0, fixtures)
            details.append(f"SaniClean combo discount ${rates['twicePerMonthDiscount']:,.2f}/month")

        installation = None
        if inputs["include_install"] and (fixtures + area) > 0:
            mult = rates["installMultiplierDirty"] if inputs["dirty_install"] else rates["installMultiplierClean"]
            installation = (fixtures + area) * mult
            details.append(f"Installation x{mult:g} ({'dirty' if inputs['dirty_install'] else 'clean'})")

        return ServicePricing(
            breakdown={"bathroom_fixtures": fixtures, "non_bathroom_area": area, "combo_discount": discount},
            details=details,
            installation=installation,
        )

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from ..utils.numbers import round2
from .base import RATE_TIER_SPECS, BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing

# area input prefix -> breakdown component
AREAS = {
    "dumpster": "dumpster",
    "patio": "patio",
    "walkway": "walkway",
    "foh": "front_of_house",
    "boh": "back_of_house",
    "other": "other_area",
}
METHODS = ("none", "areaSpecific", "hourly", "squareFootage")

_CORE = "coreRates"
_AREA = "areaSpecificPricing"
_SQFT = "squareFootagePricing"


class RefreshPowerScrubModel(BaseServiceModel):
    """Refresh power scrub, priced area by area.

    Each area picks a method: a fixed area price, crew hours (workers x hours
    at the hourly rate plus trip), or square footage (fixed fee plus inside and
    outside rates plus trip). Hourly and square-footage prices never go below
    the visit minimum.
    """

    service_id = "refreshPowerScrub"
    display_name = "Refresh Power Scrub"
    default_frequency = FrequencyKey.ONE_TIME

    def input_specs(self) -> Dict[str, InputSpec]:
        specs: Dict[str, InputSpec] = {}
        for area in AREAS:
            specs[f"{area}_method"] = InputSpec(f"{area}_method", kind="choice", default="none", choices=METHODS)
            specs[f"{area}_workers"] = InputSpec(f"{area}_workers", default=2)
            specs[f"{area}_hours"] = InputSpec(f"{area}_hours", default=0)
            specs[f"{area}_inside_sqft"] = InputSpec(f"{area}_inside_sqft", kind="sqft", default=0)
            specs[f"{area}_outside_sqft"] = InputSpec(f"{area}_outside_sqft", kind="sqft", default=0)
        specs["kitchen_size"] = InputSpec("kitchen_size", kind="choice", default="large", choices=("smallMedium", "large"))
        specs["patio_mode"] = InputSpec("patio_mode", kind="choice", default="standalone", choices=("standalone", "upsell"))
        specs["rate_tier"] = InputSpec("rate_tier", kind="choice", default="redRate", choices=("redRate", "greenRate"))
        return specs

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("hourlyRate", 200, (f"{_CORE}.defaultHourlyRate", "hourlyRate")),
            RateSpec("tripCharge", 75, (f"{_CORE}.tripCharge", "tripCharge")),
            RateSpec("minimumVisit", 475, (f"{_CORE}.minimumVisit", "minimumVisit")),
            RateSpec("kitchenSmallMedium", 1500, (f"{_AREA}.kitchen.smallMedium",)),
            RateSpec("kitchenLarge", 2500, (f"{_AREA}.kitchen.large",)),
            RateSpec("frontOfHouse", 2500, (f"{_AREA}.frontOfHouse",)),
            RateSpec("patioStandalone", 875, (f"{_AREA}.patio.standalone",)),
            RateSpec("patioUpsell", 500, (f"{_AREA}.patio.upsell",)),
            RateSpec("sqftFixedFee", 200, (f"{_SQFT}.fixedFee",)),
            RateSpec("sqftInsideRate", 0.6, (f"{_SQFT}.insideRate",)),
            RateSpec("sqftOutsideRate", 0.4, (f"{_SQFT}.outsideRate",)),
        ] + RATE_TIER_SPECS

    def component_fields(self) -> List[str]:
        return list(AREAS.values())

    def priced_areas(self, inputs: Mapping[str, Any]) -> List[str]:
        return [area for area in AREAS if inputs.get(f"{area}_method", "none") not in (None, "", "none")]

    def is_active(self, inputs: Mapping[str, Any]) -> bool:
        return bool(self.priced_areas(inputs))

    def quantity(self, inputs: Mapping[str, Any]) -> float:
        return float(len(self.priced_areas(inputs)))

    def _area_price(self, area: str, inputs: Mapping[str, Any], rates: Mapping[str, float]) -> float:
        method = inputs[f"{area}_method"]
        floor = rates["minimumVisit"]
        if method == "hourly":
            labour = inputs[f"{area}_workers"] * inputs[f"{area}_hours"] * rates["hourlyRate"]
            return max(rates["tripCharge"] + labour, floor)
        if method == "squareFootage":
            inside = inputs[f"{area}_inside_sqft"] * rates["sqftInsideRate"]
            outside = inputs[f"{area}_outside_sqft"] * rates["sqftOutsideRate"]
            return max(rates["sqftFixedFee"] + inside + outside + rates["tripCharge"], floor)

        # areaSpecific
        if area == "patio":
            return rates["patioUpsell"] if inputs["patio_mode"] == "upsell" else rates["patioStandalone"]
        if area == "walkway":
            outside = inputs["walkway_outside_sqft"] * rates["sqftOutsideRate"]
            return max(rates["sqftFixedFee"] + outside + rates["tripCharge"], floor)
        if area == "foh":
            return rates["frontOfHouse"]
        if area == "boh":
            return rates["kitchenLarge"] if inputs["kitchen_size"] == "large" else rates["kitchenSmallMedium"]
        return floor

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        tier = self.tier_multiplier(inputs, rates)
        out = dict.fromkeys(self.component_fields(), 0.0)
        details: List[str] = []
        for area in self.priced_areas(inputs):
            amount = round2(self._area_price(area, inputs, rates) * tier)
            out[AREAS[area]] = amount
            details.append(f"{area.upper() if area in ('foh', 'boh') else area.title()}: ${amount:,.2f} ({inputs[f'{area}_method']})")
        return ServicePricing(breakdown=out, details=details)

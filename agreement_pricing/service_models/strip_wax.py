from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from ..pricing.units import flat_rate_with_minimum
from .base import RATE_TIER_SPECS, BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing

VARIANTS = ("standardFull", "noSealant", "wellMaintained")
_DEFAULTS = {
    "standardFull": (0.75, 550),
    "noSealant": (0.70, 550),
    "wellMaintained": (0.40, 400),
}


class StripWaxModel(BaseServiceModel):
    """Floor strip & wax: rate per sq ft by job variant, with a minimum."""

    service_id = "stripWax"
    display_name = "Strip & Wax"
    default_frequency = FrequencyKey.ONE_TIME
    visit_approximations = {
        FrequencyKey.QUARTERLY: 0.333,
        FrequencyKey.BIANNUAL: 0.167,
        FrequencyKey.ANNUAL: 0.083,
    }

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "floor_area_sqft": InputSpec("floor_area_sqft", kind="sqft", qualifying=True, default=0),
            "variant": InputSpec("variant", kind="choice", default="standardFull", choices=VARIANTS),
            "rate_tier": InputSpec("rate_tier", kind="choice", default="redRate", choices=("redRate", "greenRate")),
        }

    def rate_specs(self) -> List[RateSpec]:
        out: List[RateSpec] = []
        for v in VARIANTS:
            rate, minimum = _DEFAULTS[v]
            out.append(RateSpec(f"{v}RatePerSqFt", rate, (f"variants.{v}.ratePerSqFt", f"{v}RatePerSqFt")))
            out.append(RateSpec(f"{v}Minimum", minimum, (f"variants.{v}.minCharge", f"{v}MinCharge")))
        return out + RATE_TIER_SPECS

    def component_fields(self) -> List[str]:
        return ["floor_service"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        v = inputs["variant"]
        rate = rates[f"{v}RatePerSqFt"] * self.tier_multiplier(inputs, rates)
        minimum = rates[f"{v}Minimum"]
        sqft = inputs["floor_area_sqft"]
        floor = flat_rate_with_minimum(sqft, rate, minimum)
        details = [f"{sqft:g} sq ft @ ${rate:,.2f} ({v}, min ${minimum:,.2f})"] if sqft > 0 else []
        return ServicePricing(breakdown={"floor_service": floor}, details=details)

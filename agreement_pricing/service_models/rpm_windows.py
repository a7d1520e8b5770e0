from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from .base import RATE_TIER_SPECS, BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing

# Cadences without their own multiplier borrow the closest one.
_MULTIPLIER_KEY = {
    FrequencyKey.WEEKLY: "weekly",
    FrequencyKey.BIWEEKLY: "biweekly",
    FrequencyKey.TWICE_PER_MONTH: "biweekly",
    FrequencyKey.MONTHLY: "monthly",
    FrequencyKey.BIMONTHLY: "monthly",
    FrequencyKey.QUARTERLY: "quarterly",
    FrequencyKey.BIANNUAL: "quarterly",
    FrequencyKey.ANNUAL: "quarterly",
    FrequencyKey.ONE_TIME: "quarterly",
}


class RpmWindowsModel(BaseServiceModel):
    """RPM window cleaning.

    Window rates and the trip charge are weekly rates scaled by a frequency
    multiplier. A first-time install visit costs the install multiplier times
    the recurring visit (the install portion plus the normal service).
    """

    service_id = "rpmWindows"
    display_name = "RPM Windows"
    default_frequency = FrequencyKey.WEEKLY
    has_installation = True
    install_stacks_service = True

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "small_windows": InputSpec("small_windows", qualifying=True, default=0),
            "medium_windows": InputSpec("medium_windows", qualifying=True, default=0),
            "large_windows": InputSpec("large_windows", qualifying=True, default=0),
            "first_time_install": InputSpec("first_time_install", kind="bool", default=False),
            "rate_tier": InputSpec("rate_tier", kind="choice", default="redRate", choices=("redRate", "greenRate")),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("smallWindowRate", 1.5, ("windowPricing.small", "smallWindowRate")),
            RateSpec("mediumWindowRate", 3.0, ("windowPricing.medium", "mediumWindowRate")),
            RateSpec("largeWindowRate", 7.0, ("windowPricing.large", "largeWindowRate")),
            RateSpec("tripCharge", 8.0, ("tripCharges.standard", "tripCharge")),
            RateSpec("installMultiplierFirstTime", 3, ("installPricing.firstTimeMultiplier", "installMultiplierFirstTime")),
            RateSpec("weeklyMultiplier", 1.0, ("frequencyPriceMultipliers.weekly", "frequencyMultipliers.weekly")),
            RateSpec("biweeklyMultiplier", 1.25, ("frequencyPriceMultipliers.biweekly", "frequencyMultipliers.biweekly")),
            RateSpec("monthlyMultiplier", 1.25, ("frequencyPriceMultipliers.monthly", "frequencyMultipliers.monthly")),
            RateSpec("quarterlyMultiplier", 2.0, ("frequencyPriceMultipliers.quarterly", "frequencyMultipliers.quarterly")),
        ] + RATE_TIER_SPECS

    def component_fields(self) -> List[str]:
        return ["small_windows", "medium_windows", "large_windows", "trip_charge"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        freq_mult = rates[f"{_MULTIPLIER_KEY[frequency]}Multiplier"]
        scale = freq_mult * self.tier_multiplier(inputs, rates)

        out = {
            "small_windows": inputs["small_windows"] * rates["smallWindowRate"] * scale,
            "medium_windows": inputs["medium_windows"] * rates["mediumWindowRate"] * scale,
            "large_windows": inputs["large_windows"] * rates["largeWindowRate"] * scale,
            "trip_charge": 0.0,
        }
        has_windows = any(out.values())
        details: List[str] = []
        if has_windows:
            # trip is billed only when there is at least one window
            out["trip_charge"] = rates["tripCharge"] * scale
            details.append(f"Frequency multiplier x{freq_mult:g}")

        installation = None
        if inputs["first_time_install"] and has_windows:
            mult = rates["installMultiplierFirstTime"]
            installation = sum(out.values()) * max(mult - 1.0, 0.0)
            details.append(f"First-time install x{mult:g} on the first visit")
        return ServicePricing(breakdown=out, details=details, installation=installation)

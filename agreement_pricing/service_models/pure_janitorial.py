from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..pricing.frequency import FrequencyKey
from .base import BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing

# Add-on time: (up to minutes, flat price, hourly rate). The last tier bills by the hour.
ADDON_TIERS: Tuple[Tuple[float, Optional[float], Optional[float]], ...] = (
    (15, 10.0, None),
    (30, 20.0, None),
    (60, 50.0, None),
    (120, 80.0, None),
    (180, 100.0, None),
    (240, 120.0, None),
    (float("inf"), None, 30.0),
)


def addon_time_price(minutes: float) -> float:
    """Price of extra minutes tacked onto a visit, from the tier table."""
    if minutes <= 0:
        return 0.0
    for up_to, flat, hourly in ADDON_TIERS:
        if minutes <= up_to:
            if hourly is not None:
                return minutes / 60.0 * hourly
            return flat or 0.0
    return 0.0


class PureJanitorialModel(BaseServiceModel):
    """Pure janitorial labour billed by the hour.

    A visit bills ``max(hours, minimum hours)`` at the route rate, or at the
    short-job rate for one-time work. Hours are manual hours plus vacuuming
    plus dusting places converted at the places-per-hour rate. A dirty initial
    clean costs the multiplier times the labour on the first visit.
    """

    service_id = "pureJanitorial"
    display_name = "Pure Janitorial"
    default_frequency = FrequencyKey.WEEKLY
    has_installation = True
    install_stacks_service = True

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "manual_hours": InputSpec("manual_hours", qualifying=True, default=0),
            "vacuuming_hours": InputSpec("vacuuming_hours", qualifying=True, default=0),
            "dusting_places": InputSpec("dusting_places", qualifying=True, default=0),
            "addon_minutes": InputSpec("addon_minutes", default=0, description="Extra minutes priced from the add-on tiers"),
            "dirty_initial": InputSpec("dirty_initial", kind="bool", default=False),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("baseHourlyRate", 30, ("standardHourlyPricing.standardHourlyRate", "baseHourlyRate")),
            RateSpec("shortJobHourlyRate", 50, ("shortJobHourlyPricing.shortJobHourlyRate", "shortJobHourlyRate")),
            RateSpec("minHoursPerVisit", 4, ("standardHourlyPricing.minimumHoursPerTrip", "minHoursPerVisit")),
            RateSpec("dustingPlacesPerHour", 4, ("dusting.itemsPerHour", "dustingPlacesPerHour")),
            RateSpec("dirtyInitialMultiplier", 3, ("dusting.dirtyFirstTimeMultiplier", "dirtyInitialMultiplier")),
        ]

    def component_fields(self) -> List[str]:
        return ["labor", "addon_time"]

    def hours(self, inputs: Mapping[str, Any], rates: Mapping[str, float]) -> float:
        per_hour = rates["dustingPlacesPerHour"]
        dusting = inputs["dusting_places"] / per_hour if per_hour > 0 else 0.0
        return inputs["manual_hours"] + inputs["vacuuming_hours"] + dusting

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        hours = self.hours(inputs, rates)
        out = {"labor": 0.0, "addon_time": 0.0}
        if hours <= 0:
            return ServicePricing(breakdown=out)

        one_time = frequency is FrequencyKey.ONE_TIME
        rate = rates["shortJobHourlyRate"] if one_time else rates["baseHourlyRate"]
        billable = max(hours, rates["minHoursPerVisit"])
        out["labor"] = billable * rate
        out["addon_time"] = addon_time_price(inputs["addon_minutes"])

        details = [f"{hours:g} hr(s), billed {billable:g} hr(s) @ ${rate:,.2f}"]
        if billable > hours:
            details.append(f"Minimum {rates['minHoursPerVisit']:g} hours per visit")
        if out["addon_time"]:
            details.append(f"Add-on time {inputs['addon_minutes']:g} min ${out['addon_time']:,.2f}")

        installation = None
        if inputs["dirty_initial"]:
            mult = rates["dirtyInitialMultiplier"]
            installation = out["labor"] * max(mult - 1.0, 0.0)
            details.append(f"Dirty initial clean x{mult:g} on the first visit")
        return ServicePricing(breakdown=out, details=details, installation=installation)

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from ..pricing.units import step_down_area_price
from .base import BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing

LOCATIONS = ("standard", "insideBeltway", "outsideBeltway")


class ElectrostaticSprayModel(BaseServiceModel):
    """Electrostatic disinfection, priced per room or per 1000 sq ft.

    Square footage below one unit pays the unit rate. Above it the area is
    billed proportionally, or rounded up to whole units when ``round_to_unit``
    is set. The trip charge depends on the location and is waived when the
    visit is combined with SaniClean.
    """

    service_id = "electrostaticSpray"
    display_name = "Electrostatic Spray"
    default_frequency = FrequencyKey.WEEKLY

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "pricing_method": InputSpec("pricing_method", kind="choice", default="byRoom", choices=("byRoom", "bySqFt")),
            "rooms": InputSpec("rooms", qualifying=True, default=0),
            "area_sqft": InputSpec("area_sqft", kind="sqft", qualifying=True, default=0),
            "round_to_unit": InputSpec("round_to_unit", kind="bool", default=False),
            "location": InputSpec("location", kind="choice", default="standard", choices=LOCATIONS),
            "combined_with_saniclean": InputSpec("combined_with_saniclean", kind="bool", default=False),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("ratePerRoom", 20, ("roomPricing.ratePerRoom", "ratePerRoom")),
            RateSpec("ratePerThousandSqFt", 50, ("sqFtPricing.ratePerUnit", "ratePerThousandSqFt")),
            RateSpec("sqFtUnit", 1000, ("sqFtPricing.sqFtUnit", "sqFtUnit")),
        ] + [RateSpec(f"{loc}TripCharge", 10 if loc == "insideBeltway" else 0, (f"tripCharges.{loc}",)) for loc in LOCATIONS]

    def component_fields(self) -> List[str]:
        return ["spray_service", "trip_charge"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        details: List[str] = []
        if inputs["pricing_method"] == "bySqFt":
            sqft = inputs["area_sqft"]
            service = step_down_area_price(
                sqft,
                rates["sqFtUnit"],
                rates["ratePerThousandSqFt"],
                rates["ratePerThousandSqFt"],
                exact=inputs["round_to_unit"],
            )
            if service:
                details.append(f"{sqft:g} sq ft @ ${rates['ratePerThousandSqFt']:,.2f} per {rates['sqFtUnit']:g} sq ft")
        else:
            service = inputs["rooms"] * rates["ratePerRoom"]
            if service:
                details.append(f"{inputs['rooms']:g} rooms @ ${rates['ratePerRoom']:,.2f}")

        trip = 0.0
        if service and not inputs["combined_with_saniclean"]:
            trip = rates[f"{inputs['location']}TripCharge"]
        return ServicePricing(breakdown={"spray_service": service, "trip_charge": trip}, details=details)

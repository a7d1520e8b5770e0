from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from ..pricing.units import per_block_price, step_down_area_price
from .base import BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing


class MicrofiberMoppingModel(BaseServiceModel):
    """Microfiber mopping: bathrooms, huge bathrooms, extra and standalone floor area."""

    service_id = "microfiberMopping"
    display_name = "Microfiber Mopping"
    default_frequency = FrequencyKey.WEEKLY

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "bathrooms": InputSpec("bathrooms", qualifying=True, default=0),
            "huge_bathroom_sqft": InputSpec("huge_bathroom_sqft", kind="sqft", qualifying=True, default=0),
            "extra_area_sqft": InputSpec("extra_area_sqft", kind="sqft", qualifying=True, default=0),
            "use_exact_extra_area": InputSpec("use_exact_extra_area", kind="bool", default=True),
            "standalone_sqft": InputSpec("standalone_sqft", kind="sqft", qualifying=True, default=0),
            "use_exact_standalone": InputSpec("use_exact_standalone", kind="bool", default=True),
            "chemical_gallons": InputSpec("chemical_gallons", default=0),
            "included_in_saniclean": InputSpec("included_in_saniclean", kind="bool", default=False),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("bathroomRate", 10, ("bathroomPricing.pricePerBathroom", "includedBathroomRate")),
            RateSpec("hugeBathroomSqFtUnit", 300, ("hugeBathroomPricing.sqFtUnit", "hugeBathroomPricing.sqFtUnitSize")),
            RateSpec("hugeBathroomRatePerUnit", 10, ("hugeBathroomPricing.ratePerUnit", "hugeBathroomPricing.ratePerSqFt")),
            RateSpec("extraAreaSqFtUnit", 400, ("extraAreaPricing.sqFtUnit", "extraAreaPricing.extraAreaSqFtUnit")),
            RateSpec("extraAreaFirstUnitRate", 100, ("extraAreaPricing.minimumCharge", "extraAreaPricing.singleLargeAreaRate")),
            RateSpec("extraAreaRatePerUnit", 10, ("extraAreaPricing.ratePerUnit", "extraAreaPricing.extraAreaRatePerUnit")),
            RateSpec("standaloneSqFtUnit", 200, ("standalonePricing.sqFtUnit", "standalonePricing.standaloneSqFtUnit")),
            RateSpec("standaloneRatePerUnit", 10, ("standalonePricing.ratePerUnit", "standalonePricing.standaloneRatePerUnit")),
            RateSpec("standaloneMinimum", 40, ("standalonePricing.minimumCharge", "standalonePricing.standaloneMinimum")),
            RateSpec("chemicalPerGallon", 27.34, ("chemicalProducts.dailyChemicalPerGallon", "chemicalProducts.chemicalPerGallon")),
        ]

    def component_fields(self) -> List[str]:
        return ["bathrooms", "huge_bathrooms", "extra_area", "standalone_area", "chemical"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        details: List[str] = []
        out = dict.fromkeys(self.component_fields(), 0.0)

        if inputs["included_in_saniclean"]:
            details.append("Bathroom mopping included with SaniClean all-inclusive")
        else:
            out["bathrooms"] = inputs["bathrooms"] * rates["bathroomRate"]
            out["huge_bathrooms"] = per_block_price(
                inputs["huge_bathroom_sqft"], rates["hugeBathroomSqFtUnit"], rates["hugeBathroomRatePerUnit"]
            )

        out["extra_area"] = step_down_area_price(
            inputs["extra_area_sqft"],
            rates["extraAreaSqFtUnit"],
            rates["extraAreaFirstUnitRate"],
            rates["extraAreaRatePerUnit"],
            exact=inputs["use_exact_extra_area"],
        )
        out["standalone_area"] = step_down_area_price(
            inputs["standalone_sqft"],
            rates["standaloneSqFtUnit"],
            rates["standaloneMinimum"],
            rates["standaloneRatePerUnit"],
            exact=inputs["use_exact_standalone"],
        )
        out["chemical"] = inputs["chemical_gallons"] * rates["chemicalPerGallon"]

        if out["bathrooms"]:
            details.append(f"{inputs['bathrooms']:g} bathrooms @ ${rates['bathroomRate']:,.2f}")
        if out["huge_bathrooms"]:
            details.append(
                f"Huge bathroom {inputs['huge_bathroom_sqft']:g} sq ft @ ${rates['hugeBathroomRatePerUnit']:,.2f}"
                f" per {rates['hugeBathroomSqFtUnit']:g} sq ft"
            )
        if out["extra_area"]:
            method = "exact" if inputs["use_exact_extra_area"] else "direct"
            details.append(f"Extra area {inputs['extra_area_sqft']:g} sq ft ({method})")
        if out["standalone_area"]:
            method = "exact" if inputs["use_exact_standalone"] else "direct"
            details.append(f"Standalone {inputs['standalone_sqft']:g} sq ft ({method})")
        return ServicePricing(breakdown=out, details=details)

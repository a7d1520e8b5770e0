from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from ..pricing.units import step_down_area_price
from .base import BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing


class CarpetCleaningModel(BaseServiceModel):
    """Carpet cleaning by area with a per-visit minimum.

    The install visit replaces the first service visit and costs the
    per-visit price times the dirty/clean multiplier.
    """

    service_id = "carpetCleaning"
    display_name = "Carpet Cleaning"
    default_frequency = FrequencyKey.MONTHLY
    has_installation = True

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "area_sqft": InputSpec("area_sqft", kind="sqft", qualifying=True, default=0),
            "use_exact_sqft": InputSpec("use_exact_sqft", kind="bool", default=True),
            "include_install": InputSpec("include_install", kind="bool", default=False),
            "dirty_install": InputSpec("dirty_install", kind="bool", default=False),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("unitSqFt", 500, ("baseSqFtUnit", "unitSqFt")),
            RateSpec("firstUnitRate", 250, ("basePrice", "firstUnitRate")),
            RateSpec("additionalUnitRate", 125, ("additionalUnitPrice", "additionalUnitRate")),
            RateSpec("perVisitMinimum", 250, ("minimumChargePerVisit", "perVisitMinimum")),
            RateSpec("installMultiplierDirty", 3, ("installationMultipliers.dirtyInstallMultiplier", "installMultipliers.dirty")),
            RateSpec("installMultiplierClean", 1, ("installationMultipliers.cleanInstallMultiplier", "installMultipliers.clean")),
        ]

    def component_fields(self) -> List[str]:
        return ["carpet_area"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        sqft = inputs["area_sqft"]
        area = step_down_area_price(
            sqft, rates["unitSqFt"], rates["firstUnitRate"], rates["additionalUnitRate"], exact=inputs["use_exact_sqft"]
        )
        if sqft > 0:
            area = max(area, rates["perVisitMinimum"])

        details: List[str] = []
        if sqft > 0:
            method = "exact" if inputs["use_exact_sqft"] else "direct"
            details.append(f"{sqft:g} sq ft ({method}), minimum ${rates['perVisitMinimum']:,.2f}")

        installation = None
        if inputs["include_install"] and area > 0:
            mult = rates["installMultiplierDirty"] if inputs["dirty_install"] else rates["installMultiplierClean"]
            installation = area * mult
            details.append(f"Installation x{mult:g} ({'dirty' if inputs['dirty_install'] else 'clean'})")

        return ServicePricing(breakdown={"carpet_area": area}, details=details, installation=installation)

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..pricing.frequency import FrequencyKey
from ..pricing.units import partial_install_split
from .base import RATE_TIER_SPECS, BaseServiceModel
from .types import InputSpec, RateSpec, ServicePricing


class SaniPodModel(BaseServiceModel):
    """SaniPod feminine hygiene units (standalone service).

    Per visit the cheaper of ``pods * standalone rate`` or
    ``pods * per-pod rate + weekly base`` is charged. New units pay the
    install rate on the first visit instead of the service rate.
    """

    service_id = "sanipod"
    display_name = "SaniPod"
    default_frequency = FrequencyKey.WEEKLY
    has_installation = True

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            "pods": InputSpec("pods", qualifying=True, default=0),
            "extra_bags": InputSpec("extra_bags", default=0),
            "extra_bags_recurring": InputSpec("extra_bags_recurring", kind="bool", default=True),
            "install_pods": InputSpec("install_pods", default=0, description="Pods installed on the first visit"),
            "rate_tier": InputSpec("rate_tier", kind="choice", default="redRate", choices=("redRate", "greenRate")),
        }

    def rate_specs(self) -> List[RateSpec]:
        return [
            RateSpec("standaloneRatePerPod", 8, ("servicePricing.standalonePricePerPod", "standaloneExtraWeeklyCharge", "alternateRatePerUnit")),
            RateSpec("ratePerPod", 3, ("servicePricing.pricePerPod", "weeklyRatePerUnit")),
            RateSpec("weeklyBase", 40, ("servicePricing.weeklyBaseCharge", "weeklyBaseCharge", "alternateBaseCharge")),
            RateSpec("extraBagPrice", 2, ("extraBags.pricePerBag", "extraBagPrice")),
            RateSpec("installRatePerPod", 25, ("installation.pricePerPod", "installChargePerUnit")),
        ] + RATE_TIER_SPECS

    def component_fields(self) -> List[str]:
        return ["pod_service", "extra_bags"]

    def pod_service(self, pods: float, rates: Mapping[str, float], tier: float) -> float:
        if pods <= 0:
            return 0.0
        standalone = pods * rates["standaloneRatePerPod"]
        with_base = pods * rates["ratePerPod"] + rates["weeklyBase"]
        return min(standalone, with_base) * tier

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        pods = inputs["pods"]
        tier = self.tier_multiplier(inputs, rates)
        service = self.pod_service(pods, rates, tier)
        bags = inputs["extra_bags"] * rates["extraBagPrice"]
        recurring_bags = bags if inputs["extra_bags_recurring"] else 0.0

        details: List[str] = []
        if pods > 0:
            cheaper = "per pod" if pods * rates["standaloneRatePerPod"] <= pods * rates["ratePerPod"] + rates["weeklyBase"] else "per pod + base"
            details.append(f"{pods:g} pods, {cheaper} pricing ${service:,.2f}")
        if bags and not inputs["extra_bags_recurring"]:
            details.append(f"One-time extra bags ${bags:,.2f} on the first visit")

        installation = None
        shares = None
        installed = min(inputs["install_pods"], pods)
        one_time_bags = bags > 0 and not inputs["extra_bags_recurring"]
        if installed > 0 or one_time_bags:
            installation = installed * rates["installRatePerPod"]
            # installed pods pay the install rate instead of their service
            serviced, total = partial_install_split(pods, installed, 0.0, 1.0)
            shares = {"pod_service": serviced / total if total else 0.0, "extra_bags": 1.0}
            if installed > 0:
                details.append(f"Install {installed:g} pods @ ${rates['installRatePerPod']:,.2f}")

        return ServicePricing(
            breakdown={"pod_service": service, "extra_bags": recurring_bags},
            details=details,
            installation=installation,
            first_visit_shares=shares,
            first_visit_extra=bags if one_time_bags else 0.0,
        )

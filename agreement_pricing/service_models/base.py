from __future__ import annotations

from typing import Any, Dict, List, Mapping, Protocol

from ..pricing.frequency import FrequencyKey
from ..utils.numbers import coerce_flag, coerce_number
from .types import InputIssue, InputSpec, RateSpec, ServicePricing

AGGREGATE_FIELDS = ["per_visit_price", "first_month_total", "monthly_recurring", "contract_total"]

RATE_TIER_SPECS = [
    RateSpec("redRateMultiplier", 1.0, ("rateTiers.redRate.multiplier", "rateCategories.redRate.multiplier")),
    RateSpec("greenRateMultiplier", 1.3, ("rateTiers.greenRate.multiplier", "rateCategories.greenRate.multiplier")),
]


class ServiceModel(Protocol):
    """A service line's pricing rule."""

    service_id: str
    display_name: str

    def input_specs(self) -> Dict[str, InputSpec]: ...

    def rate_specs(self) -> List[RateSpec]: ...

    def component_fields(self) -> List[str]: ...

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing: ...


class BaseServiceModel:
    """Descriptor defaults shared by the concrete service models."""

    service_id: str = "other"
    display_name: str = "Service"
    default_frequency: FrequencyKey = FrequencyKey.WEEKLY
    has_installation: bool = False
    install_stacks_service: bool = False  # first visit = install + service vs install only
    custom_field_target: str = "contract"  # where ad-hoc dollar/calc rows land
    visit_approximations: Dict[FrequencyKey, float] = {}

    def input_specs(self) -> Dict[str, InputSpec]:
        return {}

    def rate_specs(self) -> List[RateSpec]:
        return []

    def component_fields(self) -> List[str]:
        return []

    def override_fields(self) -> List[str]:
        out = list(self.component_fields())
        out.extend(AGGREGATE_FIELDS)
        if self.has_installation:
            out.append("installation_fee")
        return out

    def coerce_input(self, name: str, value: Any) -> Any:
        spec = self.input_specs().get(name)
        if spec is None:
            return value
        if value is None:
            value = spec.default
        if spec.kind == "bool":
            return coerce_flag(value)
        if spec.kind == "choice":
            value = spec.default if value in (None, "") else str(value)
            return value if value in spec.choices else spec.default
        if spec.kind == "text":
            return "" if value is None else str(value)
        return coerce_number(value)

    def normalize_inputs(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: self.coerce_input(name, raw.get(name)) for name in self.input_specs()}

    def quantity(self, inputs: Mapping[str, Any]) -> float:
        """Sum of qualifying counts; reported with change-log entries."""
        return sum(
            coerce_number(inputs.get(name)) for name, spec in self.input_specs().items() if spec.qualifying
        )

    def validate_inputs(self, raw: Mapping[str, Any]) -> List[InputIssue]:
        issues: List[InputIssue] = []
        specs = self.input_specs()
        for k, v in raw.items():
            spec = specs.get(k)
            if spec is None:
                issues.append(InputIssue(key=k, issue="unknown", message=f"Unknown input for {self.service_id}: {k}"))
                continue
            if spec.kind == "choice" and v not in (None, "") and v not in spec.choices:
                issues.append(
                    InputIssue(key=k, issue="invalid", message=f"{k} must be one of {', '.join(spec.choices)}")
                )
        return issues

    def is_active(self, inputs: Mapping[str, Any]) -> bool:
        for name, spec in self.input_specs().items():
            if spec.qualifying and coerce_number(inputs.get(name)) > 0:
                return True
        return False

    def tier_multiplier(self, inputs: Mapping[str, Any], rates: Mapping[str, float]) -> float:
        if inputs.get("rate_tier") == "greenRate":
            return rates["greenRateMultiplier"]
        return rates["redRateMultiplier"]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        raise NotImplementedError

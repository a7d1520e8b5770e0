"""DeclarativeServiceModel.

Wraps a ServiceDefinition and exposes the BaseServiceModel interface, so the
engine prices YAML-defined services like the hand-written ones.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ...pricing.frequency import FrequencyKey, parse_frequency
from ...pricing.units import flat_rate_with_minimum
from ..base import BaseServiceModel
from ..types import InputSpec, RateSpec, ServicePricing
from .schema import ServiceDefinition


class DeclarativeServiceModel(BaseServiceModel):
    def __init__(self, definition: ServiceDefinition):
        self.definition = definition
        self.service_id = definition.id
        self.display_name = definition.display_name
        self.default_frequency = parse_frequency(definition.default_frequency)
        self.has_installation = definition.installation is not None
        self.install_stacks_service = definition.install_stacks_service

    def input_specs(self) -> Dict[str, InputSpec]:
        return {
            i.key: InputSpec(
                name=i.key,
                kind=i.kind,
                default=i.default,
                choices=i.choices,
                qualifying=i.qualifying,
                description=i.description,
            )
            for i in self.definition.inputs
        }

    def rate_specs(self) -> List[RateSpec]:
        return [RateSpec(r.key, r.default, r.paths, description=r.description) for r in self.definition.rates]

    def component_fields(self) -> List[str]:
        return [c.key for c in self.definition.components]

    def price(self, inputs: Dict[str, Any], rates: Mapping[str, float], frequency: FrequencyKey) -> ServicePricing:
        breakdown: Dict[str, float] = {}
        details: List[str] = []
        for c in self.definition.components:
            count = inputs[c.input]
            minimum = rates[c.minimum] if c.minimum else 0.0
            breakdown[c.key] = flat_rate_with_minimum(count, rates[c.rate], minimum)
            if breakdown[c.key]:
                details.append(f"{c.label}: {count:g} @ ${rates[c.rate]:,.2f}")

        installation = None
        inst = self.definition.installation
        if inst is not None and (inst.when is None or inputs[inst.when]):
            installation = inputs[inst.input] * rates[inst.rate]
            if installation:
                details.append(f"Installation: {inputs[inst.input]:g} @ ${rates[inst.rate]:,.2f}")
        return ServicePricing(breakdown=breakdown, details=details, installation=installation)

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional

from .base import ServiceModel
from .carpet import CarpetCleaningModel
from .declarative import DeclarativeServiceModel, load_definitions
from .electrostatic_spray import ElectrostaticSprayModel
from .foaming_drain import FoamingDrainModel
from .microfiber import MicrofiberMoppingModel
from .pure_janitorial import PureJanitorialModel
from .refresh_power_scrub import RefreshPowerScrubModel
from .rpm_windows import RpmWindowsModel
from .saniclean import SaniCleanModel
from .sanipod import SaniPodModel
from .saniscrub import SaniScrubModel
from .strip_wax import StripWaxModel


def _normalize(service_id: str) -> str:
    return re.sub(r"[^a-z0-9]", "", str(service_id or "").lower())


@dataclass
class ServiceModelRegistry:
    """Lookup table for service models by service id (case/punctuation-insensitive)."""

    models: Dict[str, ServiceModel] = field(default_factory=dict)   # normalized id -> model
    aliases: Dict[str, str] = field(default_factory=dict)           # normalized alias -> normalized id

    def register(self, model: ServiceModel) -> None:
        self.models[_normalize(model.service_id)] = model

    def register_alias(self, alias: str, service_id: str) -> None:
        self.aliases[_normalize(alias)] = _normalize(service_id)

    def get(self, service_id: str) -> Optional[ServiceModel]:
        key = _normalize(service_id)
        key = self.aliases.get(key, key)
        return self.models.get(key)

    def require(self, service_id: str) -> ServiceModel:
        model = self.get(service_id)
        if model is None:
            known = ", ".join(self.service_ids())
            raise KeyError(f"Unknown service '{service_id}' (known: {known})")
        return model

    def service_ids(self) -> List[str]:
        return [m.service_id for m in self.models.values()]


def build_default_registry() -> ServiceModelRegistry:
    """Registry with every built-in service plus the YAML definitions."""

    reg = ServiceModelRegistry()
    reg.register(SaniCleanModel())
    reg.register(SaniPodModel())
    reg.register(SaniScrubModel())
    reg.register(MicrofiberMoppingModel())
    reg.register(CarpetCleaningModel())
    reg.register(StripWaxModel())
    reg.register(RpmWindowsModel())
    reg.register(FoamingDrainModel())
    reg.register(ElectrostaticSprayModel())
    reg.register(PureJanitorialModel())
    reg.register(RefreshPowerScrubModel())

    # Saved agreements use a few older service keys.
    reg.register_alias("carpetclean", "carpetCleaning")
    reg.register_alias("microfiber", "microfiberMopping")
    reg.register_alias("rpm", "rpmWindows")
    reg.register_alias("janitorial", "pureJanitorial")
    reg.register_alias("powerScrub", "refreshPowerScrub")

    for d in load_definitions():
        reg.register(DeclarativeServiceModel(d))
        for alias in d.aliases:
            reg.register_alias(alias, d.id)
    return reg


@lru_cache(maxsize=1)
def default_registry() -> ServiceModelRegistry:
    return build_default_registry()

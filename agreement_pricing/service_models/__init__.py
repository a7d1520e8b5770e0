from .base import AGGREGATE_FIELDS, BaseServiceModel, ServiceModel
from .declarative import DeclarativeServiceModel, load_definitions
from .registry import ServiceModelRegistry, build_default_registry, default_registry
from .types import InputIssue, InputSpec, RateSpec, ServicePricing

__all__ = [
    "AGGREGATE_FIELDS",
    "BaseServiceModel",
    "ServiceModel",
    "ServiceModelRegistry",
    "build_default_registry",
    "default_registry",
    "DeclarativeServiceModel",
    "load_definitions",
    "InputSpec",
    "InputIssue",
    "RateSpec",
    "ServicePricing",
]

from .loader import load_definitions
from .model import DeclarativeServiceModel
from .schema import ServiceDefinition

__all__ = ["load_definitions", "DeclarativeServiceModel", "ServiceDefinition"]

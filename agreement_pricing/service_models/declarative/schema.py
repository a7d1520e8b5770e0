"""Declarative service-model schema.

Simple per-unit services (a count times a rate, an optional minimum, an
optional per-unit install) can be added as YAML/JSON definitions instead of
writing a Python model per service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


@dataclass(frozen=True)
class InputDef:
    key: str
    kind: str = "count"  # count | sqft | bool | choice
    default: Any = None
    choices: Tuple[str, ...] = ()
    qualifying: bool = False
    description: str = ""


@dataclass(frozen=True)
class RateDef:
    key: str
    default: float
    paths: Tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class ComponentDef:
    key: str
    label: str
    input: str
    rate: str
    minimum: Optional[str] = None  # rate key holding the line minimum


@dataclass(frozen=True)
class InstallDef:
    input: str
    rate: str
    when: Optional[str] = None  # bool input gating the install


@dataclass(frozen=True)
class ServiceDefinition:
    id: str
    display_name: str
    description: str = ""
    default_frequency: str = "weekly"
    aliases: List[str] = field(default_factory=list)
    inputs: List[InputDef] = field(default_factory=list)
    rates: List[RateDef] = field(default_factory=list)
    components: List[ComponentDef] = field(default_factory=list)
    installation: Optional[InstallDef] = None
    install_stacks_service: bool = False
    source_file: str = ""

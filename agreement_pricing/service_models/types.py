from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..pricing.frequency import FrequencyKey


@dataclass(frozen=True)
class InputSpec:
    """Specifies one base input of a service form."""

    name: str
    kind: str = "count"  # "count" | "sqft" | "money" | "bool" | "choice" | "text"
    default: Optional[Any] = None
    choices: Tuple[str, ...] = ()
    qualifying: bool = False  # a positive value makes the service active
    description: str = ""


@dataclass(frozen=True)
class InputIssue:
    key: str
    issue: str  # "unknown" | "invalid"
    message: str


@dataclass(frozen=True)
class RateSpec:
    """One rate leaf: remote paths in priority order, then the static default."""

    key: str
    default: float
    paths: Tuple[str, ...] = ()
    included_as: Optional[str] = None  # rate reused when the remote says "included"
    description: str = ""


@dataclass
class ServicePricing:
    breakdown: Dict[str, float]
    details: List[str] = field(default_factory=list)
    installation: Optional[float] = None
    # Share of each component billed on the first visit next to the
    # installation. None defers to the model's install_stacks_service policy.
    first_visit_shares: Optional[Dict[str, float]] = None
    first_visit_extra: float = 0.0  # one-time charges on the first visit only
    # Components billed monthly on their own cadence, outside the per-visit price.
    component_cadences: Dict[str, FrequencyKey] = field(default_factory=dict)

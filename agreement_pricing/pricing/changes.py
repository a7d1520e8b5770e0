"""Override change recording for the audit log.

A baseline snapshot is taken when a service form is first loaded (saved
values for an existing agreement, resolved defaults for a new one). Each edit
is compared against that baseline, never against the previous edit, so a field
edited five times before saving yields one entry. Editing a field back to its
baseline drops the entry. Fields with no baseline are not logged.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from ..utils.numbers import as_number
from .forms import calculated_field_name, custom_field_name

_LOGGER = logging.getLogger(__name__)

FIELD_DISPLAY_NAMES: Dict[str, str] = {
    "per_visit_price": "Per Visit Price",
    "monthly_recurring": "Monthly Recurring",
    "first_month_total": "First Month Total",
    "contract_total": "Contract Total",
    "installation_fee": "Installation Fee",
    "base_service": "Base Service Cost",
    "trip_charge": "Trip Charge",
    "facility_components": "Facility Components",
    "soap_upgrade": "Soap Upgrade",
    "excess_soap": "Excess Soap",
    "microfiber_mopping": "Microfiber Mopping",
    "warranty_fees": "Warranty Fees",
    "paper_overage": "Paper Overage",
    "extra_area": "Extra Area Price",
    "standalone_area": "Standalone Price",
    "non_bathroom_area": "Non-Bathroom Area",
    "bathroom_fixtures": "Bathroom Fixtures",
    "huge_bathrooms": "Huge Bathroom Price",
}

_EPSILON = 1e-9


def field_display_name(name: str) -> str:
    key = calculated_field_name(name) if name.startswith("custom") else name
    if key in FIELD_DISPLAY_NAMES:
        return FIELD_DISPLAY_NAMES[key]
    # rate keys are camelCase (ratePerFixture), form fields snake_case
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", key).replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


@dataclass(frozen=True)
class ChangeEntry:
    service_id: str
    field_key: str
    field_display_name: str
    original_value: float
    new_value: float
    quantity: float
    frequency: str
    change_amount: float
    change_percentage: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "fieldKey": self.field_key,
            "fieldDisplayName": self.field_display_name,
            "originalValue": self.original_value,
            "newValue": self.new_value,
            "quantity": self.quantity,
            "frequency": self.frequency,
            "changeAmount": self.change_amount,
            "changePercentage": self.change_percentage,
        }


class ChangeSink(Protocol):
    def emit(self, entries: List[ChangeEntry]) -> None: ...


@dataclass
class Baseline:
    """Point-in-time values of overridable fields, per service."""

    values: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def capture(self, service_id: str, values: Mapping[str, Any], *, replace: bool = False) -> None:
        if service_id in self.values and not replace:
            return
        snap: Dict[str, float] = {}
        for k, v in values.items():
            f = as_number(v)
            if f is not None:
                snap[k] = f
        self.values[service_id] = snap

    def get(self, service_id: str, field_name: str) -> Optional[float]:
        return self.values.get(service_id, {}).get(field_name)

    def has(self, service_id: str) -> bool:
        return service_id in self.values


class ChangeRecorder:
    def __init__(self, baseline: Optional[Baseline] = None) -> None:
        self.baseline = baseline or Baseline()
        self._entries: Dict[Tuple[str, str], ChangeEntry] = {}

    def record(
        self,
        service_id: str,
        field_name: str,
        new_value: Any,
        *,
        quantity: float = 0.0,
        frequency: str = "",
        is_rate: bool = False,
    ) -> Optional[ChangeEntry]:
        original = self.baseline.get(service_id, field_name)
        if original is None:
            _LOGGER.debug("%s.%s has no baseline, change not logged", service_id, field_name)
            return None

        key = (service_id, field_name)
        new = as_number(new_value)
        if new is None or abs(new - original) < _EPSILON:
            self._entries.pop(key, None)
            return None

        amount = new - original
        pct = (amount / original) * 100.0 if original else None
        entry = ChangeEntry(
            service_id=service_id,
            field_key=field_name if is_rate else custom_field_name(field_name),
            field_display_name=field_display_name(field_name),
            original_value=original,
            new_value=new,
            quantity=quantity,
            frequency=frequency,
            change_amount=amount,
            change_percentage=pct,
        )
        self._entries[key] = entry
        return entry

    def entries(self, service_id: Optional[str] = None) -> List[ChangeEntry]:
        return [e for (sid, _), e in self._entries.items() if service_id is None or sid == service_id]

    def pending_fields(self, service_id: str) -> List[str]:
        return [name for (sid, name) in self._entries if sid == service_id]

    def clear(self, service_id: Optional[str] = None) -> None:
        if service_id is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == service_id]:
            self._entries.pop(key)

    def flush(self, sink: ChangeSink) -> int:
        entries = self.entries()
        if entries:
            sink.emit(entries)
        self._entries.clear()
        return len(entries)

"""Service form state and its wire format.

A form holds the base inputs of one service line, the billing frequency and
contract length, the unit-price fields loaded into the form (``rates``), the
manual overrides (``overrides``, keyed by the calculated field they pin) and
any ad-hoc rows the salesperson appended.

On the wire, overrides use the ``custom<Field>`` names the proposal UI saves,
e.g. ``per_visit_price`` <-> ``customPerVisitPrice``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..config import DEFAULT_CONTRACT_MONTHS, MAX_CONTRACT_MONTHS, MIN_CONTRACT_MONTHS
from ..utils.numbers import as_number, coerce_flag, coerce_number
from .frequency import FrequencyKey, parse_frequency

CUSTOM_PREFIX = "custom"


class ContractMonthsMode(str, Enum):
    NEVER_ACTIVATED = "neverActivated"
    FOLLOWING_GLOBAL = "followingGlobal"
    EXPLICITLY_OVERRIDDEN = "explicitlyOverridden"


def clamp_contract_months(value: Any) -> int:
    f = as_number(value)
    if f is None:
        return DEFAULT_CONTRACT_MONTHS
    return int(min(max(int(f), MIN_CONTRACT_MONTHS), MAX_CONTRACT_MONTHS))


def custom_field_name(field_name: str) -> str:
    """per_visit_price -> customPerVisitPrice"""
    return CUSTOM_PREFIX + "".join(p[:1].upper() + p[1:] for p in field_name.split("_") if p)


def calculated_field_name(custom_name: str) -> str:
    """customPerVisitPrice -> per_visit_price"""
    name = custom_name[len(CUSTOM_PREFIX):] if custom_name.startswith(CUSTOM_PREFIX) else custom_name
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass(frozen=True)
class CustomField:
    """Ad-hoc proposal row: text, a dollar amount, or qty @ rate = total."""

    name: str
    kind: str = "text"  # "text" | "dollar" | "calc"
    value: Any = None
    qty: float = 0.0
    rate: float = 0.0
    total: Optional[float] = None

    def amount(self) -> float:
        if self.kind == "dollar":
            return coerce_number(self.value)
        if self.kind == "calc":
            if self.total is not None:
                return coerce_number(self.total)
            return coerce_number(self.qty) * coerce_number(self.rate)
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "type": self.kind, "isCustom": True}
        if self.kind == "calc":
            out.update({"qty": self.qty, "rate": self.rate, "total": self.amount()})
        else:
            out["value"] = self.value
        return out


def parse_custom_field(obj: Mapping[str, Any]) -> CustomField:
    kind = str(obj.get("type") or obj.get("kind") or "text").strip().lower()
    if kind in ("money", "amount"):
        kind = "dollar"
    if kind not in ("text", "dollar", "calc"):
        kind = "text"
    total = as_number(obj.get("total"))
    return CustomField(
        name=str(obj.get("name") or obj.get("label") or "Custom"),
        kind=kind,
        value=obj.get("value"),
        qty=coerce_number(obj.get("qty")),
        rate=coerce_number(obj.get("rate")),
        total=total,
    )


@dataclass(frozen=True)
class FormState:
    service_id: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    frequency: FrequencyKey = FrequencyKey.WEEKLY
    contract_months: int = DEFAULT_CONTRACT_MONTHS
    overrides: Dict[str, float] = field(default_factory=dict)
    rates: Dict[str, float] = field(default_factory=dict)
    custom_fields: Tuple[CustomField, ...] = ()
    loaded_from_existing: bool = False
    contract_months_mode: ContractMonthsMode = ContractMonthsMode.NEVER_ACTIVATED


def _numbers(obj: Any) -> Dict[str, float]:
    out: Dict[str, float] = {}
    if isinstance(obj, Mapping):
        for k, v in obj.items():
            f = as_number(v)
            if f is not None:
                out[str(k)] = max(f, 0.0)
    return out


def form_from_payload(payload: Mapping[str, Any], *, default_frequency: Any = None) -> FormState:
    """Build a FormState from a saved/posted service entry.

    Accepts ``inputs`` as a nested mapping; any top-level ``custom*`` key is an
    override, and an explicit ``overrides`` mapping may use either naming.
    """
    service_id = str(payload.get("service_id") or payload.get("serviceId") or "").strip()
    if not service_id:
        raise ValueError("Service entry is missing service_id")

    overrides: Dict[str, float] = {}
    raw_overrides = payload.get("overrides") or {}
    if isinstance(raw_overrides, Mapping):
        for k, v in raw_overrides.items():
            f = as_number(v)
            if f is not None:
                overrides[calculated_field_name(str(k))] = max(f, 0.0)
    for k, v in payload.items():
        if isinstance(k, str) and k.startswith(CUSTOM_PREFIX) and k not in ("customFields", "custom_fields"):
            f = as_number(v)
            if f is not None:
                overrides[calculated_field_name(k)] = max(f, 0.0)

    raw_custom = payload.get("custom_fields") or payload.get("customFields") or []
    custom_fields = tuple(parse_custom_field(c) for c in raw_custom if isinstance(c, Mapping))

    freq_raw = payload.get("frequency") or default_frequency
    months_raw = payload.get("contract_months", payload.get("contractMonths"))
    mode_raw = payload.get("contract_months_mode") or payload.get("contractMonthsMode")
    existing = coerce_flag(payload.get("existing", payload.get("loaded_from_existing", False)))

    modes = {m.value: m for m in ContractMonthsMode}
    if mode_raw in modes:
        mode = modes[mode_raw]
    elif existing and months_raw is not None:
        mode = ContractMonthsMode.EXPLICITLY_OVERRIDDEN
    else:
        mode = ContractMonthsMode.NEVER_ACTIVATED

    inputs = payload.get("inputs") or {}
    return FormState(
        service_id=service_id,
        inputs=dict(inputs) if isinstance(inputs, Mapping) else {},
        frequency=parse_frequency(freq_raw),
        contract_months=clamp_contract_months(months_raw),
        overrides=overrides,
        rates=_numbers(payload.get("rates")),
        custom_fields=custom_fields,
        loaded_from_existing=existing,
        contract_months_mode=mode,
    )


def form_to_payload(state: FormState) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "serviceId": state.service_id,
        "frequency": state.frequency.value,
        "contractMonths": state.contract_months,
        "contractMonthsMode": state.contract_months_mode.value,
        "inputs": dict(state.inputs),
        "rates": dict(state.rates),
        "customFields": [c.to_dict() for c in state.custom_fields],
    }
    for k, v in sorted(state.overrides.items()):
        out[custom_field_name(k)] = v
    return out


def custom_field_lines(fields: Iterable[CustomField]) -> List[str]:
    lines: List[str] = []
    for c in fields:
        if c.kind == "text":
            if c.value not in (None, ""):
                lines.append(f"{c.name}: {c.value}")
        elif c.kind == "calc":
            lines.append(f"{c.name}: {c.qty:g} @ ${c.rate:,.2f} = ${c.amount():,.2f}")
        else:
            lines.append(f"{c.name}: ${c.amount():,.2f}")
    return lines

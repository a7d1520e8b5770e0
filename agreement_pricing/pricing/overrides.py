"""Override resolution and the cascade-clear rule.

Every calculated quantity can be pinned by a manual override. The engine
always reports ``effective = override if set else calculated``.

Changing a base input (quantity, geography, frequency, contract length,
pricing-mode toggle) drops every override of that service in the same update.
Unit-price (rate) edits survive input changes and are only dropped by an
explicit config refresh.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from ..utils.numbers import coerce_number
from .forms import FormState, clamp_contract_months
from .frequency import parse_frequency

_LOGGER = logging.getLogger(__name__)

FREQUENCY_FIELD = "frequency"
CONTRACT_MONTHS_FIELD = "contract_months"


def effective(calculated: float, override: Optional[float]) -> float:
    return calculated if override is None else override


def get_override(state: FormState, field_name: str) -> Optional[float]:
    return state.overrides.get(field_name)


def set_override(state: FormState, field_name: str, value: Any) -> FormState:
    """Pin a calculated field. ``None`` or ``""`` clears the pin."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return clear_override(state, field_name)
    overrides = dict(state.overrides)
    overrides[field_name] = coerce_number(value)
    return replace(state, overrides=overrides)


def clear_override(state: FormState, field_name: str) -> FormState:
    if field_name not in state.overrides:
        return state
    overrides = dict(state.overrides)
    overrides.pop(field_name)
    return replace(state, overrides=overrides)


def clear_overrides(state: FormState, *, include_rates: bool = False) -> FormState:
    if include_rates:
        return replace(state, overrides={}, rates={})
    return replace(state, overrides={})


def set_rate(state: FormState, key: str, value: Any) -> FormState:
    """Edit a unit-price field. ``None`` or ``""`` reverts it to the resolved config."""
    rates = dict(state.rates)
    if value is None or (isinstance(value, str) and not value.strip()):
        rates.pop(key, None)
    else:
        rates[key] = coerce_number(value)
    return replace(state, rates=rates)


def apply_input_change(state: FormState, field_name: str, value: Any, model: Any = None) -> FormState:
    """Apply a base-input edit; a real change clears every override."""
    if field_name == FREQUENCY_FIELD:
        freq = parse_frequency(value)
        if freq == state.frequency:
            return state
        new_state = replace(state, frequency=freq)
    elif field_name == CONTRACT_MONTHS_FIELD:
        months = clamp_contract_months(value)
        if months == state.contract_months:
            return state
        new_state = replace(state, contract_months=months)
    else:
        coerced = model.coerce_input(field_name, value) if model is not None else value
        # an absent input compares as its coerced default
        old = state.inputs.get(field_name)
        if model is not None:
            old = model.coerce_input(field_name, old)
        if old == coerced:
            return state
        inputs = dict(state.inputs)
        inputs[field_name] = coerced
        new_state = replace(state, inputs=inputs)

    if state.overrides:
        _LOGGER.debug(
            "%s: %s changed, clearing %d override(s)", state.service_id, field_name, len(state.overrides)
        )
    return replace(new_state, overrides={})

"""Editing sessions for one service form and for a whole proposal.

A ``ServiceSession`` owns a form, its effective config, and the change
recorder fed by override and rate edits. A ``ProposalSession`` groups the
service sessions of one agreement and holds the global contract length.

Contract months per service follow a three-state flag:

- NEVER_ACTIVATED: the service has no qualifying input yet.
- FOLLOWING_GLOBAL: the service adopted the global length on activation and
  follows later global changes.
- EXPLICITLY_OVERRIDDEN: the user set this service's length; global changes
  no longer apply.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional

from .config import DEFAULT_CONTRACT_MONTHS
from .engine import (
    CalculationResult,
    ProposalTotals,
    QuoteSummary,
    build_quote_summary,
    compute_quote,
    field_value,
    summarize_proposal,
)
from .pricing import overrides as ov
from .pricing.changes import ChangeRecorder, ChangeSink
from .pricing.forms import ContractMonthsMode, FormState, clamp_contract_months, form_from_payload, form_to_payload
from .pricing.resolver import EffectiveConfig, default_effective_config, load_effective_config, load_effective_config_async
from .service_models import ServiceModel, ServiceModelRegistry, default_registry
from .utils.numbers import round2

_LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Contract-months transitions
# ---------------------------------------------------------------------
def on_service_activated(state: FormState, global_months: Any) -> FormState:
    """First qualifying input: adopt the global length unless overridden."""
    if state.contract_months_mode is ContractMonthsMode.EXPLICITLY_OVERRIDDEN:
        return state
    if global_months is not None:
        state = ov.apply_input_change(state, ov.CONTRACT_MONTHS_FIELD, global_months)
    return replace(state, contract_months_mode=ContractMonthsMode.FOLLOWING_GLOBAL)


def on_contract_months_edited(state: FormState, months: Any) -> FormState:
    state = ov.apply_input_change(state, ov.CONTRACT_MONTHS_FIELD, months)
    return replace(state, contract_months_mode=ContractMonthsMode.EXPLICITLY_OVERRIDDEN)


def on_global_contract_months(state: FormState, months: Any) -> FormState:
    if state.contract_months_mode is not ContractMonthsMode.FOLLOWING_GLOBAL:
        return state
    return ov.apply_input_change(state, ov.CONTRACT_MONTHS_FIELD, months)


# ---------------------------------------------------------------------
# One service
# ---------------------------------------------------------------------
class ServiceSession:
    def __init__(
        self,
        state: FormState,
        model: ServiceModel,
        config: Optional[EffectiveConfig] = None,
        *,
        recorder: Optional[ChangeRecorder] = None,
    ) -> None:
        self.model = model
        self.state = state
        self.config = config or default_effective_config(model)
        self.recorder = recorder or ChangeRecorder()
        if not state.loaded_from_existing and not state.rates:
            self.state = replace(state, rates=dict(self.config.rates))
        self._capture_baseline(overwrite=False)

    @classmethod
    def open(
        cls,
        payload: Mapping[str, Any],
        *,
        registry: Optional[ServiceModelRegistry] = None,
        config: Optional[EffectiveConfig] = None,
        recorder: Optional[ChangeRecorder] = None,
    ) -> "ServiceSession":
        sid = payload.get("service_id") or payload.get("serviceId") or ""
        model = (registry or default_registry()).require(str(sid))
        state = form_from_payload(payload, default_frequency=model.default_frequency)
        for issue in model.validate_inputs(state.inputs):
            _LOGGER.warning("%s: %s", model.service_id, issue.message)
        return cls(replace(state, service_id=model.service_id), model, config, recorder=recorder)

    @property
    def service_id(self) -> str:
        return self.model.service_id

    def quote(self) -> CalculationResult:
        return compute_quote(self.state, self.config, model=self.model)

    def summary(self) -> QuoteSummary:
        return build_quote_summary(self.state, self.quote(), self.model)

    def is_active(self) -> bool:
        return self.model.is_active(self.model.normalize_inputs(self.state.inputs))

    def to_payload(self) -> Dict[str, Any]:
        return form_to_payload(self.state)

    def _rates(self) -> Dict[str, float]:
        return {**self.config.rates, **self.state.rates}

    def _capture_baseline(self, *, overwrite: bool, calculated_only: bool = False) -> None:
        state = replace(self.state, overrides={}) if calculated_only else self.state
        result = compute_quote(state, self.config, model=self.model)
        values: Dict[str, Any] = {f: field_value(result, f) for f in self.model.override_fields()}
        values.update(self._rates())
        self.recorder.baseline.capture(self.service_id, values, replace=overwrite)

    def _rerecord_pending(self) -> None:
        """Re-compare pending entries with the current baseline."""
        result = self.quote()
        rates = self._rates()
        fields = set(self.model.override_fields())
        for name in self.recorder.pending_fields(self.service_id):
            if name in fields:
                self._record(name, field_value(result, name))
            else:
                self._record(name, rates.get(name), is_rate=True)

    # -- remote config ------------------------------------------------
    def apply_fetched_config(self, config: EffectiveConfig, *, force: bool = False) -> bool:
        """Install a fetched config; returns True when the form was reloaded.

        A record loaded from existing data keeps its saved rates and overrides
        unless ``force`` is set; the config then only fills rates the record
        does not carry. A forced refresh drops every override, rate edits
        included.

        A new record takes the fetched rates. Its baseline becomes the
        calculated figures under those rates, and edits still pending are
        compared again: a rate edit the fetch replaced no longer counts.
        """
        self.config = config
        if self.state.loaded_from_existing and not force:
            _LOGGER.debug("%s: keeping saved values, fetched config used as fallback only", self.service_id)
            return False
        if force:
            self.state = ov.clear_overrides(self.state, include_rates=True)
            self.recorder.clear(self.service_id)
        self.state = replace(self.state, rates=dict(config.rates))
        self._capture_baseline(overwrite=True, calculated_only=True)
        self._rerecord_pending()
        return True

    def refresh(self, client: Any, *, use_cache: bool = True) -> EffectiveConfig:
        config = load_effective_config(self.model, client, use_cache=use_cache)
        self.apply_fetched_config(config, force=True)
        return config

    async def fetch(self, client: Any, *, force: bool = False, use_cache: bool = True) -> bool:
        config = await load_effective_config_async(self.model, client, use_cache=use_cache)
        return self.apply_fetched_config(config, force=force)

    # -- edits ----------------------------------------------------------
    def update_input(self, field_name: str, value: Any, *, global_months: Any = None) -> None:
        if field_name == ov.CONTRACT_MONTHS_FIELD:
            self.set_contract_months(value)
            return
        was_active = self.is_active()
        self.state = ov.apply_input_change(self.state, field_name, value, self.model)
        if not was_active and self.is_active():
            self.state = on_service_activated(self.state, global_months)

    def set_contract_months(self, months: Any) -> None:
        self.state = on_contract_months_edited(self.state, months)

    def on_global_contract_months(self, months: Any) -> None:
        self.state = on_global_contract_months(self.state, months)

    def _record(self, field_name: str, new_value: Any, *, is_rate: bool = False) -> None:
        inputs = self.model.normalize_inputs(self.state.inputs)
        self.recorder.record(
            self.service_id,
            field_name,
            new_value,
            quantity=self.model.quantity(inputs),
            frequency=self.state.frequency.value,
            is_rate=is_rate,
        )

    def set_override(self, field_name: str, value: Any) -> None:
        self.state = ov.set_override(self.state, field_name, value)
        self._record(field_name, field_value(self.quote(), field_name))

    def set_rate(self, key: str, value: Any) -> None:
        self.state = ov.set_rate(self.state, key, value)
        self._record(key, self._rates().get(key), is_rate=True)


# ---------------------------------------------------------------------
# Whole proposal
# ---------------------------------------------------------------------
class ProposalSession:
    def __init__(
        self,
        *,
        global_contract_months: Any = DEFAULT_CONTRACT_MONTHS,
        registry: Optional[ServiceModelRegistry] = None,
        recorder: Optional[ChangeRecorder] = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.recorder = recorder or ChangeRecorder()
        self.global_contract_months = clamp_contract_months(global_contract_months)
        self.services: Dict[str, ServiceSession] = {}

    def add_service(self, payload: Mapping[str, Any], config: Optional[EffectiveConfig] = None) -> ServiceSession:
        session = ServiceSession.open(payload, registry=self.registry, config=config, recorder=self.recorder)
        state = session.state
        if state.contract_months_mode is ContractMonthsMode.NEVER_ACTIVATED:
            if "contract_months" in payload or "contractMonths" in payload:
                state = replace(state, contract_months_mode=ContractMonthsMode.EXPLICITLY_OVERRIDDEN)
            elif session.is_active():
                state = on_service_activated(state, self.global_contract_months)
        elif state.contract_months_mode is ContractMonthsMode.FOLLOWING_GLOBAL:
            state = on_global_contract_months(state, self.global_contract_months)
        if state is not session.state:
            session.state = state
            session._capture_baseline(overwrite=True)
        self.services[session.service_id] = session
        return session

    def get(self, service_id: str) -> ServiceSession:
        model = self.registry.require(service_id)
        if model.service_id not in self.services:
            raise KeyError(f"Service '{service_id}' is not part of this proposal")
        return self.services[model.service_id]

    def set_global_contract_months(self, months: Any) -> None:
        self.global_contract_months = clamp_contract_months(months)
        for session in self.services.values():
            session.on_global_contract_months(self.global_contract_months)

    def update_input(self, service_id: str, field_name: str, value: Any) -> None:
        self.get(service_id).update_input(field_name, value, global_months=self.global_contract_months)

    def load_configs(self, client: Any = None, *, use_cache: bool = True) -> None:
        for session in self.services.values():
            session.apply_fetched_config(load_effective_config(session.model, client, use_cache=use_cache))

    async def load_configs_async(self, client: Any, *, use_cache: bool = True) -> List[bool]:
        return list(await asyncio.gather(*(s.fetch(client, use_cache=use_cache) for s in self.services.values())))

    def active_sessions(self) -> List[ServiceSession]:
        return [s for s in self.services.values() if s.is_active()]

    def summaries(self) -> List[QuoteSummary]:
        return [s.summary() for s in self.active_sessions()]

    def totals(self) -> ProposalTotals:
        return summarize_proposal(self.summaries())

    def flush_changes(self, sink: ChangeSink) -> int:
        return self.recorder.flush(sink)

    def to_dict(self, *, currency: str = "USD") -> Dict[str, Any]:
        services: List[Dict[str, Any]] = []
        for session in self.active_sessions():
            result = session.quote()
            entry = build_quote_summary(session.state, result, session.model).to_dict()
            entry["breakdown"] = {k: round2(v) for k, v in result.breakdown.items()}
            services.append(entry)
        return {
            "metadata": {"currency": currency, "globalContractMonths": self.global_contract_months},
            "services": services,
            "totals": self.totals().to_dict(),
        }

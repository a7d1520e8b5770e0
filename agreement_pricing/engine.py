"""Quote engine.

``compute_quote`` is a pure function of a service form and its effective
config: every call rebuilds the whole result (breakdown, per-visit, monthly,
first month, contract) so no derived number can go stale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .pricing.aggregate import aggregate_billing
from .pricing.changes import field_display_name
from .pricing.forms import FormState, custom_field_lines
from .pricing.frequency import FrequencyKey, is_visit_based, visits_per_month
from .pricing.overrides import effective, get_override
from .pricing.resolver import EffectiveConfig, default_effective_config
from .service_models import ServiceModel, ServiceModelRegistry, default_registry
from .utils.numbers import round2

_LOGGER = logging.getLogger(__name__)


@dataclass
class CalculationResult:
    service_id: str
    frequency: FrequencyKey
    contract_months: int
    per_visit: float
    monthly_recurring: float
    first_month_total: float
    contract_total: float
    breakdown: Dict[str, float]
    calculated: Dict[str, float] = field(default_factory=dict)  # figures before overrides
    installation_fee: Optional[float] = None
    first_visit_price: float = 0.0
    total_visits: Optional[int] = None
    custom_additions: float = 0.0
    details: List[str] = field(default_factory=list)
    visits_per_month: float = 0.0
    active: bool = False
    using_defaults: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "frequency": self.frequency.value,
            "contractMonths": self.contract_months,
            "perVisit": round2(self.per_visit),
            "monthlyRecurring": round2(self.monthly_recurring),
            "firstMonthTotal": round2(self.first_month_total),
            "contractTotal": round2(self.contract_total),
            "installationFee": None if self.installation_fee is None else round2(self.installation_fee),
            "firstVisitPrice": round2(self.first_visit_price),
            "totalVisits": self.total_visits,
            "customAdditions": round2(self.custom_additions),
            "breakdown": {k: round2(v) for k, v in self.breakdown.items()},
            "details": list(self.details),
            "usingDefaults": self.using_defaults,
        }


def compute_quote(
    state: FormState,
    config: Optional[EffectiveConfig] = None,
    *,
    registry: Optional[ServiceModelRegistry] = None,
    model: Optional[ServiceModel] = None,
) -> CalculationResult:
    if model is None:
        model = (registry or default_registry()).require(state.service_id)
    if config is None:
        config = default_effective_config(model)

    inputs = model.normalize_inputs(state.inputs)
    rates = {**config.rates, **state.rates}
    priced = model.price(inputs, rates, state.frequency)

    calculated: Dict[str, float] = {}
    breakdown: Dict[str, float] = {}
    for key in model.component_fields():
        calc = float(priced.breakdown.get(key, 0.0))
        calculated[key] = calc
        breakdown[key] = effective(calc, get_override(state, key))

    first_visit_service: Optional[float] = None
    if priced.first_visit_shares is not None:
        first_visit_service = sum(share * breakdown.get(key, 0.0) for key, share in priced.first_visit_shares.items())

    cadences = priced.component_cadences
    per_visit_base = sum(v for k, v in breakdown.items() if k not in cadences)
    recurring_monthly = sum(
        breakdown.get(k, 0.0) * visits_per_month(freq, config.frequencies) for k, freq in cadences.items()
    )

    custom_additions = sum(c.amount() for c in state.custom_fields)
    totals = aggregate_billing(
        per_visit_base,
        state.frequency,
        state.contract_months,
        table=config.frequencies,
        installation=priced.installation,
        first_visit_service=first_visit_service,
        first_visit_extra=priced.first_visit_extra,
        recurring_monthly=recurring_monthly,
        stacks_service=model.install_stacks_service,
        overrides=state.overrides,
        custom_additions=custom_additions,
        custom_target=model.custom_field_target,
    )
    calculated.update(totals.calculated)

    return CalculationResult(
        service_id=model.service_id,
        frequency=state.frequency,
        contract_months=state.contract_months,
        per_visit=totals.per_visit,
        monthly_recurring=totals.monthly_recurring,
        first_month_total=totals.first_month_total,
        contract_total=totals.contract_total,
        breakdown=breakdown,
        calculated=calculated,
        installation_fee=totals.installation_fee,
        first_visit_price=totals.first_visit_price,
        total_visits=totals.total_visits,
        custom_additions=custom_additions,
        details=list(priced.details) + custom_field_lines(state.custom_fields),
        visits_per_month=visits_per_month(state.frequency, config.frequencies),
        active=model.is_active(inputs),
        using_defaults=config.using_defaults,
    )


def field_value(result: CalculationResult, field_name: str) -> Optional[float]:
    """Effective value of an overridable field in a result."""
    aggregates = {
        "per_visit_price": result.per_visit,
        "monthly_recurring": result.monthly_recurring,
        "first_month_total": result.first_month_total,
        "contract_total": result.contract_total,
        "installation_fee": result.installation_fee,
    }
    if field_name in aggregates:
        return aggregates[field_name]
    return result.breakdown.get(field_name)


@dataclass(frozen=True)
class QuoteSummary:
    service_id: str
    display_name: str
    frequency: str
    contract_months: int
    per_visit_price: float
    monthly_recurring: float
    first_month_total: float
    contract_total: float
    installation_fee: Optional[float]
    total_visits: Optional[int]
    details_breakdown: List[str]
    using_defaults: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "displayName": self.display_name,
            "frequency": self.frequency,
            "contractMonths": self.contract_months,
            "perVisitPrice": round2(self.per_visit_price),
            "monthlyRecurring": round2(self.monthly_recurring),
            "firstMonthTotal": round2(self.first_month_total),
            "contractTotal": round2(self.contract_total),
            "installationFee": None if self.installation_fee is None else round2(self.installation_fee),
            "totalVisits": self.total_visits,
            "detailsBreakdown": list(self.details_breakdown),
            "usingDefaults": self.using_defaults,
        }


def build_quote_summary(state: FormState, result: CalculationResult, model: ServiceModel) -> QuoteSummary:
    lines: List[str] = []
    for key, amount in result.breakdown.items():
        if amount:
            pinned = " (override)" if key in state.overrides else ""
            lines.append(f"{field_display_name(key)}: ${amount:,.2f}{pinned}")
    lines.extend(result.details)
    if result.installation_fee:
        lines.append(f"Installation: ${result.installation_fee:,.2f}")
    if is_visit_based(result.frequency) and result.total_visits:
        lines.append(f"{result.total_visits} visit(s) over {result.contract_months} months")

    return QuoteSummary(
        service_id=model.service_id,
        display_name=model.display_name,
        frequency=result.frequency.value,
        contract_months=result.contract_months,
        per_visit_price=result.per_visit,
        monthly_recurring=result.monthly_recurring,
        first_month_total=result.first_month_total,
        contract_total=result.contract_total,
        installation_fee=result.installation_fee,
        total_visits=result.total_visits,
        details_breakdown=lines,
        using_defaults=result.using_defaults,
    )


@dataclass(frozen=True)
class ProposalTotals:
    services: int
    per_visit: float
    monthly_recurring: float
    first_month_total: float
    contract_total: float
    installation: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "services": self.services,
            "perVisit": round2(self.per_visit),
            "monthlyRecurring": round2(self.monthly_recurring),
            "firstMonthTotal": round2(self.first_month_total),
            "contractTotal": round2(self.contract_total),
            "installation": round2(self.installation),
        }


def summarize_proposal(summaries: Iterable[QuoteSummary]) -> ProposalTotals:
    items = list(summaries)
    return ProposalTotals(
        services=len(items),
        per_visit=sum(s.per_visit_price for s in items),
        monthly_recurring=sum(s.monthly_recurring for s in items),
        first_month_total=sum(s.first_month_total for s in items),
        contract_total=sum(s.contract_total for s in items),
        installation=sum(s.installation_fee or 0.0 for s in items),
    )

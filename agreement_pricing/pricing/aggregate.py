"""Billing aggregation: per-visit price -> monthly, first month, contract.

Two modes:

- monthly mode (weekly, biweekly, twicePerMonth, monthly):
  monthly = per_visit * visits_per_month, and the contract is the first month
  plus (months - 1) steady months. The first month only differs when an
  installation happens on the first visit.
- visit mode (oneTime, bimonthly, quarterly, biannual, annual):
  nothing bills monthly; the contract counts visits over the term. A one-time
  job is exactly one visit whatever the contract length.

Components a service bills on their own monthly cadence (``recurring_monthly``)
are added to every month in either mode.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .forms import clamp_contract_months
from .frequency import FREQUENCY_TABLE, FrequencyKey, FrequencyTable, parse_frequency
from .overrides import effective

CONTRACT_TARGET = "contract"
MONTHLY_TARGET = "monthly"


@dataclass(frozen=True)
class BillingTotals:
    per_visit: float
    monthly_recurring: float
    first_month_total: float
    contract_total: float
    first_visit_price: float
    installation_fee: Optional[float] = None
    total_visits: Optional[int] = None  # visit mode only
    custom_additions: float = 0.0
    calculated: Dict[str, float] = field(default_factory=dict)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def contract_visit_count(frequency: Any, contract_months: Any, table: Optional[FrequencyTable] = None) -> int:
    """Visits in the term for visit-based cadences (at least one)."""
    freq = parse_frequency(frequency)
    if freq is FrequencyKey.ONE_TIME:
        return 1
    info = (table or FREQUENCY_TABLE).get(freq) or FREQUENCY_TABLE[freq]
    months = clamp_contract_months(contract_months)
    return max(1, _round_half_up(months / 12.0 * info.annual_multiplier))


def aggregate_billing(
    per_visit: float,
    frequency: Any,
    contract_months: Any,
    *,
    table: Optional[FrequencyTable] = None,
    installation: Optional[float] = None,
    first_visit_service: Optional[float] = None,
    first_visit_extra: float = 0.0,
    recurring_monthly: float = 0.0,
    stacks_service: bool = False,
    overrides: Optional[Mapping[str, float]] = None,
    custom_additions: float = 0.0,
    custom_target: str = CONTRACT_TARGET,
) -> BillingTotals:
    """Combine a per-visit base into the billing totals.

    ``installation`` marks an install event on the first visit. The first
    visit then costs the installation plus ``first_visit_service`` when given,
    otherwise plus the per-visit price if ``stacks_service`` else nothing.
    ``first_visit_service`` is priced at the calculated per-visit rate and
    follows a per-visit override proportionally; ``first_visit_extra`` is
    added as is.

    ``recurring_monthly`` is billed every month of the term on top of the
    visit charges, in both modes.
    """
    overrides = overrides or {}
    table = table or FREQUENCY_TABLE
    freq = parse_frequency(frequency)
    months = clamp_contract_months(contract_months)
    info = table.get(freq) or FREQUENCY_TABLE[freq]

    calculated: Dict[str, float] = {"per_visit_price": per_visit}
    base_per_visit = per_visit
    per_visit = effective(per_visit, overrides.get("per_visit_price"))

    install_fee: Optional[float] = None
    if installation is not None:
        calculated["installation_fee"] = installation
        install_fee = effective(installation, overrides.get("installation_fee"))
        if first_visit_service is None:
            first_visit_service = per_visit if stacks_service else 0.0
        elif base_per_visit > 0:
            first_visit_service *= per_visit / base_per_visit
        first_visit = install_fee + first_visit_service + first_visit_extra
    else:
        first_visit = per_visit

    visits: Optional[int] = None
    if info.is_visit_based:
        visits = contract_visit_count(freq, months, table)
        monthly_calc = recurring_monthly
        first_month_calc = first_visit + recurring_monthly
        monthly = effective(monthly_calc, overrides.get("monthly_recurring"))
        first_month = effective(first_month_calc, overrides.get("first_month_total"))
        if freq is FrequencyKey.ONE_TIME:
            contract_calc = first_month
        else:
            contract_calc = first_month + (visits - 1) * per_visit
        contract_calc += max(months - 1, 0) * recurring_monthly
    else:
        vpm = float(info.monthly_multiplier)
        monthly_calc = per_visit * vpm + recurring_monthly
        monthly = effective(monthly_calc, overrides.get("monthly_recurring"))
        if installation is not None:
            extra = info.first_month_extra if info.first_month_extra is not None else max(vpm - 1.0, 0.0)
            first_month_calc = first_visit + extra * per_visit + recurring_monthly
        else:
            first_month_calc = monthly
        first_month = effective(first_month_calc, overrides.get("first_month_total"))
        contract_calc = first_month + max(months - 1, 0) * monthly

    if custom_target == MONTHLY_TARGET:
        monthly_calc += custom_additions
        monthly = effective(monthly_calc, overrides.get("monthly_recurring"))
    else:
        contract_calc += custom_additions

    calculated.update(
        {
            "monthly_recurring": monthly_calc,
            "first_month_total": first_month_calc,
            "contract_total": contract_calc,
        }
    )
    return BillingTotals(
        per_visit=per_visit,
        monthly_recurring=monthly,
        first_month_total=first_month,
        contract_total=effective(contract_calc, overrides.get("contract_total")),
        first_visit_price=first_visit,
        installation_fee=install_fee,
        total_visits=visits,
        custom_additions=custom_additions,
        calculated=calculated,
    )

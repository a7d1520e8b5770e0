"""Billing frequency table.

Nine cadences. Monthly-billed cadences turn a per-visit price into a monthly
figure with a fixed visits-per-month constant. Visit-based cadences never bill
monthly; their contract totals come from counting visits.

A service's remote config may refine the table through ``frequencyMetadata``
(current shape) or ``billingConversions`` (legacy shape); see
``build_frequency_table``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..utils.numbers import as_number, dig

_LOGGER = logging.getLogger(__name__)


class FrequencyKey(str, Enum):
    ONE_TIME = "oneTime"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    TWICE_PER_MONTH = "twicePerMonth"
    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    BIANNUAL = "biannual"
    ANNUAL = "annual"


@dataclass(frozen=True)
class FrequencyInfo:
    annual_multiplier: float
    monthly_multiplier: float  # 0 for visit-based cadences
    is_visit_based: bool
    first_month_extra: Optional[float] = None  # replaces (visits_per_month - 1) when set


FrequencyTable = Dict[FrequencyKey, FrequencyInfo]

FREQUENCY_TABLE: FrequencyTable = {
    FrequencyKey.ONE_TIME: FrequencyInfo(1, 0, True),
    FrequencyKey.WEEKLY: FrequencyInfo(52, 4.33, False),
    FrequencyKey.BIWEEKLY: FrequencyInfo(26, 2.165, False),
    FrequencyKey.TWICE_PER_MONTH: FrequencyInfo(24, 2, False),
    FrequencyKey.MONTHLY: FrequencyInfo(12, 1, False),
    FrequencyKey.BIMONTHLY: FrequencyInfo(6, 0, True),
    FrequencyKey.QUARTERLY: FrequencyInfo(4, 0, True),
    FrequencyKey.BIANNUAL: FrequencyInfo(2, 0, True),
    FrequencyKey.ANNUAL: FrequencyInfo(1, 0, True),
}

# Labels that saved agreements and older admin screens still carry.
_ALIASES: Dict[str, FrequencyKey] = {
    "onetime": FrequencyKey.ONE_TIME,
    "once": FrequencyKey.ONE_TIME,
    "everytwoweeks": FrequencyKey.BIWEEKLY,
    "2xmonth": FrequencyKey.TWICE_PER_MONTH,
    "2xmonthly": FrequencyKey.TWICE_PER_MONTH,
    "twicemonthly": FrequencyKey.TWICE_PER_MONTH,
    "semimonthly": FrequencyKey.TWICE_PER_MONTH,
    "everytwomonths": FrequencyKey.BIMONTHLY,
    "semiannual": FrequencyKey.BIANNUAL,
    "semiannually": FrequencyKey.BIANNUAL,
    "yearly": FrequencyKey.ANNUAL,
    "annually": FrequencyKey.ANNUAL,
}

_BY_NORMALIZED: Dict[str, FrequencyKey] = {k.value.lower(): k for k in FrequencyKey}
_BY_NORMALIZED.update(_ALIASES)


def _normalize(value: Any) -> str:
    return re.sub(r"[\s_\-/]", "", str(value or "")).lower()


def parse_frequency(value: Any) -> FrequencyKey:
    """Resolve a frequency label; anything unrecognized becomes weekly."""
    if isinstance(value, FrequencyKey):
        return value
    key = _BY_NORMALIZED.get(_normalize(value))
    if key is None:
        _LOGGER.debug("Unrecognized frequency %r, using weekly", value)
        return FrequencyKey.WEEKLY
    return key


def _info(freq: Any, table: Optional[Mapping[FrequencyKey, FrequencyInfo]]) -> FrequencyInfo:
    key = parse_frequency(freq)
    return (table or FREQUENCY_TABLE).get(key) or FREQUENCY_TABLE[key]


def visits_per_month(freq: Any, table: Optional[Mapping[FrequencyKey, FrequencyInfo]] = None) -> float:
    """Average visits per month.

    For monthly-billed cadences this is the billing constant. Visit-based
    cadences report visits_per_year / 12 for display only (one-time: 0).
    """
    key = parse_frequency(freq)
    info = _info(key, table)
    if not info.is_visit_based:
        return float(info.monthly_multiplier)
    if key is FrequencyKey.ONE_TIME:
        return 0.0
    return float(info.annual_multiplier) / 12.0


def visits_per_year(freq: Any, table: Optional[Mapping[FrequencyKey, FrequencyInfo]] = None) -> float:
    return float(_info(freq, table).annual_multiplier)


def is_visit_based(freq: Any, table: Optional[Mapping[FrequencyKey, FrequencyInfo]] = None) -> bool:
    return _info(freq, table).is_visit_based


def _positive(value: Any) -> Optional[float]:
    f = as_number(value)
    if f is None or f <= 0:
        return None
    return f


def build_frequency_table(
    remote: Optional[Mapping[str, Any]] = None,
    *,
    fallbacks: Optional[Mapping[FrequencyKey, float]] = None,
) -> FrequencyTable:
    """Apply a service's remote frequency metadata over the global table.

    Per cadence and per value: frequencyMetadata -> billingConversions ->
    the service's own visits-per-month approximation -> global table.
    ``fallbacks`` holds those approximations for visit-based cadences and is
    only consulted when the remote config says nothing authoritative.
    """
    fallbacks = fallbacks or {}
    table: FrequencyTable = {}
    for key, base in FREQUENCY_TABLE.items():
        meta = dig(remote, ("frequencyMetadata", key.value))
        legacy = dig(remote, ("billingConversions", key.value))
        meta = meta if isinstance(meta, Mapping) else {}
        legacy = legacy if isinstance(legacy, Mapping) else {}

        if key is FrequencyKey.ONE_TIME:
            table[key] = base
            continue

        cycle = _positive(meta.get("cycleMonths"))

        if base.is_visit_based:
            per_year = _positive(meta.get("visitsPerYear"))
            if per_year is None and cycle is not None:
                per_year = 12.0 / cycle
            if per_year is None:
                per_year = _positive(legacy.get("annualMultiplier"))
            if per_year is None and key in fallbacks:
                per_year = float(fallbacks[key]) * 12.0
            if per_year is None:
                per_year = float(base.annual_multiplier)
            table[key] = FrequencyInfo(per_year, 0, True)
            continue

        per_month = _positive(meta.get("monthlyRecurringMultiplier"))
        if per_month is None and cycle is not None:
            per_month = 1.0 / cycle
        if per_month is None:
            per_month = _positive(legacy.get("monthlyMultiplier"))
        if per_month is None:
            per_month = float(base.monthly_multiplier)

        per_year = _positive(meta.get("visitsPerYear")) or float(base.annual_multiplier)
        extra = as_number(meta.get("firstMonthExtraMultiplier"))
        if extra is not None and extra < 0:
            extra = None
        table[key] = FrequencyInfo(per_year, per_month, False, extra)
    return table


__all__ = [
    "FrequencyKey",
    "FrequencyInfo",
    "FrequencyTable",
    "FREQUENCY_TABLE",
    "parse_frequency",
    "visits_per_month",
    "visits_per_year",
    "is_visit_based",
    "build_frequency_table",
]

"""Effective rate configuration per service.

Every rate leaf resolves independently through
``remote (current shape) -> remote (legacy shape) -> static default``.
Remote configs are routinely partial at the leaf level, so a per-object merge
would drop defaults that a per-leaf chain keeps.

Fetch failures never stop a quote: they degrade to cached or static data and
the result carries ``using_defaults=True``. So does a payload that matches
none of the service's rate leaves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import httpx

from ..service_models.types import RateSpec
from ..utils.numbers import as_number, dig
from .cache import get_cached_config, set_cached_config
from .frequency import FrequencyTable, build_frequency_table

_LOGGER = logging.getLogger(__name__)

SOURCE_REMOTE = "remote"
SOURCE_PRICING = "pricing-fallback"
SOURCE_CACHE = "cache"
SOURCE_DEFAULT = "default"


@dataclass(frozen=True)
class EffectiveConfig:
    service_id: str
    rates: Dict[str, float]
    frequencies: FrequencyTable
    source: str = SOURCE_DEFAULT
    missing: Tuple[str, ...] = ()  # leaves that fell back to the static default
    remote: Optional[Dict[str, Any]] = field(default=None, repr=False)

    @property
    def using_defaults(self) -> bool:
        """True when the backend could not supply this service's config."""
        return self.source not in (SOURCE_REMOTE, SOURCE_PRICING)


def _is_included(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == "included"


def resolve_rates(specs: Iterable[RateSpec], remote: Optional[Mapping[str, Any]]) -> Tuple[Dict[str, float], List[str]]:
    rates: Dict[str, float] = {}
    missing: List[str] = []
    included: List[RateSpec] = []

    for spec in specs:
        value: Optional[float] = None
        for path in spec.paths:
            raw = dig(remote, path)
            if raw is None:
                continue
            if _is_included(raw) and spec.included_as:
                included.append(spec)
                break
            f = as_number(raw)
            if f is not None and f >= 0:
                value = f
                break
        if spec in included:
            continue
        if value is None:
            value = float(spec.default)
            if remote is not None:
                missing.append(spec.key)
        rates[spec.key] = value

    # "included" add-ons reuse another (already resolved) rate
    for spec in included:
        rates[spec.key] = rates.get(spec.included_as, float(spec.default))
    return rates, missing


def resolve_effective_config(model: Any, remote: Optional[Mapping[str, Any]], *, source: Optional[str] = None) -> EffectiveConfig:
    remote = dict(remote) if isinstance(remote, Mapping) else None
    specs = list(model.rate_specs())
    rates, missing = resolve_rates(specs, remote)
    frequencies = build_frequency_table(remote, fallbacks=getattr(model, "visit_approximations", None))
    if source is None:
        source = SOURCE_REMOTE if remote is not None else SOURCE_DEFAULT
    if remote is not None and specs and len(missing) == len(specs):
        # nothing usable in the payload: every leaf is a static default
        _LOGGER.warning("%s: remote config has no known rate fields, using static defaults", model.service_id)
        source = SOURCE_DEFAULT
    elif missing:
        _LOGGER.debug("%s: %d rate(s) missing from remote config: %s", model.service_id, len(missing), ", ".join(missing))
    return EffectiveConfig(
        service_id=model.service_id,
        rates=rates,
        frequencies=frequencies,
        source=source,
        missing=tuple(missing),
        remote=remote,
    )


def default_effective_config(model: Any) -> EffectiveConfig:
    return resolve_effective_config(model, None, source=SOURCE_DEFAULT)


def _fetch_remote(model: Any, client: Any) -> Tuple[Optional[Dict[str, Any]], str]:
    try:
        remote = client.get_active_config(model.service_id)
        if remote is not None:
            return remote, SOURCE_REMOTE
        _LOGGER.info("No active config for %s, trying the all-pricing list", model.service_id)
        remote = client.get_pricing_config(model.service_id)
        if remote is not None:
            return remote, SOURCE_PRICING
    except (httpx.HTTPError, ValueError) as ex:
        # ValueError covers malformed JSON bodies
        _LOGGER.warning("Config fetch failed for %s: %s", model.service_id, ex)
    return None, SOURCE_DEFAULT


def _degrade(model: Any, use_cache: bool) -> EffectiveConfig:
    if use_cache:
        cached = get_cached_config(model.service_id)
        if cached:
            _LOGGER.warning("Using cached config for %s", model.service_id)
            return resolve_effective_config(model, cached, source=SOURCE_CACHE)
    _LOGGER.warning("Using static default rates for %s", model.service_id)
    return default_effective_config(model)


def load_effective_config(model: Any, client: Any = None, *, use_cache: bool = True) -> EffectiveConfig:
    """Fetch and resolve a service's config; never raises for fetch failures."""
    if client is None:
        return _degrade(model, use_cache)

    remote, source = _fetch_remote(model, client)
    if remote is None:
        return _degrade(model, use_cache)
    if use_cache:
        set_cached_config(model.service_id, remote)
    return resolve_effective_config(model, remote, source=source)


async def load_effective_config_async(model: Any, client: Any, *, use_cache: bool = True) -> EffectiveConfig:
    """Async variant for the mount-time fetch (active config only)."""
    try:
        remote = await client.aget_active_config(model.service_id)
    except (httpx.HTTPError, ValueError) as ex:
        _LOGGER.warning("Config fetch failed for %s: %s", model.service_id, ex)
        remote = None
    if remote is None:
        return _degrade(model, use_cache)
    if use_cache:
        set_cached_config(model.service_id, remote)
    return resolve_effective_config(model, remote, source=SOURCE_REMOTE)

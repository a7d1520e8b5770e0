"""Definition loader for declarative service models.

Loads YAML/JSON definitions from agreement_pricing/service_models/definitions.

Every component and installation must reference an input and rate declared
in the same file. An invalid definition raises ValueError with the file name
and the offending key.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .schema import ComponentDef, InputDef, InstallDef, RateDef, ServiceDefinition
from ...utils.numbers import as_number

_INPUT_KINDS = ("count", "sqft", "bool", "choice")


def _as_list(x: Any) -> List[Any]:
    if x is None:
        return []
    if isinstance(x, list):
        return x
    return [x]


def _require(obj: Dict[str, Any], key: str, *, ctx: str) -> Any:
    if key not in obj:
        raise ValueError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _load_one(path: Path) -> Dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(raw) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Top-level YAML must be a mapping in {path}")
        return data
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Top-level JSON must be an object in {path}")
        return data
    raise ValueError(f"Unsupported definition file type: {path}")


def _key(it: Dict[str, Any], *, ctx: str) -> str:
    key = str(_require(it, "key", ctx=ctx)).strip()
    if not key:
        raise ValueError(f"key cannot be empty in {ctx}")
    return key


def _parse_inputs(items: Iterable[Any], *, ctx: str) -> List[InputDef]:
    out: List[InputDef] = []
    for i, it in enumerate(items):
        ictx = f"{ctx}.inputs[{i}]"
        if isinstance(it, str):
            out.append(InputDef(key=it, qualifying=True, default=0))
            continue
        if not isinstance(it, dict):
            raise ValueError(f"input must be string or object in {ictx}")
        kind = str(it.get("kind") or "count").strip().lower()
        if kind not in _INPUT_KINDS:
            raise ValueError(f"input kind must be one of {', '.join(_INPUT_KINDS)} in {ictx}")
        choices = tuple(str(c) for c in _as_list(it.get("choices")))
        if kind == "choice" and not choices:
            raise ValueError(f"choice input needs choices in {ictx}")
        default = it.get("default")
        if default is None:
            default = False if kind == "bool" else (choices[0] if choices else 0)
        out.append(
            InputDef(
                key=_key(it, ctx=ictx),
                kind=kind,
                default=default,
                choices=choices,
                qualifying=bool(it.get("qualifying", kind in ("count", "sqft"))),
                description=str(it.get("description") or ""),
            )
        )
    return out


def _parse_rates(items: Iterable[Any], *, ctx: str) -> List[RateDef]:
    out: List[RateDef] = []
    for i, it in enumerate(items):
        rctx = f"{ctx}.rates[{i}]"
        if not isinstance(it, dict):
            raise ValueError(f"rate must be an object in {rctx}")
        key = _key(it, ctx=rctx)
        default = as_number(_require(it, "default", ctx=rctx))
        if default is None or default < 0:
            raise ValueError(f"rate default must be a non-negative number in {rctx}")
        paths = tuple(str(p) for p in _as_list(it.get("paths")))
        out.append(RateDef(key=key, default=default, paths=paths or (key,), description=str(it.get("description") or "")))
    return out


def _parse_components(items: Iterable[Any], *, ctx: str, inputs: set, rates: set) -> List[ComponentDef]:
    out: List[ComponentDef] = []
    for i, it in enumerate(items):
        cctx = f"{ctx}.components[{i}]"
        if not isinstance(it, dict):
            raise ValueError(f"component must be an object in {cctx}")
        key = _key(it, ctx=cctx)
        input_key = str(_require(it, "input", ctx=cctx))
        rate_key = str(_require(it, "rate", ctx=cctx))
        minimum = it.get("minimum")
        if input_key not in inputs:
            raise ValueError(f"unknown input '{input_key}' in {cctx}")
        for r in (rate_key, minimum):
            if r is not None and r not in rates:
                raise ValueError(f"unknown rate '{r}' in {cctx}")
        out.append(ComponentDef(key=key, label=str(it.get("label") or key), input=input_key, rate=rate_key, minimum=minimum))
    return out


def _parse_installation(obj: Any, *, ctx: str, inputs: set, rates: set) -> Optional[InstallDef]:
    if obj is None:
        return None
    ictx = f"{ctx}.installation"
    if not isinstance(obj, dict):
        raise ValueError(f"installation must be an object in {ictx}")
    inst = InstallDef(
        input=str(_require(obj, "input", ctx=ictx)),
        rate=str(_require(obj, "rate", ctx=ictx)),
        when=obj.get("when"),
    )
    if inst.input not in inputs or (inst.when is not None and inst.when not in inputs):
        raise ValueError(f"installation references an unknown input in {ictx}")
    if inst.rate not in rates:
        raise ValueError(f"unknown rate '{inst.rate}' in {ictx}")
    return inst


def load_definitions(definitions_dir: Path | None = None) -> List[ServiceDefinition]:
    base = definitions_dir or (Path(__file__).resolve().parents[1] / "definitions")
    if not base.exists():
        return []
    paths = sorted([p for p in base.iterdir() if p.is_file() and p.suffix.lower() in (".yaml", ".yml", ".json")])
    out: List[ServiceDefinition] = []
    for p in paths:
        data = _load_one(p)
        ctx = f"definition({p.name})"
        service_id = str(_require(data, "id", ctx=ctx)).strip()
        inputs = _parse_inputs(_as_list(data.get("inputs")), ctx=ctx)
        if not inputs:
            raise ValueError(f"Missing inputs in {ctx}")
        rates = _parse_rates(_as_list(data.get("rates")), ctx=ctx)
        input_keys = {i.key for i in inputs}
        rate_keys = {r.key for r in rates}
        components = _parse_components(_as_list(data.get("components")), ctx=ctx, inputs=input_keys, rates=rate_keys)
        if not components:
            raise ValueError(f"Missing components in {ctx}")
        out.append(
            ServiceDefinition(
                id=service_id,
                display_name=str(data.get("display_name") or data.get("displayName") or service_id),
                description=str(data.get("description") or ""),
                default_frequency=str(data.get("default_frequency") or "weekly"),
                aliases=[str(a).strip() for a in _as_list(data.get("aliases"))],
                inputs=inputs,
                rates=rates,
                components=components,
                installation=_parse_installation(data.get("installation"), ctx=ctx, inputs=input_keys, rates=rate_keys),
                install_stacks_service=bool(data.get("install_stacks_service", False)),
                source_file=p.name,
            )
        )
    return out

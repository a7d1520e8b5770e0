"""Numeric helpers shared by the resolver, the form layer and the pricing rules."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Union

_TRUE_STRINGS = {"1", "true", "yes", "y", "on"}


def as_number(value: Any) -> Optional[float]:
    """Parse a finite number from an int/float/numeric string, else None.

    Booleans are not numbers here. Currency-looking strings ("$1,250.00") are
    accepted because saved agreements and admin configs both contain them.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
    elif isinstance(value, str):
        s = value.strip().replace(",", "").lstrip("$").strip()
        if not s:
            return None
        try:
            f = float(s)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def coerce_number(value: Any) -> float:
    """Text-originated numeric input: non-numeric, empty or negative -> 0."""
    f = as_number(value)
    if f is None or f < 0:
        return 0.0
    return f


def coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def dig(obj: Any, path: Union[str, Iterable[str]]) -> Any:
    """Walk a dotted path through nested mappings; None when any hop is missing."""
    parts = path.split(".") if isinstance(path, str) else list(path)
    cur = obj
    for p in parts:
        if not isinstance(cur, Mapping) or p not in cur:
            return None
        cur = cur[p]
    return cur


def round2(value: float) -> float:
    return round(float(value) + 0.0, 2)


__all__ = ["as_number", "coerce_number", "coerce_flag", "dig", "round2"]

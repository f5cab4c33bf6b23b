"""Normalization helpers.

Centralizes defensive parsing of untrusted JSON scalars. None of these
helpers raise: anything unusable collapses to a neutral value.
"""

from __future__ import annotations

import math
import re
from typing import Any

Number = int | float

_ADDRESS_RE = re.compile(r"inj[a-z0-9]{20,80}", re.IGNORECASE | re.ASCII)
_INT_RE = re.compile(r"[+-]?\d+")


def _integral(value: float) -> Number:
    # JSON has a single number type: 3.0 and 3 are the same value.
    if value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value


def coerce_number(value: Any) -> Number:
    """Return the finite numeric value of *value*, else ``0``."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _integral(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if _INT_RE.fullmatch(text):
            return int(text)
        if "_" in text:
            return 0
        try:
            result = float(text)
        except ValueError:
            return 0
        return _integral(result) if math.isfinite(result) else 0
    if isinstance(value, list) and len(value) <= 1:
        # [] -> 0 and [x] -> x; longer lists have no numeric value
        return coerce_number(value[0]) if value else 0
    return 0


def format_scalar(value: Any) -> str:
    """Render a scalar the way a JSON client would stringify it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(_integral(value)) if math.isfinite(value) else str(value)
    return str(value)


def coerce_string(value: Any, max_len: int = 200) -> str:
    text = format_scalar(value)
    return text[:max_len] if len(text) > max_len else text


def coerce_timestamp(value: Any, now_ms: int) -> Number:
    """Epoch-millisecond timestamp; missing, zero or invalid values become *now_ms*."""
    return coerce_number(value) or now_ms


def first_truthy(*values: Any, default: Any = None) -> Any:
    """Return the first truthy value (``a || b || default`` chains)."""
    for value in values:
        if value:
            return value
    return default


def validate_address(value: Any) -> str:
    """Return the trimmed ``inj`` account address, or ``""`` when invalid."""
    text = str(value or "").strip()
    if not _ADDRESS_RE.fullmatch(text):
        return ""
    return text

"""Argument coercion for action steps.

Argument semantics are owned by the executor; the editor only coerces raw
input to the declared primitive type.
"""

from __future__ import annotations

import math
from typing import Any

from missionflow.mission.models import ArgValue

BOOL_TYPES = frozenset({"bool", "boolean"})
FLOAT_TYPES = frozenset({"float", "number"})
INT_TYPES = frozenset({"int", "integer"})
NUMERIC_TYPES = FLOAT_TYPES | INT_TYPES


def _to_number(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else None
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = float(raw)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def coerce_value(arg_type: str | None, raw: Any) -> ArgValue:
    """Coerce a raw value to the declared argument type.

    Args:
        arg_type: Declared type name (case-insensitive).
        raw: Raw value from storage or user input.

    Returns:
        None for empty input, otherwise a bool, number or str.
    """
    if raw is None or raw == "":
        return None
    kind = (arg_type or "").lower()
    if kind in BOOL_TYPES:
        if isinstance(raw, bool):
            return raw
        return str(raw).lower() == "true"
    if kind in FLOAT_TYPES:
        return _to_number(raw)
    if kind in INT_TYPES:
        parsed = _to_number(raw)
        return None if parsed is None else math.trunc(parsed)
    return raw if isinstance(raw, str) else str(raw)


def unwrap_option_value(raw: Any) -> Any:
    """Unwrap ``{"value": x}`` option objects coming from select controls."""
    if isinstance(raw, dict) and "value" in raw:
        return raw["value"]
    return raw


def resolve_control_value(raw: Any, arg_type: str | None) -> ArgValue:
    """Resolve an edited control value to a typed argument value.

    Numeric kinds keep finite numbers as-is (no integer truncation),
    matching what the user typed.
    """
    value = unwrap_option_value(raw)
    if value is None or value == "":
        return None
    kind = (arg_type or "").lower()
    if kind in BOOL_TYPES:
        return value is True or value == "true"
    if kind in NUMERIC_TYPES:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value if math.isfinite(value) else None
        return _to_number(value)
    return str(value)


def to_stored(value: ArgValue) -> str:
    """Convert a typed value to its persisted string form."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def values_equal(a: Any, b: Any) -> bool:
    """Compare argument values, treating NaN as equal to NaN."""
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        return a == b
    return type(a) is type(b) and a == b


__all__ = [
    "coerce_value",
    "resolve_control_value",
    "to_stored",
    "unwrap_option_value",
    "values_equal",
]

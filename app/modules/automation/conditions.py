"""Condition evaluation for automation rules.

Coercions here never raise: a value that cannot be compared simply makes the
condition false.
"""

import math
from typing import Any, Iterable

# Returned by get_nested_value when a path does not resolve
MISSING = object()

_NAN = float("nan")


def get_nested_value(record: Any, path: str) -> Any:
    """Resolve a dot path through nested dicts. Lists are not indexed."""
    cur = record
    for part in path.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return MISSING
    return cur


def _strict_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def as_text(value: Any) -> str:
    """Text form used by contains and template rendering: lowercase booleans, whole floats without ".0", lists comma-joined."""
    if value is None or value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(as_text(item) for item in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> float:
    if value is MISSING:
        return _NAN
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return _NAN
    return _NAN


def _member(value: Any, candidates: Iterable[Any]) -> bool:
    return any(_strict_equal(value, c) for c in candidates)


def evaluate_condition(field_value: Any, operator: str, value: Any) -> bool:
    """Apply one operator. `field_value` may be MISSING.

    A missing field fails equals/contains/greater_than/less_than/in and
    passes not_equals/not_contains/not_in.
    """
    missing = field_value is MISSING

    if operator == "equals":
        return not missing and _strict_equal(field_value, value)
    if operator == "not_equals":
        return missing or not _strict_equal(field_value, value)
    if operator == "contains":
        return not missing and as_text(value) in as_text(field_value)
    if operator == "not_contains":
        return missing or as_text(value) not in as_text(field_value)
    if operator in ("greater_than", "less_than"):
        left = _as_number(field_value)
        right = _as_number(value)
        if math.isnan(left) or math.isnan(right):
            return False
        return left > right if operator == "greater_than" else left < right
    if operator == "in":
        return isinstance(value, list) and not missing and _member(field_value, value)
    if operator == "not_in":
        return isinstance(value, list) and (missing or not _member(field_value, value))
    return False

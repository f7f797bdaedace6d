"""Set operators -> $in, $nin."""

from __future__ import annotations

from typing import Any

from polystore_core.operators import FilterOperator


def compile_set(field: str, op: str, val: Any) -> dict[str, Any] | None:
    """Compile set operators. Returns None if not a set op."""
    try:
        filter_op = FilterOperator(op)
    except ValueError:
        return None
    if filter_op == FilterOperator.IN:
        return {field: {"$in": list(val) if isinstance(val, (list, tuple)) else [val]}}
    if filter_op == FilterOperator.NIN:
        return {field: {"$nin": list(val) if isinstance(val, (list, tuple)) else [val]}}
    return None

"""Standard comparison operators for MongoDB query compilation."""

from __future__ import annotations

from typing import Any

from polystore_core.operators import FilterOperator

_MONGO_OP_MAP: dict[FilterOperator, str] = {
    FilterOperator.EQ: "$eq",
    FilterOperator.NE: "$ne",
    FilterOperator.GT: "$gt",
    FilterOperator.GTE: "$gte",
    FilterOperator.LT: "$lt",
    FilterOperator.LTE: "$lte",
}


def compile_standard(field: str, op: str, val: Any) -> dict[str, Any] | None:
    """Compile comparison operators to MongoDB query fragments."""
    try:
        filter_op = FilterOperator(op)
    except ValueError:
        return None

    mongo_op = _MONGO_OP_MAP.get(filter_op)
    if mongo_op is None:
        return None
    return {field: {mongo_op: val}}

"""
Parse the canonical filter grammar into a backend-neutral AST.

Callers write filters as plain mappings::

    {"status": "active", "age": {"$gte": 18}, "$or": [{"role": "admin"}, {"role": "owner"}]}

``parse_filter`` turns them into a tree of node dictionaries that every
backend compiler walks the same way:

- leaf:    ``{"op": "$gt", "attr": "age", "val": 30}``
- logical: ``{"op": "$and" | "$or", "conditions": [node, ...]}``

``$or`` never stands alone: each branch is conjoined with the sibling keys of
the enclosing filter and the resulting conjunctions are ORed, i.e.
``{"a": 1, "$or": [B1, B2]}`` becomes ``OR(AND(B1, a=1), AND(B2, a=1))``.

Validation happens here, before any native call, so an unknown operator or a
malformed operand raises :class:`CompilationError` on every backend alike.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .operators import FIELD_OPERATORS, PATTERN_OPERATORS, SET_OPERATORS, FilterOperator
from .primitives.exceptions import CompilationError, OperatorNotFoundError

_VALID_FIELD_OPERATORS: list[str] = sorted(op.value for op in FIELD_OPERATORS)
_OR_KEY = FilterOperator.OR.value


def parse_filter(where: Mapping[str, Any] | None, *, path: str = "where") -> dict[str, Any] | None:
    """
    Parse a canonical filter into an AST node.

    Returns ``None`` when the filter is empty (matches every record).

    Raises:
        CompilationError: malformed filter shape or operand.
        OperatorNotFoundError: unknown ``$`` operator.
    """
    if where is None:
        return None
    if not isinstance(where, Mapping):
        raise CompilationError(
            f"Filter must be a mapping, got {type(where).__name__}", path=path
        )
    if not where:
        return None

    base: list[dict[str, Any]] = []
    for key, value in where.items():
        if key == _OR_KEY:
            continue
        base.extend(_parse_field(key, value, path=f"{path}.{key}"))

    branches = where.get(_OR_KEY)
    if not branches:
        return _conjunction(base)

    if isinstance(branches, (str, bytes, Mapping)) or not isinstance(
        branches, (list, tuple)
    ):
        raise CompilationError("$or expects a list of filters", path=f"{path}.$or")

    alternatives: list[dict[str, Any]] = []
    for index, branch in enumerate(branches):
        branch_node = parse_filter(branch, path=f"{path}.$or[{index}]")
        parts = [branch_node, *base] if branch_node is not None else list(base)
        alternatives.append(_conjunction(parts))
    return {"op": FilterOperator.OR.value, "conditions": alternatives}


def filter_fields(node: Mapping[str, Any] | None) -> set[str]:
    """Collect every field name referenced by an AST node."""
    if not node:
        return set()
    if "conditions" in node:
        fields: set[str] = set()
        for child in node["conditions"]:
            fields |= filter_fields(child)
        return fields
    return {node["attr"]}


def _conjunction(parts: list[dict[str, Any]]) -> dict[str, Any]:
    if len(parts) == 1:
        return parts[0]
    return {"op": FilterOperator.AND.value, "conditions": parts}


def _parse_field(name: str, value: Any, *, path: str) -> list[dict[str, Any]]:
    if not isinstance(name, str) or not name:
        raise CompilationError("Filter keys must be non-empty strings", path=path)
    if name.startswith("$"):
        raise OperatorNotFoundError(name, [_OR_KEY], path=path)

    if not isinstance(value, Mapping):
        if isinstance(value, (list, tuple, set)):
            raise CompilationError(
                f"Field '{name}' compares against a sequence; use $in", path=path
            )
        return [_leaf(FilterOperator.EQ, name, value)]

    if not value:
        raise CompilationError(f"Empty operator clause for '{name}'", path=path)

    leaves: list[dict[str, Any]] = []
    for op_key, operand in value.items():
        try:
            op = FilterOperator(op_key)
        except ValueError:
            raise OperatorNotFoundError(
                str(op_key), _VALID_FIELD_OPERATORS, path=path
            ) from None
        if op not in FIELD_OPERATORS:
            raise OperatorNotFoundError(op_key, _VALID_FIELD_OPERATORS, path=path)
        leaves.append(_leaf(op, name, _check_operand(op, operand, path=path)))
    return leaves


def _check_operand(op: FilterOperator, operand: Any, *, path: str) -> Any:
    if op in SET_OPERATORS:
        if isinstance(operand, (str, bytes, Mapping)) or not isinstance(
            operand, (list, tuple, set, frozenset)
        ):
            raise CompilationError(f"{op.value} expects a list of values", path=path)
        return list(operand)
    if op in PATTERN_OPERATORS and not isinstance(operand, str):
        raise CompilationError(f"{op.value} expects a string pattern", path=path)
    return operand


def _leaf(op: FilterOperator, attr: str, val: Any) -> dict[str, Any]:
    return {"op": op.value, "attr": attr, "val": val}

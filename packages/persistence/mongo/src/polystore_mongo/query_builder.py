"""Mongo query builder from the canonical filter AST."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from polystore_core.filters import parse_filter
from polystore_core.operators import FIELD_OPERATORS, FilterOperator
from polystore_core.options import QueryOptions
from polystore_core.primitives.exceptions import CompilationError, OperatorNotFoundError

from .operators import compile_set, compile_standard, compile_string

_COMPILERS = [
    compile_standard,
    compile_string,
    compile_set,
]


def _compile_leaf(data: Mapping[str, Any]) -> dict[str, Any]:
    """Compile a single attribute condition to a MongoDB query document."""
    op_str = str(data.get("op", ""))
    attr = data.get("attr")
    val = data.get("val")
    if not attr:
        raise CompilationError(f"Filter node missing 'attr': {dict(data)}")
    for compiler in _COMPILERS:
        result = compiler(attr, op_str, val)
        if result is not None:
            return result
    raise OperatorNotFoundError(
        op_str, sorted(op.value for op in FIELD_OPERATORS), path=attr
    )


def _compile_node(data: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively compile an AST node to a MongoDB filter."""
    if not isinstance(data, Mapping):
        raise CompilationError("Filter node must be a mapping")
    op_str = str(data.get("op", ""))
    if op_str == FilterOperator.AND:
        compiled = [c for c in map(_compile_node, data.get("conditions", [])) if c]
        if not compiled:
            return {}
        return compiled[0] if len(compiled) == 1 else {"$and": compiled}
    if op_str == FilterOperator.OR:
        conditions = data.get("conditions", [])
        if not conditions:
            # OR over nothing matches nothing
            return {"_id": {"$exists": False}}
        return {"$or": [_compile_node(c) for c in conditions]}
    return _compile_leaf(data)


class MongoQueryBuilder:
    """Compiles canonical filters and options into MongoDB documents/stages."""

    def build_match(self, where: Mapping[str, Any] | None) -> dict[str, Any]:
        """``where`` -> ``$match`` document; ``{}`` matches everything."""
        node = parse_filter(where)
        if node is None:
            return {}
        return _compile_node(node)

    def build_sort(self, order_by: tuple[str, str] | None) -> dict[str, int]:
        """``("age", "desc")`` -> ``{"age": -1}``."""
        if not order_by:
            return {}
        field, direction = order_by
        return {field: -1 if direction == "desc" else 1}

    def build_pipeline(
        self,
        options: QueryOptions,
        lookups: list[dict[str, Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Assemble ``$match``, ``$sort``, lookups, ``$skip`` and ``$limit``.

        Pagination runs after the lookups so ``required`` includes filter
        parents before the page is cut.
        """
        pipeline: list[dict[str, Any]] = []
        match = self.build_match(options.where)
        if match:
            pipeline.append({"$match": match})
        sort = self.build_sort(options.order_by)
        if sort:
            pipeline.append({"$sort": sort})
        pipeline.extend(lookups or [])
        if options.offset:
            pipeline.append({"$skip": options.offset})
        if options.limit is not None:
            pipeline.append({"$limit": options.limit})
        return pipeline

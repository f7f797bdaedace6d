"""
Compile a canonical filter into a SQLAlchemy filter expression.

The canonical grammar is first parsed by :func:`polystore_core.parse_filter`
into an AST; ``build_sqla_filter`` walks that tree and delegates leaf-node
compilation to a ``SQLAlchemyOperatorRegistry`` (strategy pattern).

Field names are resolved through a *column resolver*, which is what makes the
two SQL backend families differ:

- relational (query builder): ``table.c[field]``, see
  :func:`compile_table_filter`
- ORM-mediated: ``Model.field``, see :func:`compile_model_filter`

Both resolvers return table-bound columns, so every predicate renders as
``table.field`` (also inside ``$or`` branches) and stays unambiguous when the
statement joins tables that share column names.

Query Options
-------------
``apply_query_options`` takes a ``Select`` statement and a ``QueryOptions``
instance and applies ordering and limit/offset.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import ColumnElement, Select, and_, asc, desc, false, or_, true
from sqlalchemy import inspect as sa_inspect

from polystore_core.filters import parse_filter
from polystore_core.operators import FilterOperator
from polystore_core.primitives.exceptions import (
    CompilationError,
    FieldNotFoundError,
    OperatorNotFoundError,
)

from .operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from sqlalchemy import Table

    from polystore_core.options import QueryOptions

    from .strategy import SQLAlchemyOperatorRegistry

ColumnResolver = Callable[[str], Any]

# ---------------------------------------------------------------------------
# Column resolvers
# ---------------------------------------------------------------------------


def table_column_resolver(table: Table) -> ColumnResolver:
    """Resolve field names against a Core ``Table`` (or alias)."""

    def resolve(name: str) -> Any:
        try:
            return table.c[name]
        except KeyError:
            raise FieldNotFoundError(name, table.name, list(table.c.keys())) from None

    return resolve


def model_column_resolver(model: type[Any]) -> ColumnResolver:
    """Resolve field names against a mapped class (or ``aliased`` class)."""
    mapper = sa_inspect(model).mapper
    columns = {attr.key for attr in mapper.column_attrs}

    def resolve(name: str) -> Any:
        if name not in columns:
            raise FieldNotFoundError(name, mapper.local_table.name, sorted(columns))
        return getattr(model, name)

    return resolve


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_sqla_filter(
    resolve_column: ColumnResolver,
    data: Mapping[str, Any],
    *,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """
    Build a SQLAlchemy filter expression from a filter AST node.

    Args:
        resolve_column: Maps a field name to a column expression.
        data: AST node produced by :func:`polystore_core.parse_filter`.
        registry: Optional custom operator registry.  Falls back to
            ``DEFAULT_SQLA_REGISTRY``.

    Returns:
        SQLAlchemy Boolean expression.
    """
    reg = registry or DEFAULT_SQLA_REGISTRY
    return _compile_node(resolve_column, data, reg)


def compile_table_filter(
    table: Table,
    where: Mapping[str, Any] | None,
    *,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool] | None:
    """Relational compiler: canonical filter -> predicate on ``table`` columns."""
    node = parse_filter(where)
    if node is None:
        return None
    return build_sqla_filter(table_column_resolver(table), node, registry=registry)


def compile_model_filter(
    model: type[Any],
    where: Mapping[str, Any] | None,
    *,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool] | None:
    """ORM compiler: canonical filter -> predicate on mapped attributes."""
    node = parse_filter(where)
    if node is None:
        return None
    return build_sqla_filter(model_column_resolver(model), node, registry=registry)


def apply_query_options(
    stmt: Select[Any],
    resolve_column: ColumnResolver,
    options: QueryOptions | None,
) -> Select[Any]:
    """
    Apply ``order_by``, ``limit`` and ``offset`` to a ``Select`` statement.

    Without ``order_by`` the backend's native order is kept.
    """
    if options is None:
        return stmt

    if options.order_by:
        field_name, direction = options.order_by
        column = resolve_column(field_name)
        stmt = stmt.order_by(desc(column) if direction == "desc" else asc(column))
    if options.limit is not None:
        stmt = stmt.limit(options.limit)
    if options.offset is not None:
        stmt = stmt.offset(options.offset)
    return stmt


# ---------------------------------------------------------------------------
# Internal compilation
# ---------------------------------------------------------------------------


def _compile_logical_operator(
    resolve_column: ColumnResolver,
    data: Mapping[str, Any],
    registry: SQLAlchemyOperatorRegistry,
    op_str: str,
) -> ColumnElement[bool] | None:
    """Compile logical operators ($and, $or).

    Returns None if not a logical operator.
    """
    if op_str == FilterOperator.AND:
        conditions = [
            _compile_node(resolve_column, c, registry)
            for c in data.get("conditions", [])
        ]
        return and_(*conditions) if conditions else true()

    if op_str == FilterOperator.OR:
        conditions = [
            _compile_node(resolve_column, c, registry)
            for c in data.get("conditions", [])
        ]
        return or_(*conditions) if conditions else false()

    return None


def _compile_leaf_node(
    resolve_column: ColumnResolver,
    data: Mapping[str, Any],
    registry: SQLAlchemyOperatorRegistry,
    op_str: str,
) -> ColumnElement[bool]:
    """Compile leaf node (attribute-based conditions)."""
    attr: str | None = data.get("attr")
    if not attr:
        raise CompilationError(f"Filter node missing 'attr': {dict(data)}")

    try:
        op = FilterOperator(op_str)
    except ValueError:
        raise OperatorNotFoundError(
            op_str, [o.value for o in registry.supported_operators], path=attr
        ) from None

    column = resolve_column(attr)
    return registry.apply(op, column, data.get("val"))


def _compile_node(
    resolve_column: ColumnResolver,
    data: Mapping[str, Any],
    registry: SQLAlchemyOperatorRegistry,
) -> ColumnElement[bool]:
    op_str = str(data.get("op", ""))

    # Try logical operators first
    logical_result = _compile_logical_operator(resolve_column, data, registry, op_str)
    if logical_result is not None:
        return logical_result

    # Otherwise compile as leaf node
    return _compile_leaf_node(resolve_column, data, registry, op_str)

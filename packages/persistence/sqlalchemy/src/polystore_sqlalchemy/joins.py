"""
Semi-joins for ``required`` includes.

A required step keeps only parents with at least one related row. It compiles
to ``EXISTS (SELECT 1 FROM <related> WHERE related.fk = parent.lk)`` in the
parent's ``WHERE`` clause, so the parent rows are never fanned out and no
``DISTINCT`` is needed (which some column types, e.g. PostgreSQL ``json``,
cannot support). Related rows are always fetched by the follow-up ``$in``
query.

Related tables are aliased (``<related>_join``) so a collection can require
itself, or share column names with its parent, without ambiguous correlation.
A related collection lacking the foreign key can never match: the clause is
``false()``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import exists, false
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import aliased

from polystore_core.relationships import JoinStep

from .specifications.compiler import model_column_resolver, table_column_resolver

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Table


def required_steps(steps: Sequence[JoinStep]) -> list[JoinStep]:
    return [step for step in steps if step.required]


def table_semi_joins(
    table: Table,
    steps: Sequence[JoinStep],
    lookup: Callable[[str], Table],
) -> list[ColumnElement[bool]]:
    """One ``EXISTS`` predicate per required step, correlated to ``table``."""
    parent = table_column_resolver(table)
    clauses: list[ColumnElement[bool]] = []
    for step in required_steps(steps):
        related = lookup(step.related).alias(f"{step.related}_join")
        if step.foreign_key not in related.c:
            clauses.append(false())
            continue
        foreign = table_column_resolver(related)
        clauses.append(
            exists().where(foreign(step.foreign_key) == parent(step.local_key))
        )
    return clauses


def model_semi_joins(
    model: type[Any],
    steps: Sequence[JoinStep],
    lookup: Callable[[str], type[Any]],
) -> list[ColumnElement[bool]]:
    """ORM counterpart of :func:`table_semi_joins` for a mapped class."""
    parent = model_column_resolver(model)
    clauses: list[ColumnElement[bool]] = []
    for step in required_steps(steps):
        related_model = lookup(step.related)
        columns = {attr.key for attr in sa_inspect(related_model).column_attrs}
        if step.foreign_key not in columns:
            clauses.append(false())
            continue
        related = aliased(related_model, name=f"{step.related}_join")
        foreign = model_column_resolver(related)
        clauses.append(
            exists().where(foreign(step.foreign_key) == parent(step.local_key))
        )
    return clauses

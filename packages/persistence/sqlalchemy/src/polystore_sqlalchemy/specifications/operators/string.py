"""
String operators for SQLAlchemy.

Pattern matching is case-insensitive on every backend: ``ILIKE`` where the
dialect has it, ``lower(col) LIKE lower(pattern)`` elsewhere.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from polystore_core.operators import FilterOperator

from ..strategy import SQLAlchemyOperator

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class LikeOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LIKE

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.ilike(value))


class NotLikeOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_LIKE

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.not_ilike(value))

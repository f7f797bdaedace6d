"""
Set operators for SQLAlchemy: $in, $nin.

``None`` in the operand stands for NULL, the way a document store treats a
null or missing field: ``col IN (NULL)`` never matches, so it is split out
into ``IS NULL`` / ``IS NOT NULL``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_, or_

from polystore_core.operators import FilterOperator

from ..strategy import SQLAlchemyOperator

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


def _split_nulls(value: Any) -> tuple[list[Any], bool]:
    values = list(value)
    non_null = [v for v in values if v is not None]
    return non_null, len(non_null) != len(values)


class InOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IN

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        non_null, with_null = _split_nulls(value)
        if not with_null:
            return cast("ColumnElement[bool]", column.in_(non_null))
        if not non_null:
            return cast("ColumnElement[bool]", column.is_(None))
        return cast("ColumnElement[bool]", or_(column.in_(non_null), column.is_(None)))


class NotInOperator(SQLAlchemyOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NIN

    def apply(self, column: Any, value: Any) -> ColumnElement[bool]:
        non_null, with_null = _split_nulls(value)
        if not with_null:
            return cast(
                "ColumnElement[bool]", or_(column.not_in(non_null), column.is_(None))
            )
        if not non_null:
            return cast("ColumnElement[bool]", column.is_not(None))
        return cast(
            "ColumnElement[bool]", and_(column.is_not(None), column.not_in(non_null))
        )

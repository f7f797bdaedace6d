"""
SQLAlchemyCoreAdapter: query-builder backend.

Statements are built with SQLAlchemy Core against ``Table`` objects that are
either created from a collection definition or reflected from the database::

    adapter = SQLAlchemyCoreAdapter()
    await adapter.init({"url": "sqlite+aiosqlite:///app.db"})
    await adapter.create_collection(
        "users", model_def={"name": "string", "age": "integer"}
    )
    await adapter.create("users", data={"name": "Ada", "age": 36})
    adults = await adapter.find("users", where={"age": {"$gte": 18}})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from polystore_core.primitives.exceptions import QueryError, WriteFailure

from ..config import SQLConfig
from ..engine import SQLAlchemyEngineAdapter
from ..joins import required_steps, table_semi_joins
from ..specifications.compiler import (
    apply_query_options,
    compile_table_filter,
    table_column_resolver,
)

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Table

    from polystore_core.options import QueryOptions
    from polystore_core.ports.adapter import Record

logger = logging.getLogger("polystore.sqlalchemy.core")


def _batches(rows: list[Record]) -> list[list[Record]]:
    """Split rows into consecutive runs sharing one key set (executemany)."""
    batches: list[list[Record]] = []
    for row in rows:
        if batches and batches[-1][0].keys() == row.keys():
            batches[-1].append(row)
        else:
            batches.append([row])
    return batches


class SQLAlchemyCoreAdapter(SQLAlchemyEngineAdapter):
    """Storage adapter over SQLAlchemy Core (no ORM mapping)."""

    config_cls: ClassVar[type[SQLConfig]] = SQLConfig

    async def _on_init(self, config: Any) -> None:
        for name, definition in config.collection_defs.items():
            self._collections.define(name, definition)

    async def _insert_rows(self, list_name: str, rows: list[Record]) -> list[Record]:
        table = await self._get_table(list_name)
        columns = table.c.keys()
        for row in rows:
            unknown = sorted(set(row) - set(columns))
            if unknown:
                raise WriteFailure(
                    f"Unknown column(s) for '{list_name}': {', '.join(unknown)}",
                    collection=list_name,
                )

        try:
            async with self.engine.begin() as conn:
                for batch in _batches(rows):
                    await conn.execute(insert(table), batch)
        except SQLAlchemyError as e:
            logger.warning("Insert into %s failed: %s", list_name, e)
            raise WriteFailure(
                f"Insert into '{list_name}' failed: {e}", collection=list_name
            ) from e
        return [{name: row.get(name) for name in columns} for row in rows]

    async def _find(self, list_name: str, options: QueryOptions) -> list[Record]:
        table = await self._get_table(list_name)
        steps = self._resolve_steps(list_name, options, table.c.keys())
        related = {
            step.related: await self._get_table(step.related)
            for step in required_steps(steps)
        }

        resolve = table_column_resolver(table)
        stmt = select(*[column.label(column.name) for column in table.c])
        for semi_join in table_semi_joins(table, steps, related.__getitem__):
            stmt = stmt.where(semi_join)
        clause = compile_table_filter(table, options.where)
        if clause is not None:
            stmt = stmt.where(clause)
        stmt = apply_query_options(stmt, resolve, options)

        logger.debug("find %s: %s", list_name, stmt)
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                records = [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            raise QueryError(f"Query on '{list_name}' failed: {e}") from e
        return await self._attach_includes(records, steps)

    async def _update(self, list_name: str, options: QueryOptions, *, many: bool) -> int:
        table = await self._get_table(list_name)
        changes = options.data
        if not changes:
            return 0
        resolve = table_column_resolver(table)
        for field_name in changes:
            resolve(field_name)
        clause = compile_table_filter(table, options.where)

        stmt = update(table).values(changes)
        try:
            async with self.engine.begin() as conn:
                if many:
                    if clause is not None:
                        stmt = stmt.where(clause)
                    result = await conn.execute(stmt)
                    return int(result.rowcount)

                key = self._row_key(table)
                first = select(key).limit(1)
                if clause is not None:
                    first = first.where(clause)
                row = (await conn.execute(first)).first()
                if row is None:
                    return 0
                await conn.execute(stmt.where(key == row[0]))
                return 1
        except SQLAlchemyError as e:
            raise WriteFailure(
                f"Update on '{list_name}' failed: {e}", collection=list_name
            ) from e

    async def _delete(self, list_name: str, options: QueryOptions) -> int:
        table = await self._get_table(list_name)
        stmt = delete(table)
        clause = compile_table_filter(table, options.where)
        if clause is not None:
            stmt = stmt.where(clause)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
        except SQLAlchemyError as e:
            raise WriteFailure(
                f"Delete on '{list_name}' failed: {e}", collection=list_name
            ) from e
        return int(result.rowcount)

    @staticmethod
    def _row_key(table: Table) -> ColumnElement[Any]:
        primary = list(table.primary_key.columns)
        if primary:
            return primary[0]
        return table_column_resolver(table)("id")

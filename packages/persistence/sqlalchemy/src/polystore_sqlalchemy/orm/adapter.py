"""
SQLAlchemyORMAdapter: ORM-mediated backend.

Every collection is served by a runtime mapped class (see
:mod:`polystore_sqlalchemy.orm.models`); reads go through ``select(Model)`` and
an ``AsyncSession``, filters compile onto mapped attributes. The operator
surface is the same as the Core and Mongo backends.

Write failures surface as :class:`WriteFailure`; they are never converted to a
boolean.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from polystore_core.primitives.exceptions import QueryError, WriteFailure

from ..config import ORMConfig
from ..engine import SQLAlchemyEngineAdapter
from ..joins import model_semi_joins, required_steps
from ..specifications.compiler import (
    apply_query_options,
    compile_model_filter,
    model_column_resolver,
)
from .models import MappedRecord, ModelRegistry

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncSession

    from polystore_core.options import QueryOptions
    from polystore_core.ports.adapter import Record
    from polystore_core.primitives.id_generator import IIDGenerator

logger = logging.getLogger("polystore.sqlalchemy.orm")


class SQLAlchemyORMAdapter(SQLAlchemyEngineAdapter):
    """Storage adapter over the SQLAlchemy ORM with ``AsyncSession``."""

    config_cls: ClassVar[type[ORMConfig]] = ORMConfig

    def __init__(
        self,
        engine: AsyncEngine | None = None,
        *,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        super().__init__(engine, id_generator=id_generator)
        self._models = ModelRegistry(self._metadata)
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine, expire_on_commit=False
            )
        return self._session_factory

    async def _on_init(self, config: Any) -> None:
        for name, definition in config.models.items():
            if config.unsafe:
                logger.warning("unsafe=True: dropping table %s before sync", name)
                await self.remove_collection(name)
            await self.create_collection(name, model_def=definition)

    async def close(self) -> None:
        self._session_factory = None
        await super().close()

    # -- mapping --------------------------------------------------------------

    def _on_table(self, name: str, table: Table) -> None:
        self._models.bind(name, table)

    def _on_drop(self, name: str) -> None:
        self._models.remove(name)

    async def model(self, name: str) -> type[MappedRecord]:
        """Mapped class for ``name`` (reflecting the table on first use)."""
        table = await self._get_table(name)
        return self._models.bind(name, table)

    # -- backend hooks --------------------------------------------------------

    async def _insert_rows(self, list_name: str, rows: list[Record]) -> list[Record]:
        model = await self.model(list_name)
        columns = set(model.column_names())
        for row in rows:
            unknown = sorted(set(row) - columns)
            if unknown:
                raise WriteFailure(
                    f"Unknown attribute(s) for '{list_name}': {', '.join(unknown)}",
                    collection=list_name,
                )

        objects = [model(**row) for row in rows]
        try:
            async with self.session_factory() as session:
                session.add_all(objects)
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning("Insert into %s failed: %s", list_name, e)
            raise WriteFailure(
                f"Insert into '{list_name}' failed: {e}", collection=list_name
            ) from e
        return [obj.to_record() for obj in objects]

    async def _find(self, list_name: str, options: QueryOptions) -> list[Record]:
        model = await self.model(list_name)
        steps = self._resolve_steps(list_name, options, model.column_names())
        related = {
            step.related: await self.model(step.related)
            for step in required_steps(steps)
        }

        stmt = select(model)
        for semi_join in model_semi_joins(model, steps, related.__getitem__):
            stmt = stmt.where(semi_join)
        clause = compile_model_filter(model, options.where)
        if clause is not None:
            stmt = stmt.where(clause)
        stmt = apply_query_options(stmt, model_column_resolver(model), options)

        logger.debug("find %s: %s", list_name, stmt)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                records = [obj.to_record() for obj in result.scalars().all()]
        except SQLAlchemyError as e:
            raise QueryError(f"Query on '{list_name}' failed: {e}") from e
        return await self._attach_includes(records, steps)

    async def _update(self, list_name: str, options: QueryOptions, *, many: bool) -> int:
        model = await self.model(list_name)
        changes = options.data
        if not changes:
            return 0
        resolve = model_column_resolver(model)
        for field_name in changes:
            resolve(field_name)
        clause = compile_model_filter(model, options.where)

        try:
            async with self.session_factory() as session:
                if many:
                    stmt = update(model).values(changes)
                    if clause is not None:
                        stmt = stmt.where(clause)
                    result = await session.execute(
                        stmt.execution_options(synchronize_session=False)
                    )
                    await session.commit()
                    return int(result.rowcount)

                first = select(model).limit(1)
                if clause is not None:
                    first = first.where(clause)
                obj = (await session.execute(first)).scalars().first()
                if obj is None:
                    return 0
                for key, value in changes.items():
                    setattr(obj, key, value)
                await session.commit()
                return 1
        except SQLAlchemyError as e:
            raise WriteFailure(
                f"Update on '{list_name}' failed: {e}", collection=list_name
            ) from e

    async def _delete(self, list_name: str, options: QueryOptions) -> int:
        model = await self.model(list_name)
        stmt = delete(model)
        clause = compile_model_filter(model, options.where)
        if clause is not None:
            stmt = stmt.where(clause)
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    stmt.execution_options(synchronize_session=False)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise WriteFailure(
                f"Delete on '{list_name}' failed: {e}", collection=list_name
            ) from e
        return int(result.rowcount)

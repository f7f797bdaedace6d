"""
Shared engine plumbing for the two SQL adapters.

Both adapters own an ``AsyncEngine``, a ``MetaData`` of known tables, a
collection registry and a nested writer. They differ only in how a statement
is built and executed (Core ``Table`` vs mapped class), which subclasses
provide through ``_insert_rows``, ``_find``, ``_update`` and ``_delete``.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import MetaData, text
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from polystore_core.nested import NestedWriteEngine
from polystore_core.options import QueryOptions
from polystore_core.primitives.exceptions import (
    CollectionNotFoundError,
    CompilationError,
    ConfigurationError,
    ConnectivityError,
    FieldNotFoundError,
    SchemaError,
)
from polystore_core.registry import CollectionRegistry
from polystore_core.relationships import (
    JoinStep,
    RelationshipResolver,
    attach,
    drop_unmatched,
    related_keys,
)

from .config import EngineConfig
from .schema import definition_from_table, drop_table, ensure_table, has_table, reflect_table

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy import Table

    from polystore_core.primitives.id_generator import IIDGenerator
    from polystore_core.ports.adapter import Record

logger = logging.getLogger("polystore.sqlalchemy.engine")


class SQLAlchemyEngineAdapter:
    """
    Base for :class:`SQLAlchemyCoreAdapter` and :class:`SQLAlchemyORMAdapter`.

    An ``AsyncEngine`` may be injected (tests, shared pools); otherwise
    ``init`` builds one from the config record.
    """

    config_cls: ClassVar[type[EngineConfig]] = EngineConfig

    def __init__(
        self,
        engine: AsyncEngine | None = None,
        *,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._engine = engine
        self._owns_engine = engine is None
        self._metadata = MetaData()
        self._collections = CollectionRegistry()
        self._resolver = RelationshipResolver()
        self._writer = NestedWriteEngine(
            self._insert_rows,
            self._collections,
            embed_children=False,
            id_generator=id_generator,
        )
        self.config: EngineConfig | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise ConnectivityError(
                f"{type(self).__name__} is not initialised; await init() first"
            )
        return self._engine

    @property
    def collections(self) -> CollectionRegistry:
        return self._collections

    # -- lifecycle ------------------------------------------------------------

    async def init(self, config: Any = None) -> None:
        cfg = self.config_cls.from_value(config)
        self.config = cfg
        if self._engine is None:
            try:
                self._engine = create_async_engine(
                    cfg.url, echo=cfg.echo, **cfg.engine_options
                )
            except ArgumentError as e:
                raise ConfigurationError(f"Invalid database URL {cfg.url!r}: {e}") from e
            self._owns_engine = True

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise ConnectivityError(f"Cannot connect to {self._engine.url}: {e}") from e
        logger.info("%s connected to %s", type(self).__name__, self._engine.url)
        await self._on_init(cfg)

    async def _on_init(self, config: Any) -> None:
        """Hook for backend-specific startup (seeding definitions, models)."""

    async def close(self) -> None:
        if self._engine is None:
            return
        try:
            if self._owns_engine:
                await self._engine.dispose()
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to close engine: {e}") from e
        finally:
            self._engine = None if self._owns_engine else self._engine

    # -- collections ----------------------------------------------------------

    async def create_collection(self, name: str, **options: Any) -> bool:
        opts = QueryOptions.from_dict(options, operation="create_collection")
        if opts.model_def is not None:
            definition = self._collections.define(name, opts.model_def)
        else:
            definition = self._collections.definition(name)

        try:
            async with self.engine.begin() as conn:
                table = await conn.run_sync(
                    ensure_table, name, definition, self._metadata
                )
        except SQLAlchemyError as e:
            raise SchemaError(f"Cannot create collection '{name}': {e}") from e

        self._collections.track(name, definition or definition_from_table(table))
        self._on_table(name, table)
        if opts.initial_items:
            await self._writer.persist_many(name, opts.initial_items)
        return True

    async def remove_collection(self, name: str) -> bool:
        self._on_drop(name)
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(drop_table, name, self._metadata)
        except SQLAlchemyError as e:
            raise SchemaError(f"Cannot remove collection '{name}': {e}") from e
        self._collections.forget(name)
        return True

    def _on_table(self, name: str, table: Table) -> None:
        """Called whenever ``name`` is (re)bound to a ``Table``."""

    def _on_drop(self, name: str) -> None:
        """Called before ``name`` is dropped."""

    async def _get_table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is not None:
            return table
        try:
            async with self.engine.connect() as conn:
                if not await conn.run_sync(has_table, name):
                    raise CollectionNotFoundError(name, list(self._collections.names))
                table = await conn.run_sync(reflect_table, name, self._metadata)
        except SQLAlchemyError as e:
            raise SchemaError(f"Cannot reflect collection '{name}': {e}") from e
        self._on_table(name, table)
        return table

    # -- operations -----------------------------------------------------------

    async def create(self, list_name: str, **options: Any) -> Record | list[Record] | bool:
        opts = QueryOptions.from_dict(options, operation="create")
        if opts.data is None:
            raise CompilationError("'data' is required for create", path="data")
        return await self._writer.persist(list_name, opts.data, return_ref=opts.return_ref)

    async def find(self, list_name: str, **options: Any) -> list[Record]:
        return await self._find(list_name, QueryOptions.from_dict(options, operation="find"))

    async def find_one(self, list_name: str, **options: Any) -> Record | None:
        opts = QueryOptions.from_dict(options, operation="find_one")
        records = await self._find(list_name, dataclasses.replace(opts, limit=1))
        return records[0] if records else None

    async def update_one(self, list_name: str, **options: Any) -> int:
        opts = QueryOptions.from_dict(options, operation="update_one")
        return await self._update(list_name, opts, many=False)

    async def update_many(self, list_name: str, **options: Any) -> int:
        opts = QueryOptions.from_dict(options, operation="update_many")
        return await self._update(list_name, opts, many=True)

    async def delete(self, list_name: str, **options: Any) -> int:
        return await self._delete(list_name, QueryOptions.from_dict(options, operation="delete"))

    # -- includes -------------------------------------------------------------

    def _resolve_steps(
        self, list_name: str, options: QueryOptions, parent_fields: Collection[str]
    ) -> list[JoinStep]:
        steps = self._resolver.resolve(list_name, options.include, parent_fields)
        for step in steps:
            if step.local_key not in parent_fields:
                raise FieldNotFoundError(step.local_key, list_name, list(parent_fields))
        return steps

    async def _attach_includes(
        self, records: list[Record], steps: list[JoinStep]
    ) -> list[Record]:
        """
        Two-query equi-join: fetch related rows by ``$in`` and group them.

        A related collection without the foreign key column matches nothing,
        as a ``$lookup`` on a missing field does.
        """
        if not records:
            return records
        for step in steps:
            keys = related_keys(records, step.local_key)
            related: list[Record] = []
            table = await self._get_table(step.related)
            if keys and step.foreign_key in table.c:
                related = await self._find(
                    step.related,
                    QueryOptions(where={step.foreign_key: {"$in": keys}}),
                )
            attach(records, step.related, related, step.local_key, step.foreign_key)
        return drop_unmatched(records, steps)

    # -- backend hooks --------------------------------------------------------

    async def _insert_rows(self, list_name: str, rows: list[Record]) -> list[Record]:
        raise NotImplementedError

    async def _find(self, list_name: str, options: QueryOptions) -> list[Record]:
        raise NotImplementedError

    async def _update(self, list_name: str, options: QueryOptions, *, many: bool) -> int:
        raise NotImplementedError

    async def _delete(self, list_name: str, options: QueryOptions) -> int:
        raise NotImplementedError

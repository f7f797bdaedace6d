"""
MongoAdapter: document-store backend over Motor.

Reads run as one aggregation pipeline (``$match``, ``$sort``, ``$lookup``,
``$skip``, ``$limit``); includes never need a second round trip. Nested
writes keep the persisted children embedded in the parent document.

The driver's ``_id`` is an internal detail: records are addressed by their
``id`` field and ``_id`` is stripped from every result.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from pymongo.errors import PyMongoError

from polystore_core.nested import NestedWriteEngine
from polystore_core.options import QueryOptions
from polystore_core.primitives.exceptions import (
    CompilationError,
    ConnectivityError,
    QueryError,
    SchemaError,
    WriteFailure,
)
from polystore_core.registry import CollectionRegistry
from polystore_core.relationships import RelationshipResolver, parse_include

from .config import MongoConfig
from .connection import MongoConnectionManager
from .lookup import build_lookups
from .query_builder import MongoQueryBuilder
from .serialization import record_from_doc, record_to_doc

if TYPE_CHECKING:
    from collections.abc import Mapping

    from motor.motor_asyncio import AsyncIOMotorDatabase

    from polystore_core.ports.adapter import Record
    from polystore_core.primitives.id_generator import IIDGenerator

logger = logging.getLogger("polystore.mongo.adapter")


class MongoAdapter:
    """
    Storage adapter over MongoDB.

    A :class:`MongoConnectionManager` may be injected; otherwise ``init``
    builds one from a :class:`MongoConfig`.
    """

    def __init__(
        self,
        connection: MongoConnectionManager | None = None,
        *,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._connection = connection
        self._collections = CollectionRegistry()
        self._resolver = RelationshipResolver()
        self._query_builder = MongoQueryBuilder()
        self._writer = NestedWriteEngine(
            self._insert_rows,
            self._collections,
            embed_children=True,
            id_generator=id_generator,
        )
        # Confirmed ``<related>_id`` fields per schemaless collection
        self._foreign_keys: dict[str, set[str]] = {}
        self.config: MongoConfig | None = None

    @property
    def db(self) -> AsyncIOMotorDatabase[Any]:
        if self._connection is None:
            raise ConnectivityError("MongoAdapter is not initialised; await init() first")
        return self._connection.database

    @property
    def collections(self) -> CollectionRegistry:
        return self._collections

    # -- lifecycle ------------------------------------------------------------

    async def init(self, config: Any = None) -> None:
        cfg = MongoConfig.from_value(config)
        self.config = cfg
        if self._connection is None:
            self._connection = MongoConnectionManager(
                cfg.resolved_url,
                database=cfg.database,
                server_selection_timeout_ms=cfg.server_selection_timeout_ms,
                connect_timeout_ms=cfg.connect_timeout_ms,
            )
        await self._connection.connect()
        await self._connection.ping()
        logger.info("MongoAdapter connected to database %s", cfg.database)

    async def close(self) -> None:
        if self._connection is not None:
            self._connection.close()

    # -- collections ----------------------------------------------------------

    async def create_collection(self, name: str, **options: Any) -> bool:
        opts = QueryOptions.from_dict(options, operation="create_collection")
        try:
            if name not in await self.db.list_collection_names():
                await self.db.create_collection(name)
                logger.debug("Created collection %s", name)
        except PyMongoError as e:
            raise SchemaError(f"Cannot create collection '{name}': {e}") from e

        self._collections.track(name, opts.model_def)
        if opts.initial_items:
            await self._writer.persist_many(name, opts.initial_items)
        return True

    async def remove_collection(self, name: str) -> bool:
        try:
            await self.db[name].drop()
        except PyMongoError as e:
            raise SchemaError(f"Cannot remove collection '{name}': {e}") from e
        self._collections.forget(name)
        self._foreign_keys.pop(name, None)
        return True

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
        opts = QueryOptions.from_dict(options, operation="delete")
        match = self._query_builder.build_match(opts.where)
        try:
            result = await self.db[list_name].delete_many(match)
        except PyMongoError as e:
            raise WriteFailure(
                f"Delete on '{list_name}' failed: {e}", collection=list_name
            ) from e
        return int(result.deleted_count)

    # -- internals ------------------------------------------------------------

    async def _insert_rows(self, list_name: str, rows: list[Record]) -> list[Record]:
        docs = [record_to_doc(row) for row in rows]
        try:
            await self.db[list_name].insert_many(docs)
        except PyMongoError as e:
            logger.warning("Insert into %s failed: %s", list_name, e)
            raise WriteFailure(
                f"Insert into '{list_name}' failed: {e}", collection=list_name
            ) from e
        return [record_from_doc(doc) for doc in docs]

    async def _find(self, list_name: str, options: QueryOptions) -> list[Record]:
        if options.limit == 0:
            return []
        parent_fields = await self._parent_fields(list_name, options.include)
        steps = self._resolver.resolve(list_name, options.include, parent_fields)
        pipeline = self._query_builder.build_pipeline(options, build_lookups(steps))

        logger.debug("find %s: %s", list_name, pipeline)
        try:
            docs = [doc async for doc in self.db[list_name].aggregate(pipeline)]
        except PyMongoError as e:
            raise QueryError(f"Query on '{list_name}' failed: {e}") from e
        return [record_from_doc(doc) for doc in docs]

    async def _update(self, list_name: str, options: QueryOptions, *, many: bool) -> int:
        changes = options.data
        if not changes:
            return 0
        match = self._query_builder.build_match(options.where)
        update = {"$set": record_to_doc(changes)}
        collection = self.db[list_name]
        try:
            if many:
                result = await collection.update_many(match, update)
            else:
                result = await collection.update_one(match, update)
        except PyMongoError as e:
            raise WriteFailure(
                f"Update on '{list_name}' failed: {e}", collection=list_name
            ) from e
        return int(result.matched_count)

    async def _parent_fields(
        self, list_name: str, include: Mapping[str, Any] | None
    ) -> set[str]:
        """
        Field names used for belongs-to inference.

        A declared definition is authoritative. Schemaless collections are
        checked for ``<related>_id``; positive answers are cached.
        """
        definition = self._collections.definition(list_name)
        if definition is not None:
            return set(definition.field_names)

        known = self._foreign_keys.setdefault(list_name, set())
        fields = {"id", *known}
        for related, entry in parse_include(include).items():
            key = f"{related}_id"
            if entry.on is not None or key in known:
                continue
            try:
                found = await self.db[list_name].find_one(
                    {key: {"$exists": True}}, projection={"_id": 1}
                )
            except PyMongoError as e:
                raise QueryError(f"Foreign key lookup on '{list_name}' failed: {e}") from e
            if found is not None:
                known.add(key)
                fields.add(key)
        return fields

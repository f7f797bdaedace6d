"""
Nested writes: persist embedded child collections before their parent.

Given ``create("post", data={"title": "a", "comment": [{...}, {...}]})`` and a
tracked ``comment`` collection, the engine

1. assigns the post an ``id`` (a supplied ``id`` is kept as-is),
2. stamps every comment with ``post_id`` and persists the comments
   recursively under ``comment``,
3. drops the ``comment`` field from the post (relational backends) or
   replaces it with the stored comments (document backends),
4. inserts the post through the adapter's native bulk insert.

Children are written sequentially, one collection and one batch at a time, so
a child's parent id always exists before the child insert is issued. The
sequence is not atomic: a failure part-way leaves earlier inserts in place.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from .primitives.exceptions import CompilationError
from .primitives.id_generator import IIDGenerator, UUID4Generator

logger = logging.getLogger("polystore.core.nested")

Record = dict[str, Any]
InsertFn = Callable[[str, list[Record]], Awaitable[list[Record]]]


class NestedWriteEngine:
    """
    Recursive record writer shared by all adapters.

    Args:
        insert: Coroutine ``(list_name, records) -> stored records`` issuing
            the backend-native bulk insert.
        collections: Live view of tracked collection names (typically the
            adapter's :class:`CollectionRegistry`).
        embed_children: Keep persisted children on the parent record
            instead of dropping the field.
        id_generator: Strategy for missing ids (UUIDv4 by default).
    """

    def __init__(
        self,
        insert: InsertFn,
        collections: Iterable[str],
        *,
        embed_children: bool = False,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._insert = insert
        self._collections = collections
        self._embed_children = embed_children
        self._id_generator = id_generator or UUID4Generator()

    async def persist(
        self,
        list_name: str,
        data: Mapping[str, Any] | list[Mapping[str, Any]],
        *,
        return_ref: bool = True,
    ) -> Record | list[Record] | bool:
        """
        Persist one record or a list of records.

        Returns the stored record(s) in the same shape as ``data``, or
        ``True`` when ``return_ref`` is false.
        """
        single = isinstance(data, Mapping)
        items = [data] if single else data
        if not isinstance(items, (list, tuple)):
            raise CompilationError(
                "'data' must be a record or a list of records", path="data"
            )

        stored = await self.persist_many(list_name, items)
        if not return_ref:
            return True
        return stored[0] if single and stored else stored

    async def persist_many(
        self, list_name: str, items: Iterable[Mapping[str, Any]]
    ) -> list[Record]:
        prepared: list[Record] = []
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                raise CompilationError(
                    f"Record must be a mapping, got {type(item).__name__}",
                    path=f"data[{index}]",
                )
            prepared.append(await self._prepare(list_name, dict(item)))

        if not prepared:
            return []
        logger.debug("Inserting %d record(s) into %s", len(prepared), list_name)
        return await self._insert(list_name, prepared)

    async def _prepare(self, list_name: str, record: Record) -> Record:
        if record.get("id") in (None, ""):
            record["id"] = self._id_generator.next_id()

        for child_name in list(self._collections):
            children = record.get(child_name)
            if not isinstance(children, (list, tuple)):
                continue
            stamped: list[Record] = []
            for index, child in enumerate(children):
                if not isinstance(child, Mapping):
                    raise CompilationError(
                        f"Record must be a mapping, got {type(child).__name__}",
                        path=f"{child_name}[{index}]",
                    )
                stamped.append({**child, f"{list_name}_id": record["id"]})
            logger.debug(
                "Nested write: %d %s record(s) under %s %s",
                len(stamped),
                child_name,
                list_name,
                record["id"],
            )
            stored_children = await self.persist_many(child_name, stamped)
            if self._embed_children:
                record[child_name] = stored_children
            else:
                del record[child_name]
        return record

"""IStorageAdapter: uniform CRUD + query protocol for every backend."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

Record = dict[str, Any]


@runtime_checkable
class IStorageAdapter(Protocol):
    """
    Backend-agnostic storage contract.

    Three implementations conform: the SQLAlchemy Core adapter (query
    builder), the SQLAlchemy ORM adapter and the MongoDB adapter. They share
    no base class; conformance is structural.

    Options follow the canonical vocabulary (see ``QueryOptions``)::

        await adapter.find(
            "users",
            where={"age": {"$gt": 30}},
            include={"posts": {"required": True}},
            orderBy=["age", "desc"],
            limit=10,
        )
    """

    async def init(self, config: Any = None) -> None: ...

    async def close(self) -> None: ...

    async def create_collection(self, name: str, **options: Any) -> bool: ...

    async def remove_collection(self, name: str) -> bool: ...

    async def create(
        self, list_name: str, **options: Any
    ) -> Record | list[Record] | bool: ...

    async def find(self, list_name: str, **options: Any) -> list[Record]: ...

    async def find_one(self, list_name: str, **options: Any) -> Record | None: ...

    async def update_one(self, list_name: str, **options: Any) -> int: ...

    async def update_many(self, list_name: str, **options: Any) -> int: ...

    async def delete(self, list_name: str, **options: Any) -> int: ...

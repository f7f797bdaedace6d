"""
Runtime mapped classes for the ORM adapter.

Collections are declared at runtime, so each one gets a generated
``MappedRecord`` subclass mapped imperatively onto its ``Table``. Every
collection owns its own ``registry`` (sharing the adapter's ``MetaData``), which
lets a collection be dropped and re-created without leaving stale mappers
behind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import registry

from polystore_core.primitives.exceptions import SchemaError

if TYPE_CHECKING:
    from sqlalchemy import MetaData, Table

logger = logging.getLogger("polystore.sqlalchemy.orm.models")


class MappedRecord:
    """Base for generated record classes."""

    def __init__(self, **values: Any) -> None:
        for key, value in values.items():
            setattr(self, key, value)

    @classmethod
    def column_names(cls) -> list[str]:
        return [attr.key for attr in sa_inspect(cls).column_attrs]

    def to_record(self) -> dict[str, Any]:
        """Loaded column values as a plain dict; never triggers a lazy load."""
        state = sa_inspect(self)
        loaded = state.dict
        return {attr.key: loaded.get(attr.key) for attr in state.mapper.column_attrs}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)!r}>"


def _class_name(collection: str) -> str:
    parts = [p for p in collection.replace("-", "_").split("_") if p]
    return "".join(p[:1].upper() + p[1:] for p in parts) + "Record"


class ModelRegistry:
    """Collection name -> mapped class, re-mapped when the table changes."""

    def __init__(self, metadata: MetaData) -> None:
        self._metadata = metadata
        self._models: dict[str, tuple[registry, type[MappedRecord]]] = {}

    def bind(self, name: str, table: Table) -> type[MappedRecord]:
        current = self._models.get(name)
        if current is not None:
            if sa_inspect(current[1]).local_table is table:
                return current[1]
            self.remove(name)

        mapper_kwargs: dict[str, Any] = {}
        if not table.primary_key.columns:
            if "id" not in table.c:
                raise SchemaError(
                    f"Table '{name}' has neither a primary key nor an 'id' column"
                )
            mapper_kwargs["primary_key"] = [table.c.id]

        reg = registry(metadata=self._metadata)
        model = type(_class_name(name), (MappedRecord,), {})
        reg.map_imperatively(model, table, **mapper_kwargs)
        self._models[name] = (reg, model)
        logger.debug("Mapped %s onto table %s", model.__name__, name)
        return model

    def remove(self, name: str) -> None:
        current = self._models.pop(name, None)
        if current is not None:
            current[0].dispose()

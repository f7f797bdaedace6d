"""
Collection definitions -> SQLAlchemy ``Table`` objects.

Type tags follow the query-builder vocabulary (``string``, ``integer``,
``dateTime``, ...) and are matched case-insensitively.
"""

from __future__ import annotations

import logging
from difflib import get_close_matches
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Table,
    Text,
    Time,
    inspect,
)

from polystore_core.definitions import CollectionDefinition
from polystore_core.primitives.exceptions import SchemaError

if TYPE_CHECKING:
    from sqlalchemy import Connection, MetaData
    from sqlalchemy.types import TypeEngine

logger = logging.getLogger("polystore.sqlalchemy.schema")

_TYPE_FACTORIES: dict[str, Any] = {
    "string": lambda: String(255),
    "uuid": lambda: String(36),
    "text": Text,
    "integer": Integer,
    "biginteger": BigInteger,
    "float": Float,
    "double": Float,
    "decimal": Numeric,
    "boolean": Boolean,
    "date": Date,
    "datetime": DateTime,
    "timestamp": DateTime,
    "time": Time,
    "json": JSON,
    "binary": LargeBinary,
}

# Reflected column type -> tag; first isinstance match wins.
_REVERSE_TYPES: list[tuple[type[Any], str]] = [
    (BigInteger, "bigInteger"),
    (Integer, "integer"),
    (Boolean, "boolean"),
    (Float, "float"),
    (Numeric, "decimal"),
    (DateTime, "dateTime"),
    (Date, "date"),
    (Time, "time"),
    (JSON, "json"),
    (LargeBinary, "binary"),
    (Text, "text"),
]


def column_type(tag: str) -> TypeEngine[Any]:
    factory = _TYPE_FACTORIES.get(tag.lower())
    if factory is None:
        suggestions = get_close_matches(tag.lower(), list(_TYPE_FACTORIES), n=3)
        message = f"Unsupported column type '{tag}'."
        if suggestions:
            message += f" Did you mean: {', '.join(suggestions)}?"
        raise SchemaError(message)
    return factory()  # type: ignore[no-any-return]


def type_tag(sql_type: TypeEngine[Any]) -> str:
    for cls, tag in _REVERSE_TYPES:
        if isinstance(sql_type, cls):
            return tag
    return "string"


def build_table(
    name: str, definition: CollectionDefinition, metadata: MetaData
) -> Table:
    """Declare ``name`` on ``metadata`` from a collection definition."""
    columns = [
        Column(
            field,
            column_type(desc.type),
            primary_key=desc.primary_key,
            nullable=desc.nullable and not desc.primary_key,
        )
        for field, desc in definition.columns.items()
    ]
    return Table(name, metadata, *columns)


def definition_from_table(table: Table) -> CollectionDefinition:
    return CollectionDefinition.from_mapping(
        {
            column.name: {
                "type": type_tag(column.type),
                "primaryKey": bool(column.primary_key),
            }
            for column in table.columns
        }
    )


def has_table(sync_conn: Connection, name: str) -> bool:
    return inspect(sync_conn).has_table(name)


def reflect_table(sync_conn: Connection, name: str, metadata: MetaData) -> Table:
    if name in metadata.tables:
        metadata.remove(metadata.tables[name])
    return Table(name, metadata, autoload_with=sync_conn)


def ensure_table(
    sync_conn: Connection,
    name: str,
    definition: CollectionDefinition | None,
    metadata: MetaData,
) -> Table:
    """
    Return the table for ``name``, creating it when the database lacks it.

    An existing table is reflected as-is. When a definition is given, every
    declared field must exist as a column, otherwise :class:`SchemaError`.
    """
    if has_table(sync_conn, name):
        table = reflect_table(sync_conn, name, metadata)
        if definition is not None:
            missing = [f for f in definition.field_names if f not in table.c]
            if missing:
                raise SchemaError(
                    f"Table '{name}' exists without column(s): {', '.join(missing)}"
                )
        logger.debug("Table %s already exists; reflected %d columns", name, len(table.c))
        return table

    if name in metadata.tables:
        metadata.remove(metadata.tables[name])
    table = build_table(
        name, definition or CollectionDefinition.from_mapping(None), metadata
    )
    table.create(sync_conn)
    logger.debug("Created table %s (%s)", name, ", ".join(table.c.keys()))
    return table


def drop_table(sync_conn: Connection, name: str, metadata: MetaData) -> bool:
    """Drop ``name`` if present; returns whether a table was dropped."""
    existed = has_table(sync_conn, name)
    table = metadata.tables.get(name)
    if existed:
        if table is None:
            table = reflect_table(sync_conn, name, metadata)
        table.drop(sync_conn)
        logger.debug("Dropped table %s", name)
    if table is not None:
        metadata.remove(table)
    return existed

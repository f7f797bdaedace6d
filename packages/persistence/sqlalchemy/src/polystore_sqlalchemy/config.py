"""Connection configuration records for the SQL backends."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from polystore_core.config import BackendConfig


class EngineConfig(BackendConfig):
    """
    Settings shared by both SQL adapters.

    ``url`` is any SQLAlchemy async URL (``sqlite+aiosqlite:///app.db``,
    ``postgresql+asyncpg://user:pw@host/db``, ...). ``engine_options`` is passed
    verbatim to ``create_async_engine``.
    """

    url: str = "sqlite+aiosqlite:///:memory:"
    echo: bool = False
    engine_options: dict[str, Any] = Field(
        default_factory=dict, alias="engineOptions"
    )


class SQLConfig(EngineConfig):
    """Query-builder adapter settings; ``collection_defs`` seeds definitions."""

    collection_defs: dict[str, Any] = Field(
        default_factory=dict, alias="collectionDefs"
    )


class ORMConfig(EngineConfig):
    """
    ORM adapter settings.

    ``models`` are mapped and created at ``init``; with ``unsafe=True`` their
    tables are dropped first.
    """

    models: dict[str, Any] = Field(default_factory=dict)
    unsafe: bool = False

"""Connection configuration record for the MongoDB backend."""

from __future__ import annotations

from pydantic import Field

from polystore_core.config import BackendConfig


class MongoConfig(BackendConfig):
    """
    Where to find the document store.

    ``url`` wins over ``host``/``port`` when given; ``database`` (alias
    ``dbname``) selects the database on that server.
    """

    host: str = "127.0.0.1"
    port: int = 27017
    database: str = Field(default="test", alias="dbname")
    url: str | None = None
    server_selection_timeout_ms: int = Field(
        default=5000, alias="serverSelectionTimeoutMS"
    )
    connect_timeout_ms: int = Field(default=10000, alias="connectTimeoutMS")

    @property
    def resolved_url(self) -> str:
        return self.url or f"mongodb://{self.host}:{self.port}"

"""MongoConnectionManager: Motor client lifecycle and health check."""

from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from polystore_core.primitives.exceptions import ConnectivityError


class MongoConnectionManager:
    """Wrap a Motor client bound to one database."""

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        *,
        database: str = "test",
        server_selection_timeout_ms: int = 5000,
        connect_timeout_ms: int = 10000,
        **kwargs: Any,
    ) -> None:
        self._url = url
        self._database = database
        self._server_selection_timeout_ms = server_selection_timeout_ms
        self._connect_timeout_ms = connect_timeout_ms
        self._kwargs = kwargs
        self._client: AsyncIOMotorClient[Any] | None = None

    async def connect(self) -> AsyncIOMotorClient[Any]:
        """Create and cache the Motor client. Idempotent."""
        if self._client is not None:
            return self._client
        try:
            self._client = AsyncIOMotorClient(
                self._url,
                serverSelectionTimeoutMS=self._server_selection_timeout_ms,
                connectTimeoutMS=self._connect_timeout_ms,
                **self._kwargs,
            )
        except (PyMongoError, ValueError, TypeError) as e:
            raise ConnectivityError(f"Invalid MongoDB client settings: {e}") from e
        return self._client

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        """Return the Motor client; raises if not connected."""
        if self._client is None:
            raise ConnectivityError("Not connected; call connect() first")
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase[Any]:
        return self.client[self._database]

    def close(self) -> None:
        """Close the client (synchronous; Motor client.close() is sync)."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def ping(self) -> None:
        """Round-trip to the server; raises :class:`ConnectivityError`."""
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            raise ConnectivityError(f"MongoDB at {self._url} is unreachable: {e}") from e

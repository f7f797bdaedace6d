"""Test configuration for the MongoDB backend (mongomock, no server needed)."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from mongomock_motor import AsyncMongoMockClient

from polystore_mongo import MongoAdapter, MongoConnectionManager


@pytest.fixture
async def mongo_connection() -> AsyncIterator[MongoConnectionManager]:
    """Connection manager backed by an in-memory mongomock client."""
    connection = MongoConnectionManager.__new__(MongoConnectionManager)
    connection._client = AsyncMongoMockClient(default_database_name="test_db")
    connection._database = "test_db"
    connection._url = "mongodb://mock:27017"
    yield connection


@pytest.fixture
def mongo_adapter(mongo_connection: MongoConnectionManager) -> MongoAdapter:
    # init() would ping a real server; the injected connection is already live
    return MongoAdapter(mongo_connection)

"""Fixtures running the same scenario against every backend."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from mongomock_motor import AsyncMongoMockClient

from polystore_core import IStorageAdapter, connect
from polystore_mongo import MongoAdapter, MongoConnectionManager


def mock_mongo_adapter() -> MongoAdapter:
    connection = MongoConnectionManager.__new__(MongoConnectionManager)
    connection._client = AsyncMongoMockClient(default_database_name="conformance")
    connection._database = "conformance"
    connection._url = "mongodb://mock:27017"
    return MongoAdapter(connection)


@pytest.fixture(params=["sql", "orm", "mongo"])
async def adapter(
    request: pytest.FixtureRequest, tmp_path: Path
) -> AsyncIterator[IStorageAdapter]:
    if request.param == "mongo":
        yield mock_mongo_adapter()
        return
    store = await connect(request.param, {"url": f"sqlite+aiosqlite:///{tmp_path / 'c.db'}"})
    yield store
    await store.close()

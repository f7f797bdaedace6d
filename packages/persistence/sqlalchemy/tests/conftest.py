"""Shared fixtures: both SQL adapters on a throwaway SQLite file (aiosqlite)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from polystore_sqlalchemy import SQLAlchemyCoreAdapter, SQLAlchemyORMAdapter


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return sqlite_url(tmp_path / "polystore.db")


@pytest.fixture
async def core_adapter(db_url: str) -> AsyncIterator[SQLAlchemyCoreAdapter]:
    adapter = SQLAlchemyCoreAdapter()
    await adapter.init({"url": db_url})
    yield adapter
    await adapter.close()


@pytest.fixture
async def orm_adapter(db_url: str) -> AsyncIterator[SQLAlchemyORMAdapter]:
    adapter = SQLAlchemyORMAdapter()
    await adapter.init({"url": db_url})
    yield adapter
    await adapter.close()


@pytest.fixture(params=["core", "orm"])
async def sql_adapter(
    request: pytest.FixtureRequest, db_url: str
) -> AsyncIterator[SQLAlchemyCoreAdapter | SQLAlchemyORMAdapter]:
    adapter_cls = SQLAlchemyCoreAdapter if request.param == "core" else SQLAlchemyORMAdapter
    adapter = adapter_cls()
    await adapter.init({"url": db_url})
    yield adapter
    await adapter.close()

from __future__ import annotations

import sys
import types
from typing import Any

import pytest

from polystore_core import factory
from polystore_core.primitives.exceptions import StorageError


class RecordingAdapter:
    def __init__(self) -> None:
        self.config: Any = None

    async def init(self, config: Any = None) -> None:
        self.config = config


@pytest.fixture(autouse=True)
def restore_backends():
    saved = dict(factory.BACKENDS)
    yield
    factory.BACKENDS.clear()
    factory.BACKENDS.update(saved)


@pytest.fixture
def memory_backend(monkeypatch: pytest.MonkeyPatch) -> str:
    module = types.ModuleType("polystore_memory_backend")
    module.RecordingAdapter = RecordingAdapter  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "polystore_memory_backend", module)
    factory.register_backend("memory", "polystore_memory_backend:RecordingAdapter")
    return "memory"


def test_builtin_backends_are_registered() -> None:
    assert set(factory.BACKENDS) >= {"sql", "orm", "mongo"}


def test_unknown_backend() -> None:
    with pytest.raises(StorageError, match="Unknown backend 'redis'"):
        factory.resolve_adapter("redis")


def test_uninstalled_backend_module() -> None:
    factory.register_backend("ghost", "polystore_ghost.adapter:GhostAdapter")
    with pytest.raises(StorageError, match="not installed"):
        factory.resolve_adapter("ghost")


def test_register_backend_requires_class_target() -> None:
    with pytest.raises(ValueError, match="module:Class"):
        factory.register_backend("bad", "just.a.module")


def test_builtin_backends_resolve() -> None:
    from polystore_mongo import MongoAdapter
    from polystore_sqlalchemy import SQLAlchemyCoreAdapter, SQLAlchemyORMAdapter

    assert factory.resolve_adapter("sql") is SQLAlchemyCoreAdapter
    assert factory.resolve_adapter("orm") is SQLAlchemyORMAdapter
    assert factory.resolve_adapter("mongo") is MongoAdapter


async def test_connect_instantiates_and_inits(memory_backend: str) -> None:
    adapter = await factory.connect(memory_backend, {"url": "x"})
    assert isinstance(adapter, RecordingAdapter)
    assert adapter.config == {"url": "x"}

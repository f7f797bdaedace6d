"""
Adapter selection at configuration time.

Backends are referenced by import path so the core package never imports a
driver. Install the matching package and pick the backend by name::

    adapter = await connect("sql", {"url": "sqlite+aiosqlite:///app.db"})
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from .ports.adapter import IStorageAdapter
from .primitives.exceptions import StorageError

logger = logging.getLogger("polystore.core.factory")

BACKENDS: dict[str, str] = {
    "sql": "polystore_sqlalchemy.core.adapter:SQLAlchemyCoreAdapter",
    "orm": "polystore_sqlalchemy.orm.adapter:SQLAlchemyORMAdapter",
    "mongo": "polystore_mongo.adapter:MongoAdapter",
}


def register_backend(name: str, target: str) -> None:
    """Register (or override) a backend as ``"module.path:ClassName"``."""
    if ":" not in target:
        raise ValueError(f"Backend target must be 'module:Class', got {target!r}")
    BACKENDS[name] = target


def resolve_adapter(name: str) -> type[IStorageAdapter]:
    """Import and return the adapter class registered under ``name``."""
    try:
        target = BACKENDS[name]
    except KeyError:
        raise StorageError(
            f"Unknown backend '{name}'. Available: {', '.join(sorted(BACKENDS))}"
        ) from None

    module_path, _, class_name = target.partition(":")
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise StorageError(
            f"Backend '{name}' is not installed ({module_path}): {e}"
        ) from e
    adapter_cls: type[IStorageAdapter] = getattr(module, class_name)
    return adapter_cls


async def connect(name: str, config: Any = None) -> IStorageAdapter:
    """Instantiate the ``name`` backend and await its ``init(config)``."""
    adapter = resolve_adapter(name)()
    logger.debug("Connecting %s backend", name)
    await adapter.init(config)
    return adapter

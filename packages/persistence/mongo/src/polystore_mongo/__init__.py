"""polystore-mongo: MongoDB backend for polystore (Motor)."""

from __future__ import annotations

from .adapter import MongoAdapter
from .config import MongoConfig
from .connection import MongoConnectionManager
from .query_builder import MongoQueryBuilder
from .serialization import record_from_doc, record_to_doc

__all__ = [
    "MongoAdapter",
    "MongoConfig",
    "MongoConnectionManager",
    "MongoQueryBuilder",
    "record_from_doc",
    "record_to_doc",
]

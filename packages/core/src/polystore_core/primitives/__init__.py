"""Primitives: exceptions, ID generation."""

from __future__ import annotations

from .exceptions import (
    CollectionNotFoundError,
    CompilationError,
    ConfigurationError,
    ConnectivityError,
    FieldNotFoundError,
    OperatorNotFoundError,
    QueryError,
    SchemaError,
    StorageError,
    WriteFailure,
)
from .id_generator import IIDGenerator, UUID4Generator, new_id

__all__ = [
    "CollectionNotFoundError",
    "CompilationError",
    "ConfigurationError",
    "ConnectivityError",
    "FieldNotFoundError",
    "IIDGenerator",
    "OperatorNotFoundError",
    "QueryError",
    "SchemaError",
    "StorageError",
    "UUID4Generator",
    "WriteFailure",
    "new_id",
]

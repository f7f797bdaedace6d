"""polystore-core: backend-neutral pieces of the storage abstraction layer.

Zero driver dependencies: the filter grammar, include resolution, nested
writes, options and the adapter protocol. Pydantic for definitions.
"""

from __future__ import annotations

from .config import BackendConfig
from .definitions import CollectionDefinition, FieldDescriptor
from .factory import BACKENDS, connect, register_backend, resolve_adapter
from .filters import filter_fields, parse_filter
from .nested import NestedWriteEngine
from .operators import FilterOperator
from .options import QueryOptions
from .ports import IStorageAdapter, Record
from .primitives import (
    CollectionNotFoundError,
    CompilationError,
    ConfigurationError,
    ConnectivityError,
    FieldNotFoundError,
    IIDGenerator,
    OperatorNotFoundError,
    QueryError,
    SchemaError,
    StorageError,
    UUID4Generator,
    WriteFailure,
    new_id,
)
from .registry import CollectionRegistry
from .relationships import (
    IncludeOptions,
    JoinDirection,
    JoinStep,
    RelationshipResolver,
    attach,
    drop_unmatched,
    parse_include,
    related_keys,
)

__all__ = [
    # Ports
    "IStorageAdapter",
    "Record",
    # Factory
    "BACKENDS",
    "connect",
    "register_backend",
    "resolve_adapter",
    # Config / definitions / options
    "BackendConfig",
    "CollectionDefinition",
    "CollectionRegistry",
    "FieldDescriptor",
    "QueryOptions",
    # Filters
    "FilterOperator",
    "filter_fields",
    "parse_filter",
    # Relationships
    "IncludeOptions",
    "JoinDirection",
    "JoinStep",
    "RelationshipResolver",
    "attach",
    "drop_unmatched",
    "parse_include",
    "related_keys",
    # Nested writes
    "NestedWriteEngine",
    # IDs
    "IIDGenerator",
    "UUID4Generator",
    "new_id",
    # Exceptions
    "CollectionNotFoundError",
    "CompilationError",
    "ConfigurationError",
    "ConnectivityError",
    "FieldNotFoundError",
    "OperatorNotFoundError",
    "QueryError",
    "SchemaError",
    "StorageError",
    "WriteFailure",
]

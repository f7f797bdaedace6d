"""
Storage exception hierarchy.

All exceptions inherit from ``StorageError`` and provide ``to_dict()`` for
API-friendly error responses. Adapters wrap native driver failures into this
taxonomy at their boundary (``raise ... from exc``), so callers never need to
import ``sqlalchemy`` or ``pymongo`` to tell failures apart.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class StorageError(Exception):
    """Root exception for every polystore error."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ConfigurationError(StorageError):
    """A backend configuration record failed validation."""


class ConnectivityError(StorageError):
    """The native client cannot reach its backend (``init`` / ``close``)."""


class SchemaError(StorageError):
    """Collection creation conflicts with an existing, incompatible structure."""


class CollectionNotFoundError(SchemaError):
    """An operation targets a collection the backend does not have."""

    def __init__(self, collection: str, known: list[str] | None = None) -> None:
        self.collection = collection
        self.known = sorted(known or [])
        self.suggestions = get_close_matches(collection, self.known, n=3, cutoff=0.6)

        message = f"Unknown collection: '{collection}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "COLLECTION_NOT_FOUND",
            "collection": self.collection,
            "suggestions": self.suggestions,
        }


class CompilationError(StorageError):
    """A filter, include or options object has an unsupported shape."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "COMPILATION_ERROR",
            "message": self.message,
            "path": self.path,
        }


class OperatorNotFoundError(CompilationError):
    """
    Unknown filter operator.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(
        self,
        operator: str,
        valid_operators: list[str],
        path: str | None = None,
    ) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        message = f"Unknown operator: '{operator}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid operators: {', '.join(sorted(valid_operators))}"
        super().__init__(message, path=path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_NOT_FOUND",
            "operator": self.operator,
            "path": self.path,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }


class FieldNotFoundError(CompilationError):
    """
    A filter, ordering or join references a field the collection lacks.

    Uses fuzzy matching to suggest similar valid field names::

        Invalid field 'nmae' on 'users'. Did you mean: name?
    """

    def __init__(
        self,
        invalid_field: str,
        collection: str,
        available_fields: list[str],
    ) -> None:
        self.invalid_field = invalid_field
        self.collection = collection
        self.available_fields = sorted(available_fields)
        self.suggestions = get_close_matches(
            invalid_field, self.available_fields, n=3, cutoff=0.6
        )

        message = f"Invalid field '{invalid_field}' on '{collection}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message, path=invalid_field)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FIELD_NOT_FOUND",
            "field": self.invalid_field,
            "collection": self.collection,
            "suggestions": self.suggestions,
            "available_fields": self.available_fields,
        }


class QueryError(StorageError):
    """The native client rejected a read."""


class WriteFailure(StorageError):
    """The native client rejected an insert, update or delete."""

    def __init__(self, message: str, collection: str | None = None) -> None:
        self.collection = collection
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "WRITE_FAILURE",
            "message": str(self),
            "collection": self.collection,
        }

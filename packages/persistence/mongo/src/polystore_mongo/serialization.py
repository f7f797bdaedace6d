"""Record <-> BSON document conversion (UUID, Decimal, ``_id``)."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any, cast
from uuid import UUID

from bson import Decimal128

_MONGO_ID = "_id"


def _serialize_value(value: Any) -> Any:
    """Convert Python types to BSON-safe types."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, Mapping):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize_value(v) for v in value]
    return value


def _deserialize_value(value: Any) -> Any:
    """Convert BSON types back to Python types, dropping ``_id`` at every level."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, dict):
        return {k: _deserialize_value(v) for k, v in value.items() if k != _MONGO_ID}
    if isinstance(value, list):
        return [_deserialize_value(v) for v in value]
    return value


def record_to_doc(record: Mapping[str, Any]) -> dict[str, Any]:
    """Record -> BSON-ready document. ``id`` stays a plain field."""
    return cast("dict[str, Any]", _serialize_value(record))


def record_from_doc(doc: Mapping[str, Any]) -> dict[str, Any]:
    """BSON document -> record; the driver's ``_id`` never leaks out."""
    return cast("dict[str, Any]", _deserialize_value(dict(doc)))

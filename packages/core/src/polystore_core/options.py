"""
Canonical operation options.

Every adapter operation accepts the same option vocabulary::

    {where, limit, offset, orderBy: [field, "asc"|"desc"], include,
     data, returnRef, initialItems, modelDef}

Both the wire spelling (``orderBy``) and the Python spelling (``order_by``) are
accepted. ``QueryOptions.from_dict`` validates the keys each operation allows
and normalises the values; adapters only ever see a ``QueryOptions``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import Any

from .primitives.exceptions import CompilationError

_ALIASES: dict[str, str] = {
    "orderBy": "order_by",
    "returnRef": "return_ref",
    "initialItems": "initial_items",
    "modelDef": "model_def",
}

ALLOWED_OPTIONS: dict[str, frozenset[str]] = {
    "find": frozenset({"where", "limit", "offset", "include", "order_by"}),
    "find_one": frozenset({"where", "offset", "include", "order_by"}),
    "create": frozenset({"data", "return_ref"}),
    "update_one": frozenset({"where", "data"}),
    "update_many": frozenset({"where", "data"}),
    "delete": frozenset({"where"}),
    "create_collection": frozenset({"initial_items", "model_def"}),
}

_DIRECTIONS = frozenset({"asc", "desc"})


@dataclass(frozen=True)
class QueryOptions:
    """
    Immutable, validated option set for one adapter call.

    Attributes:
        where: Canonical filter mapping (``None`` = match all).
        limit: Maximum number of results.
        offset: Number of results to skip.
        order_by: ``(field, "asc" | "desc")`` or ``None`` for backend order.
        include: Raw include specification (validated by the resolver).
        data: Record, list of records, or partial update mapping.
        return_ref: Return stored records (``True``) or an acknowledgement.
        initial_items: Records persisted by ``create_collection``.
        model_def: Collection definition given to ``create_collection``.
    """

    where: Mapping[str, Any] | None = None
    limit: int | None = None
    offset: int | None = None
    order_by: tuple[str, str] | None = None
    include: Mapping[str, Any] | None = None
    data: Any = None
    return_ref: bool = True
    initial_items: list[Mapping[str, Any]] = field(default_factory=list)
    model_def: Any = None

    @classmethod
    def from_dict(
        cls, options: Mapping[str, Any] | None, *, operation: str = "find"
    ) -> QueryOptions:
        """Validate and normalise raw options for ``operation``."""
        allowed = ALLOWED_OPTIONS[operation]
        values: dict[str, Any] = {}
        for key, value in (options or {}).items():
            name = _ALIASES.get(key, key)
            if name not in allowed:
                suggestions = get_close_matches(
                    key, sorted(allowed | set(_ALIASES)), n=3, cutoff=0.6
                )
                message = f"Unknown option '{key}' for {operation}."
                if suggestions:
                    message += f" Did you mean: {', '.join(suggestions)}?"
                raise CompilationError(message, path=key)
            if name in values:
                raise CompilationError(
                    f"Option '{key}' given twice for {operation} (camelCase and snake_case)",
                    path=key,
                )
            values[name] = value

        if "where" in values and values["where"] is not None:
            if not isinstance(values["where"], Mapping):
                raise CompilationError("'where' must be a mapping", path="where")
        for name in ("limit", "offset"):
            if name in values:
                values[name] = _non_negative_int(values[name], name)
        if "order_by" in values:
            values["order_by"] = _order_by(values["order_by"])
        if "include" in values:
            include = values["include"]
            if include in (None, False):
                values["include"] = None
            elif not isinstance(include, Mapping):
                raise CompilationError("'include' must be a mapping", path="include")
        if "return_ref" in values:
            values["return_ref"] = bool(values["return_ref"])
        if "initial_items" in values:
            values["initial_items"] = _records(values["initial_items"] or [])
        if operation in ("update_one", "update_many"):
            values["data"] = _changes(values.get("data"))
        return cls(**values)


def _non_negative_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise CompilationError(f"'{name}' must be a non-negative integer", path=name)
    return value


def _order_by(value: Any) -> tuple[str, str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        # "-age" shorthand for descending
        if value.startswith("-"):
            return value[1:], "desc"
        return value, "asc"
    if isinstance(value, (list, tuple)) and len(value) in (1, 2):
        field_name = value[0]
        direction = str(value[1]).lower() if len(value) == 2 else "asc"
        if isinstance(field_name, str) and field_name and direction in _DIRECTIONS:
            return field_name, direction
    raise CompilationError(
        "'orderBy' must be [field, 'asc' | 'desc']", path="order_by"
    )


def _changes(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise CompilationError("Update 'data' must be a mapping", path="data")
    if "id" in value:
        raise CompilationError("'id' is immutable once assigned", path="data.id")
    return dict(value)


def _records(value: Any) -> list[Mapping[str, Any]]:
    items = [value] if isinstance(value, Mapping) else value
    if not isinstance(items, (list, tuple)) or not all(
        isinstance(item, Mapping) for item in items
    ):
        raise CompilationError("Expected a record or a list of records", path="data")
    return list(items)

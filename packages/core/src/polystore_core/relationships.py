"""
Relationship resolution for ``include`` requests.

An include specification names related collections to attach to each result
record::

    {"comments": {}}                                   # inferred direction
    {"author": {"required": True}}                     # inner-join semantics
    {"tags": {"on": {"id": "post_ref"}}}               # explicit keys

Direction inference (when ``on`` is absent):

1. **has-many** (default): related records point at the parent,
   ``local_key = "id"`` and ``foreign_key = f"{list_name}_id"``.
2. **belongs-to**: the parent declares ``f"{related}_id"``, so
   ``local_key = f"{related}_id"`` and ``foreign_key = "id"``.
3. **explicit**: ``on={a: b}`` gives ``local_key = a``, ``foreign_key = b``.

The resolver only decides *which* keys join; each backend decides *how*
(native join, ``$lookup`` or two queries + :func:`attach`). Includes never
chain through an included collection.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Collection, Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .primitives.exceptions import CompilationError

logger = logging.getLogger("polystore.core.relationships")

_INCLUDE_KEYS = frozenset({"on", "required"})


class JoinDirection(str, Enum):
    HAS_MANY = "has_many"
    BELONGS_TO = "belongs_to"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class IncludeOptions:
    """One validated include entry."""

    on: tuple[str, str] | None = None
    required: bool = False


@dataclass(frozen=True)
class JoinStep:
    """Resolved join between the parent collection and one related collection."""

    related: str
    local_key: str
    foreign_key: str
    required: bool
    direction: JoinDirection


def parse_include(include: Mapping[str, Any] | None) -> dict[str, IncludeOptions]:
    """Validate a raw include specification."""
    if not include:
        return {}
    if not isinstance(include, Mapping):
        raise CompilationError("'include' must be a mapping", path="include")

    parsed: dict[str, IncludeOptions] = {}
    for related, raw in include.items():
        path = f"include.{related}"
        if raw is True or raw is None:
            parsed[related] = IncludeOptions()
            continue
        if not isinstance(raw, Mapping):
            raise CompilationError(
                "Include entries must be mappings like {'on': ..., 'required': ...}",
                path=path,
            )
        unknown = set(raw) - _INCLUDE_KEYS
        if unknown:
            raise CompilationError(
                f"Unknown include keys: {', '.join(sorted(unknown))}", path=path
            )
        on = raw.get("on")
        if on is not None:
            if not isinstance(on, Mapping) or len(on) != 1:
                raise CompilationError(
                    "'on' must map exactly one local field to one foreign field",
                    path=f"{path}.on",
                )
            ((local_key, foreign_key),) = on.items()
            on = (str(local_key), str(foreign_key))
        parsed[related] = IncludeOptions(on=on, required=bool(raw.get("required")))
    return parsed


class RelationshipResolver:
    """Compile an include specification into :class:`JoinStep` objects."""

    def resolve(
        self,
        list_name: str,
        include: Mapping[str, Any] | None,
        parent_fields: Collection[str],
    ) -> list[JoinStep]:
        steps = [
            self.infer(list_name, related, options, parent_fields)
            for related, options in parse_include(include).items()
        ]
        for step in steps:
            logger.debug(
                "Include %s -> %s: %s.%s = %s.%s (required=%s)",
                list_name,
                step.related,
                list_name,
                step.local_key,
                step.related,
                step.foreign_key,
                step.required,
            )
        return steps

    @staticmethod
    def infer(
        list_name: str,
        related: str,
        options: IncludeOptions,
        parent_fields: Collection[str],
    ) -> JoinStep:
        if options.on is not None:
            local_key, foreign_key = options.on
            direction = JoinDirection.EXPLICIT
        elif f"{related}_id" in parent_fields:
            local_key, foreign_key = f"{related}_id", "id"
            direction = JoinDirection.BELONGS_TO
        else:
            local_key, foreign_key = "id", f"{list_name}_id"
            direction = JoinDirection.HAS_MANY
        return JoinStep(
            related=related,
            local_key=local_key,
            foreign_key=foreign_key,
            required=options.required,
            direction=direction,
        )


def related_keys(parents: Iterable[Mapping[str, Any]], local_key: str) -> list[Any]:
    """Distinct, non-null ``local_key`` values in first-seen order."""
    seen: dict[Any, None] = {}
    for parent in parents:
        value = parent.get(local_key)
        if value is not None and isinstance(value, Hashable):
            seen.setdefault(value, None)
    return list(seen)


def attach(
    parents: Sequence[dict[str, Any]],
    related_name: str,
    related_records: Iterable[Mapping[str, Any]],
    local_key: str,
    foreign_key: str,
) -> list[dict[str, Any]]:
    """
    In-memory equi-join: set ``parent[related_name]`` to the related records
    whose ``foreign_key`` equals the parent's ``local_key``.

    Parents without matches get an empty list. Each parent receives its own
    copies, so mutating one result never leaks into another.
    """
    groups: dict[Any, list[Mapping[str, Any]]] = defaultdict(list)
    for record in related_records:
        value = record.get(foreign_key)
        if value is not None and isinstance(value, Hashable):
            groups[value].append(record)

    for parent in parents:
        value = parent.get(local_key)
        matches = groups.get(value, []) if isinstance(value, Hashable) else []
        parent[related_name] = [dict(record) for record in matches]
    return list(parents)


def drop_unmatched(
    records: Sequence[dict[str, Any]], steps: Iterable[JoinStep]
) -> list[dict[str, Any]]:
    """Remove records left without a match for any ``required`` include."""
    required = [step.related for step in steps if step.required]
    if not required:
        return list(records)
    return [r for r in records if all(r.get(name) for name in required)]

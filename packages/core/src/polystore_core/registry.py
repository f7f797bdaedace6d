"""Per-adapter registry of tracked collections and their definitions."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from .definitions import CollectionDefinition


class CollectionRegistry:
    """
    Tracked collection names (insertion-ordered) plus optional definitions.

    Instance-scoped: every adapter owns its own registry, which starts empty
    and is populated by ``create_collection``. The nested-write engine scans
    ``names`` to detect embedded child collections; the relationship resolver
    reads ``fields`` to infer foreign keys.
    """

    def __init__(self) -> None:
        self._names: list[str] = []
        self._definitions: dict[str, CollectionDefinition] = {}

    def track(
        self,
        name: str,
        definition: CollectionDefinition | Mapping[str, Any] | None = None,
    ) -> None:
        if definition is not None:
            self.define(name, definition)
        if name not in self._names:
            self._names.append(name)

    def define(
        self, name: str, definition: CollectionDefinition | Mapping[str, Any]
    ) -> CollectionDefinition:
        """Store a definition without marking the collection as tracked."""
        parsed = CollectionDefinition.from_mapping(definition)
        self._definitions[name] = parsed
        return parsed

    def forget(self, name: str) -> None:
        if name in self._names:
            self._names.remove(name)
        self._definitions.pop(name, None)

    def definition(self, name: str) -> CollectionDefinition | None:
        return self._definitions.get(name)

    def fields(self, name: str) -> list[str]:
        definition = self._definitions.get(name)
        return definition.field_names if definition is not None else []

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._names))

    def __len__(self) -> int:
        return len(self._names)

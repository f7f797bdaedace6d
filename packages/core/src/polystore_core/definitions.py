"""Collection definitions: field name -> type descriptor."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .primitives.exceptions import SchemaError

DEFAULT_ID_FIELD = "id"
DEFAULT_ID_TYPE = "string"


class FieldDescriptor(BaseModel):
    """Structured type descriptor: ``{"type": "string", "primaryKey": true}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    type: str
    primary_key: bool = Field(default=False, alias="primaryKey")
    nullable: bool = True


class CollectionDefinition(BaseModel):
    """
    Ordered mapping from field name to :class:`FieldDescriptor`.

    Build it with :meth:`from_mapping`, which accepts the caller-facing shape
    where each value is either a bare type tag or a structured descriptor.
    At most one field may be the primary key; when none is marked, ``id``
    becomes a string primary key.
    """

    model_config = ConfigDict(frozen=True)

    columns: dict[str, FieldDescriptor]

    @classmethod
    def from_mapping(
        cls, model_def: Mapping[str, Any] | CollectionDefinition | None
    ) -> CollectionDefinition:
        if isinstance(model_def, CollectionDefinition):
            return model_def
        if model_def is None:
            model_def = {}
        if not isinstance(model_def, Mapping):
            raise SchemaError(
                f"Collection definition must be a mapping, got {type(model_def).__name__}"
            )

        fields: dict[str, FieldDescriptor] = {}
        try:
            for name, descriptor in model_def.items():
                if isinstance(descriptor, str):
                    fields[name] = FieldDescriptor(type=descriptor)
                elif isinstance(descriptor, FieldDescriptor):
                    fields[name] = descriptor
                else:
                    fields[name] = FieldDescriptor.model_validate(descriptor)
        except ValidationError as e:
            raise SchemaError(f"Invalid collection definition: {e}") from e

        primary = [name for name, desc in fields.items() if desc.primary_key]
        if len(primary) > 1:
            raise SchemaError(
                f"Only one primary key allowed, got: {', '.join(primary)}"
            )

        if DEFAULT_ID_FIELD not in fields:
            fields = {
                DEFAULT_ID_FIELD: FieldDescriptor(
                    type=DEFAULT_ID_TYPE, primary_key=not primary, nullable=bool(primary)
                ),
                **fields,
            }
        elif not primary:
            current = fields[DEFAULT_ID_FIELD]
            fields[DEFAULT_ID_FIELD] = current.model_copy(
                update={"primary_key": True, "nullable": False}
            )

        return cls(columns=fields)

    @property
    def field_names(self) -> list[str]:
        return list(self.columns)

    def to_mapping(self) -> dict[str, dict[str, Any]]:
        """Serialise back to the caller-facing shape."""
        return {
            name: desc.model_dump(by_alias=True) for name, desc in self.columns.items()
        }

import pytest

from polystore_core.definitions import CollectionDefinition, FieldDescriptor
from polystore_core.primitives.exceptions import SchemaError
from polystore_core.registry import CollectionRegistry


def test_id_defaults_to_string_primary_key() -> None:
    definition = CollectionDefinition.from_mapping({"name": "string", "age": "integer"})
    assert definition.field_names == ["id", "name", "age"]
    assert definition.columns["id"].primary_key is True
    assert definition.columns["id"] == FieldDescriptor(
        type="string", primary_key=True, nullable=False
    )


def test_structured_descriptor_with_camel_case_primary_key() -> None:
    definition = CollectionDefinition.from_mapping(
        {"code": {"type": "string", "primaryKey": True}, "label": "text"}
    )
    assert definition.columns["code"].primary_key is True
    # id is still added, as a plain nullable column
    assert definition.columns["id"].primary_key is False


def test_declared_id_becomes_primary_key() -> None:
    definition = CollectionDefinition.from_mapping({"id": "integer"})
    assert definition.columns["id"].type == "integer"
    assert definition.columns["id"].primary_key is True


def test_more_than_one_primary_key_is_rejected() -> None:
    with pytest.raises(SchemaError, match="Only one primary key"):
        CollectionDefinition.from_mapping(
            {
                "a": {"type": "string", "primaryKey": True},
                "b": {"type": "string", "primaryKey": True},
            }
        )


def test_invalid_descriptor_is_a_schema_error() -> None:
    with pytest.raises(SchemaError, match="Invalid collection definition"):
        CollectionDefinition.from_mapping({"a": {"kind": "string"}})
    with pytest.raises(SchemaError, match="must be a mapping"):
        CollectionDefinition.from_mapping(["a"])  # type: ignore[arg-type]


def test_round_trip_to_mapping() -> None:
    definition = CollectionDefinition.from_mapping({"name": "string"})
    again = CollectionDefinition.from_mapping(definition.to_mapping())
    assert again == definition


def test_registry_tracks_names_in_order_and_forgets() -> None:
    registry = CollectionRegistry()
    registry.track("b")
    registry.track("a", {"name": "string"})
    registry.track("b")
    assert registry.names == ("b", "a")
    assert "a" in registry
    assert registry.fields("a") == ["id", "name"]
    assert registry.fields("b") == []

    registry.forget("a")
    assert list(registry) == ["b"]
    assert registry.definition("a") is None
    assert len(registry) == 1


def test_define_does_not_track() -> None:
    registry = CollectionRegistry()
    registry.define("later", {"x": "integer"})
    assert "later" not in registry
    assert registry.definition("later") is not None

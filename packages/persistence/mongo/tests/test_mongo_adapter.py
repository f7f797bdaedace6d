"""MongoAdapter against mongomock: CRUD, includes and nested writes."""

from __future__ import annotations

from typing import Any

import pytest

from polystore_core.primitives.exceptions import (
    CompilationError,
    OperatorNotFoundError,
    WriteFailure,
)
from polystore_mongo import MongoAdapter

PEOPLE_ROWS = [
    {"id": "p1", "name": "Ada", "age": 36, "status": "active", "role": "admin"},
    {"id": "p2", "name": "Bob", "age": 25, "status": "active", "role": "user"},
    {"id": "p3", "name": "Cy", "age": 41, "status": "inactive", "role": "owner"},
    {"id": "p4", "name": "Di", "age": 52, "status": "active"},
]


@pytest.fixture
async def people(mongo_adapter: MongoAdapter) -> MongoAdapter:
    await mongo_adapter.create_collection("people", initialItems=PEOPLE_ROWS)
    return mongo_adapter


def ids(records: list[dict[str, Any]]) -> list[str]:
    return sorted(r["id"] for r in records)


async def test_create_returns_record_without_driver_id(mongo_adapter: MongoAdapter) -> None:
    await mongo_adapter.create_collection("people")
    created = await mongo_adapter.create("people", data={"name": "Eve"})

    assert set(created) == {"id", "name"}
    assert await mongo_adapter.find("people") == [created]


async def test_create_many_and_acknowledge(mongo_adapter: MongoAdapter) -> None:
    await mongo_adapter.create_collection("people")
    created = await mongo_adapter.create("people", data=[{"name": "a"}, {"name": "b"}])
    assert [r["name"] for r in created] == ["a", "b"]
    assert await mongo_adapter.create("people", data={"name": "c"}, returnRef=False) is True


async def test_find_on_missing_collection_is_empty(mongo_adapter: MongoAdapter) -> None:
    assert await mongo_adapter.find("ghosts") == []


async def test_filters(people: MongoAdapter) -> None:
    assert ids(await people.find("people", where={"age": {"$lte": 36}})) == ["p1", "p2"]
    assert ids(await people.find("people", where={"name": {"$like": "%y"}})) == ["p3"]
    assert ids(await people.find("people", where={"name": {"$notLike": "%y"}})) == [
        "p1",
        "p2",
        "p4",
    ]
    assert ids(await people.find("people", where={"age": {"$nin": [25, 36]}})) == ["p3", "p4"]


async def test_ne_matches_missing_fields(people: MongoAdapter) -> None:
    assert ids(await people.find("people", where={"role": {"$ne": "owner"}})) == [
        "p1",
        "p2",
        "p4",
    ]


async def test_or_combines_with_siblings(people: MongoAdapter) -> None:
    found = await people.find(
        "people",
        where={"status": "active", "$or": [{"role": "admin"}, {"role": "owner"}]},
    )
    assert ids(found) == ["p1"]


async def test_order_limit_offset(people: MongoAdapter) -> None:
    found = await people.find("people", orderBy=["age", "asc"], limit=2, offset=1)
    assert [r["id"] for r in found] == ["p1", "p3"]


async def test_limit_zero(people: MongoAdapter) -> None:
    assert await people.find("people", limit=0) == []


async def test_find_one(people: MongoAdapter) -> None:
    assert (await people.find_one("people", where={"name": "Bob"}))["age"] == 25
    assert await people.find_one("people", where={"name": "Nobody"}) is None


async def test_unknown_operator_fails_before_the_driver(people: MongoAdapter) -> None:
    with pytest.raises(OperatorNotFoundError):
        await people.find("people", where={"age": {"$regex": "x"}})


async def test_update_counts(people: MongoAdapter) -> None:
    assert await people.update_one("people", where={"status": "active"}, data={"age": 1}) == 1
    assert await people.update_many("people", where={"status": "active"}, data={"x": True}) == 3
    assert await people.update_many("people", where={"name": "Nobody"}, data={"x": 1}) == 0
    assert await people.update_many("people", data={}) == 0
    assert len(await people.find("people", where={"x": True})) == 3


async def test_update_rejects_id(people: MongoAdapter) -> None:
    with pytest.raises(CompilationError):
        await people.update_one("people", where={"id": "p1"}, data={"id": "p9"})


async def test_delete(people: MongoAdapter) -> None:
    assert await people.delete("people", where={"status": "inactive"}) == 1
    assert await people.delete("people", where={"status": "inactive"}) == 0
    assert await people.delete("people") == 3
    assert await people.find("people") == []


async def test_create_collection_is_idempotent(people: MongoAdapter) -> None:
    assert await people.create_collection("people") is True
    assert len(await people.find("people")) == 4


async def test_remove_collection(people: MongoAdapter) -> None:
    assert await people.remove_collection("people") is True
    assert "people" not in people.collections
    assert await people.find("people") == []


async def test_create_without_data(mongo_adapter: MongoAdapter) -> None:
    with pytest.raises(CompilationError, match="data"):
        await mongo_adapter.create("people")


async def test_insert_failure_is_wrapped(mongo_adapter: MongoAdapter) -> None:
    await mongo_adapter.create_collection("people")
    await mongo_adapter.db["people"].create_index("id", unique=True)
    await mongo_adapter.create("people", data={"id": "1"})
    with pytest.raises(WriteFailure):
        await mongo_adapter.create("people", data={"id": "1"})


# -- nested writes ------------------------------------------------------------


async def test_nested_write_embeds_stored_children(mongo_adapter: MongoAdapter) -> None:
    await mongo_adapter.create_collection("parent")
    await mongo_adapter.create_collection("child")

    parent = await mongo_adapter.create("parent", data={"name": "a", "child": [{"x": 1}, {"x": 2}]})

    assert [c["parent_id"] for c in parent["child"]] == [parent["id"], parent["id"]]
    assert all(c["id"] for c in parent["child"])
    children = await mongo_adapter.find("child", where={"parent_id": parent["id"]})
    assert sorted(c["x"] for c in children) == [1, 2]
    stored = await mongo_adapter.find_one("parent")
    assert stored == parent


# -- includes -----------------------------------------------------------------


@pytest.fixture
async def family(mongo_adapter: MongoAdapter) -> MongoAdapter:
    await mongo_adapter.create_collection(
        "parent", initialItems=[{"id": "1", "name": "one"}, {"id": "2", "name": "two"}]
    )
    await mongo_adapter.create_collection(
        "child",
        initialItems=[
            {"id": "c1", "parent_id": "1", "name": "first"},
            {"id": "c2", "parent_id": "1", "name": "second"},
        ],
    )
    return mongo_adapter


async def test_has_many_include(family: MongoAdapter) -> None:
    found = await family.find("parent", include={"child": True}, orderBy=["id", "asc"])
    assert ids(found[0]["child"]) == ["c1", "c2"]
    assert found[1]["child"] == []
    assert "_id" not in found[0]["child"][0]


async def test_required_include(family: MongoAdapter) -> None:
    found = await family.find("parent", include={"child": {"required": True}})
    assert [p["id"] for p in found] == ["1"]


async def test_required_include_filters_before_pagination(family: MongoAdapter) -> None:
    found = await family.find(
        "parent", include={"child": {"required": True}}, orderBy=["id", "desc"], limit=1
    )
    assert [p["id"] for p in found] == ["1"]


async def test_belongs_to_is_inferred_from_stored_documents(mongo_adapter: MongoAdapter) -> None:
    await mongo_adapter.create_collection("author", initialItems=[{"id": "a1", "name": "Le Guin"}])
    await mongo_adapter.create_collection(
        "book",
        initialItems=[{"id": "b1", "author_id": "a1"}, {"id": "b2", "title": "anon"}],
    )

    books = await mongo_adapter.find("book", include={"author": {}}, orderBy=["id", "asc"])
    assert [a["name"] for a in books[0]["author"]] == ["Le Guin"]
    assert books[1]["author"] == []

    required = await mongo_adapter.find("book", include={"author": {"required": True}})
    assert [b["id"] for b in required] == ["b1"]


async def test_belongs_to_uses_declared_definition(mongo_adapter: MongoAdapter) -> None:
    await mongo_adapter.create_collection("author", initialItems=[{"id": "a1"}])
    await mongo_adapter.create_collection(
        "book", modelDef={"author_id": "string"}, initialItems=[{"id": "b1", "author_id": "a1"}]
    )
    books = await mongo_adapter.find("book", include={"author": {"required": True}})
    assert [b["id"] for b in books] == ["b1"]


async def test_explicit_on_include(mongo_adapter: MongoAdapter) -> None:
    await mongo_adapter.create_collection("user", initialItems=[{"id": "u1", "handle": "ada"}])
    await mongo_adapter.create_collection("post", initialItems=[{"id": "x", "writer": "ada"}])

    users = await mongo_adapter.find("user", include={"post": {"on": {"handle": "writer"}}})
    assert [p["id"] for p in users[0]["post"]] == ["x"]


async def test_malformed_include(family: MongoAdapter) -> None:
    with pytest.raises(CompilationError):
        await family.find("parent", include={"child": {"on": {"a": "b", "c": "d"}}})

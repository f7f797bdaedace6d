import pytest

from polystore_core.filters import filter_fields, parse_filter
from polystore_core.primitives.exceptions import CompilationError, OperatorNotFoundError


def test_empty_filters_match_everything() -> None:
    assert parse_filter(None) is None
    assert parse_filter({}) is None


def test_scalar_value_is_equality() -> None:
    assert parse_filter({"name": "Ada"}) == {"op": "$eq", "attr": "name", "val": "Ada"}


def test_multiple_keys_are_conjoined() -> None:
    node = parse_filter({"name": "Ada", "age": {"$gt": 30, "$lte": 60}})
    assert node == {
        "op": "$and",
        "conditions": [
            {"op": "$eq", "attr": "name", "val": "Ada"},
            {"op": "$gt", "attr": "age", "val": 30},
            {"op": "$lte", "attr": "age", "val": 60},
        ],
    }


def test_or_branches_are_each_conjoined_with_siblings() -> None:
    node = parse_filter(
        {"status": "active", "$or": [{"role": "admin"}, {"role": "owner"}]}
    )
    status = {"op": "$eq", "attr": "status", "val": "active"}
    assert node == {
        "op": "$or",
        "conditions": [
            {"op": "$and", "conditions": [{"op": "$eq", "attr": "role", "val": "admin"}, status]},
            {"op": "$and", "conditions": [{"op": "$eq", "attr": "role", "val": "owner"}, status]},
        ],
    }


def test_or_without_siblings() -> None:
    node = parse_filter({"$or": [{"a": 1}, {"b": 2}]})
    assert node == {
        "op": "$or",
        "conditions": [
            {"op": "$eq", "attr": "a", "val": 1},
            {"op": "$eq", "attr": "b", "val": 2},
        ],
    }


def test_empty_or_is_ignored() -> None:
    assert parse_filter({"a": 1, "$or": []}) == {"op": "$eq", "attr": "a", "val": 1}


def test_nested_or_inside_branch() -> None:
    node = parse_filter({"$or": [{"a": 1, "$or": [{"b": 2}, {"c": 3}]}]})
    assert node is not None
    assert filter_fields(node) == {"a", "b", "c"}


def test_unknown_operator_raises_with_suggestion() -> None:
    with pytest.raises(OperatorNotFoundError) as exc:
        parse_filter({"age": {"$gtt": 3}})
    assert "$gt" in exc.value.suggestions
    assert exc.value.path == "where.age"
    assert exc.value.to_dict()["error"] == "OPERATOR_NOT_FOUND"


def test_unknown_top_level_operator_raises() -> None:
    with pytest.raises(OperatorNotFoundError):
        parse_filter({"$and": [{"a": 1}]})


def test_in_requires_a_list() -> None:
    with pytest.raises(CompilationError, match="list"):
        parse_filter({"age": {"$in": 3}})
    with pytest.raises(CompilationError, match="list"):
        parse_filter({"name": {"$nin": "abc"}})


def test_like_requires_a_string() -> None:
    with pytest.raises(CompilationError, match="string"):
        parse_filter({"name": {"$like": 3}})


def test_sequence_equality_is_rejected() -> None:
    with pytest.raises(CompilationError, match=r"\$in"):
        parse_filter({"id": ["a", "b"]})


def test_empty_operator_clause_is_rejected() -> None:
    with pytest.raises(CompilationError, match="Empty operator clause"):
        parse_filter({"age": {}})


def test_or_must_be_a_list() -> None:
    with pytest.raises(CompilationError, match=r"\$or expects a list"):
        parse_filter({"$or": {"a": 1}})


def test_filter_must_be_a_mapping() -> None:
    with pytest.raises(CompilationError, match="mapping"):
        parse_filter(["a"])  # type: ignore[arg-type]


def test_set_operand_is_normalised_to_list() -> None:
    node = parse_filter({"id": {"$in": ("a", "b")}})
    assert node == {"op": "$in", "attr": "id", "val": ["a", "b"]}

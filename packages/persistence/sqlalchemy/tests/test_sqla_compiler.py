import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import DeclarativeBase, aliased

from polystore_core.operators import FilterOperator
from polystore_core.options import QueryOptions
from polystore_core.primitives.exceptions import FieldNotFoundError, OperatorNotFoundError
from polystore_sqlalchemy.specifications import (
    SQLAlchemyOperatorRegistry,
    apply_query_options,
    compile_model_filter,
    compile_table_filter,
    model_column_resolver,
    table_column_resolver,
)
from polystore_sqlalchemy.specifications.operators import build_default_sqla_registry

metadata = MetaData()
users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255)),
    Column("age", Integer),
    Column("status", String(255)),
    Column("role", String(255)),
)


class Base(DeclarativeBase):
    pass


class UserRecord(Base):
    __tablename__ = "people"
    id = Column(String(36), primary_key=True)
    name = Column(String(255))
    age = Column(Integer)


def compiled(where: dict) -> str:
    expr = compile_table_filter(users, where)
    assert expr is not None
    return str(expr.compile())


def test_empty_filter_compiles_to_none() -> None:
    assert compile_table_filter(users, None) is None
    assert compile_table_filter(users, {}) is None
    assert compile_model_filter(UserRecord, {}) is None


def test_equality_is_namespaced_by_table() -> None:
    assert compiled({"status": "active"}) == "users.status = :status_1"


def test_none_equality_is_null_check() -> None:
    assert compiled({"status": None}) == "users.status IS NULL"


@pytest.mark.parametrize(
    ("op", "sql"),
    [("$gt", ">"), ("$gte", ">="), ("$lt", "<"), ("$lte", "<=")],
)
def test_comparisons(op: str, sql: str) -> None:
    assert compiled({"age": {op: 30}}) == f"users.age {sql} :age_1"


def test_not_equal_also_matches_null() -> None:
    sql = compiled({"status": {"$ne": "banned"}})
    assert "users.status != :status_1" in sql
    assert "users.status IS NULL" in sql
    assert " OR " in sql


def test_not_equal_none_is_not_null() -> None:
    assert compiled({"status": {"$ne": None}}) == "users.status IS NOT NULL"


def test_in_and_not_in() -> None:
    assert "users.age IN" in compiled({"age": {"$in": [1, 2]}})
    sql = compiled({"age": {"$nin": [1, 2]}})
    assert "users.age NOT IN" in sql
    assert "users.age IS NULL" in sql


def test_in_with_none_also_matches_null() -> None:
    sql = compiled({"role": {"$in": [None, "x"]}})
    assert "users.role IN" in sql
    assert "users.role IS NULL" in sql
    assert compiled({"role": {"$in": [None]}}) == "users.role IS NULL"


def test_not_in_with_none_excludes_null() -> None:
    sql = compiled({"role": {"$nin": [None, "x"]}})
    assert "users.role IS NOT NULL" in sql
    assert "users.role NOT IN" in sql
    assert " OR " not in sql
    assert compiled({"role": {"$nin": [None]}}) == "users.role IS NOT NULL"


def test_like_and_not_like_ignore_case() -> None:
    assert compiled({"name": {"$like": "Ad%"}}) == "lower(users.name) LIKE lower(:name_1)"
    assert (
        compiled({"name": {"$notLike": "Ad%"}})
        == "lower(users.name) NOT LIKE lower(:name_1)"
    )


def test_like_renders_ilike_on_postgres() -> None:
    expr = compile_table_filter(users, {"name": {"$like": "Ad%"}})
    assert expr is not None
    assert str(expr.compile(dialect=postgresql.dialect())) == "users.name ILIKE %(name_1)s"


def test_or_is_conjoined_with_siblings() -> None:
    sql = compiled({"status": "active", "$or": [{"role": "admin"}, {"role": "owner"}]})
    assert sql.count("users.status = ") == 2
    assert "users.role = :role_1" in sql
    assert "users.role = :role_2" in sql
    assert " OR " in sql
    assert " AND " in sql


def test_or_branches_are_namespaced() -> None:
    sql = compiled({"$or": [{"name": "a"}, {"age": {"$gt": 3}}]})
    assert sql == "users.name = :name_1 OR users.age > :age_1"


def test_unknown_field_raises_with_suggestion() -> None:
    with pytest.raises(FieldNotFoundError, match="Did you mean: name"):
        compile_table_filter(users, {"nmae": "x"})


def test_model_compiler_uses_mapped_attributes() -> None:
    expr = compile_model_filter(UserRecord, {"age": {"$gte": 18}, "name": {"$like": "A%"}})
    assert expr is not None
    sql = str(expr.compile())
    assert "people.age >= :age_1" in sql
    assert "lower(people.name) LIKE lower(:name_1)" in sql


def test_model_compiler_unknown_field() -> None:
    with pytest.raises(FieldNotFoundError):
        compile_model_filter(UserRecord, {"status": "x"})


def test_aliased_model_resolver() -> None:
    alias = aliased(UserRecord, name="people_join")
    column = model_column_resolver(alias)("name")
    assert str((column == "x").compile()) == "people_join.name = :name_1"


def test_aliased_table_resolver() -> None:
    alias = users.alias("users_join")
    assert str(table_column_resolver(alias)("age").compile()) == "users_join.age"


def test_apply_query_options() -> None:
    opts = QueryOptions.from_dict({"orderBy": ["age", "desc"], "limit": 5, "offset": 10})
    stmt = apply_query_options(select(users), table_column_resolver(users), opts)
    sql = str(stmt.compile())
    assert "ORDER BY users.age DESC" in sql
    assert "LIMIT" in sql
    assert "OFFSET" in sql


def test_apply_query_options_without_order_keeps_native_order() -> None:
    stmt = apply_query_options(select(users), table_column_resolver(users), QueryOptions())
    assert "ORDER BY" not in str(stmt.compile())


def test_custom_registry_without_like() -> None:
    registry = build_default_sqla_registry()
    registry.unregister(FilterOperator.LIKE)
    with pytest.raises(OperatorNotFoundError):
        compile_table_filter(users, {"name": {"$like": "a%"}}, registry=registry)


def test_empty_registry_reports_valid_operators() -> None:
    with pytest.raises(OperatorNotFoundError) as exc:
        compile_table_filter(users, {"age": 3}, registry=SQLAlchemyOperatorRegistry())
    assert exc.value.valid_operators == []

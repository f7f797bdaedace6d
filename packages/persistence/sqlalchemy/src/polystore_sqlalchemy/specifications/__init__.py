"""
Filter-to-SQLAlchemy compilation.

Public API:
    - ``compile_table_filter(table, where)``: relational compiler
    - ``compile_model_filter(model, where)``: ORM compiler
    - ``build_sqla_filter(resolve_column, node)``: compile a parsed AST node
    - ``apply_query_options(stmt, resolve_column, options)``: ordering and
      pagination
    - ``DEFAULT_SQLA_REGISTRY``: the default operator registry
    - ``SQLAlchemyOperator`` / ``SQLAlchemyOperatorRegistry``: extension
      points for custom operators
"""

from .compiler import (
    apply_query_options,
    build_sqla_filter,
    compile_model_filter,
    compile_table_filter,
    model_column_resolver,
    table_column_resolver,
)
from .operators import DEFAULT_SQLA_REGISTRY
from .strategy import SQLAlchemyOperator, SQLAlchemyOperatorRegistry

__all__ = [
    "build_sqla_filter",
    "apply_query_options",
    "compile_model_filter",
    "compile_table_filter",
    "model_column_resolver",
    "table_column_resolver",
    "DEFAULT_SQLA_REGISTRY",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
]

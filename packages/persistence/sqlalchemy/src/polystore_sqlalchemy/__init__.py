"""polystore-sqlalchemy: relational backends for polystore.

Two adapters share one filter compiler:

- :class:`SQLAlchemyCoreAdapter`: query builder over ``Table`` objects
- :class:`SQLAlchemyORMAdapter`: runtime mapped classes + ``AsyncSession``
"""

from __future__ import annotations

from .config import EngineConfig, ORMConfig, SQLConfig
from .core.adapter import SQLAlchemyCoreAdapter
from .orm.adapter import SQLAlchemyORMAdapter
from .specifications import (
    DEFAULT_SQLA_REGISTRY,
    SQLAlchemyOperator,
    SQLAlchemyOperatorRegistry,
    compile_model_filter,
    compile_table_filter,
)

__all__ = [
    "DEFAULT_SQLA_REGISTRY",
    "EngineConfig",
    "ORMConfig",
    "SQLAlchemyCoreAdapter",
    "SQLAlchemyORMAdapter",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "SQLConfig",
    "compile_model_filter",
    "compile_table_filter",
]

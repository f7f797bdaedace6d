"""Query-builder backend (SQLAlchemy Core)."""

from .adapter import SQLAlchemyCoreAdapter

__all__ = ["SQLAlchemyCoreAdapter"]

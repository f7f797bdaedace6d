"""ORM-mediated backend (SQLAlchemy ORM + AsyncSession)."""

from .adapter import SQLAlchemyORMAdapter
from .models import MappedRecord, ModelRegistry

__all__ = ["MappedRecord", "ModelRegistry", "SQLAlchemyORMAdapter"]

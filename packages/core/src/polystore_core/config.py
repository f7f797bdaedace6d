"""Base class for per-backend configuration records."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from .primitives.exceptions import ConfigurationError

TConfig = TypeVar("TConfig", bound="BackendConfig")


class BackendConfig(BaseModel):
    """
    Validated connection settings handed to ``adapter.init(config)``.

    Subclasses declare the backend's fields; camelCase aliases are accepted
    next to the Python names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @classmethod
    def from_value(
        cls: type[TConfig], value: TConfig | Mapping[str, Any] | None
    ) -> TConfig:
        """Coerce ``None``, a mapping or an instance into ``cls``."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        try:
            return cls.model_validate(value)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {cls.__name__}: {e}") from e

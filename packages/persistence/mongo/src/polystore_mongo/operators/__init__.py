"""MongoDB operator compilers for the filter AST."""

from __future__ import annotations

from .set import compile_set
from .standard import compile_standard
from .string import compile_string, like_to_regex

__all__ = [
    "compile_set",
    "compile_standard",
    "compile_string",
    "like_to_regex",
]
